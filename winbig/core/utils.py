import math
from datetime import datetime, timezone
from typing import Any


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_decimal(value: Any) -> float:
    """Parse a price/size from a string or number; anything unusable becomes 0.0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed):
        return 0.0
    return parsed


def backoff_delay(retry_count: int) -> float:
    """Exponential backoff in seconds: 50ms, 136ms, 369ms ... capped at 2s."""
    return min(math.exp(retry_count) * 50, 2000) / 1000.0
