"""Order book snapshot providers and payload normalization."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol, Tuple

from pydantic import ValidationError

from winbig.core.config import AppConfig
from winbig.core.errors import SnapshotParseError
from winbig.core.types import OrderBook, Outcome


class OrderBookSnapshotProvider(Protocol):
    """Supplies a fresh order book for one market outcome."""

    name: str

    def get_snapshot(self, market_id: str, outcome: Outcome) -> Optional[OrderBook]:
        """Return the current book, or None when no snapshot exists."""
        ...

    def close(self) -> None:
        ...


def parse_order_book(raw: Any) -> OrderBook:
    """
    Normalize a stored snapshot into an OrderBook.

    Accepts a JSON string/bytes or an already-decoded mapping. Individual
    malformed levels are zeroed by OrderLevel; only payloads that cannot be
    read as {bids: [...], asks: [...]} raise SnapshotParseError.
    """
    if isinstance(raw, OrderBook):
        return raw

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SnapshotParseError(f"Order book snapshot is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise SnapshotParseError(
            f"Order book snapshot must be an object, got {type(raw).__name__}"
        )

    for key in ("bids", "asks"):
        if raw.get(key) is None:
            continue
        if not isinstance(raw[key], list):
            raise SnapshotParseError(f"Order book '{key}' must be a list")
        if any(not isinstance(level, dict) for level in raw[key]):
            raise SnapshotParseError(f"Order book '{key}' contains non-object levels")

    data = {k: v for k, v in raw.items() if v is not None}
    try:
        return OrderBook(**data)
    except ValidationError as e:
        raise SnapshotParseError(f"Order book snapshot failed validation: {e}") from e


class InMemorySnapshotProvider:
    """Dict-backed provider for tests and local demos."""

    name = "memory"

    def __init__(self, books: Optional[Dict[Tuple[str, Outcome], Any]] = None) -> None:
        self._books: Dict[Tuple[str, Outcome], Any] = dict(books or {})

    def put(self, market_id: str, outcome: Outcome, book: Any) -> None:
        self._books[(market_id, Outcome.parse(outcome))] = book

    def get_snapshot(self, market_id: str, outcome: Outcome) -> Optional[OrderBook]:
        raw = self._books.get((market_id, Outcome.parse(outcome)))
        if raw is None:
            return None
        return parse_order_book(raw)

    def close(self) -> None:
        pass


def build_provider(config: AppConfig) -> OrderBookSnapshotProvider:
    """Construct the provider selected by snapshots.source."""
    source = config.snapshots.source

    if source == "redis":
        from winbig.collector.redis_store import UpstashSnapshotProvider
        return UpstashSnapshotProvider.from_config(config)

    if source == "clob":
        from winbig.collector.clob import ClobSnapshotProvider
        return ClobSnapshotProvider.from_config(config)

    return InMemorySnapshotProvider()
