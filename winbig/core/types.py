import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, PositiveFloat, validator

from winbig.core.utils import parse_decimal


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value) -> "Side":
        """Case-insensitive lookup; raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"side must be BUY or SELL, got {value!r}")


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"

    @classmethod
    def parse(cls, value) -> "Outcome":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"outcome must be YES or NO, got {value!r}")

    @property
    def hash_field(self) -> str:
        return f"orderbook_{self.value.lower()}"


class OrderLevel(BaseModel):
    price: float = 0.0
    size: float = 0.0

    @validator("price", "size", pre=True)
    def coerce_decimal(cls, v) -> float:
        # Malformed quotes degrade to 0 and get skipped by the simulator
        value = parse_decimal(v)
        return value if value > 0 else 0.0

    @property
    def executable(self) -> bool:
        return self.price > 0 and self.size > 0


class OrderBook(BaseModel):
    """Two-sided snapshot for one market outcome.

    Extra keys from the feed are ignored; levels keep the order they arrived in.
    """
    bids: List[OrderLevel] = Field(default_factory=list)
    asks: List[OrderLevel] = Field(default_factory=list)
    market: Optional[str] = None
    asset_id: Optional[str] = None
    timestamp: Optional[str] = None
    hash: Optional[str] = None

    @validator("market", "asset_id", "timestamp", "hash", pre=True)
    def metadata_as_str(cls, v):
        return None if v is None else str(v)

    def levels_for(self, side: Side) -> List[OrderLevel]:
        """BUY crosses into resting asks, SELL into resting bids."""
        return self.asks if side is Side.BUY else self.bids


class ExecutionRequest(BaseModel):
    market_id: str
    outcome: Outcome
    target_cost: PositiveFloat
    side: Side

    @validator("target_cost")
    def target_cost_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("target_cost must be finite")
        return v

    @validator("outcome", pre=True)
    def parse_outcome(cls, v) -> Outcome:
        return Outcome.parse(v)

    @validator("side", pre=True)
    def parse_side(cls, v) -> Side:
        return Side.parse(v)


class ExecutionResult(BaseModel):
    success: bool
    side: Side
    vwap: Optional[float] = None
    total_cost: Optional[float] = None
    executed_shares: Optional[float] = None
    potential_payout: Optional[float] = None
    price_impact_pct: Optional[float] = None
    fair_price: Optional[float] = None
    fill_ratio: Optional[float] = None
    levels_consumed: Optional[int] = None
    summary: Optional[str] = None
    steps: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def failure(cls, side: Side, error: str) -> "ExecutionResult":
        return cls(success=False, side=side, error=error)
