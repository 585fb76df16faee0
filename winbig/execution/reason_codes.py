"""Centralized failure messages returned in unsuccessful execution previews."""
from enum import Enum


class FillFailureReason(Enum):
    """Simulation-infeasible outcomes. Values are shown to users verbatim."""
    EMPTY_SIDE = "No orders available on the selected side."
    AMOUNT_TOO_LOW = "Investment amount is too low to purchase any shares at current prices."
    INVALID_AMOUNT = "Investment amount must be a positive number."


class RequestErrorReason(Enum):
    """Boundary rejections (HTTP 400/404/500)."""
    MISSING_PARAMS = "Missing required parameters: market_id, outcome, amount, side"
    INVALID_AMOUNT = "Invalid amount parameter"
    INVALID_SIDE = "Invalid side parameter: expected BUY or SELL"
    INVALID_OUTCOME = "Invalid outcome parameter: expected YES or NO"
    SNAPSHOT_NOT_FOUND = "Deep liquidity analysis is currently unavailable for this market."
    INTERNAL = "Failed to calculate execution preview."
