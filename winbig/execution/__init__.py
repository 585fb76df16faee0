from winbig.execution.simulator import (
    DEFAULT_EPSILON,
    best_quotes,
    compute_fill,
    fair_price,
    preview_both_sides,
)

__all__ = [
    "DEFAULT_EPSILON",
    "best_quotes",
    "compute_fill",
    "fair_price",
    "preview_both_sides",
]
