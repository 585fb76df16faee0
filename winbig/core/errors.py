"""Exceptions raised by snapshot providers and translated at the HTTP boundary."""


class WinbigError(RuntimeError):
    """Base error for the execution preview service."""


class SnapshotError(WinbigError):
    """Order book snapshot could not be obtained."""


class SnapshotFetchError(SnapshotError):
    """Upstream store or API failed after retries."""


class SnapshotParseError(SnapshotError):
    """Snapshot payload cannot be interpreted as an order book."""
