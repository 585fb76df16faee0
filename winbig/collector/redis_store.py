"""Order book snapshots stored in Upstash Redis, read over its REST API."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from winbig.collector.snapshots import parse_order_book
from winbig.core.config import AppConfig
from winbig.core.errors import SnapshotFetchError
from winbig.core.types import OrderBook, Outcome
from winbig.core.utils import backoff_delay


logger = logging.getLogger("winbig.redis")

SLOW_OPERATION_SECONDS = 1.0


class UpstashSnapshotProvider:
    """
    Reads `HGET market:<id> orderbook_yes|orderbook_no`.

    Values are written by the market ingester as JSON strings; Upstash may
    also hand back already-decoded objects. Transport errors and 5xx
    responses are retried with exponential backoff.
    """

    name = "redis"

    def __init__(
        self,
        rest_url: str,
        rest_token: str,
        key_prefix: str = "market:",
        timeout: float = 3.0,
        retries: int = 3,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not rest_url or not rest_token:
            raise ValueError(
                "Missing required Redis settings: UPSTASH_REDIS_REST_URL, UPSTASH_REDIS_REST_TOKEN"
            )
        self.key_prefix = key_prefix
        self.retries = retries
        self._sleep = sleep
        self._client = client or httpx.Client(
            base_url=rest_url.rstrip("/"),
            headers={"Authorization": f"Bearer {rest_token}"},
            timeout=timeout,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "UpstashSnapshotProvider":
        return cls(
            rest_url=config.redis.rest_url,
            rest_token=config.redis.rest_token,
            key_prefix=config.snapshots.key_prefix,
            timeout=config.snapshots.timeout_seconds,
            retries=config.snapshots.retries,
        )

    def _command(self, *args: str) -> Any:
        """Run one Redis command through the REST endpoint and return `result`."""
        last_error: Optional[Exception] = None

        for attempt in range(self.retries + 1):
            if attempt:
                self._sleep(backoff_delay(attempt - 1))

            start = time.monotonic()
            try:
                response = self._client.post("/", json=list(args))
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    f"Redis {args[0]} attempt {attempt + 1} failed: {type(e).__name__}: {e}"
                )
                continue

            elapsed = time.monotonic() - start
            if elapsed > SLOW_OPERATION_SECONDS:
                logger.warning(f"Slow Redis operation detected: {elapsed * 1000:.0f}ms")

            if response.status_code >= 500:
                last_error = httpx.HTTPStatusError(
                    f"Upstash returned {response.status_code}",
                    request=response.request,
                    response=response,
                )
                logger.warning(
                    f"Redis {args[0]} attempt {attempt + 1} failed: HTTP {response.status_code}"
                )
                continue

            try:
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPStatusError, ValueError) as e:
                raise SnapshotFetchError(f"Redis {args[0]} failed: {e}") from e

            if isinstance(payload, dict) and payload.get("error"):
                raise SnapshotFetchError(f"Redis {args[0]} failed: {payload['error']}")
            return payload.get("result") if isinstance(payload, dict) else None

        raise SnapshotFetchError(
            f"Redis {args[0]} failed after {self.retries + 1} attempts: {last_error}"
        )

    def get_snapshot(self, market_id: str, outcome: Outcome) -> Optional[OrderBook]:
        outcome = Outcome.parse(outcome)
        key = f"{self.key_prefix}{market_id}"
        raw = self._command("HGET", key, outcome.hash_field)

        if raw is None:
            logger.warning(
                f"Order book data not found in HASH '{key}' with field '{outcome.hash_field}'."
            )
            return None

        return parse_order_book(raw)

    def ping(self) -> bool:
        return self._command("PING") == "PONG"

    def close(self) -> None:
        self._client.close()
