"""Live order books from the Polymarket CLOB, resolved through the Gamma API."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from py_clob_client.client import ClobClient
from py_clob_client.exceptions import PolyApiException

from winbig.collector.snapshots import parse_order_book
from winbig.core.config import AppConfig
from winbig.core.errors import SnapshotFetchError
from winbig.core.types import OrderBook, Outcome


logger = logging.getLogger("winbig.clob")


def resolve_token_ids(raw_market: dict) -> Dict[Outcome, str]:
    """
    Map YES/NO to CLOB token ids from a raw Gamma market.

    Gamma encodes `outcomes` and `clobTokenIds` as JSON strings; the first
    token is YES and the second NO.
    """
    try:
        token_ids = raw_market.get("clobTokenIds", "[]")
        if isinstance(token_ids, str):
            token_ids = json.loads(token_ids)
    except (TypeError, ValueError):
        return {}

    tokens: Dict[Outcome, str] = {}
    for outcome, token_id in zip((Outcome.YES, Outcome.NO), token_ids or []):
        if token_id:
            tokens[outcome] = str(token_id)
    return tokens


def summary_to_dict(raw_book: Any) -> dict:
    """Flatten a py-clob-client OrderBookSummary into the stored snapshot shape."""
    if isinstance(raw_book, dict):
        return raw_book
    return {
        "market": getattr(raw_book, "market", None),
        "asset_id": getattr(raw_book, "asset_id", None),
        "timestamp": getattr(raw_book, "timestamp", None),
        "hash": getattr(raw_book, "hash", None),
        "bids": [{"price": lvl.price, "size": lvl.size} for lvl in raw_book.bids or []],
        "asks": [{"price": lvl.price, "size": lvl.size} for lvl in raw_book.asks or []],
    }


class ClobSnapshotProvider:
    name = "clob"

    def __init__(
        self,
        clob_client: ClobClient,
        gamma_client: httpx.Client,
    ) -> None:
        self.clob_client = clob_client
        self.gamma_client = gamma_client

    @classmethod
    def from_config(cls, config: AppConfig) -> "ClobSnapshotProvider":
        # Read-only client, no auth needed
        return cls(
            clob_client=ClobClient(host=config.clob.host),
            gamma_client=httpx.Client(
                base_url=config.clob.gamma_host,
                timeout=config.snapshots.timeout_seconds,
            ),
        )

    def fetch_market(self, market_id: str) -> Optional[dict]:
        """
        Look up a Gamma market by condition id (0x-prefixed) or Gamma numeric id.

        Condition ids match the `market:<condition_id>` keys used for stored
        snapshots, so both providers accept the same market_id.
        """
        is_condition_id = market_id.lower().startswith("0x")
        try:
            if is_condition_id:
                response = self.gamma_client.get(
                    "/markets", params={"condition_ids": market_id}
                )
            else:
                response = self.gamma_client.get(f"/markets/{market_id}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SnapshotFetchError(f"Failed to fetch market from Gamma API: {e}") from e

        if is_condition_id:
            data = data[0] if isinstance(data, list) and data else None
        return data if isinstance(data, dict) else None

    def get_snapshot(self, market_id: str, outcome: Outcome) -> Optional[OrderBook]:
        outcome = Outcome.parse(outcome)
        market = self.fetch_market(market_id)
        if market is None:
            logger.warning(f"Market {market_id} not found on Gamma API")
            return None

        token_id = resolve_token_ids(market).get(outcome)
        if token_id is None:
            logger.warning(f"Market {market_id} has no {outcome.value} token")
            return None

        try:
            raw_book = self.clob_client.get_order_book(token_id)
        except PolyApiException as e:
            if getattr(e, "status_code", None) == 404:
                logger.warning(f"No CLOB order book for token {token_id[:20]}...")
                return None
            raise SnapshotFetchError(
                f"Failed to fetch orderbook for token {token_id[:20]}...: {e}"
            ) from e

        if not raw_book:
            return None
        return parse_order_book(summary_to_dict(raw_book))

    def close(self) -> None:
        self.gamma_client.close()
