"""HTTP boundary: execution previews over FastAPI."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from winbig.collector.snapshots import OrderBookSnapshotProvider, build_provider
from winbig.core.config import AppConfig, load_config
from winbig.core.types import ExecutionRequest, ExecutionResult, Outcome, Side
from winbig.core.utils import iso_timestamp, parse_decimal
from winbig.execution.reason_codes import RequestErrorReason
from winbig.execution.simulator import compute_fill
from winbig.ops.logger import setup_logger


logger = logging.getLogger("winbig.api")


def result_to_response(result: ExecutionResult) -> dict:
    """Serialize a fill summary with the field names the web client reads."""
    body = {
        "success": result.success,
        "vwap": result.vwap,
        "totalCost": result.total_cost,
        "executedShares": result.executed_shares,
        "potentialPayout": result.potential_payout,
        "price_impact_pct": result.price_impact_pct,
        "fillRatio": result.fill_ratio,
        "summary": result.summary,
        "steps": result.steps if result.success else None,
        "error": result.error,
    }
    body = {k: v for k, v in body.items() if v is not None}
    body["timestamp"] = iso_timestamp()
    return body


def _error(error: str, status_code: int, **extra) -> JSONResponse:
    body = {"success": False, "error": error, **extra, "timestamp": iso_timestamp()}
    return JSONResponse(body, status_code=status_code)


def _parse_request(
    market_id: Optional[str],
    outcome: Optional[str],
    amount: Optional[str],
    side: Optional[str],
) -> ExecutionRequest | JSONResponse:
    if not market_id or not outcome or not amount or not side:
        return _error(RequestErrorReason.MISSING_PARAMS.value, 400)

    target_cost = parse_decimal(amount.strip())
    if target_cost <= 0:
        return _error(RequestErrorReason.INVALID_AMOUNT.value, 400)

    try:
        Side.parse(side)
    except ValueError:
        return _error(RequestErrorReason.INVALID_SIDE.value, 400)
    try:
        Outcome.parse(outcome)
    except ValueError:
        return _error(RequestErrorReason.INVALID_OUTCOME.value, 400)

    try:
        return ExecutionRequest(
            market_id=market_id, outcome=outcome, target_cost=target_cost, side=side
        )
    except ValidationError:
        return _error(RequestErrorReason.INVALID_AMOUNT.value, 400)


def create_app(
    config: Optional[AppConfig] = None,
    provider: Optional[OrderBookSnapshotProvider] = None,
) -> FastAPI:
    """
    Build the API around an injected snapshot provider.

    The provider is closed on shutdown; when none is given one is built from
    config.snapshots.source.
    """
    config = config or AppConfig()
    setup_logger(config)
    provider = provider or build_provider(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Execution preview API starting (snapshots: {provider.name})")
        yield
        provider.close()
        logger.info("Execution preview API stopped")

    app = FastAPI(title="WinBig Execution Preview", lifespan=lifespan)
    app.state.config = config
    app.state.provider = provider

    @app.get("/health")
    def health():
        return {"status": "ok", "source": provider.name, "timestamp": iso_timestamp()}

    @app.get("/execution-preview")
    def execution_preview(
        request: Request,
        market_id: Optional[str] = None,
        condition_id: Optional[str] = None,
        outcome: Optional[str] = None,
        amount: Optional[str] = None,
        side: Optional[str] = None,
    ):
        parsed = _parse_request(market_id or condition_id, outcome, amount, side)
        if isinstance(parsed, JSONResponse):
            return parsed

        cfg: AppConfig = request.app.state.config
        snapshots: OrderBookSnapshotProvider = request.app.state.provider

        try:
            book = snapshots.get_snapshot(parsed.market_id, parsed.outcome)
            if book is None:
                return _error(RequestErrorReason.SNAPSHOT_NOT_FOUND.value, 404)

            result = compute_fill(
                book, parsed.target_cost, parsed.side, epsilon=cfg.simulator.epsilon
            )
        except Exception as e:
            logger.error(f"[execution-preview] {parsed.market_id}: {e}", exc_info=True)
            extra = {"message": str(e)} if cfg.app.is_development else {}
            return _error(RequestErrorReason.INTERNAL.value, 500, **extra)

        if not result.success:
            logger.info(
                f"[execution-preview] {parsed.market_id} {parsed.outcome.value} "
                f"{parsed.side.value} ${parsed.target_cost}: {result.error}"
            )
        return JSONResponse(result_to_response(result), status_code=200)

    return app


def main():
    """Entry point."""
    import uvicorn

    config = load_config(Path("config.yaml"))
    app = create_app(config)
    uvicorn.run(app, host=config.app.host, port=config.app.port)


if __name__ == "__main__":
    main()
