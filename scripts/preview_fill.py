import argparse
from pathlib import Path

from winbig.collector.snapshots import build_provider
from winbig.core.config import load_config
from winbig.core.types import Outcome
from winbig.execution.simulator import preview_both_sides


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview BUY and SELL fills for one market outcome")
    parser.add_argument("market_id")
    parser.add_argument("amount", type=float)
    parser.add_argument("--outcome", default="YES")
    parser.add_argument("--config", default="config.yaml")
    args = parser.parse_args()

    config = load_config(Path(args.config))
    provider = build_provider(config)
    try:
        book = provider.get_snapshot(args.market_id, Outcome.parse(args.outcome))
    finally:
        provider.close()

    if book is None:
        print(f"✗ No order book snapshot for {args.market_id} ({args.outcome})")
        return

    for side, result in preview_both_sides(book, args.amount, config.simulator.epsilon).items():
        if not result.success:
            print(f"✗ {side.value}: {result.error}")
            continue
        print(f"✓ {result.summary}")
        for step in result.steps:
            print(f"    {step}")


if __name__ == "__main__":
    main()
