"""
Smoke test of the budtender conversation.

Example:
    python -m scripts.chat_smoke --message "Something calming for sleep?"
    python -m scripts.chat_smoke --message "And for daytime?" --buffered
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from budtender.api.deps import build_services
from budtender.config import settings, setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke test the budtender conversation.")
    parser.add_argument("--message", "-m", required=True, help="User message")
    parser.add_argument("--buffered", action="store_true", help="Wait for the full reply instead of streaming")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    services = build_services(settings)

    if args.buffered:
        result = await services.orchestrator.generate(args.message)
        print(result.content)
        strains = result.results
    else:
        stream = await services.orchestrator.stream(args.message)
        async for chunk in stream:
            print(chunk.content, end="", flush=True)
        print()
        strains = stream.results

    print("\n=== Strains in context ===")
    if not strains:
        print("  <none, generic guidance used>")
    for r in strains:
        print(f"  {r.id} {r.name}: {r.similarity:.3f}")


def main() -> None:
    setup_logging(logging.WARNING)
    logger = logging.getLogger(__name__)
    args = parse_args()

    try:
        asyncio.run(run(args))
    except Exception:
        logger.exception("Chat smoke failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
