"""
CLI for re-embedding the whole strain catalog.

Example:
    python -m scripts.backfill_embeddings --concurrency 4 --rpm 3000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from budtender.catalog import get_catalog
from budtender.config import settings, setup_logging
from budtender.embeddings.client import EmbeddingsClient
from budtender.indexing.backfill import BackfillJob
from budtender.indexing.indexer import VectorIndexer
from budtender.indexing.rate_limit import TokenBucketLimiter
from budtender.vector_store import get_vector_store


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Re-embed every catalog item into the vector store.")
    parser.add_argument("--concurrency", type=int, default=settings.backfill_concurrency, help="Parallel workers.")
    parser.add_argument(
        "--rpm",
        type=float,
        default=settings.embed_requests_per_minute,
        help="Embedding requests per minute budget.",
    )
    parser.add_argument("--burst", type=int, default=settings.embed_burst, help="Token bucket burst size.")
    parser.add_argument("--reset", action="store_true", help="Drop all stored vectors before embedding.")
    parser.add_argument("--skip-index", action="store_true", help="Do not rebuild the vector index afterwards.")
    parser.add_argument("--dry-run", action="store_true", help="Compose texts only, no provider calls.")
    return parser.parse_args()


async def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    indexer = VectorIndexer(get_vector_store(settings), settings.embedding_dimensions)
    if args.reset and not args.dry_run:
        logger.info("Clearing vector store", extra={"previous_count": await indexer.count()})
        await indexer.clear()

    job = BackfillJob(
        settings,
        get_catalog(settings),
        EmbeddingsClient(settings),
        indexer,
        limiter=TokenBucketLimiter(args.rpm, args.burst),
        concurrency=args.concurrency,
        show_progress=True,
        logger_=logger,
    )
    summary = await job.run(build_index=not args.skip_index, dry_run=args.dry_run)

    print(f"Processed: {summary.processed}")
    print(f"Failed: {summary.failed}")
    if summary.failed_ids:
        print("Failed items:", ", ".join(summary.failed_ids))
    print(f"Index built: {summary.index_built} (elapsed {summary.elapsed_sec:.2f}s)")
    return 1 if summary.failed else 0


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args()

    try:
        code = asyncio.run(run(args, logger))
    except Exception:
        logger.exception("Backfill failed")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
