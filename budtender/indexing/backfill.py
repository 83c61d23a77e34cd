"""
Backfill pipeline: compose catalog text, embed it, and upsert into the vector store.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Sequence

from tqdm import tqdm

from budtender.catalog.base import CatalogItem, CatalogSource
from budtender.config import Settings
from budtender.embeddings.client import EmbeddingsClient
from budtender.embeddings.composer import TextComposer
from budtender.embeddings.vector import Embedding
from budtender.indexing.indexer import VectorIndexer
from budtender.indexing.rate_limit import TokenBucketLimiter

logger = logging.getLogger(__name__)


@dataclass
class BackfillSummary:
    processed: int = 0
    failed: int = 0
    failed_ids: List[str] = field(default_factory=list)
    index_built: bool = False
    elapsed_sec: float = 0.0


class BackfillJob:
    """
    Re-embeds the whole catalog.

    A failure on one item is logged and counted and never stops the run.
    Provider calls go through a shared token bucket and up to ``concurrency``
    workers run at once. Rerunning overwrites each item's vector, so the job is
    idempotent for the same catalog and model.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: CatalogSource,
        embeddings_client: EmbeddingsClient,
        indexer: VectorIndexer,
        limiter: TokenBucketLimiter | None = None,
        composer: TextComposer | None = None,
        concurrency: int | None = None,
        show_progress: bool = False,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.catalog = catalog
        self.embeddings_client = embeddings_client
        self.indexer = indexer
        self.model = settings.embedding_model_name
        self.dimensions = settings.embedding_dimensions
        self.limiter = limiter or TokenBucketLimiter(settings.embed_requests_per_minute, settings.embed_burst)
        self.composer = composer or TextComposer.from_settings(settings)
        self.concurrency = concurrency or settings.backfill_concurrency
        self.show_progress = show_progress
        self.logger = logger_ or logging.getLogger(__name__)

    async def embed_item(self, item: CatalogItem, dry_run: bool = False) -> None:
        text = self.composer.compose(item)
        if dry_run:
            return
        async with self.limiter:
            values = await self.embeddings_client.embed_text(text)
        embedding = Embedding.from_values(item.id, values, self.model, self.dimensions)
        await self.indexer.upsert(embedding, document=text)

    async def run(
        self,
        items: Sequence[CatalogItem] | None = None,
        build_index: bool = True,
        dry_run: bool = False,
    ) -> BackfillSummary:
        started = time.time()
        pending = sorted(items if items is not None else self.catalog.list_items(), key=lambda item: item.id)
        summary = BackfillSummary()
        self.logger.info(
            "Backfill started",
            extra={"items": len(pending), "model": self.model, "concurrency": self.concurrency, "dry_run": dry_run},
        )

        queue: asyncio.Queue[CatalogItem] = asyncio.Queue()
        for item in pending:
            queue.put_nowait(item)

        progress = tqdm(total=len(pending), desc="Embedding", unit="items", disable=not self.show_progress)

        async def worker() -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    await self.embed_item(item, dry_run=dry_run)
                except Exception as exc:
                    summary.failed += 1
                    summary.failed_ids.append(item.id)
                    self.logger.exception(
                        "Embedding failed for item",
                        extra={"item_id": item.id, "item_name": item.name, "error": str(exc)},
                    )
                else:
                    summary.processed += 1
                    self.logger.debug("Embedded item", extra={"item_id": item.id, "item_name": item.name})
                finally:
                    progress.update(1)

        try:
            workers = [asyncio.create_task(worker()) for _ in range(max(1, min(self.concurrency, len(pending) or 1)))]
            await asyncio.gather(*workers)
        finally:
            progress.close()

        summary.failed_ids.sort()
        if build_index and not dry_run:
            summary.index_built = await self._build_index()

        summary.elapsed_sec = time.time() - started
        self.logger.info(
            "Backfill completed",
            extra={
                "processed": summary.processed,
                "failed": summary.failed,
                "index_built": summary.index_built,
                "elapsed_sec": round(summary.elapsed_sec, 2),
            },
        )
        return summary

    async def _build_index(self) -> bool:
        # A stale or missing index degrades retrieval; it does not fail the job.
        try:
            await self.indexer.build_index()
        except Exception:
            self.logger.exception("Vector index build failed")
            return False
        return True


__all__ = ["BackfillJob", "BackfillSummary"]
