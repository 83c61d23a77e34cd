"""
OpenAI embeddings client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

import openai
from openai import AsyncOpenAI

from budtender.config import Settings
from budtender.embeddings.vector import validate_vector
from budtender.errors import InvalidInputError, ProviderError

logger = logging.getLogger(__name__)


class EmbeddingsClient:
    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.model = settings.embedding_model_name
        self.dimensions = settings.embedding_dimensions
        self.batch_size = settings.embedding_batch_size
        self.max_input_chars = settings.embedding_max_input_chars
        self.timeout = settings.embedding_timeout_sec
        self._api_key = settings.openai_key()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so that wiring without credentials stays cheap.
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    def _check_input(self, text: str) -> None:
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Embedding input must be non-empty text")
        if len(text) > self.max_input_chars:
            raise InvalidInputError(
                "Embedding input is too long",
                details={"length": len(text), "max_length": self.max_input_chars},
            )

    async def _create(self, batch: List[str]) -> List[List[float]]:
        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(model=self.model, input=batch, dimensions=self.dimensions),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError("Embedding request timed out", details={"timeout_sec": self.timeout}) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"Embedding request failed: {exc}", details={"model": self.model}) from exc

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise ProviderError(
                "Embedding provider returned the wrong number of vectors",
                details={"expected": len(batch), "received": len(data)},
            )
        try:
            return [list(validate_vector(item.embedding, self.dimensions)) for item in data]
        except InvalidInputError as exc:
            raise ProviderError(f"Embedding provider returned a malformed vector: {exc.message}") from exc

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        for text in texts:
            self._check_input(text)

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            embeddings.extend(await self._create(batch))
        logger.debug("Embedded texts", extra={"count": len(texts), "model": self.model})
        return embeddings

    async def embed_text(self, text: str) -> List[float]:
        vectors = await self.embed_texts([text])
        return vectors[0]


__all__ = ["EmbeddingsClient"]
