"""
OpenAI chat LLM client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List

import openai
from openai import AsyncOpenAI

from budtender.config import Settings
from budtender.errors import GenerationFailure, ProviderError

logger = logging.getLogger(__name__)


class LLMClient:
    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.model = settings.llm_model_name
        self.temperature = settings.llm_temperature
        self.timeout = settings.generation_timeout_sec
        self._api_key = settings.openai_key()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def chat(self, messages: List[Dict[str, Any]]) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    messages=messages,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError("Chat completion timed out", details={"timeout_sec": self.timeout}) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"Chat completion failed: {exc}", details={"model": self.model}) from exc

        choice = response.choices[0].message
        return choice.content or ""

    async def stream_chat(self, messages: List[Dict[str, Any]]) -> AsyncIterator[str]:
        """
        Yield text deltas in the order the model produces them.

        Closing this generator (consumer stopped, task cancelled) closes the
        underlying HTTP stream, which aborts the provider request.
        """
        try:
            stream = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    messages=messages,
                    stream=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationFailure("Chat stream did not start in time", details={"timeout_sec": self.timeout}) from exc
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"Chat stream failed to start: {exc}", details={"model": self.model}) from exc

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"Chat stream failed: {exc}", details={"model": self.model}) from exc
        finally:
            await stream.close()
            logger.debug("Chat stream closed", extra={"model": self.model})


__all__ = ["LLMClient"]
