"""
Offline stand-ins for the OpenAI SDK surface used by the budtender clients.
"""

from __future__ import annotations

import asyncio
import re
import zlib
from types import SimpleNamespace
from typing import Dict, List, Sequence

import openai

from budtender.catalog.base import CatalogItem

# Words that pull a text toward the same direction, so "calming for sleep"
# lands near a sleepy indica without a real model.
CONCEPTS: Dict[int, set] = {
    0: {"calm", "calming", "relaxed", "relaxing", "sleep", "sleepy", "indica", "cbd", "rest", "restful", "night"},
    1: {"energetic", "energy", "uplifted", "stimulant", "stimulating", "sativa", "focused", "wake", "daytime"},
    2: {"happy", "euphoric", "giggly"},
    3: {"creative", "artistic"},
}
CONCEPT_WEIGHT = 3.0
WORD_WEIGHT = 0.1
RESERVED_DIMS = 16


def fake_vector(text: str, dimensions: int = 1536) -> List[float]:
    vector = [0.0] * dimensions
    for word in re.findall(r"[a-z]+", text.lower()):
        for idx, words in CONCEPTS.items():
            if word in words:
                vector[idx] += CONCEPT_WEIGHT
        vector[RESERVED_DIMS + zlib.crc32(word.encode()) % (dimensions - RESERVED_DIMS)] += WORD_WEIGHT
    if not any(vector):
        vector[-1] = 1.0
    return vector


class FakeEmbeddingsAPI:
    def __init__(self, fail_on: Sequence[str] = ()) -> None:
        self.calls: List[List[str]] = []
        self.fail_on = list(fail_on)

    async def create(self, model: str, input: List[str], dimensions: int = 1536):
        self.calls.append(list(input))
        for text in input:
            if any(marker in text for marker in self.fail_on):
                raise openai.OpenAIError(f"provider refused: {text[:20]}")
        data = [SimpleNamespace(index=i, embedding=fake_vector(text, dimensions)) for i, text in enumerate(input)]
        return SimpleNamespace(data=data, model=model)


class FakeChatStream:
    """Async iterable of chat chunks with an explicit ``close``."""

    def __init__(
        self,
        fragments: Sequence[str],
        delay: float = 0.0,
        fail_after: int | None = None,
        hang_after: int | None = None,
    ) -> None:
        self.fragments = list(fragments)
        self.delay = delay
        self.fail_after = fail_after
        self.hang_after = hang_after
        self.closed = False
        self.emitted = 0

    async def _chunks(self):
        for idx, fragment in enumerate(self.fragments):
            if self.fail_after is not None and idx == self.fail_after:
                raise openai.OpenAIError("connection reset mid-stream")
            if self.hang_after is not None and idx == self.hang_after:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
            self.emitted += 1
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=fragment))])
        # Providers end with a chunk carrying no content.
        yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=None))])

    def __aiter__(self):
        return self._chunks()

    async def close(self) -> None:
        self.closed = True


class FakeCompletionsAPI:
    def __init__(self, reply: str = "Try Calm Harbor tonight.", fragments: Sequence[str] | None = None, **stream_options) -> None:
        self.reply = reply
        self.fragments = list(fragments) if fragments is not None else ["Try ", "Calm ", "Harbor ", "tonight."]
        self.stream_options = stream_options
        self.calls: List[List[dict]] = []
        self.streams: List[FakeChatStream] = []
        self.error: Exception | None = None

    async def create(self, model: str, temperature: float, messages: List[dict], stream: bool = False):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        if stream:
            fake = FakeChatStream(self.fragments, **self.stream_options)
            self.streams.append(fake)
            return fake
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))])


class FakeOpenAI:
    def __init__(self, embeddings: FakeEmbeddingsAPI | None = None, completions: FakeCompletionsAPI | None = None) -> None:
        self.embeddings = embeddings or FakeEmbeddingsAPI()
        self.chat = SimpleNamespace(completions=completions or FakeCompletionsAPI())


def make_item(
    item_id: str,
    name: str,
    strain_type: str = "HYBRID",
    thc: float | None = 18,
    cbd: float | None = 0.1,
    effects: Sequence[str] = ("happy",),
    flavors: Sequence[str] = ("earthy",),
    description: str | None = None,
    stock: int = 10,
) -> CatalogItem:
    return CatalogItem(
        id=item_id,
        slug=name.lower().replace(" ", "-"),
        name=name,
        type=strain_type,
        thc_percent=thc,
        cbd_percent=cbd,
        effects=tuple(effects),
        flavors=tuple(flavors),
        description=description,
        stock=stock,
    )


def sample_catalog() -> List[CatalogItem]:
    """One high-CBD sleepy indica among stimulant sativas."""
    return [
        make_item(
            "s-001",
            "Calm Harbor",
            strain_type="INDICA",
            thc=6,
            cbd=15,
            effects=("relaxed", "sleepy", "calm"),
            flavors=("lavender", "earthy"),
            description="A high CBD indica for calm evenings and restful sleep.",
            stock=14,
        ),
        make_item(
            "s-002",
            "Jet Fuel",
            strain_type="SATIVA",
            thc=24,
            effects=("energetic", "uplifted", "focused"),
            flavors=("diesel",),
            description="A stimulant sativa that keeps you moving.",
            stock=30,
        ),
        make_item(
            "s-003",
            "Morning Spark",
            strain_type="SATIVA",
            thc=21,
            effects=("energetic", "creative"),
            flavors=("citrus",),
            description="Stimulating daytime pick with a bright citrus finish.",
            stock=8,
        ),
        make_item(
            "s-004",
            "Green Crack",
            strain_type="SATIVA",
            thc=19,
            effects=("energetic", "focused", "happy"),
            flavors=("mango",),
            description="Sharp energy and focus through the afternoon.",
            stock=5,
        ),
    ]
