"""
Conversation orchestration: retrieve strains, build the prompt, and generate
the budtender reply either buffered or as a cancellable stream.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Mapping, Sequence

from budtender.config import Settings
from budtender.errors import BudtenderError, GenerationFailure, InvalidInputError, ProviderError
from budtender.llm.client import LLMClient
from budtender.rag.context import ContextAssembler
from budtender.rag.prompts import SYSTEM_PROMPT, context_message
from budtender.rag.retriever import RetrievalResult, Retriever

logger = logging.getLogger(__name__)

HISTORY_ROLES = ("user", "assistant")


class TurnState(str, Enum):
    IDLE = "idle"
    RETRIEVING = "retrieving"
    COMPOSING = "composing"
    GENERATING = "generating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = frozenset({TurnState.COMPLETED, TurnState.CANCELLED, TurnState.FAILED})


@dataclass(frozen=True)
class StreamChunk:
    seq: int
    content: str


@dataclass
class PreparedTurn:
    turn_id: str
    messages: List[Dict[str, str]]
    results: List[RetrievalResult]
    state: TurnState = TurnState.COMPOSING


@dataclass
class TurnResult:
    content: str
    results: List[RetrievalResult] = field(default_factory=list)
    state: TurnState = TurnState.COMPLETED


class ResponseStream:
    """
    Lazy, single-consumer, forward-only sequence of ``StreamChunk``.

    Generation starts on the first pull. Each pull yields the next fragment,
    ends iteration on completion, or raises ``GenerationFailure``. Once the
    stream is completed, failed or cancelled every further pull ends
    iteration immediately.

    ``cancel()`` (or cancelling the consuming task) aborts the provider
    request; no chunk is delivered after it.
    """

    def __init__(
        self,
        fragments: AsyncIterator[str],
        results: Sequence[RetrievalResult] = (),
        idle_timeout: float | None = None,
        turn_id: str | None = None,
        logger_: logging.Logger | None = None,
    ) -> None:
        self._fragments = fragments
        self.results = list(results)
        self.idle_timeout = idle_timeout
        self.turn_id = turn_id or uuid.uuid4().hex
        self.logger = logger_ or logger
        self.state = TurnState.COMPOSING
        self._seq = 0
        self._pending: asyncio.Task | None = None
        self._cancel_requested = False

    @property
    def delivered(self) -> int:
        return self._seq

    def __aiter__(self) -> "ResponseStream":
        return self

    async def _pull(self) -> str | None:
        try:
            return await self._fragments.__anext__()
        except StopAsyncIteration:
            return None

    async def __anext__(self) -> StreamChunk:
        if self.state in TERMINAL_STATES:
            raise StopAsyncIteration
        if self._pending is not None and not self._pending.done():
            raise RuntimeError("ResponseStream supports a single consumer")

        if self.state is not TurnState.GENERATING:
            self._set_state(TurnState.GENERATING)

        self._pending = asyncio.ensure_future(self._pull())
        try:
            fragment = await asyncio.wait_for(self._pending, timeout=self.idle_timeout)
        except asyncio.CancelledError:
            if self._cancel_requested:
                # cancel() from another task: a normal end of the stream.
                raise StopAsyncIteration from None
            await self._shutdown(TurnState.CANCELLED)
            raise
        except asyncio.TimeoutError as exc:
            await self._shutdown(TurnState.FAILED)
            raise GenerationFailure(
                "Generation stalled", details={"idle_timeout_sec": self.idle_timeout, "turn_id": self.turn_id}
            ) from exc
        except GenerationFailure:
            await self._shutdown(TurnState.FAILED)
            raise
        except BudtenderError as exc:
            await self._shutdown(TurnState.FAILED)
            raise GenerationFailure(exc.message, details={"turn_id": self.turn_id}) from exc
        except Exception as exc:
            await self._shutdown(TurnState.FAILED)
            raise GenerationFailure(f"Generation failed: {exc}", details={"turn_id": self.turn_id}) from exc
        finally:
            self._pending = None

        if self._cancel_requested:
            raise StopAsyncIteration
        if fragment is None:
            self._set_state(TurnState.COMPLETED)
            raise StopAsyncIteration

        chunk = StreamChunk(seq=self._seq, content=fragment)
        self._seq += 1
        return chunk

    async def cancel(self) -> None:
        """Stop generation and release the provider stream."""
        if self.state in TERMINAL_STATES:
            return
        self._cancel_requested = True
        self._set_state(TurnState.CANCELLED)
        pending = self._pending
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait({pending})
        await self._fragments.aclose()

    async def aclose(self) -> None:
        await self.cancel()

    async def collect(self) -> str:
        """Drain the stream into one string."""
        return "".join([chunk.content async for chunk in self])

    async def _shutdown(self, state: TurnState) -> None:
        self._set_state(state)
        await self._fragments.aclose()

    def _set_state(self, state: TurnState) -> None:
        previous, self.state = self.state, state
        level = logging.WARNING if state is TurnState.FAILED else logging.INFO
        self.logger.log(
            level,
            "Turn state changed",
            extra={"turn_id": self.turn_id, "from_state": previous.value, "to_state": state.value, "chunks": self._seq},
        )


class ConversationOrchestrator:
    """Stateless across turns: every call receives the full history."""

    def __init__(
        self,
        settings: Settings,
        retriever: Retriever,
        llm_client: LLMClient,
        assembler: ContextAssembler | None = None,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.retriever = retriever
        self.llm_client = llm_client
        self.assembler = assembler or ContextAssembler(settings.max_context_items)
        self.top_k = settings.retrieval_top_k
        self.generation_timeout = settings.generation_timeout_sec
        self.logger = logger_ or logging.getLogger(__name__)

    # --- Public API ---
    async def generate(self, message: str, history: Sequence[Any] = ()) -> TurnResult:
        """Buffered mode: the complete reply once generation finishes."""
        turn = await self.prepare(message, history)
        self._log_state(turn.turn_id, TurnState.COMPOSING, TurnState.GENERATING)
        try:
            content = await self.llm_client.chat(turn.messages)
        except asyncio.CancelledError:
            self._log_state(turn.turn_id, TurnState.GENERATING, TurnState.CANCELLED)
            raise
        except ProviderError as exc:
            self._log_state(turn.turn_id, TurnState.GENERATING, TurnState.FAILED)
            raise GenerationFailure(exc.message, details={**exc.details, "turn_id": turn.turn_id}) from exc
        self._log_state(turn.turn_id, TurnState.GENERATING, TurnState.COMPLETED)
        return TurnResult(content=content, results=turn.results, state=TurnState.COMPLETED)

    async def stream(self, message: str, history: Sequence[Any] = ()) -> ResponseStream:
        """
        Streamed mode. Retrieval and prompt composition run now; generation
        begins when the consumer pulls the first chunk.
        """
        turn = await self.prepare(message, history)
        fragments = self.llm_client.stream_chat(turn.messages)
        return ResponseStream(
            fragments,
            results=turn.results,
            idle_timeout=self.generation_timeout,
            turn_id=turn.turn_id,
            logger_=self.logger,
        )

    # --- Steps ---
    async def prepare(self, message: str, history: Sequence[Any] = ()) -> PreparedTurn:
        turn_id = uuid.uuid4().hex
        user_message = self.validate_message(message)
        history_messages = self.history_to_messages(history)

        self._log_state(turn_id, TurnState.IDLE, TurnState.RETRIEVING)
        results = await self.retriever.retrieve_by_similarity(user_message, self.top_k)

        self._log_state(turn_id, TurnState.RETRIEVING, TurnState.COMPOSING)
        context = self.assembler.assemble(results)
        messages = self.build_messages(user_message, history_messages, context)
        self.logger.info(
            "Prompt composed",
            extra={"turn_id": turn_id, "history": len(history_messages), "strains": len(results)},
        )
        return PreparedTurn(turn_id=turn_id, messages=messages, results=results)

    @staticmethod
    def validate_message(message: str | None) -> str:
        if message is None or not isinstance(message, str) or not message.strip():
            raise InvalidInputError("Message is required")
        return message.strip()

    @staticmethod
    def history_to_messages(history: Sequence[Any]) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        for idx, turn in enumerate(history or ()):
            if isinstance(turn, Mapping):
                role, content = turn.get("role"), turn.get("content")
            else:
                role, content = getattr(turn, "role", None), getattr(turn, "content", None)
            if role not in HISTORY_ROLES or not isinstance(content, str):
                raise InvalidInputError("Invalid history message", details={"index": idx, "role": role})
            messages.append({"role": role, "content": content})
        return messages

    @staticmethod
    def build_messages(message: str, history: List[Dict[str, str]], context: str) -> List[Dict[str, str]]:
        # Order is fixed: persona, history, context, new message.
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            *history,
            {"role": "system", "content": context_message(context)},
            {"role": "user", "content": message},
        ]

    def _log_state(self, turn_id: str, previous: TurnState, state: TurnState) -> None:
        level = logging.WARNING if state is TurnState.FAILED else logging.INFO
        self.logger.log(
            level,
            "Turn state changed",
            extra={"turn_id": turn_id, "from_state": previous.value, "to_state": state.value},
        )


__all__ = [
    "ConversationOrchestrator",
    "PreparedTurn",
    "ResponseStream",
    "StreamChunk",
    "TurnResult",
    "TurnState",
    "TERMINAL_STATES",
]
