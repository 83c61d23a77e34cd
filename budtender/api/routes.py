from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict

import anyio
from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import StreamingResponse

from budtender.api.deps import Services, get_services
from budtender.errors import GenerationFailure, InvalidInputError
from budtender.models.schemas import (
    BackfillRequest,
    BackfillResponse,
    ChatRequest,
    ChatResponse,
    FacetRequest,
    SearchRequest,
    SearchResponse,
    StrainSummary,
)
from budtender.rag.orchestrator import ResponseStream

router = APIRouter()
logger = logging.getLogger(__name__)

DONE_EVENT = "data: [DONE]\n\n"
SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def sse_event(payload: Dict[str, Any], event: str | None = None) -> str:
    data = f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
    return f"event: {event}\n{data}" if event else data


async def stream_events(stream: ResponseStream) -> AsyncIterator[str]:
    """
    One ``data:`` event per fragment, then ``[DONE]``. A generation failure
    ends the stream with an ``error`` event and no ``[DONE]``. A client
    disconnect cancels this generator, which cancels the turn.
    """
    try:
        async for chunk in stream:
            yield sse_event({"content": chunk.content})
        yield DONE_EVENT
    except GenerationFailure as exc:
        logger.error("Stream error", extra={"turn_id": stream.turn_id, "error": exc.message})
        yield sse_event({"error": exc.message}, event="error")
    finally:
        with anyio.CancelScope(shield=True):
            await stream.cancel()


def _check_admin_token(services: Services, x_admin_token: str | None) -> None:
    admin_token = services.settings.admin_token
    if not admin_token:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin token is not configured",
        )
    if x_admin_token != admin_token.get_secret_value():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def _require_message(request: ChatRequest) -> str:
    message = (request.message or "").strip()
    if not message:
        raise InvalidInputError("Message is required")
    return message


@router.post("/api/chat", summary="Stream a budtender reply as server-sent events")
async def chat(request: ChatRequest, services: Services = Depends(get_services)) -> StreamingResponse:
    message = _require_message(request)
    logger.info("Chat request", extra={"len": len(message), "history": len(request.history)})

    stream = await services.orchestrator.stream(message, request.history)
    return StreamingResponse(stream_events(stream), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/api/chat/complete", response_model=ChatResponse, summary="Buffered budtender reply")
async def chat_complete(request: ChatRequest, services: Services = Depends(get_services)) -> ChatResponse:
    message = _require_message(request)
    logger.info("Chat complete request", extra={"len": len(message), "history": len(request.history)})

    result = await services.orchestrator.generate(message, request.history)
    return ChatResponse(content=result.content, strains=[StrainSummary.from_result(r) for r in result.results])


@router.post("/api/strains/search", response_model=SearchResponse, summary="Similarity search over strains")
async def search_strains(request: SearchRequest, services: Services = Depends(get_services)) -> SearchResponse:
    results = await services.retriever.retrieve_by_similarity(request.query, request.k)
    return SearchResponse(results=[StrainSummary.from_result(r) for r in results])


@router.post("/api/strains/facets", response_model=SearchResponse, summary="Filter in-stock strains by effect or type")
def facet_strains(request: FacetRequest, services: Services = Depends(get_services)) -> SearchResponse:
    if request.type and not request.effects:
        results = services.retriever.retrieve_by_type(request.type, request.k)
    elif request.effects:
        results = services.retriever.retrieve_by_facet(request.effects, len(services.catalog.list_items()))
        if request.type:
            results = [r for r in results if r.type == request.type]
        results = results[: request.k]
    else:
        raise InvalidInputError("Provide at least one effect or a strain type")
    return SearchResponse(results=[StrainSummary.from_result(r) for r in results])


@router.post("/admin/backfill", response_model=BackfillResponse, summary="Re-embed the catalog")
async def admin_backfill(
    backfill_request: BackfillRequest,
    x_admin_token: str | None = Header(default=None, alias="X-Admin-Token"),
    services: Services = Depends(get_services),
) -> BackfillResponse:
    _check_admin_token(services, x_admin_token)
    logger.info("Admin backfill requested", extra={"dry_run": backfill_request.dry_run})

    summary = await services.backfill_job().run(
        build_index=backfill_request.build_index,
        dry_run=backfill_request.dry_run,
    )
    response = BackfillResponse(
        processed=summary.processed,
        failed=summary.failed,
        index_built=summary.index_built,
        elapsed_sec=round(summary.elapsed_sec, 2),
    )
    logger.info(
        "Admin backfill completed",
        extra={"processed": response.processed, "failed": response.failed, "elapsed_sec": response.elapsed_sec},
    )
    return response


__all__ = ["router", "sse_event", "stream_events"]
