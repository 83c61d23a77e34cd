from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from budtender.rag.retriever import RetrievalResult


# Conversation
class ChatMessage(BaseModel):
    """One prior turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """
    Chat turn request. ``message`` is checked by the route so that a missing
    or blank message is answered with 400 rather than a validation error.
    """

    message: str | None = Field(default=None, description="New user message")
    history: List[ChatMessage] = Field(default_factory=list, description="Full prior conversation")


class StrainSummary(BaseModel):
    id: str
    name: str
    slug: str
    type: str
    thc_percent: float | None = None
    cbd_percent: float | None = None
    effects: List[str]
    flavors: List[str]
    description: str | None = None
    similarity: float
    matched_by: Literal["similarity", "facet"]

    @classmethod
    def from_result(cls, result: RetrievalResult) -> "StrainSummary":
        return cls(
            id=result.id,
            name=result.name,
            slug=result.slug,
            type=result.type,
            thc_percent=result.thc_percent,
            cbd_percent=result.cbd_percent,
            effects=list(result.effects),
            flavors=list(result.flavors),
            description=result.description,
            similarity=result.similarity,
            matched_by=result.matched_by,
        )


class ChatResponse(BaseModel):
    content: str
    strains: List[StrainSummary]


# Retrieval
class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Free-text query")
    k: int = Field(default=5, gt=0, le=50)


class FacetRequest(BaseModel):
    effects: List[str] = Field(default_factory=list, description="Any-of effect tags")
    type: Literal["INDICA", "SATIVA", "HYBRID"] | None = None
    k: int = Field(default=5, gt=0, le=50)


class SearchResponse(BaseModel):
    results: List[StrainSummary]


# Admin
class BackfillRequest(BaseModel):
    build_index: bool = True
    dry_run: bool = False


class BackfillResponse(BaseModel):
    status: Literal["completed"] = Field(default="completed")
    processed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    index_built: bool
    elapsed_sec: float | None = Field(None, ge=0)


__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "StrainSummary",
    "SearchRequest",
    "FacetRequest",
    "SearchResponse",
    "BackfillRequest",
    "BackfillResponse",
]
