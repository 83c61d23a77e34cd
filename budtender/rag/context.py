"""
Formats retrieved strains into prompt context.
"""

from __future__ import annotations

from typing import Sequence

from budtender.embeddings.composer import format_percent
from budtender.rag.retriever import RetrievalResult

DEFAULT_MAX_CONTEXT_ITEMS = 5
NO_DESCRIPTION = "No description available"


def format_result(index: int, result: RetrievalResult) -> str:
    thc = format_percent(result.thc_percent) if result.thc_percent is not None else "N/A"
    return "\n".join(
        [
            f"{index}. **{result.name}** ({result.type})",
            f"   - THC: {thc}%",
            f"   - Effects: {', '.join(result.effects)}",
            f"   - Flavors: {', '.join(result.flavors)}",
            f"   - {result.description or NO_DESCRIPTION}",
        ]
    )


class ContextAssembler:
    """Numbered strain blocks, never more than ``max_items`` of them."""

    def __init__(self, max_items: int = DEFAULT_MAX_CONTEXT_ITEMS) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items

    def assemble(self, results: Sequence[RetrievalResult]) -> str:
        selected = list(results)[: self.max_items]
        return "\n\n".join(format_result(idx, result) for idx, result in enumerate(selected, start=1))


__all__ = ["ContextAssembler", "format_result", "DEFAULT_MAX_CONTEXT_ITEMS", "NO_DESCRIPTION"]
