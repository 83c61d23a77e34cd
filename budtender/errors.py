"""
Error taxonomy shared by the embedding, retrieval and conversation layers.

Each error carries the HTTP status the transport layer should answer with:
client-input problems map to 4xx, backend problems to 5xx.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import status


class BudtenderError(Exception):
    """Base exception for the budtender service."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(BudtenderError):
    """Bad or missing request data. Rejected before any work starts."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class ProviderError(BudtenderError):
    """Embedding or generation backend failure (transport, auth, rate limit, timeout)."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class IndexUnavailableError(BudtenderError):
    """Vector store unreachable or misconfigured."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)


class GenerationFailure(BudtenderError):
    """Terminal failure of the generation step; ends the conversational turn."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


__all__ = [
    "BudtenderError",
    "InvalidInputError",
    "ProviderError",
    "IndexUnavailableError",
    "GenerationFailure",
]
