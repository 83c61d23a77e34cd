"""
Typed embedding vectors and cosine similarity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from budtender.errors import InvalidInputError

DEFAULT_DIMENSIONS = 1536


def validate_vector(values: Iterable[float], dimensions: int = DEFAULT_DIMENSIONS) -> Tuple[float, ...]:
    """
    Coerce to a tuple of floats and check length and finiteness.
    This is the only path by which vectors cross a persistence boundary.
    """
    try:
        array = np.asarray(list(values), dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Vector contains non-numeric values") from exc

    if array.ndim != 1 or array.shape[0] != dimensions:
        raise InvalidInputError(
            f"Vector has shape {array.shape}, expected ({dimensions},)",
            details={"dimensions": int(array.size), "expected": dimensions},
        )
    if not np.isfinite(array).all():
        raise InvalidInputError("Vector contains NaN or infinite values")
    return tuple(array.tolist())


@dataclass(frozen=True)
class Embedding:
    item_id: str
    values: Tuple[float, ...]
    model: str

    @classmethod
    def from_values(
        cls,
        item_id: str,
        values: Iterable[float],
        model: str,
        dimensions: int = DEFAULT_DIMENSIONS,
    ) -> "Embedding":
        return cls(item_id=item_id, values=validate_vector(values, dimensions), model=model)

    @property
    def dimensions(self) -> int:
        return len(self.values)

    def to_list(self) -> List[float]:
        return list(self.values)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clamped to [-1, 1]; 0.0 when either vector is zero."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise InvalidInputError("Vectors must have the same dimensions")
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def normalize(values: Sequence[float]) -> np.ndarray:
    """Unit-length copy as float64; a zero vector stays zero."""
    array = np.asarray(values, dtype=np.float64)
    norm = np.linalg.norm(array)
    return array / norm if norm > 0 else array


__all__ = ["DEFAULT_DIMENSIONS", "Embedding", "cosine_similarity", "normalize", "validate_vector"]
