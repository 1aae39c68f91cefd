"""User x user similarity scores consumed by the neighbour selector."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .matrix import SparseRatingMatrix


@runtime_checkable
class SimilarityMatrix(Protocol):
    """Anything that can score pairs of entities.

    The engine only ever reads from it, so one instance can be shared by
    concurrent workers.
    """

    @property
    def size(self) -> int: ...

    def similarity(self, a: int, b: int) -> float: ...

    def row(self, a: int) -> np.ndarray: ...


class DenseSimilarityMatrix:
    """Square numpy-backed similarity matrix. Entries may be negative."""

    def __init__(self, scores: np.ndarray) -> None:
        arr = np.array(scores, dtype=np.float64, copy=True)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise ValueError(f"Similarity matrix must be square, got shape {arr.shape}")
        if not np.isfinite(arr).all():
            raise ValueError("Similarity matrix contains non-finite values")
        arr.flags.writeable = False
        self._scores = arr

    @classmethod
    def from_pairs(cls, size: int, pairs: dict[tuple[int, int], float], *, symmetric: bool = True) -> "DenseSimilarityMatrix":
        """Build from sparse (a, b) -> score pairs; unspecified pairs score 0."""
        arr = np.zeros((int(size), int(size)), dtype=np.float64)
        for (a, b), score in pairs.items():
            arr[a, b] = float(score)
            if symmetric:
                arr[b, a] = float(score)
        return cls(arr)

    @property
    def size(self) -> int:
        return int(self._scores.shape[0])

    @property
    def scores(self) -> np.ndarray:
        return self._scores

    def similarity(self, a: int, b: int) -> float:
        return float(self._scores[a, b])

    def row(self, a: int) -> np.ndarray:
        if not 0 <= a < self.size:
            raise IndexError(f"Entity index {a} out of range for size {self.size}")
        return self._scores[a]

    def is_symmetric(self, atol: float = 1e-12) -> bool:
        return bool(np.allclose(self._scores, self._scores.T, atol=atol, rtol=0.0))

    def __repr__(self) -> str:
        return f"DenseSimilarityMatrix(size={self.size})"


def cosine_user_similarity(ratings: SparseRatingMatrix) -> DenseSimilarityMatrix:
    """Cosine similarity between users' rating rows (unset cells count as 0).

    Users without ratings get all-zero rows.
    """
    if ratings.user_count == 0:
        return DenseSimilarityMatrix(np.zeros((0, 0), dtype=np.float64))
    sims = cosine_similarity(ratings.to_csr(), dense_output=True)
    return DenseSimilarityMatrix(np.asarray(sims, dtype=np.float64))
