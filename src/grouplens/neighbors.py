"""Top-K neighbour selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from .errors import InvalidParameterError
from .similarity import SimilarityMatrix


@dataclass(frozen=True)
class NeighborSet:
    """Neighbours of one target, most similar first."""

    target: int
    neighbors: Tuple[Tuple[int, float], ...] = ()

    def __len__(self) -> int:
        return len(self.neighbors)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(self.neighbors)

    def __contains__(self, index: object) -> bool:
        return any(n == index for n, _ in self.neighbors)

    @property
    def indices(self) -> list[int]:
        return [n for n, _ in self.neighbors]

    @property
    def scores(self) -> list[float]:
        return [s for _, s in self.neighbors]

    def as_dict(self) -> dict[int, float]:
        return dict(self.neighbors)


def top_k_neighbors(similarity: SimilarityMatrix, target: int, k: int) -> NeighborSet:
    """Return the `k` entities most similar to `target`, excluding itself.

    Ordering is by descending score; equal scores are ordered by ascending
    index, which also decides who makes the cut at the k-th position.
    Negative scores are kept. With fewer than `k` candidates all of them are
    returned.
    """
    if int(k) < 1:
        raise InvalidParameterError(f"k must be >= 1, got {k}")
    size = int(similarity.size)
    if not 0 <= int(target) < size:
        raise IndexError(f"Target index {target} out of range for size {size}")

    scores = np.asarray(similarity.row(int(target)), dtype=np.float64)
    candidates = np.delete(np.arange(size), int(target))
    if candidates.size == 0:
        return NeighborSet(target=int(target))

    cand_scores = scores[candidates]
    # Stable sort on negated scores keeps ascending index among ties.
    order = np.argsort(-cand_scores, kind="mergesort")[: int(k)]
    return NeighborSet(
        target=int(target),
        neighbors=tuple((int(candidates[j]), float(cand_scores[j])) for j in order.tolist()),
    )
