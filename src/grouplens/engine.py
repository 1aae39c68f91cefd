"""User-based KNN rating prediction (Resnick et al., GroupLens, 1994).

For a target user u and item i, with N the top-K neighbours of u that rated i:

    p(u, i) = mean(u) + sum_n sim(u, n) * (r(n, i) - mean(n)) / sum_n w(n)

where w(n) is sim(u, n) ("signed", the classic GroupLens normaliser) or
|sim(u, n)| ("absolute"). Cells with no usable neighbour get the global
mean of the training matrix. Every prediction is clamped to the rating
range and both events are counted.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Tuple

import numpy as np

from .config import NORMALIZATIONS, KNNConfig, RatingRange
from .errors import DimensionMismatchError, InvalidParameterError, UndefinedMeanError
from .matrix import RatingVector, SparseRatingMatrix
from .neighbors import NeighborSet, top_k_neighbors
from .similarity import SimilarityMatrix
from .utils import is_milestone


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionDiagnostics:
    capped_count: int = 0
    default_count: int = 0
    predicted_count: int = 0

    def __add__(self, other: "PredictionDiagnostics") -> "PredictionDiagnostics":
        if not isinstance(other, PredictionDiagnostics):
            return NotImplemented
        return PredictionDiagnostics(
            capped_count=self.capped_count + other.capped_count,
            default_count=self.default_count + other.default_count,
            predicted_count=self.predicted_count + other.predicted_count,
        )


@dataclass(frozen=True)
class PredictionResult:
    predictions: SparseRatingMatrix
    diagnostics: PredictionDiagnostics = field(default_factory=PredictionDiagnostics)

    @property
    def capped_count(self) -> int:
        return self.diagnostics.capped_count

    @property
    def default_count(self) -> int:
        return self.diagnostics.default_count


@dataclass(frozen=True)
class _UserPartition:
    user: int
    writes: Tuple[Tuple[int, float], ...]
    diagnostics: PredictionDiagnostics


@dataclass(frozen=True)
class _SharedInputs:
    """Read-only inputs shared by every per-user task."""

    train: SparseRatingMatrix
    similarity: SimilarityMatrix
    user_means: np.ndarray
    global_mean: float
    k: int
    rating_range: RatingRange
    normalization: str


def _predict_user(shared: _SharedInputs, user: int, targets: RatingVector) -> _UserPartition:
    neighbors: NeighborSet = top_k_neighbors(shared.similarity, user, shared.k)
    user_mean = float(shared.user_means[user])
    absolute = shared.normalization == "absolute"

    writes: list[Tuple[int, float]] = []
    capped = 0
    defaulted = 0
    for item, _placeholder in targets:
        weighted_sum = 0.0
        weight_sum = 0.0
        for n, sim in neighbors:
            if not shared.train.has(n, item):
                continue
            n_mean = float(shared.user_means[n])
            if math.isnan(n_mean):
                continue
            weighted_sum += sim * (shared.train.get(n, item) - n_mean)
            weight_sum += abs(sim) if absolute else sim

        # A zero weighted_sum means a cold item: no neighbour rated it.
        if weighted_sum != 0.0 and weight_sum != 0.0 and not math.isnan(user_mean):
            prediction = user_mean + weighted_sum / weight_sum
        else:
            prediction = shared.global_mean
            defaulted += 1

        prediction, was_capped = shared.rating_range.clamp(prediction)
        if was_capped:
            capped += 1
        writes.append((item, prediction))

    return _UserPartition(
        user=user,
        writes=tuple(writes),
        diagnostics=PredictionDiagnostics(capped_count=capped, default_count=defaulted, predicted_count=len(writes)),
    )


def _validate(
    train: SparseRatingMatrix,
    mask: SparseRatingMatrix,
    similarity: SimilarityMatrix,
    k: int,
    normalization: str,
    n_jobs: int,
) -> None:
    train.check_same_shape(mask, what="mask matrix does not match training matrix")
    if int(similarity.size) != train.user_count:
        raise DimensionMismatchError(
            "similarity matrix does not match training users",
            (train.user_count, train.user_count),
            (int(similarity.size), int(similarity.size)),
        )
    if int(k) < 1:
        raise InvalidParameterError(f"k must be >= 1, got {k}")
    if int(n_jobs) < 1:
        raise InvalidParameterError(f"n_jobs must be >= 1, got {n_jobs}")
    if normalization not in NORMALIZATIONS:
        raise InvalidParameterError(f"Unsupported normalization: {normalization!r} (expected one of {NORMALIZATIONS})")
    if mask.nonzeros_count > 0 and train.nonzeros_count == 0:
        raise UndefinedMeanError("training matrix has no ratings; cannot fall back to a global mean")


def predict_ratings(
    train: SparseRatingMatrix,
    mask: SparseRatingMatrix,
    similarity: SimilarityMatrix,
    k: int,
    *,
    rating_range: RatingRange | None = None,
    normalization: str = "signed",
    n_jobs: int = 1,
) -> PredictionResult:
    """Predict every stored position of `mask` from `train`.

    Only the positions of `mask` matter, its values are ignored. All inputs
    are validated before any output is produced. With `n_jobs > 1` users are
    spread over a thread pool; each task returns its own writes and
    counters, which are reduced here in ascending user order, so the result
    is identical to the serial run.
    """
    rating_range = rating_range or RatingRange()
    _validate(train, mask, similarity, k, normalization, n_jobs)

    predicted = SparseRatingMatrix(mask.user_count, mask.item_count)
    if mask.nonzeros_count == 0:
        logger.info("Mask is empty; nothing to predict")
        return PredictionResult(predictions=predicted)

    shared = _SharedInputs(
        train=train,
        similarity=similarity,
        user_means=train.user_means(),
        global_mean=train.global_mean(),
        k=int(k),
        rating_range=rating_range,
        normalization=normalization,
    )
    tasks = list(mask.users())
    logger.info(
        "Predicting %d cells for %d users (k=%d normalization=%s n_jobs=%d)",
        mask.nonzeros_count,
        len(tasks),
        int(k),
        normalization,
        int(n_jobs),
    )

    if int(n_jobs) == 1:
        partitions: Iterable[_UserPartition] = (_predict_user(shared, u, row) for u, row in tasks)
        diagnostics = _reduce(partitions, predicted, len(tasks))
    else:
        with ThreadPoolExecutor(max_workers=int(n_jobs)) as pool:
            partitions = pool.map(lambda task: _predict_user(shared, task[0], task[1]), tasks)
            diagnostics = _reduce(partitions, predicted, len(tasks))

    logger.info("# capped predictions=%d", diagnostics.capped_count)
    logger.info("# default predictions=%d", diagnostics.default_count)
    return PredictionResult(predictions=predicted, diagnostics=diagnostics)


def _reduce(partitions: Iterable[_UserPartition], out: SparseRatingMatrix, total: int) -> PredictionDiagnostics:
    diagnostics = PredictionDiagnostics()
    for step, part in enumerate(partitions):
        if is_milestone(step, total):
            logger.debug("Predicting user/total %d/%d (user=%d)", step + 1, total, part.user)
        for item, value in part.writes:
            out.set(part.user, item, value)
        diagnostics = diagnostics + part.diagnostics
    return diagnostics


class PredictionEngine:
    """`predict_ratings` with its tuning parameters bound once."""

    def __init__(
        self,
        k: int,
        *,
        rating_range: RatingRange | None = None,
        normalization: str = "signed",
        n_jobs: int = 1,
    ) -> None:
        if int(k) < 1:
            raise InvalidParameterError(f"k must be >= 1, got {k}")
        if normalization not in NORMALIZATIONS:
            raise InvalidParameterError(f"Unsupported normalization: {normalization!r}")
        if int(n_jobs) < 1:
            raise InvalidParameterError(f"n_jobs must be >= 1, got {n_jobs}")
        self.k = int(k)
        self.rating_range = rating_range or RatingRange()
        self.normalization = normalization
        self.n_jobs = int(n_jobs)

    @classmethod
    def from_config(cls, knn: KNNConfig, rating_range: RatingRange) -> "PredictionEngine":
        return cls(knn.k, rating_range=rating_range, normalization=knn.normalization, n_jobs=knn.n_jobs)

    def predict(
        self,
        train: SparseRatingMatrix,
        mask: SparseRatingMatrix,
        similarity: SimilarityMatrix,
    ) -> PredictionResult:
        return predict_ratings(
            train,
            mask,
            similarity,
            self.k,
            rating_range=self.rating_range,
            normalization=self.normalization,
            n_jobs=self.n_jobs,
        )
