"""User-based KNN collaborative filtering (Resnick / GroupLens).

Core idea:
- Store training ratings in a sparse user x item matrix with cached statistics
- Pick the top-K most similar users from a precomputed similarity matrix
- Predict each masked cell as the user's mean plus the similarity-weighted,
  mean-centred deviations of the neighbours who rated the item
"""
from __future__ import annotations

from .engine import PredictionDiagnostics, PredictionEngine, PredictionResult, predict_ratings
from .errors import DimensionMismatchError, GroupLensError, InvalidParameterError, UndefinedMeanError
from .matrix import RatingVector, SparseRatingMatrix
from .neighbors import NeighborSet, top_k_neighbors
from .similarity import DenseSimilarityMatrix, SimilarityMatrix

__all__ = [
    "DenseSimilarityMatrix",
    "DimensionMismatchError",
    "GroupLensError",
    "InvalidParameterError",
    "NeighborSet",
    "PredictionDiagnostics",
    "PredictionEngine",
    "PredictionResult",
    "RatingVector",
    "SimilarityMatrix",
    "SparseRatingMatrix",
    "UndefinedMeanError",
    "predict_ratings",
    "top_k_neighbors",
]
