"""Accuracy of predicted ratings against held-out ratings."""

from __future__ import annotations

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .matrix import SparseRatingMatrix


def _aligned(predictions: SparseRatingMatrix, truth: SparseRatingMatrix) -> tuple[np.ndarray, np.ndarray]:
    truth.check_same_shape(predictions, what="predictions do not match ground truth")
    y_true: list[float] = []
    y_pred: list[float] = []
    for u, i, value in truth.entries():
        if predictions.has(u, i):
            y_true.append(value)
            y_pred.append(predictions.get(u, i))
    if not y_true:
        raise ValueError("predictions and ground truth share no positions")
    return np.asarray(y_true, dtype=np.float64), np.asarray(y_pred, dtype=np.float64)


def rmse(predictions: SparseRatingMatrix, truth: SparseRatingMatrix) -> float:
    y_true, y_pred = _aligned(predictions, truth)
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def mae(predictions: SparseRatingMatrix, truth: SparseRatingMatrix) -> float:
    y_true, y_pred = _aligned(predictions, truth)
    return float(mean_absolute_error(y_true, y_pred))
