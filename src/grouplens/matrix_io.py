"""Delimited-text matrix I/O."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .matrix import SparseRatingMatrix


def write_matrix(matrix: SparseRatingMatrix | np.ndarray, path: Path, *, sep: str = ",") -> Path:
    """Write a matrix as dense delimited text (unset cells become 0)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    arr = matrix.to_dense() if isinstance(matrix, SparseRatingMatrix) else np.asarray(matrix, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got ndim={arr.ndim}")
    pd.DataFrame(arr).to_csv(path, sep=sep, header=False, index=False)
    return path


def read_dense_matrix(path: Path, *, sep: str = ",") -> np.ndarray:
    """Read a dense matrix; zeros are kept as values."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"matrix file not found: {path}")
    df = pd.read_csv(path, sep=sep, header=None, dtype=np.float64)
    return df.to_numpy(dtype=np.float64)


def read_sparse_matrix(path: Path, *, sep: str = ",") -> SparseRatingMatrix:
    """Read a dense-text matrix into sparse form; zeros are treated as unset."""
    return SparseRatingMatrix.from_dense(read_dense_matrix(path, sep=sep), missing=0.0)


def write_predictions(predictions: SparseRatingMatrix, path: Path, *, sep: str = ",") -> Path:
    """Write stored entries only, as `user,item,rating` rows with a header."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    predictions.to_frame().to_csv(path, sep=sep, index=False)
    return path


def create_random_dense_matrix(row_count: int, column_count: int, *, seed: int = 1) -> np.ndarray:
    """Matrix of uniform random numbers in [0, 1)."""
    rng = np.random.default_rng(int(seed))
    return rng.uniform(0.0, 1.0, size=(int(row_count), int(column_count)))
