"""Sparse user x item rating matrix with cached statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .errors import DimensionMismatchError, UndefinedMeanError


UNSET = 0.0


@dataclass(frozen=True)
class RatingVector:
    """Stored entries of one row (or column), ascending by index.

    Only stored positions appear, so iterating a RatingVector never touches
    absent cells. A stored 0.0 is an entry like any other.
    """

    entries: Tuple[Tuple[int, float], ...] = ()

    @classmethod
    def from_mapping(cls, values: dict[int, float]) -> "RatingVector":
        return cls(tuple((int(k), float(values[k])) for k in sorted(values)))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(self.entries)

    def __contains__(self, index: object) -> bool:
        return any(i == index for i, _ in self.entries)

    @property
    def indices(self) -> list[int]:
        return [i for i, _ in self.entries]

    @property
    def values(self) -> list[float]:
        return [v for _, v in self.entries]

    def get(self, index: int, default: float | None = None) -> float | None:
        for i, v in self.entries:
            if i == index:
                return v
        return default

    def mean(self) -> float:
        if not self.entries:
            raise UndefinedMeanError("mean of an empty rating vector")
        return math.fsum(self.values) / len(self.entries)


class SparseRatingMatrix:
    """User x item ratings stored as per-row and per-column dicts.

    Presence is tracked explicitly: `get` returns 0.0 for an unset cell, but
    `has` tells a stored zero apart from a missing rating. Statistics
    (global/user/item means) are computed on first use and cached until the
    next mutation.
    """

    def __init__(self, user_count: int, item_count: int) -> None:
        if int(user_count) < 0 or int(item_count) < 0:
            raise ValueError(f"Matrix dimensions must be >= 0, got ({user_count}, {item_count})")
        self._user_count = int(user_count)
        self._item_count = int(item_count)
        self._rows: list[dict[int, float]] = [{} for _ in range(self._user_count)]
        self._cols: list[dict[int, float]] = [{} for _ in range(self._item_count)]
        self._nnz = 0
        self._stats: dict[str, object] = {}

    # ----- construction helpers -----
    @classmethod
    def from_entries(
        cls,
        user_count: int,
        item_count: int,
        entries: Iterable[Tuple[int, int, float]],
    ) -> "SparseRatingMatrix":
        m = cls(user_count, item_count)
        for u, i, v in entries:
            m.set(u, i, v)
        return m

    @classmethod
    def from_dense(cls, array: np.ndarray, *, missing: float = UNSET) -> "SparseRatingMatrix":
        """Build from a 2-D array; cells equal to `missing` (or NaN) stay unset."""
        arr = np.asarray(array, dtype=np.float64)
        if arr.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got ndim={arr.ndim}")
        m = cls(arr.shape[0], arr.shape[1])
        present = ~np.isnan(arr)
        if not math.isnan(missing):
            present &= arr != missing
        for u, i in zip(*np.nonzero(present)):
            m.set(int(u), int(i), float(arr[u, i]))
        return m

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        *,
        user_count: int | None = None,
        item_count: int | None = None,
        user_col: str = "user",
        item_col: str = "item",
        rating_col: str = "rating",
    ) -> "SparseRatingMatrix":
        """Build from a long-format frame of already-encoded indices."""
        missing = {user_col, item_col, rating_col} - set(df.columns)
        if missing:
            raise ValueError(f"frame missing required columns: {sorted(missing)}")
        users = df[user_col].astype("int64").to_numpy()
        items = df[item_col].astype("int64").to_numpy()
        ratings = df[rating_col].astype(float).to_numpy()
        n_users = int(user_count) if user_count is not None else (int(users.max()) + 1 if len(users) else 0)
        n_items = int(item_count) if item_count is not None else (int(items.max()) + 1 if len(items) else 0)
        return cls.from_entries(n_users, n_items, zip(users.tolist(), items.tolist(), ratings.tolist()))

    # ----- shape -----
    @property
    def user_count(self) -> int:
        return self._user_count

    @property
    def item_count(self) -> int:
        return self._item_count

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._user_count, self._item_count)

    @property
    def nonzeros_count(self) -> int:
        return self._nnz

    def same_shape(self, other: "SparseRatingMatrix") -> bool:
        return self.shape == other.shape

    def check_same_shape(self, other: "SparseRatingMatrix", what: str = "matrix") -> None:
        if not self.same_shape(other):
            raise DimensionMismatchError(what, self.shape, other.shape)

    def _check_index(self, u: int, i: int) -> None:
        if not (0 <= u < self._user_count and 0 <= i < self._item_count):
            raise IndexError(f"Index ({u}, {i}) out of range for shape {self.shape}")

    # ----- cell access -----
    def get(self, u: int, i: int, default: float = UNSET) -> float:
        self._check_index(u, i)
        return self._rows[u].get(i, default)

    def has(self, u: int, i: int) -> bool:
        self._check_index(u, i)
        return i in self._rows[u]

    def set(self, u: int, i: int, value: float) -> None:
        self._check_index(u, i)
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Rating at ({u}, {i}) must be finite, got {value}")
        row = self._rows[u]
        if i not in row:
            self._nnz += 1
        row[i] = value
        self._cols[i][u] = value
        self._stats.clear()

    def unset(self, u: int, i: int) -> None:
        self._check_index(u, i)
        if self._rows[u].pop(i, None) is not None:
            del self._cols[i][u]
            self._nnz -= 1
            self._stats.clear()

    def __getitem__(self, key: Tuple[int, int]) -> float:
        u, i = key
        return self.get(u, i)

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        u, i = key
        self.set(u, i, value)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        u, i = key
        return self.has(int(u), int(i))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseRatingMatrix):
            return NotImplemented
        return self.shape == other.shape and self._rows == other._rows

    def __repr__(self) -> str:
        return f"SparseRatingMatrix(shape={self.shape}, nonzeros={self._nnz})"

    # ----- sparse views -----
    def row_view(self, u: int) -> RatingVector:
        self._check_user(u)
        return RatingVector.from_mapping(self._rows[u])

    def column_view(self, i: int) -> RatingVector:
        if not 0 <= i < self._item_count:
            raise IndexError(f"Item index {i} out of range for shape {self.shape}")
        return RatingVector.from_mapping(self._cols[i])

    def _check_user(self, u: int) -> None:
        if not 0 <= u < self._user_count:
            raise IndexError(f"User index {u} out of range for shape {self.shape}")

    def users(self) -> Iterator[Tuple[int, RatingVector]]:
        """Rows with at least one stored entry, ascending by user index."""
        for u, row in enumerate(self._rows):
            if row:
                yield u, RatingVector.from_mapping(row)

    def items(self) -> Iterator[Tuple[int, RatingVector]]:
        for i, col in enumerate(self._cols):
            if col:
                yield i, RatingVector.from_mapping(col)

    def entries(self) -> Iterator[Tuple[int, int, float]]:
        for u, row in enumerate(self._rows):
            for i in sorted(row):
                yield u, i, row[i]

    # ----- statistics -----
    def global_mean(self) -> float:
        if "global_mean" not in self._stats:
            if self._nnz == 0:
                raise UndefinedMeanError("global mean of a matrix with no stored ratings")
            total = math.fsum(v for row in self._rows for v in row.values())
            self._stats["global_mean"] = total / self._nnz
        return float(self._stats["global_mean"])  # type: ignore[arg-type]

    def user_means(self) -> np.ndarray:
        """Per-user means; NaN where a user has no stored ratings."""
        if "user_means" not in self._stats:
            self._stats["user_means"] = _means(self._rows)
        return self._stats["user_means"]  # type: ignore[return-value]

    def item_means(self) -> np.ndarray:
        if "item_means" not in self._stats:
            self._stats["item_means"] = _means(self._cols)
        return self._stats["item_means"]  # type: ignore[return-value]

    def user_mean(self, u: int) -> float:
        self._check_user(u)
        mean = float(self.user_means()[u])
        if math.isnan(mean):
            raise UndefinedMeanError(f"user {u} has no stored ratings")
        return mean

    def item_mean(self, i: int) -> float:
        if not 0 <= i < self._item_count:
            raise IndexError(f"Item index {i} out of range for shape {self.shape}")
        mean = float(self.item_means()[i])
        if math.isnan(mean):
            raise UndefinedMeanError(f"item {i} has no stored ratings")
        return mean

    # ----- conversions -----
    def to_dense(self, fill: float = UNSET) -> np.ndarray:
        out = np.full(self.shape, fill, dtype=np.float64)
        for u, i, v in self.entries():
            out[u, i] = v
        return out

    def to_csr(self) -> sp.csr_matrix:
        """scipy CSR copy. Stored zeros are kept as explicit entries."""
        if self._nnz == 0:
            return sp.csr_matrix(self.shape, dtype=np.float64)
        users, items, values = zip(*self.entries())
        return sp.csr_matrix(
            (np.asarray(values, dtype=np.float64), (np.asarray(users), np.asarray(items))),
            shape=self.shape,
        )

    def to_frame(self) -> pd.DataFrame:
        rows = list(self.entries())
        df = pd.DataFrame(rows, columns=["user", "item", "rating"])
        return df.astype({"user": "int64", "item": "int64", "rating": "float64"})


def _means(groups: list[dict[int, float]]) -> np.ndarray:
    out = np.full(len(groups), np.nan, dtype=np.float64)
    for idx, group in enumerate(groups):
        if group:
            out[idx] = math.fsum(group.values()) / len(group)
    out.flags.writeable = False
    return out
