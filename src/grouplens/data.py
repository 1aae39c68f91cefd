from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from .matrix import SparseRatingMatrix


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("user", "item", "rating")


@dataclass(frozen=True)
class RatingSplit:
    train: SparseRatingMatrix
    test: SparseRatingMatrix
    user_index: dict[int, int]
    item_index: dict[int, int]
    removed_users: int


def load_ratings(path: Path, *, sep: str = "\t") -> pd.DataFrame:
    """Load a MovieLens-style ratings file (`user item rating [timestamp]`, no header).

    Notes
    -----
    Only the first three columns are kept. Raw ids stay as they are in the
    file; dense matrix indices are assigned later by `split_by_count`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"ratings file not found: {path}")

    df = pd.read_csv(path, sep=sep, header=None, engine="python")
    if df.shape[1] < len(REQUIRED_COLUMNS):
        raise ValueError(f"{path.name} must have at least 3 columns (user, item, rating), got {df.shape[1]}")
    df = df.iloc[:, :3].copy()
    df.columns = list(REQUIRED_COLUMNS)
    validate_ratings(df)
    return df.astype({"user": "int64", "item": "int64", "rating": "float64"})


def validate_ratings(df: pd.DataFrame) -> None:
    """Validate that required columns exist and ratings are finite numbers."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"ratings missing columns: {missing}")
    if df[list(REQUIRED_COLUMNS)].isna().any().any():
        raise ValueError("ratings contain empty cells")
    ratings = pd.to_numeric(df["rating"], errors="coerce")
    if ratings.isna().any() or not np.isfinite(ratings.to_numpy(dtype=float)).all():
        raise ValueError("ratings contain non-numeric or non-finite values")


def split_by_count(
    ratings: pd.DataFrame,
    *,
    min_count_of_ratings: int,
    count_for_train: int,
    shuffle: bool = False,
    seed: int = 1,
) -> RatingSplit:
    """Split ratings into train/test matrices by a fixed per-user train count.

    - Users with fewer than `min_count_of_ratings` rows are dropped.
    - User indices follow first appearance among the kept users; item
      indices follow first appearance over the whole file.
    - The first `count_for_train` rows of every kept user (file order, or a
      seeded shuffle of it) go to train, the rest to test.
    """
    if int(count_for_train) < 1:
        raise ValueError(f"count_for_train must be >= 1, got {count_for_train}")
    validate_ratings(ratings)
    df = ratings[list(REQUIRED_COLUMNS)].reset_index(drop=True)

    counts = df["user"].value_counts()
    user_order = pd.unique(df["user"])
    kept = [int(u) for u in user_order if int(counts[u]) >= int(min_count_of_ratings)]
    removed = len(user_order) - len(kept)
    logger.info("%d users have less than %d ratings and were removed", removed, int(min_count_of_ratings))

    user_index = {u: idx for idx, u in enumerate(kept)}
    item_index = {int(i): idx for idx, i in enumerate(pd.unique(df["item"]))}

    if shuffle:
        rng = np.random.default_rng(int(seed))
        df = df.iloc[rng.permutation(len(df))].reset_index(drop=True)

    df = df[df["user"].isin(list(user_index))].copy()
    df["u_idx"] = df["user"].map(user_index).astype("int64")
    df["i_idx"] = df["item"].map(item_index).astype("int64")
    in_train = df.groupby("u_idx", sort=False).cumcount() < int(count_for_train)

    shape = (len(user_index), len(item_index))
    train = SparseRatingMatrix(*shape)
    test = SparseRatingMatrix(*shape)
    for u, i, r, to_train in zip(
        df["u_idx"].tolist(), df["i_idx"].tolist(), df["rating"].astype(float).tolist(), in_train.tolist()
    ):
        (train if to_train else test).set(u, i, r)

    logger.info(
        "Split: users=%d items=%d train=%d test=%d",
        shape[0],
        shape[1],
        train.nonzeros_count,
        test.nonzeros_count,
    )
    return RatingSplit(train=train, test=test, user_index=user_index, item_index=item_index, removed_users=removed)
