from __future__ import annotations

import pandas as pd
import pytest

from grouplens.data import load_ratings, split_by_count


def _ratings() -> pd.DataFrame:
    rows = [
        (10, 100, 4.0),
        (20, 100, 3.0),
        (10, 200, 5.0),
        (30, 300, 2.0),
        (10, 300, 1.0),
        (20, 200, 2.0),
    ]
    return pd.DataFrame(rows, columns=["user", "item", "rating"])


def test_split_by_count_assigns_first_appearance_indices() -> None:
    split = split_by_count(_ratings(), min_count_of_ratings=2, count_for_train=2)

    assert split.removed_users == 1
    assert split.user_index == {10: 0, 20: 1}
    assert split.item_index == {100: 0, 200: 1, 300: 2}
    assert split.train.shape == split.test.shape == (2, 3)

    assert list(split.train.entries()) == [(0, 0, 4.0), (0, 1, 5.0), (1, 0, 3.0), (1, 1, 2.0)]
    assert list(split.test.entries()) == [(0, 2, 1.0)]
    assert split.train.nonzeros_count == len(split.user_index) * 2


def test_split_with_shuffle_is_reproducible() -> None:
    a = split_by_count(_ratings(), min_count_of_ratings=1, count_for_train=1, shuffle=True, seed=5)
    b = split_by_count(_ratings(), min_count_of_ratings=1, count_for_train=1, shuffle=True, seed=5)

    assert a.train == b.train
    assert a.test == b.test
    assert a.train.nonzeros_count == 3
    assert a.train.nonzeros_count + a.test.nonzeros_count == 6


def test_split_rejects_zero_train_count() -> None:
    with pytest.raises(ValueError):
        split_by_count(_ratings(), min_count_of_ratings=1, count_for_train=0)


def test_load_ratings_reads_movielens_layout(tmp_path) -> None:
    path = tmp_path / "u.data"
    path.write_text("196\t242\t3\t881250949\n186\t302\t3\t891717742\n22\t377\t1\t878887116\n")

    df = load_ratings(path)

    assert list(df.columns) == ["user", "item", "rating"]
    assert df["rating"].dtype == "float64"
    assert df.iloc[0].to_dict() == {"user": 196, "item": 242, "rating": 3.0}


def test_load_ratings_validates(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_ratings(tmp_path / "missing.data")

    bad = tmp_path / "bad.data"
    bad.write_text("1\t2\n3\t4\n")
    with pytest.raises(ValueError):
        load_ratings(bad)

    nonnumeric = tmp_path / "nonnumeric.data"
    nonnumeric.write_text("1\t2\tgood\n")
    with pytest.raises(ValueError):
        load_ratings(nonnumeric)
