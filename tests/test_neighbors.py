from __future__ import annotations

import numpy as np
import pytest

from grouplens.errors import InvalidParameterError
from grouplens.neighbors import top_k_neighbors
from grouplens.similarity import DenseSimilarityMatrix


def _sim(rows: list[list[float]]) -> DenseSimilarityMatrix:
    return DenseSimilarityMatrix(np.asarray(rows, dtype=np.float64))


def test_excludes_target_and_orders_by_descending_similarity() -> None:
    sim = _sim(
        [
            [1.0, 0.2, 0.9, 0.4],
            [0.2, 1.0, 0.1, 0.3],
            [0.9, 0.1, 1.0, 0.5],
            [0.4, 0.3, 0.5, 1.0],
        ]
    )
    ns = top_k_neighbors(sim, 0, 2)

    assert ns.target == 0
    assert ns.indices == [2, 3]
    assert ns.scores == [0.9, 0.4]
    assert 0 not in ns


def test_ties_are_broken_by_ascending_index() -> None:
    sim = _sim(
        [
            [1.0, 0.5, 0.5, 0.5],
            [0.5, 1.0, 0.9, 0.5],
            [0.5, 0.9, 1.0, 0.5],
            [0.5, 0.5, 0.5, 1.0],
        ]
    )
    # Candidates 0 and 3 tie at 0.5 behind user 2; the lower index wins the cut.
    assert top_k_neighbors(sim, 1, 2).indices == [2, 0]
    # All three tie for user 3.
    assert top_k_neighbors(sim, 3, 3).indices == [0, 1, 2]


def test_large_k_returns_every_other_entity() -> None:
    sim = _sim([[1.0, 0.3, 0.7], [0.3, 1.0, 0.2], [0.7, 0.2, 1.0]])
    ns = top_k_neighbors(sim, 1, 10)

    assert len(ns) == 2
    assert ns.as_dict() == {0: 0.3, 2: 0.2}


def test_k_one_returns_single_most_similar() -> None:
    sim = _sim([[1.0, 0.3, 0.7], [0.3, 1.0, 0.2], [0.7, 0.2, 1.0]])
    assert top_k_neighbors(sim, 0, 1).indices == [2]


def test_negative_similarities_are_kept() -> None:
    sim = _sim([[1.0, -0.4, -0.1], [-0.4, 1.0, 0.0], [-0.1, 0.0, 1.0]])
    ns = top_k_neighbors(sim, 0, 2)
    assert list(ns) == [(2, -0.1), (1, -0.4)]


def test_single_entity_has_no_neighbors() -> None:
    assert len(top_k_neighbors(_sim([[1.0]]), 0, 3)) == 0


def test_invalid_arguments() -> None:
    sim = _sim([[1.0, 0.5], [0.5, 1.0]])
    with pytest.raises(InvalidParameterError):
        top_k_neighbors(sim, 0, 0)
    with pytest.raises(IndexError):
        top_k_neighbors(sim, 2, 1)


def test_selection_does_not_modify_similarity() -> None:
    scores = np.array([[1.0, 0.5], [0.5, 1.0]])
    sim = DenseSimilarityMatrix(scores)
    top_k_neighbors(sim, 0, 1)
    np.testing.assert_array_equal(sim.scores, scores)
