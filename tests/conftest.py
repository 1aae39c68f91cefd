from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import grouplens` works without an editable install.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from grouplens.matrix import SparseRatingMatrix  # noqa: E402
from grouplens.similarity import DenseSimilarityMatrix  # noqa: E402


@pytest.fixture()
def resnick_example() -> tuple[SparseRatingMatrix, SparseRatingMatrix, DenseSimilarityMatrix]:
    """3 users x 2 items; user 2 needs item 1, which only user 1 rated."""
    train = SparseRatingMatrix.from_entries(3, 2, [(0, 0, 4.0), (1, 0, 3.0), (1, 1, 5.0), (2, 0, 1.0)])
    mask = SparseRatingMatrix.from_entries(3, 2, [(2, 1, 1.0)])
    sim = DenseSimilarityMatrix.from_pairs(3, {(2, 0): 0.8, (2, 1): 0.2, (0, 1): 0.1})
    return train, mask, sim
