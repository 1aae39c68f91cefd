"""End-to-end experiment: split -> similarity -> predict -> evaluate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .config import ExperimentConfig
from .data import RatingSplit, load_ratings, split_by_count
from .engine import PredictionEngine, PredictionResult
from .matrix_io import write_predictions
from .metrics import mae, rmse
from .similarity import cosine_user_similarity
from .utils import log_elapsed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExperimentReport:
    split: RatingSplit
    result: PredictionResult
    rmse: float
    mae: float
    predictions_path: Path | None = None

    def summary(self) -> pd.DataFrame:
        d = self.result.diagnostics
        rows = [
            ("# users", self.split.train.user_count),
            ("# items", self.split.train.item_count),
            ("# train ratings", self.split.train.nonzeros_count),
            ("# test ratings", self.split.test.nonzeros_count),
            ("# predictions", d.predicted_count),
            ("# capped predictions", d.capped_count),
            ("# default predictions", d.default_count),
            ("RMSE", round(self.rmse, 4)),
            ("MAE", round(self.mae, 4)),
        ]
        return pd.DataFrame(rows, columns=["metric", "value"])


def run_experiment(ratings: pd.DataFrame, cfg: ExperimentConfig) -> ExperimentReport:
    """Run user-KNN on an in-memory ratings frame and score it on the test split."""
    ds = cfg.dataset
    split = split_by_count(
        ratings,
        min_count_of_ratings=ds.min_count_of_ratings,
        count_for_train=ds.count_for_train,
        shuffle=ds.shuffle,
        seed=ds.seed,
    )

    with log_elapsed("User similarity", logger):
        similarity = cosine_user_similarity(split.train)

    engine = PredictionEngine.from_config(cfg.knn, cfg.ratings)
    with log_elapsed("UserKNN prediction", logger):
        result = engine.predict(split.train, split.test, similarity)

    if result.predictions.nonzeros_count:
        score_rmse = rmse(result.predictions, split.test)
        score_mae = mae(result.predictions, split.test)
    else:
        logger.warning("Test split is empty; accuracy metrics are undefined")
        score_rmse = score_mae = float("nan")
    logger.info("UserKNN k=%d rmse=%.4f mae=%.4f", cfg.knn.k, score_rmse, score_mae)

    out_path = None
    if cfg.predictions_path is not None:
        out_path = write_predictions(result.predictions, cfg.predictions_path)
        logger.info("Wrote predictions to %s", out_path)

    return ExperimentReport(split=split, result=result, rmse=score_rmse, mae=score_mae, predictions_path=out_path)


def run_experiment_from_file(cfg: ExperimentConfig) -> ExperimentReport:
    ratings = load_ratings(cfg.dataset.path, sep=cfg.dataset.sep)
    return run_experiment(ratings, cfg)
