from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml


Normalization = Literal["signed", "absolute"]
NORMALIZATIONS: tuple[str, ...] = ("signed", "absolute")


@dataclass(frozen=True)
class RatingRange:
    """Closed interval predictions are clamped to."""

    min_rating: float = 1.0
    max_rating: float = 5.0

    def __post_init__(self) -> None:
        if float(self.min_rating) > float(self.max_rating):
            raise ValueError(f"min_rating ({self.min_rating}) must be <= max_rating ({self.max_rating})")

    def clamp(self, value: float) -> tuple[float, bool]:
        """Return (clamped value, whether clamping happened)."""
        if value > self.max_rating:
            return float(self.max_rating), True
        if value < self.min_rating:
            return float(self.min_rating), True
        return float(value), False


@dataclass(frozen=True)
class KNNConfig:
    k: int = 20
    normalization: Normalization = "signed"
    n_jobs: int = 1


@dataclass(frozen=True)
class DatasetConfig:
    path: Path = Path("data/u.data")
    sep: str = "\t"
    min_count_of_ratings: int = 20
    count_for_train: int = 10
    shuffle: bool = False
    seed: int = 1


@dataclass(frozen=True)
class ExperimentConfig:
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    ratings: RatingRange = field(default_factory=RatingRange)
    knn: KNNConfig = field(default_factory=KNNConfig)
    predictions_path: Path | None = None


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    value = cfg.get(name, {})
    return value if isinstance(value, dict) else {}


def load_config(path: Path) -> ExperimentConfig:
    """Read `config.yaml` into an ExperimentConfig; missing keys keep defaults.

    Relative dataset/output paths are resolved against the config file's
    directory.
    """
    path = Path(path)
    cfg_yaml = yaml.safe_load(path.read_text()) or {}
    if not isinstance(cfg_yaml, dict):
        raise ValueError("config.yaml must be a mapping")

    base = path.resolve().parent

    def _resolve(p: Any) -> Path:
        p_path = Path(str(p))
        return p_path if p_path.is_absolute() else (base / p_path).resolve()

    ds_raw = _section(cfg_yaml, "dataset")
    defaults = DatasetConfig()
    dataset = DatasetConfig(
        path=_resolve(ds_raw.get("path", defaults.path)),
        sep=str(ds_raw.get("sep", defaults.sep)),
        min_count_of_ratings=int(ds_raw.get("min_count_of_ratings", defaults.min_count_of_ratings)),
        count_for_train=int(ds_raw.get("count_for_train", defaults.count_for_train)),
        shuffle=bool(ds_raw.get("shuffle", defaults.shuffle)),
        seed=int(ds_raw.get("seed", defaults.seed)),
    )

    r_raw = _section(cfg_yaml, "ratings")
    ratings = RatingRange(
        min_rating=float(r_raw.get("min_rating", 1.0)),
        max_rating=float(r_raw.get("max_rating", 5.0)),
    )

    k_raw = _section(cfg_yaml, "knn")
    knn = KNNConfig(
        k=int(k_raw.get("k", 20)),
        normalization=str(k_raw.get("normalization", "signed")),  # type: ignore[arg-type]
        n_jobs=int(k_raw.get("n_jobs", 1)),
    )

    out_raw = _section(cfg_yaml, "output")
    predictions_path = out_raw.get("predictions_path")
    return ExperimentConfig(
        dataset=dataset,
        ratings=ratings,
        knn=knn,
        predictions_path=(_resolve(predictions_path) if predictions_path else None),
    )
