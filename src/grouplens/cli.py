"""Run the user-KNN rating prediction experiment from the command line."""
from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path

from .config import ExperimentConfig, load_config
from .pipeline import run_experiment_from_file
from .utils import setup_logging


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="User-based KNN collaborative filtering (GroupLens).")
    p.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config YAML.")
    p.add_argument("--ratings", type=Path, default=None, help="Override dataset path (user<TAB>item<TAB>rating)")
    p.add_argument("--k", type=int, default=None, help="Override neighbourhood size")
    p.add_argument(
        "--normalization",
        choices=["signed", "absolute"],
        default=None,
        help="Normaliser for the weighted deviations",
    )
    p.add_argument("--n-jobs", type=int, default=None, help="Worker threads for per-user prediction")
    p.add_argument("--out", type=Path, default=None, help="Write predictions CSV here")
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    return p


def resolve_config(args: argparse.Namespace) -> ExperimentConfig:
    cfg = load_config(args.config) if Path(args.config).is_file() else ExperimentConfig()

    dataset = cfg.dataset
    if args.ratings is not None:
        dataset = dataclasses.replace(dataset, path=Path(args.ratings).resolve())

    knn = dataclasses.replace(
        cfg.knn,
        k=int(args.k if args.k is not None else cfg.knn.k),
        normalization=(args.normalization or cfg.knn.normalization),
        n_jobs=int(args.n_jobs if args.n_jobs is not None else cfg.knn.n_jobs),
    )
    predictions_path = Path(args.out).resolve() if args.out is not None else cfg.predictions_path
    return dataclasses.replace(cfg, dataset=dataset, knn=knn, predictions_path=predictions_path)


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    cfg = resolve_config(args)

    report = run_experiment_from_file(cfg)

    print("\n=== UserKNN ===")
    print(report.summary().to_string(index=False))


if __name__ == "__main__":
    main()
