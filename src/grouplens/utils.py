from __future__ import annotations

import logging
import math
import time
from contextlib import contextmanager
from typing import Iterator


def setup_logging(level: int | str = "INFO") -> None:
    """Configure stdlib logging with a consistent, project-wide format."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        # Avoid duplicate handlers if called multiple times (e.g., notebooks + CLI).
        root_logger.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def is_milestone(step: int, total: int) -> bool:
    """True for the first and last step and roughly every 10% in between."""
    if total <= 0:
        return False
    every = max(1, int(math.ceil(total * 0.1)))
    return step == 0 or step == total - 1 or step % every == 0


@contextmanager
def log_elapsed(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """Log wall-clock time spent inside the block."""
    log = logger or logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        yield
    finally:
        log.info("%s took %.3fs", label, time.perf_counter() - start)
