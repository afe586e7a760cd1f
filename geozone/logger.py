from __future__ import annotations

import logging
from pathlib import Path

LOG_DIR = Path("logs")


def setup_logging(level: int = logging.INFO, log_dir: Path = LOG_DIR) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / "geozone.log"
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(logfile),
            logging.StreamHandler(),
        ],
    )
