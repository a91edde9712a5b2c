"""Process-wide log handlers.

Console output plus one file per day in the configured directory. Configured
once from the entrypoint; library modules only ever call getLogger(__name__).
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "bandwidth-scheduler.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(log_location: Path | None, level: int = logging.INFO) -> None:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_location is not None:
        log_dir = Path(log_location)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            when="midnight",
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # requests/urllib3 connection chatter is not useful at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
