# pricesync/config/logging_config.py

"""Per-run logging for pricesync sync and batch runs.

A ``sync-all`` run touches every catalog product on every platform,
so each CLI invocation gets its own file, ``logs/run_<timestamp>.log``.
That file holds the full DEBUG trail for the run: fetch failures,
extraction misses, stored prices, and scrape-log rows that could not
be written.  The database audit table records only the final status
of each attempt, so this file is where the details of a failed
attempt end up.

Module loggers live under ``pricesync.<area>`` (``orchestrator``,
``batch``, ``fetcher``, ``store``, ``cli``...) and propagate to the
handlers installed here.  The console handler writes to stderr so
``-f json`` output on stdout stays machine-readable; it shows
warnings only, unless ``-v`` asks for per-platform progress.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from pricesync.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> Path:
    """Initialise the root ``pricesync`` logger for the current run.

    Args:
        verbose: Lower the console threshold from WARNING to INFO.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("pricesync")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(
        logging.INFO if verbose else logging.WARNING
    )
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
