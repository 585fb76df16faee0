"""Logging for the execution preview service."""
import logging
from pathlib import Path
from rich.logging import RichHandler


LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

# httpx logs every Upstash/Gamma round trip at INFO
QUIET_LIBRARIES = ("httpx", "httpcore")


def setup_logger(config) -> logging.Logger:
    """
    Configure the `winbig` logger tree from config.app.

    Console output goes through rich at the configured level. The file
    handler keeps DEBUG detail (per-fill traces from the simulator) and is
    skipped when log_file is empty. Repeated calls, e.g. one per app built
    in tests, reuse the existing handlers.
    """
    level = getattr(logging, config.app.log_level.upper(), logging.INFO)
    logger = logging.getLogger("winbig")
    logger.setLevel(min(level, logging.DEBUG) if config.app.log_file else level)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    if logger.handlers:
        return logger

    console = RichHandler(rich_tracebacks=True, markup=False, show_path=False)
    console.setLevel(level)
    logger.addHandler(console)

    if config.app.log_file:
        log_file = Path(config.app.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
