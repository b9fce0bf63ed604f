import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger


class InterceptHandler(logging.Handler):
    """Routes standard-library log records (uvicorn, asyncio) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging-module frames so loguru reports the real call site
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(
    log_dir: str = "logs",
    rotation: str = "10 MB",
    retention: str = "10 days",
    level: str = "INFO",
) -> Any:
    """
    Sends reelseq logs to four places: colored stderr at `level`, a full
    DEBUG trail in reelseq.log, one JSON record per INFO+ event in
    reelseq.json.log and failures only in error.log. Records from the
    standard logging module (uvicorn, asyncio) are routed through loguru.

    Args:
        log_dir (str): Directory holding the three log files.
        rotation (str): loguru rotation for each file (e.g., "10 MB", "1 day").
        retention (str): loguru retention for rotated files (e.g., "10 days").
        level (str): Minimum level shown on stderr.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Drops loguru's default stderr sink
    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=level,
    )

    # Engine commands and working-area traffic are logged at DEBUG
    logger.add(
        log_path / "reelseq.log",
        rotation=rotation,
        retention=retention,
        level="DEBUG",
        compression="zip",
    )

    # Batch progress and export failures, one JSON object per line
    logger.add(
        log_path / "reelseq.json.log",
        rotation=rotation,
        retention=retention,
        level="INFO",
        serialize=True,
    )

    logger.add(log_path / "error.log", rotation=rotation, retention=retention, level="ERROR")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logger.info(f"reelseq logging to {log_path.absolute()}")
    return logger
