import json
import logging
import sys

import pytest
from loguru import logger

from reel_core.utils.logger import setup_logger


@pytest.fixture
def log_dir(tmp_path):
    yield tmp_path / "logs"
    logger.remove()
    logger.add(sys.stderr)
    logging.basicConfig(handlers=[], force=True)


def test_sinks_split_by_level(log_dir):
    setup_logger(log_dir=str(log_dir), level="WARNING")

    logger.debug("Running: ffmpeg -f concat")
    logger.info("Batch export 1/2: sequence-1")
    logger.error("Export of sequence-2 failed")

    assert "ffmpeg -f concat" in (log_dir / "reelseq.log").read_text()

    records = [json.loads(line) for line in (log_dir / "reelseq.json.log").read_text().splitlines()]
    messages = [r["record"]["message"] for r in records]
    assert "Batch export 1/2: sequence-1" in messages
    assert "Running: ffmpeg -f concat" not in messages

    errors = (log_dir / "error.log").read_text()
    assert "sequence-2" in errors
    assert "sequence-1" not in errors


def test_stdlib_records_reach_loguru(log_dir):
    setup_logger(log_dir=str(log_dir))

    logging.getLogger("uvicorn.error").warning("Started server process")

    assert "Started server process" in (log_dir / "reelseq.log").read_text()
