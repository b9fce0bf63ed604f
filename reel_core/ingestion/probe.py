import subprocess
from pathlib import Path
from typing import Union

from loguru import logger

from reel_core.catalog.models import ClipRecord, ClipType
from reel_core.catalog.sources import FileSource


def probe_duration(path: Union[str, Path], ffprobe_binary: str = "ffprobe") -> float:
    """Returns the container duration of a media file in seconds."""
    cmd = [
        ffprobe_binary,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "csv=p=0",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ValueError(f"Could not probe duration of {path}: {e}") from e

    raw = result.stdout.strip()
    try:
        duration = float(raw)
    except ValueError as e:
        raise ValueError(f"ffprobe returned no usable duration for {path}: {raw!r}") from e
    return max(duration, 0.0)


def record_from_file(
    path: Union[str, Path],
    clip_type: ClipType = ClipType.SELLING_POINT,
    ffprobe_binary: str = "ffprobe",
) -> ClipRecord:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Clip file not found: {path}")

    duration = probe_duration(path, ffprobe_binary)
    logger.info(f"Ingested {path.name}: {duration:.2f}s as {ClipType(clip_type).value}")
    return ClipRecord(name=path.stem, duration=duration, source=FileSource(path), type=clip_type)
