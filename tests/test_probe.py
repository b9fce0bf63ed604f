import subprocess

import pytest

from reel_core.catalog.models import ClipType
from reel_core.catalog.sources import FileSource
from reel_core.ingestion.probe import probe_duration, record_from_file


def test_probe_duration_parses_output(mocker):
    mock_run = mocker.patch(
        "reel_core.ingestion.probe.subprocess.run",
        return_value=subprocess.CompletedProcess([], 0, stdout="2.502000\n", stderr=""),
    )
    assert probe_duration("clip.mp4") == pytest.approx(2.502)
    cmd = mock_run.call_args.args[0]
    assert cmd[0] == "ffprobe"
    assert cmd[-1] == "clip.mp4"


def test_probe_duration_garbage(mocker):
    mocker.patch(
        "reel_core.ingestion.probe.subprocess.run",
        return_value=subprocess.CompletedProcess([], 0, stdout="N/A\n", stderr=""),
    )
    with pytest.raises(ValueError):
        probe_duration("clip.mp4")


def test_probe_duration_ffprobe_failure(mocker):
    mocker.patch(
        "reel_core.ingestion.probe.subprocess.run",
        side_effect=subprocess.CalledProcessError(1, ["ffprobe"]),
    )
    with pytest.raises(ValueError):
        probe_duration("clip.mp4")


def test_record_from_file(mocker, tmp_path):
    path = tmp_path / "Hook 1.mp4"
    path.write_bytes(b"\x00")
    mocker.patch("reel_core.ingestion.probe.probe_duration", return_value=2.5)

    record = record_from_file(path, ClipType.HOOK)

    assert record.name == "Hook 1"
    assert record.duration == 2.5
    assert record.type == ClipType.HOOK
    assert isinstance(record.source, FileSource)
    assert record.source.read() == b"\x00"


def test_record_from_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        record_from_file(tmp_path / "nope.mp4")
