import time
from typing import Dict, List

import pytest

from reel_core.catalog.models import ClipRecord, ClipType
from reel_core.catalog.sources import MemorySource
from reel_core.engine.base import MediaEngine, ReadyToken
from reel_core.errors import EngineError


class FakeEngine(MediaEngine):
    """In-memory engine: the concat command joins the listed blobs byte-for-byte."""

    name = "fake"

    def __init__(self, fail_setup: bool = False):
        super().__init__()
        self.files: Dict[str, bytes] = {}
        self.commands: List[List[str]] = []
        self.fail_on_run = False
        self.run_delay = 0.0
        self.fail_setup = fail_setup
        self.in_flight = 0
        self.max_in_flight = 0

    def _setup(self) -> ReadyToken:
        if self.fail_setup:
            raise RuntimeError("no codecs available")
        return ReadyToken(engine=self.name, version="fake 1.0", working_area="memory")

    def _teardown(self) -> None:
        self.files.clear()

    def _write(self, name, data):
        self.files[name] = data

    def _read(self, name):
        if name not in self.files:
            raise EngineError(f"Engine produced no file named {name}")
        return self.files[name]

    def _delete(self, name):
        self.files.pop(name, None)

    def _list(self):
        return list(self.files)

    def _run(self, args):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            time.sleep(self.run_delay)
            self.commands.append(args)
            if self.fail_on_run:
                raise EngineError("Invalid data found when processing input", returncode=1)
            manifest = self.files[args[args.index("-i") + 1]].decode()
            names = [line[len("file '"):-1] for line in manifest.splitlines()]
            self.files[args[-1]] = b"".join(self.files[n] for n in names)
        finally:
            self.in_flight -= 1


@pytest.fixture
def engine():
    eng = FakeEngine()
    eng.initialize()
    return eng


@pytest.fixture
def sample_records():
    """Two hooks, three features, two CTAs."""

    def rec(name, duration, clip_type):
        return ClipRecord(
            name=name, duration=duration, type=clip_type, source=MemorySource(name.encode() + b"|")
        )

    return [
        rec("Hook 1", 2.5, ClipType.HOOK),
        rec("Hook 2", 3.0, ClipType.HOOK),
        rec("Feature 1", 2.0, ClipType.SELLING_POINT),
        rec("Feature 2", 2.5, ClipType.SELLING_POINT),
        rec("Feature 3", 3.0, ClipType.SELLING_POINT),
        rec("CTA 1", 2.0, ClipType.CTA),
        rec("CTA 2", 2.5, ClipType.CTA),
    ]
