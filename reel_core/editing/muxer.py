from typing import List, NamedTuple, Optional

from loguru import logger

from reel_core.catalog.sources import ByteSource
from reel_core.engine.base import MediaEngine
from reel_core.errors import MissingSource

MANIFEST_NAME = "concat_list.txt"


class MuxInput(NamedTuple):
    clip_id: str
    clip_name: str
    source: Optional[ByteSource]


class ConcatMuxer:
    """
    Joins clips through the media engine with the concat demuxer and stream copy.

    Inputs are registered as input0, input1, ... next to a manifest listing
    them in order. Whatever was registered is removed again before
    concatenate() returns or raises.
    """

    def __init__(self, engine: MediaEngine, container_extension: str = "mp4"):
        self.engine = engine
        self.output_name = f"output.{container_extension}"
        self._registered: List[str] = []

    def prepare(self) -> None:
        self.engine.require_ready()
        self._registered = []

    def teardown(self) -> None:
        """Best-effort removal of every registered working-area entry."""
        for name in self._registered:
            try:
                self.engine.delete_file(name)
            except Exception as e:
                logger.warning(f"Failed to delete working-area entry {name}: {e}")
        self._registered = []

    def _register(self, name: str, data: bytes) -> None:
        # Tracked before the write so a partial write is still cleaned up
        self._registered.append(name)
        self.engine.write_file(name, data)

    def concatenate(self, inputs: List[MuxInput]) -> bytes:
        if not inputs:
            raise ValueError("Nothing to concatenate")

        with self.engine.session():
            self.prepare()
            try:
                names = []
                for i, item in enumerate(inputs):
                    if item.source is None:
                        raise MissingSource(f"Clip '{item.clip_name}' has no source bytes", clip_id=item.clip_id)
                    try:
                        data = item.source.read()
                    except MissingSource as e:
                        e.clip_id = e.clip_id or item.clip_id
                        raise
                    name = f"input{i}"
                    self._register(name, data)
                    names.append(name)

                manifest = "".join(f"file '{name}'\n" for name in names)
                self._register(MANIFEST_NAME, manifest.encode("utf-8"))

                self._registered.append(self.output_name)
                logger.debug(f"Concatenating {len(names)} inputs into {self.output_name}")
                self.engine.run(
                    ["-f", "concat", "-safe", "0", "-i", MANIFEST_NAME, "-c", "copy", self.output_name]
                )
                return self.engine.read_file(self.output_name)
            finally:
                self.teardown()
