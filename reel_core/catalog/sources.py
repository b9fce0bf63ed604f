from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from reel_core.errors import MissingSource


class ByteSource(ABC):
    """Opaque handle to the raw bytes of one clip."""

    @abstractmethod
    def read(self) -> bytes:
        """Returns the full contents. Raises MissingSource when they cannot be resolved."""
        pass

    @abstractmethod
    def describe(self) -> str:
        pass


class FileSource(ByteSource):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise MissingSource(f"Cannot read clip bytes from {self.path}: {e}") from e

    def describe(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


class MemorySource(ByteSource):
    def __init__(self, data: bytes):
        self.data = data

    def read(self) -> bytes:
        return self.data

    def describe(self) -> str:
        return f"<{len(self.data)} bytes in memory>"

    def __repr__(self) -> str:
        return f"MemorySource({len(self.data)} bytes)"
