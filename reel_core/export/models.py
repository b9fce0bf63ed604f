from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class BatchPolicy(str, Enum):
    """What a batch export does when one sequence fails."""

    ABORT = "abort"
    SKIP = "skip"


class ExportArtifact(BaseModel):
    name: str
    data: bytes = Field(repr=False)
    sequence_id: str

    def save(self, directory: Union[str, Path]) -> Path:
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.name
        path.write_bytes(self.data)
        return path


class ExportFailure(BaseModel):
    sequence_id: str
    kind: str
    message: str
    clip_id: Optional[str] = None


class BatchResult(BaseModel):
    archive_name: str
    archive: bytes = Field(repr=False)
    exported: List[str] = Field(default_factory=list, description="Entry names, in export order")
    failures: List[ExportFailure] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    def save(self, directory: Union[str, Path]) -> Path:
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.archive_name
        path.write_bytes(self.archive)
        return path
