import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from reel_core.catalog.sources import ByteSource


class ClipType(str, Enum):
    HOOK = "hook"
    SELLING_POINT = "selling-point"
    CTA = "cta"


class ClipRecord(BaseModel):
    """Finished clip description handed over by ingestion."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Display label, usually the source file stem")
    duration: float = Field(..., ge=0, description="Length in seconds, probed before ingestion")
    source: Optional[ByteSource] = Field(default=None, description="Handle to the raw clip bytes")
    type: ClipType = Field(default=ClipType.SELLING_POINT)


class VideoClip(BaseModel):
    """A tagged clip held by the catalog. Instances are immutable; retagging swaps in a copy."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    duration: float = Field(..., ge=0)
    type: ClipType
    source: Optional[ByteSource] = None

    @classmethod
    def from_record(cls, record: ClipRecord) -> "VideoClip":
        return cls(name=record.name, duration=record.duration, type=record.type, source=record.source)
