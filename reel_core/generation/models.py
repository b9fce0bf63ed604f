from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reel_core.catalog.models import ClipType, VideoClip

DedupKey = Tuple[str, Tuple[str, ...], str]


class Sequence(BaseModel):
    """One candidate assembled video: hook, up to three selling points, CTA."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    clips: List[VideoClip] = Field(..., min_length=2)
    duration: float = Field(..., ge=0, description="Sum of clip durations at generation time")

    @model_validator(mode="after")
    def _check_shape(self) -> "Sequence":
        types = [c.type for c in self.clips]
        middle = types[1:-1]
        if types[0] != ClipType.HOOK or types[-1] != ClipType.CTA:
            raise ValueError("a sequence must open with a hook and close with a CTA")
        if len(middle) > 3 or any(t != ClipType.SELLING_POINT for t in middle):
            raise ValueError("a sequence holds at most three selling points between hook and CTA")
        return self

    @property
    def hook(self) -> VideoClip:
        return self.clips[0]

    @property
    def selling_points(self) -> List[VideoClip]:
        return self.clips[1:-1]

    @property
    def cta(self) -> VideoClip:
        return self.clips[-1]

    @property
    def dedup_key(self) -> DedupKey:
        return dedup_key(self.hook, self.selling_points, self.cta)

    def label(self) -> str:
        names = " -> ".join(c.name for c in self.clips)
        return f"{names} ({self.duration:.1f}s)"


def dedup_key(hook: VideoClip, selling_points: List[VideoClip], cta: VideoClip) -> DedupKey:
    """Selling-point order is normalized so reorderings count as the same sequence."""
    return hook.id, tuple(sorted(sp.id for sp in selling_points)), cta.id
