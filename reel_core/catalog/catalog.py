from typing import Callable, Dict, Iterator, List, Optional

from loguru import logger

from reel_core.catalog.models import ClipRecord, ClipType, VideoClip
from reel_core.catalog.sources import ByteSource

CatalogListener = Callable[[str, Optional[VideoClip]], None]


class ClipCatalog:
    """
    Ordered in-memory collection of tagged clips.
    None of the mutations fail: retagging or removing an unknown id is a no-op.
    """

    def __init__(self) -> None:
        self._clips: Dict[str, VideoClip] = {}
        self._listeners: List[CatalogListener] = []

    def subscribe(self, listener: CatalogListener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str, clip: Optional[VideoClip]) -> None:
        for listener in self._listeners:
            listener(event, clip)

    def add_clip(self, record: ClipRecord) -> VideoClip:
        clip = VideoClip.from_record(record)
        self._clips[clip.id] = clip
        logger.debug(f"Catalog: added {clip.name} ({clip.type.value}, {clip.duration:.1f}s) as {clip.id}")
        self._notify("added", clip)
        return clip

    def retag(self, clip_id: str, new_type: ClipType) -> None:
        clip = self._clips.get(clip_id)
        if clip is None:
            return
        # dict keeps insertion order on reassignment of an existing key
        retagged = clip.model_copy(update={"type": ClipType(new_type)})
        self._clips[clip_id] = retagged
        logger.debug(f"Catalog: retagged {clip.name} {clip.type.value} -> {retagged.type.value}")
        self._notify("retagged", retagged)

    def remove(self, clip_id: str) -> None:
        clip = self._clips.pop(clip_id, None)
        if clip is None:
            return
        logger.debug(f"Catalog: removed {clip.name}")
        self._notify("removed", clip)

    def clear(self) -> None:
        self._clips.clear()
        self._notify("cleared", None)

    def get(self, clip_id: str) -> Optional[VideoClip]:
        return self._clips.get(clip_id)

    def snapshot(self) -> List[VideoClip]:
        return list(self._clips.values())

    def resolve_source(self, clip: VideoClip) -> Optional[ByteSource]:
        """Bytes of the clip as it currently stands in the catalog, None once it was removed."""
        current = self._clips.get(clip.id)
        if current is None:
            return None
        return current.source

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[VideoClip]:
        return iter(self.snapshot())
