from typing import List, Optional

from reel_core.generation.models import Sequence


class SequenceStore:
    """Flat ordered list of generated sequences; generation order is display order."""

    def __init__(self) -> None:
        self._sequences: List[Sequence] = []

    def replace(self, sequences: List[Sequence]) -> None:
        self._sequences = list(sequences)

    def remove(self, sequence_id: str) -> None:
        self._sequences = [s for s in self._sequences if s.id != sequence_id]

    def get(self, sequence_id: str) -> Optional[Sequence]:
        return next((s for s in self._sequences if s.id == sequence_id), None)

    def all(self) -> List[Sequence]:
        return list(self._sequences)

    def clear(self) -> None:
        self._sequences = []

    def __len__(self) -> int:
        return len(self._sequences)
