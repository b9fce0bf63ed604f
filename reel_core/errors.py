from typing import Any, Dict, List, Optional


class ReelError(Exception):
    """Base class for every failure the sequencing core reports."""

    kind = "ReelError"

    def __init__(self, message: str, sequence_id: Optional[str] = None, clip_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.sequence_id = sequence_id
        self.clip_id = clip_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "sequence_id": self.sequence_id,
            "clip_id": self.clip_id,
        }

    def __str__(self) -> str:
        where = []
        if self.sequence_id:
            where.append(f"sequence={self.sequence_id}")
        if self.clip_id:
            where.append(f"clip={self.clip_id}")
        suffix = f" [{', '.join(where)}]" if where else ""
        return f"{self.kind}: {self.message}{suffix}"


class InsufficientInput(ReelError):
    """The catalog lacks a clip type every sequence needs."""

    kind = "InsufficientInput"


class MissingSource(ReelError):
    """A clip has no resolvable bytes."""

    kind = "MissingSource"


class NotReady(ReelError):
    """The media engine has not finished initializing."""

    kind = "NotReady"


class InitializationError(ReelError):
    kind = "InitializationError"


class EngineError(ReelError):
    """The concatenation command failed inside the engine."""

    kind = "EngineError"

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        sequence_id: Optional[str] = None,
        clip_id: Optional[str] = None,
    ):
        super().__init__(message, sequence_id=sequence_id, clip_id=clip_id)
        self.returncode = returncode
        self.stderr = stderr

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["returncode"] = self.returncode
        return payload


class BatchExportError(ReelError):
    """A batch export produced no archive. `failures` lists what went wrong, in order."""

    kind = "BatchExportError"

    def __init__(self, message: str, failures: List[Any]):
        first = failures[0] if failures else None
        super().__init__(
            message,
            sequence_id=getattr(first, "sequence_id", None),
            clip_id=getattr(first, "clip_id", None),
        )
        self.failures = failures

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["failures"] = [f.model_dump() for f in self.failures]
        return payload
