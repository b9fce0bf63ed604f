import threading
from enum import Enum
from typing import Optional

from loguru import logger

from reel_core.errors import InitializationError, NotReady


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


_TRANSITIONS = {
    EngineState.UNINITIALIZED: {EngineState.INITIALIZING},
    EngineState.INITIALIZING: {EngineState.READY, EngineState.FAILED},
    EngineState.READY: set(),
    EngineState.FAILED: set(),
}


class ReadinessGate:
    """
    One-shot initialization state machine for the media engine.
    uninitialized -> initializing -> ready | failed, nothing else.
    """

    def __init__(self) -> None:
        self._state = EngineState.UNINITIALIZED
        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._error: Optional[InitializationError] = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> Optional[InitializationError]:
        return self._error

    def _move(self, target: EngineState, error: Optional[InitializationError] = None) -> None:
        with self._lock:
            if target not in _TRANSITIONS[self._state]:
                raise RuntimeError(f"Illegal engine state transition {self._state.value} -> {target.value}")
            if error is not None:
                # Set before the state so FAILED is never observed without its cause
                self._error = error
            logger.debug(f"Engine state {self._state.value} -> {target.value}")
            self._state = target

    def begin(self) -> None:
        self._move(EngineState.INITIALIZING)

    def mark_ready(self) -> None:
        self._move(EngineState.READY)
        self._settled.set()

    def mark_failed(self, error: InitializationError) -> None:
        self._move(EngineState.FAILED, error)
        self._settled.set()

    def require_ready(self) -> None:
        state = self._state
        if state == EngineState.READY:
            return
        if state == EngineState.FAILED:
            raise NotReady("Media engine failed to initialize") from self._error
        raise NotReady(f"Media engine is not ready (state: {state.value})")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until initialization settles. Returns True when the engine is ready."""
        self._settled.wait(timeout)
        return self._state == EngineState.READY
