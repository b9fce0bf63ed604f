import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger
from pydantic import BaseModel

from reel_core.engine.readiness import EngineState, ReadinessGate
from reel_core.errors import InitializationError, NotReady


class ReadyToken(BaseModel):
    """Proof of a completed initialization, returned by MediaEngine.initialize()."""

    engine: str
    version: str
    working_area: str


class MediaEngine(ABC):
    """
    Decode/encode engine with a named-blob working area.

    Owned explicitly by whoever builds the export stack. Every working-area
    method refuses to run until initialize() has completed. session() holds
    the engine lock: the engine is not reentrant, so callers doing
    multi-step work (register inputs, run, read back, clean up) wrap it in
    a session.
    """

    name = "engine"

    def __init__(self) -> None:
        self.gate = ReadinessGate()
        self.token: Optional[ReadyToken] = None
        self._lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._closed = False

    @property
    def state(self) -> EngineState:
        return self.gate.state

    def initialize(self) -> ReadyToken:
        """
        Runs setup once. Later calls return the existing token, or raise
        NotReady if the first attempt failed.
        """
        with self._init_lock:
            if self.gate.state != EngineState.UNINITIALIZED:
                self.require_ready()
                return self.token

            self.gate.begin()
            logger.info(f"Initializing media engine '{self.name}'...")
            try:
                token = self._setup()
            except InitializationError as e:
                logger.error(f"Engine initialization failed: {e}")
                self.gate.mark_failed(e)
                raise
            except Exception as e:
                err = InitializationError(f"{type(e).__name__}: {e}")
                logger.error(f"Engine initialization failed: {err}")
                self.gate.mark_failed(err)
                raise err from e

            self.token = token
            self.gate.mark_ready()
        logger.success(f"Media engine ready ({token.version})")
        return token

    def shutdown(self) -> None:
        if self._closed or self.gate.state != EngineState.READY:
            return
        with self._lock:
            self._closed = True
            self._teardown()
        logger.info("Media engine shut down")

    def require_ready(self) -> None:
        if self._closed:
            raise NotReady("Media engine has been shut down")
        self.gate.require_ready()

    @contextmanager
    def session(self) -> Iterator["MediaEngine"]:
        self.require_ready()
        with self._lock:
            yield self

    def write_file(self, name: str, data: bytes) -> None:
        self.require_ready()
        self._write(_checked(name), data)

    def read_file(self, name: str) -> bytes:
        self.require_ready()
        return self._read(_checked(name))

    def delete_file(self, name: str) -> None:
        self.require_ready()
        self._delete(_checked(name))

    def list_files(self) -> List[str]:
        self.require_ready()
        return sorted(self._list())

    def run(self, args: List[str]) -> None:
        self.require_ready()
        self._run(list(args))

    @abstractmethod
    def _setup(self) -> ReadyToken:
        pass

    @abstractmethod
    def _teardown(self) -> None:
        pass

    @abstractmethod
    def _write(self, name: str, data: bytes) -> None:
        pass

    @abstractmethod
    def _read(self, name: str) -> bytes:
        pass

    @abstractmethod
    def _delete(self, name: str) -> None:
        """Removes a blob; deleting an absent name is not an error."""
        pass

    @abstractmethod
    def _list(self) -> List[str]:
        pass

    @abstractmethod
    def _run(self, args: List[str]) -> None:
        """Runs one engine command. Raises EngineError on failure."""
        pass


def _checked(name: str) -> str:
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"Invalid working-area name: {name!r}")
    return name
