import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from reel_core.config_manager import ConfigManager, EngineConfig, PathsConfig
from reel_core.engine.base import MediaEngine, ReadyToken
from reel_core.errors import EngineError, InitializationError

STDERR_TAIL_LINES = 20


class FFmpegEngine(MediaEngine):
    """
    MediaEngine backed by the ffmpeg binary. The working area is a scratch
    directory created under the workspace on initialize() and removed on
    shutdown(); commands run with it as the current directory.
    """

    name = "ffmpeg"

    def __init__(self, config_manager: ConfigManager):
        super().__init__()
        self.cfg: EngineConfig = config_manager.engine
        self.paths: PathsConfig = config_manager.paths
        self.working_dir: Optional[Path] = None

    def _setup(self) -> ReadyToken:
        try:
            probe = subprocess.run(
                [self.cfg.ffmpeg_binary, "-version"],
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise InitializationError(f"ffmpeg binary not found: {self.cfg.ffmpeg_binary}") from e
        except subprocess.CalledProcessError as e:
            raise InitializationError(f"ffmpeg -version exited with {e.returncode}") from e

        version = (probe.stdout or "").splitlines()[0] if probe.stdout else "ffmpeg (unknown version)"

        workspace = Path(self.paths.workspace_dir)
        workspace.mkdir(parents=True, exist_ok=True)
        self.working_dir = Path(tempfile.mkdtemp(prefix="engine_", dir=workspace))
        logger.debug(f"Engine working area: {self.working_dir}")

        return ReadyToken(engine=self.name, version=version, working_area=str(self.working_dir))

    def _teardown(self) -> None:
        if self.working_dir and self.working_dir.exists():
            shutil.rmtree(self.working_dir, ignore_errors=True)
        self.working_dir = None

    def _path(self, name: str) -> Path:
        return self.working_dir / name

    def _write(self, name: str, data: bytes) -> None:
        try:
            self._path(name).write_bytes(data)
        except OSError as e:
            raise EngineError(f"Could not write {name} to the working area: {e}") from e

    def _read(self, name: str) -> bytes:
        path = self._path(name)
        if not path.exists():
            raise EngineError(f"Engine produced no file named {name}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise EngineError(f"Could not read {name} from the working area: {e}") from e

    def _delete(self, name: str) -> None:
        try:
            self._path(name).unlink(missing_ok=True)
        except OSError as e:
            raise EngineError(f"Could not delete {name} from the working area: {e}") from e

    def _list(self) -> List[str]:
        try:
            return [p.name for p in self.working_dir.iterdir() if p.is_file()]
        except OSError as e:
            raise EngineError(f"Could not list the working area: {e}") from e

    def _run(self, args: List[str]) -> None:
        cmd = [self.cfg.ffmpeg_binary, "-hide_banner", "-loglevel", self.cfg.loglevel, "-y", *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, cwd=str(self.working_dir), capture_output=True, text=True)
        except OSError as e:
            raise EngineError(f"Could not launch ffmpeg: {e}") from e

        if result.returncode != 0:
            tail = "\n".join((result.stderr or "").strip().splitlines()[-STDERR_TAIL_LINES:])
            raise EngineError(
                f"ffmpeg exited with code {result.returncode}: {tail or 'no output'}",
                returncode=result.returncode,
                stderr=result.stderr or "",
            )
