import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    workspace_dir: str = Field(default="assets/workspace")
    output_dir: str = Field(default="outputs")
    log_dir: str = Field(default="logs")


class GeneratorConfig(BaseModel):
    target_count: int = Field(default=10, ge=1)
    max_selling_points: int = Field(default=3, ge=1, le=3)
    max_failed_draws: int = Field(default=250, ge=1)
    seed: Optional[int] = Field(default=None)


class EngineConfig(BaseModel):
    ffmpeg_binary: str = Field(default="ffmpeg")
    ffprobe_binary: str = Field(default="ffprobe")
    container_extension: str = Field(default="mp4")
    loglevel: str = Field(default="error")


class ExportConfig(BaseModel):
    batch_policy: str = Field(default="abort")
    archive_name: str = Field(default="sequences.zip")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    rotation: str = Field(default="10 MB")
    retention: str = Field(default="10 days")


class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def default_config_path() -> str:
    return os.getenv("REELSEQ_CONFIG", "config/settings.yaml")


class ConfigManager:
    """
    Manages loading and validation of application configuration.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or default_config_path())
        self.config: AppConfig = self._load_config()

    def _load_config(self) -> AppConfig:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found at {self.config_path}")

        with open(self.config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        return AppConfig(**raw_config)

    @property
    def paths(self) -> PathsConfig:
        return self.config.paths

    @property
    def generator(self) -> GeneratorConfig:
        return self.config.generator

    @property
    def engine(self) -> EngineConfig:
        return self.config.engine

    @property
    def export(self) -> ExportConfig:
        return self.config.export

    @property
    def logging(self) -> LoggingConfig:
        return self.config.logging
