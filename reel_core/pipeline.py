import random
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from reel_core.catalog.catalog import ClipCatalog
from reel_core.catalog.models import ClipRecord, ClipType, VideoClip
from reel_core.config_manager import ConfigManager
from reel_core.editing.muxer import ConcatMuxer
from reel_core.engine.base import MediaEngine, ReadyToken
from reel_core.engine.ffmpeg_engine import FFmpegEngine
from reel_core.export.models import BatchPolicy, BatchResult, ExportArtifact
from reel_core.export.pipeline import ExportPipeline
from reel_core.generation.generator import SequenceGenerator
from reel_core.generation.models import Sequence
from reel_core.generation.store import SequenceStore
from reel_core.ingestion.probe import record_from_file
from reel_core.packaging.archive import ZipArchivePackager


class PipelineManager:
    """Wires catalog, generator, sequence list and export stack around one engine."""

    def __init__(
        self,
        config_manager: ConfigManager,
        engine: Optional[MediaEngine] = None,
        rng: Optional[random.Random] = None,
    ):
        self.cfg = config_manager
        self.output_dir = Path(self.cfg.paths.output_dir)

        self.catalog = ClipCatalog()
        self.sequences = SequenceStore()
        self.generator = SequenceGenerator(self.cfg.generator, rng=rng)

        self.engine = engine or FFmpegEngine(self.cfg)
        self.muxer = ConcatMuxer(self.engine, container_extension=self.cfg.engine.container_extension)
        self.exporter = ExportPipeline(
            self.muxer,
            ZipArchivePackager(),
            resolver=self.catalog.resolve_source,
            container_extension=self.cfg.engine.container_extension,
            archive_name=self.cfg.export.archive_name,
            default_policy=BatchPolicy(self.cfg.export.batch_policy),
        )

    # Engine lifecycle

    def start_engine(self) -> ReadyToken:
        return self.engine.initialize()

    def shutdown(self) -> None:
        self.engine.shutdown()

    # Catalog

    def ingest(self, path: Union[str, Path], clip_type: ClipType = ClipType.SELLING_POINT) -> VideoClip:
        self.engine.require_ready()
        record = record_from_file(path, clip_type, ffprobe_binary=self.cfg.engine.ffprobe_binary)
        return self.catalog.add_clip(record)

    def add_clip(self, record: ClipRecord) -> VideoClip:
        return self.catalog.add_clip(record)

    def retag(self, clip_id: str, clip_type: ClipType) -> None:
        self.catalog.retag(clip_id, clip_type)

    def remove_clip(self, clip_id: str) -> None:
        self.catalog.remove(clip_id)

    def clear_clips(self) -> None:
        self.catalog.clear()

    # Sequences

    def generate(self) -> List[Sequence]:
        sequences = self.generator.generate(self.catalog.snapshot())
        self.sequences.replace(sequences)
        return sequences

    def get_sequence(self, sequence_id: str) -> Sequence:
        sequence = self.sequences.get(sequence_id)
        if sequence is None:
            raise KeyError(sequence_id)
        return sequence

    def remove_sequence(self, sequence_id: str) -> None:
        self.sequences.remove(sequence_id)

    # Export

    def export_sequence(self, sequence_id: str) -> ExportArtifact:
        return self.exporter.export_one(self.get_sequence(sequence_id))

    def export_all(self, policy: Optional[BatchPolicy] = None) -> BatchResult:
        return self.exporter.export_batch(self.sequences.all(), policy=policy)

    def save_artifact(
        self, artifact: Union[ExportArtifact, BatchResult], directory: Optional[Union[str, Path]] = None
    ) -> Path:
        path = artifact.save(directory or self.output_dir)
        logger.info(f"Saved {path}")
        return path
