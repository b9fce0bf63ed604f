from typing import Callable, List, Optional

from loguru import logger

from reel_core.catalog.models import VideoClip
from reel_core.catalog.sources import ByteSource
from reel_core.editing.muxer import ConcatMuxer, MuxInput
from reel_core.errors import BatchExportError, MissingSource, ReelError
from reel_core.export.models import BatchPolicy, BatchResult, ExportArtifact, ExportFailure
from reel_core.generation.models import Sequence
from reel_core.packaging.archive import ZipArchivePackager

SourceResolver = Callable[[VideoClip], Optional[ByteSource]]


def _own_source(clip: VideoClip) -> Optional[ByteSource]:
    return clip.source


class ExportPipeline:
    """
    Turns sequences into media files through the muxer.

    Batches run strictly one sequence after another since the muxer drives a
    single shared engine. With BatchPolicy.ABORT the first failure ends the
    batch and nothing is packaged; with BatchPolicy.SKIP failed sequences are
    reported next to an archive of the ones that worked.
    """

    def __init__(
        self,
        muxer: ConcatMuxer,
        packager: ZipArchivePackager,
        resolver: Optional[SourceResolver] = None,
        container_extension: str = "mp4",
        archive_name: str = "sequences.zip",
        default_policy: BatchPolicy = BatchPolicy.ABORT,
    ):
        self.muxer = muxer
        self.packager = packager
        self.resolver = resolver or _own_source
        self.extension = container_extension
        self.archive_name = archive_name
        self.default_policy = default_policy

    def artifact_name(self, sequence: Sequence) -> str:
        return f"{sequence.id}.{self.extension}"

    def export_one(self, sequence: Sequence) -> ExportArtifact:
        inputs = []
        for clip in sequence.clips:
            source = self.resolver(clip)
            if source is None:
                err = MissingSource(
                    f"Clip '{clip.name}' has no source bytes",
                    sequence_id=sequence.id,
                    clip_id=clip.id,
                )
                logger.error(f"Export of {sequence.id} failed: {err}")
                raise err
            inputs.append(MuxInput(clip.id, clip.name, source))

        try:
            data = self.muxer.concatenate(inputs)
        except ReelError as e:
            if e.sequence_id is None:
                e.sequence_id = sequence.id
            logger.error(f"Export of {sequence.id} failed: {e}")
            raise

        artifact = ExportArtifact(name=self.artifact_name(sequence), data=data, sequence_id=sequence.id)
        logger.success(f"Exported {sequence.id} ({len(data)} bytes)")
        return artifact

    def export_batch(self, sequences: List[Sequence], policy: Optional[BatchPolicy] = None) -> BatchResult:
        if not sequences:
            raise ValueError("No sequences to export")
        policy = BatchPolicy(policy or self.default_policy)

        # Fail fast rather than reporting the same NotReady once per sequence
        self.muxer.engine.require_ready()

        artifacts: List[ExportArtifact] = []
        failures: List[ExportFailure] = []

        for i, sequence in enumerate(sequences, start=1):
            logger.info(f"Batch export {i}/{len(sequences)}: {sequence.id}")
            try:
                artifacts.append(self.export_one(sequence))
            except ReelError as e:
                failure = ExportFailure(
                    sequence_id=sequence.id, kind=e.kind, message=e.message, clip_id=e.clip_id
                )
                if policy == BatchPolicy.ABORT:
                    raise BatchExportError(f"Batch export aborted at {sequence.id}", [failure]) from e
                logger.warning(f"Skipping {sequence.id}: {e}")
                failures.append(failure)

        if not artifacts:
            raise BatchExportError("No sequence in the batch could be exported", failures)

        archive = self.packager.package((a.name, a.data) for a in artifacts)
        result = BatchResult(
            archive_name=self.archive_name,
            archive=archive,
            exported=[a.name for a in artifacts],
            failures=failures,
        )
        logger.success(
            f"Batch export packed {len(artifacts)}/{len(sequences)} sequences into {self.archive_name}"
        )
        return result
