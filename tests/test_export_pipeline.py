import io
import random
import zipfile

import pytest

from reel_core.catalog.catalog import ClipCatalog
from reel_core.catalog.models import ClipRecord, ClipType
from reel_core.catalog.sources import MemorySource
from reel_core.editing.muxer import ConcatMuxer
from reel_core.errors import BatchExportError, EngineError, MissingSource, NotReady
from reel_core.export.models import BatchPolicy
from reel_core.export.pipeline import ExportPipeline
from reel_core.generation.generator import SequenceGenerator
from reel_core.generation.models import Sequence
from reel_core.packaging.archive import ZipArchivePackager

from conftest import FakeEngine


@pytest.fixture
def catalog(sample_records):
    cat = ClipCatalog()
    for record in sample_records:
        cat.add_clip(record)
    return cat


@pytest.fixture
def sequences(catalog):
    return SequenceGenerator(rng=random.Random(7)).generate(catalog.snapshot())


@pytest.fixture
def exporter(engine, catalog):
    return ExportPipeline(ConcatMuxer(engine), ZipArchivePackager(), resolver=catalog.resolve_source)


def expected_bytes(sequence):
    return b"".join(c.name.encode() + b"|" for c in sequence.clips)


def test_export_one_returns_named_buffer(exporter, engine, sequences):
    sequence = sequences[0]
    assert engine.list_files() == []

    artifact = exporter.export_one(sequence)

    assert artifact.name == f"{sequence.id}.mp4"
    assert artifact.sequence_id == sequence.id
    assert artifact.data == expected_bytes(sequence)
    assert engine.list_files() == []


def test_export_one_missing_source(engine, sequences):
    exporter = ExportPipeline(ConcatMuxer(engine), ZipArchivePackager())
    sequence = sequences[0]
    bare = sequence.model_copy(
        update={"clips": [sequence.clips[0].model_copy(update={"source": None}), *sequence.clips[1:]]}
    )

    with pytest.raises(MissingSource) as exc_info:
        exporter.export_one(bare)

    assert exc_info.value.sequence_id == sequence.id
    assert exc_info.value.clip_id == sequence.clips[0].id
    assert engine.list_files() == []


def test_removed_clip_fails_later_export(exporter, catalog, engine, sequences):
    sequence = sequences[0]
    catalog.remove(sequence.cta.id)

    with pytest.raises(MissingSource) as exc_info:
        exporter.export_one(sequence)

    assert exc_info.value.clip_id == sequence.cta.id
    assert engine.list_files() == []


def test_engine_error_surfaces_with_sequence(exporter, engine, sequences):
    engine.fail_on_run = True
    with pytest.raises(EngineError) as exc_info:
        exporter.export_one(sequences[2])
    assert exc_info.value.sequence_id == sequences[2].id
    assert engine.list_files() == []


def test_batch_packs_every_sequence(exporter, engine, sequences):
    result = exporter.export_batch(sequences)

    assert len(engine.commands) == len(sequences)
    assert engine.max_in_flight == 1
    assert result.failures == []
    assert result.archive_name == "sequences.zip"

    with zipfile.ZipFile(io.BytesIO(result.archive)) as zf:
        assert zf.namelist() == [f"{s.id}.mp4" for s in sequences]
        assert zf.read(f"{sequences[0].id}.mp4") == expected_bytes(sequences[0])
    assert engine.list_files() == []


def test_batch_abort_stops_at_first_failure(exporter, catalog, engine, sequences):
    victim = sequences[3]
    doomed = {s.id for s in sequences if victim.hook.id in {c.id for c in s.clips}}
    first_failing = next(s for s in sequences if s.id in doomed)
    catalog.remove(victim.hook.id)

    with pytest.raises(BatchExportError) as exc_info:
        exporter.export_batch(sequences)

    err = exc_info.value
    assert err.sequence_id == first_failing.id
    assert err.failures[0].kind == "MissingSource"
    assert err.failures[0].clip_id == victim.hook.id
    # no muxer invocation after the failing item
    assert len(engine.commands) == sequences.index(first_failing)
    assert engine.list_files() == []


def build_sequence(seq_id, *clips):
    return Sequence(id=seq_id, clips=list(clips), duration=sum(c.duration for c in clips))


def test_batch_skip_reports_partial_result(exporter, catalog, engine):
    clips = {c.name: c for c in catalog.snapshot()}
    batch = [
        build_sequence("sequence-1", clips["Hook 1"], clips["Feature 1"], clips["CTA 1"]),
        build_sequence("sequence-2", clips["Hook 2"], clips["Feature 2"], clips["CTA 2"]),
        build_sequence("sequence-3", clips["Hook 1"], clips["CTA 2"]),
        build_sequence("sequence-4", clips["Hook 2"], clips["Feature 3"], clips["Feature 1"], clips["CTA 1"]),
    ]
    catalog.remove(clips["Hook 1"].id)

    result = exporter.export_batch(batch, policy=BatchPolicy.SKIP)

    assert [f.sequence_id for f in result.failures] == ["sequence-1", "sequence-3"]
    assert all(f.clip_id == clips["Hook 1"].id for f in result.failures)
    assert result.partial
    assert result.exported == ["sequence-2.mp4", "sequence-4.mp4"]
    assert len(engine.commands) == 2
    with zipfile.ZipFile(io.BytesIO(result.archive)) as zf:
        assert zf.read("sequence-4.mp4") == expected_bytes(batch[3])
    assert engine.list_files() == []


def test_batch_skip_with_nothing_exported(exporter, engine, sequences):
    engine.fail_on_run = True
    with pytest.raises(BatchExportError) as exc_info:
        exporter.export_batch(sequences[:3], policy="skip")
    assert [f.sequence_id for f in exc_info.value.failures] == [s.id for s in sequences[:3]]
    assert all(f.kind == "EngineError" for f in exc_info.value.failures)


def test_batch_requires_sequences(exporter):
    with pytest.raises(ValueError):
        exporter.export_batch([])


def test_batch_refuses_before_ready(catalog, sequences):
    exporter = ExportPipeline(ConcatMuxer(FakeEngine()), ZipArchivePackager())
    with pytest.raises(NotReady):
        exporter.export_batch(sequences)


def test_artifact_save(exporter, sequences, tmp_path):
    path = exporter.export_one(sequences[0]).save(tmp_path / "out")
    assert path.name == f"{sequences[0].id}.mp4"
    assert path.read_bytes() == expected_bytes(sequences[0])


def test_archive_rejects_duplicate_names():
    with pytest.raises(ValueError):
        ZipArchivePackager().package([("a.mp4", b"1"), ("a.mp4", b"2")])


def test_no_selling_point_sequence_exports(engine):
    cat = ClipCatalog()
    cat.add_clip(ClipRecord(name="H", duration=1.0, type=ClipType.HOOK, source=MemorySource(b"h")))
    cat.add_clip(ClipRecord(name="C", duration=1.0, type=ClipType.CTA, source=MemorySource(b"c")))
    sequence = SequenceGenerator(rng=random.Random(0)).generate(cat.snapshot())[0]

    artifact = ExportPipeline(ConcatMuxer(engine), ZipArchivePackager()).export_one(sequence)
    assert artifact.data == b"hc"
