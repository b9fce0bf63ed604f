import argparse
import os
import random
import sys

from reel_core.catalog.models import ClipType
from reel_core.config_manager import ConfigManager
from reel_core.errors import BatchExportError, ReelError
from reel_core.export.models import BatchPolicy
from reel_core.pipeline import PipelineManager
from reel_core.utils.logger import setup_logger


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ReelSequencer CLI")
    parser.add_argument("--config", help="Path to settings.yaml (default: $REELSEQ_CONFIG or config/settings.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_clip_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--hook", action="append", default=[], help="Hook clip path (repeatable)")
        sub.add_argument("--selling-point", action="append", default=[], help="Selling-point clip path (repeatable)")
        sub.add_argument("--cta", action="append", default=[], help="Call-to-action clip path (repeatable)")
        sub.add_argument("--count", type=positive_int, help="Maximum number of sequences to generate")
        sub.add_argument("--seed", type=int, help="Seed for reproducible sequences")

    preview_parser = subparsers.add_parser("preview", help="Generate sequences and print them")
    add_clip_args(preview_parser)

    export_parser = subparsers.add_parser("export", help="Generate sequences and export them")
    add_clip_args(export_parser)
    export_parser.add_argument("--output", help="Output directory (default: paths.output_dir)")
    export_parser.add_argument("--zip", action="store_true", help="Export everything into one archive")
    export_parser.add_argument("--policy", choices=[p.value for p in BatchPolicy], help="Batch failure policy")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP backend")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def load_clips(manager: PipelineManager, args: argparse.Namespace) -> None:
    for clip_type, paths in (
        (ClipType.HOOK, args.hook),
        (ClipType.SELLING_POINT, args.selling_point),
        (ClipType.CTA, args.cta),
    ):
        for path in paths:
            manager.ingest(path, clip_type)


def run_sequences(config: ConfigManager, args: argparse.Namespace) -> int:
    if args.count is not None:
        config.generator.target_count = args.count
    rng = random.Random(args.seed) if args.seed is not None else None

    manager = PipelineManager(config, rng=rng)
    try:
        manager.start_engine()
        load_clips(manager, args)
        sequences = manager.generate()

        for sequence in sequences:
            print(f"{sequence.id}: {sequence.label()}")

        if args.command == "preview":
            return 0

        if args.zip:
            result = manager.export_all(policy=BatchPolicy(args.policy) if args.policy else None)
            manager.save_artifact(result, args.output)
            for failure in result.failures:
                print(f"FAILED {failure.sequence_id}: {failure.kind} {failure.message}")
            return 1 if result.failures else 0

        failed = 0
        for sequence in sequences:
            try:
                artifact = manager.export_sequence(sequence.id)
            except ReelError as e:
                print(f"FAILED {sequence.id}: {e}")
                failed += 1
                continue
            manager.save_artifact(artifact, args.output)
        return 1 if failed else 0
    except BatchExportError as e:
        for failure in e.failures:
            print(f"FAILED {failure.sequence_id}: {failure.kind} {failure.message}")
        return 1
    except (ReelError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        manager.shutdown()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(args.config)
    except Exception as e:
        print(f"Config Error: {e}")
        return 1

    setup_logger(
        log_dir=config.paths.log_dir,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
        level=config.logging.level,
    )

    if args.command == "serve":
        import uvicorn

        if args.config:
            os.environ["REELSEQ_CONFIG"] = args.config
        from backend.server import app

        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    return run_sequences(config, args)


if __name__ == "__main__":
    sys.exit(main())
