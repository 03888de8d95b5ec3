from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from cardnews.adapters.mock_adapter import MockAdapter
from cardnews.config import MAX_SLIDES, MIN_SLIDES, load_config, validate_max_qa_loops
from cardnews.errors import ConfigError, PipelineError
from cardnews.models import list_models
from cardnews.pipeline.context import PipelineOptions
from cardnews.pipeline.orchestrator import Orchestrator
from cardnews.renderer.series import create_series, list_series
from cardnews.utils.io import read_text, write_text
from cardnews.utils.notes import parse_frontmatter, topic_from_notes
from cardnews.utils.time import run_dir_name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cardnews", description="Card news slide generator")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Run the full generation pipeline")
    generate.add_argument("topic", nargs="?", help="Topic of the card news series")
    generate.add_argument("--input", help="Markdown notes file (optional YAML front matter)")
    generate.add_argument("--series", default=None, help="Series theme name")
    generate.add_argument("--slides", type=int, default=None, help=f"Slide count ({MIN_SLIDES}-{MAX_SLIDES})")
    generate.add_argument("--output", default="output", help="Parent directory for run output")
    generate.add_argument("--model", default=None, help="Model alias or id for every stage")
    generate.add_argument("--mode", choices=["mock", "live"], default="live")
    generate.add_argument(
        "--mock-scenario", choices=["default", "needs_revision"], default="default"
    )
    generate.add_argument("--max-revisions", type=int, default=None, help="Review loop bound")
    generate.add_argument("--no-render", action="store_true", help="Skip PNG export")

    series = commands.add_parser("series", help="Manage series themes")
    series_commands = series.add_subparsers(dest="series_command", required=True)
    series_commands.add_parser("list", help="List available series")
    create = series_commands.add_parser("create", help="Create a new series theme")
    create.add_argument("name")

    commands.add_parser("models", help="List registered model aliases")
    return parser


def _generate(args: argparse.Namespace) -> int:
    config = load_config()
    if args.max_revisions is not None:
        config = config.with_overrides(max_qa_loops=validate_max_qa_loops(args.max_revisions))

    meta = {}
    notes = None
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            raise ConfigError([f"Input file not found: {input_path}"])
        meta, notes = parse_frontmatter(read_text(input_path))

    topic = args.topic or meta.get("topic") or (topic_from_notes(notes) if notes else None)
    if not topic:
        raise ConfigError(["A topic is required (positional argument or --input notes)."])

    if args.slides is not None:
        slide_count = args.slides
    else:
        slide_count = meta.get("slides") or config.default_slides
    try:
        slide_count = int(slide_count)
    except (TypeError, ValueError):
        raise ConfigError([f"Slide count must be an integer, got {slide_count!r}"]) from None
    if not MIN_SLIDES <= slide_count <= MAX_SLIDES:
        raise ConfigError([f"Slide count must be between {MIN_SLIDES} and {MAX_SLIDES}, got {slide_count}"])

    output_dir = Path(args.output) / run_dir_name(str(topic))
    options = PipelineOptions(
        topic=str(topic),
        series=args.series or meta.get("series") or "default",
        slide_count=slide_count,
        output_dir=output_dir,
        model=args.model,
    )
    if notes is not None:
        write_text(output_dir / "inputs" / "notes.md", notes)

    adapter = MockAdapter(scenario=args.mock_scenario) if args.mode == "mock" else None
    orchestrator = Orchestrator(config, adapter=adapter, render=not args.no_render)
    result = orchestrator.run(options, raw_notes=notes)
    if result.unresolved:
        print(f"[warn] {len(result.unresolved)} unresolved review issue(s); see review-report.json")
    print(f"Output directory: {result.output_dir}")
    return 0


def _series(args: argparse.Namespace) -> int:
    if args.series_command == "list":
        names = list_series()
        if not names:
            print("[warn] No series found.")
        for name in names:
            print(name)
        return 0
    path = create_series(args.name)
    print(f'Series "{args.name}" created at {path}')
    print("Edit theme.css to customize design tokens for this series.")
    return 0


def _models() -> int:
    for entry in list_models():
        print(f"{entry.alias:<20} {entry.provider:<10} {entry.model_id:<32} {entry.description}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(Path.cwd() / ".env")
    try:
        if args.command == "generate":
            return _generate(args)
        if args.command == "series":
            return _series(args)
        return _models()
    except PipelineError as exc:
        print(f"[error] {exc.describe()}", file=sys.stderr)
    except (ConfigError, FileExistsError, ValueError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
    return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
