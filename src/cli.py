"""Command-line interface for the admission form OCR service.

Provides subcommands to run the API server, process a single form URL,
run one batch import from the source feed, and parse a saved OCR text
dump without touching the network or the database.
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from src.errors import PipelineError
from src.extraction.field_extractor import parse_student_form
from src.models import BatchResult
from src.pipeline.components import build_components
from src.utils.config import AppConfig, load_config
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _print_summary(batch: BatchResult) -> None:
    """Print batch import summary to stdout.

    Args:
        batch: Result of the batch run.
    """
    print(f"\n{'=' * 50}")
    print("Import Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {len(batch.results)}")
    print(f"Processed:  {batch.processed}")
    print(f"Failed:     {batch.failed}")
    for item in batch.results:
        if item.status == "failed":
            print(f"  {item.image_url}: {item.error} ({item.detail})")


def _emit(payload: dict, output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2, default=str)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def parse_text_file(file_path: Path) -> dict[str, object]:
    """Extract lead fields from a saved OCR text file.

    Args:
        file_path: Path to a UTF-8 text file with recognized text.

    Returns:
        Dictionary with the extracted lead and matched field names.
    """
    result = parse_student_form(file_path.read_text(encoding="utf-8"))
    return {
        "lead_data": result.record.to_dict(),
        "matched_fields": result.matched_fields,
        "raw_text": result.raw_text,
    }


def process_url(config: AppConfig, image_url: str) -> dict[str, object]:
    """Run the full pipeline for one image URL."""
    components = build_components(config)
    try:
        return components.pipeline.process(image_url).to_dict()
    finally:
        components.close()


def run_import(config: AppConfig) -> BatchResult | None:
    """Run one batch import; returns ``None`` when no feed is configured."""
    components = build_components(config)
    try:
        if components.importer is None:
            return None
        return components.importer.run()
    finally:
        components.close()


def serve(config: AppConfig) -> None:
    import uvicorn

    from src.api.app import app

    app.state.config = config
    uvicorn.run(app, host=config.server.host, port=config.server.port)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Admission Form OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the HTTP API")

    process_parser = subparsers.add_parser("process", help="Process one form image URL")
    process_parser.add_argument("url", help="Image URL of the scanned form")
    process_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    subparsers.add_parser("import", help="Import new forms from the source feed")

    parse_parser = subparsers.add_parser("parse", help="Extract fields from an OCR text file")
    parse_parser.add_argument("file", type=Path, help="Text file with recognized text")
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    load_dotenv()
    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "serve":
        serve(config)
    elif args.command == "process":
        try:
            result = process_url(config, args.url)
        except PipelineError as exc:
            print(f"Error: {exc.kind}: {exc.detail}", file=sys.stderr)
            sys.exit(1)
        _emit(result, args.output)
    elif args.command == "import":
        try:
            batch = run_import(config)
        except PipelineError as exc:
            print(f"Error: {exc.kind}: {exc.detail}", file=sys.stderr)
            sys.exit(1)
        if batch is None:
            print("Error: SOURCE_API not set", file=sys.stderr)
            sys.exit(1)
        _print_summary(batch)
    elif args.command == "parse":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        _emit(parse_text_file(args.file), args.output)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
