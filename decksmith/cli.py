"""
Command-line interface for decksmith.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from decksmith import __version__
from decksmith.config import Settings
from decksmith.errors import DecksmithError
from decksmith.models import UploadedDocument
from decksmith.pipeline import DeckPipeline
from decksmith.store import JobStore, SQLStorage
from decksmith.synthesizers import HeuristicSynthesizer
from decksmith.utils.logging import set_level


def _print_progress(percent: float, stage: str) -> None:
    print(f"[{percent:>3.0f}%] {stage}")


def main() -> int:
    """Main CLI entry point."""
    load_dotenv()  # Load .env file if present

    parser = argparse.ArgumentParser(
        description="decksmith: Turn a PDF or DOCX document into themed PowerPoint decks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Executive, creative and technical decks for a report
  decksmith report.pdf

  # Only the technical deck, written to ./decks
  decksmith report.pdf --variant v3 --output ./decks

  # Offline: skip the model and split pages into slides
  decksmith notes.docx --heuristic

Environment Variables:
  GEMINI_API_KEY          API key for Gemini slide synthesis
  DECKSMITH_MODEL         Gemini model name (default: gemini-2.5-flash)
  DECKSMITH_LOG_LEVEL     Logging level (default: INFO)
  DATABASE_URL            Job history database (default: sqlite:///decksmith.db)
        """,
    )

    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        help="Input PDF or DOCX file",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"decksmith {__version__}",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output directory (default: ./output/<document name>)",
    )

    parser.add_argument(
        "--variant",
        choices=["v1", "v2", "v3"],
        action="append",
        help="Variant to export; repeat for several (default: all)",
    )

    parser.add_argument(
        "--heuristic",
        action="store_true",
        help="Use offline heuristic synthesis even if a Gemini key is configured",
    )

    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Don't record the job in the history database",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and tracebacks",
    )

    args = parser.parse_args()

    # Validate input
    if not args.input:
        parser.print_help()
        return 1

    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    try:
        settings = Settings.from_env()
        set_level("DEBUG" if args.debug else settings.log_level)

        pipeline = DeckPipeline(
            settings=settings,
            synthesizer=HeuristicSynthesizer() if args.heuristic else None,
            store=None if args.no_history else JobStore(SQLStorage(settings.database_url)),
        )

        output_dir = args.output or Path("output") / args.input.stem
        output_dir = Path(output_dir)

        print(f"\n{'='*60}")
        print("decksmith")
        print(f"{'='*60}")
        print(f"Input: {args.input}")
        print(f"Output: {output_dir}")
        print(f"Synthesis: {'heuristic' if args.heuristic or not settings.model_configured else settings.model}")
        print(f"{'='*60}\n")

        document = UploadedDocument.from_path(args.input)
        job = asyncio.run(pipeline.convert(document, progress_callback=_print_progress))

        output_dir.mkdir(parents=True, exist_ok=True)
        variant_ids = args.variant or [v.id for v in job.variants]
        written = []
        for variant_id in variant_ids:
            rendered = pipeline.export(job, variant_id)
            path = output_dir / rendered.filename
            path.write_bytes(rendered.data)
            written.append((path, rendered.slide_count))

        # Summary
        print(f"\n{'='*60}")
        print(f"✓ Conversion Complete ({job.synthesis} synthesis)")
        print(f"{'='*60}")
        for path, slide_count in written:
            print(f"PPTX: {path} ({slide_count} slides)")
        print(f"{'='*60}\n")
        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130

    except DecksmithError as e:
        print(f"\nError: {e.user_message}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
