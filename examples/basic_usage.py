"""
Basic usage example for decksmith.

This example converts a PDF into three themed decks and writes each one
as a PPTX file using the Python API.
"""

import asyncio
from pathlib import Path

from decksmith import DeckPipeline, UploadedDocument
from decksmith.models import PDF_MEDIA_TYPE


def main():
    # Model-backed synthesis is used when GEMINI_API_KEY is set
    pipeline = DeckPipeline()

    pdf_path = Path("examples/sample_report.pdf")
    output_dir = Path("output/sample_report")
    output_dir.mkdir(parents=True, exist_ok=True)

    document = UploadedDocument(
        data=pdf_path.read_bytes(),
        media_type=PDF_MEDIA_TYPE,
        filename=pdf_path.name,
    )
    job = asyncio.run(
        pipeline.convert(document, progress_callback=lambda pct, stage: print(f"[{pct:3.0f}%] {stage}"))
    )

    for variant in job.variants:
        rendered = pipeline.export(job, variant.id)
        (output_dir / rendered.filename).write_bytes(rendered.data)
        print(f"  {variant.name}: {output_dir / rendered.filename}")

    print(f"\n✓ Conversion complete! ({job.page_count} slides, {job.synthesis} synthesis)")


if __name__ == "__main__":
    main()
