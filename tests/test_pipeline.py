"""
Tests for the end-to-end pipeline.
"""

import json

import pytest

from decksmith.errors import ExtractionError, RateLimitError, RenderError, ValidationError
from decksmith.models import PDF_MEDIA_TYPE, UploadedDocument
from decksmith.pipeline import DeckPipeline, build_synthesizer, file_size_label, job_title
from decksmith.renderers import PPTXRenderer
from decksmith.synthesizers import HeuristicSynthesizer, ModelSynthesizer
from decksmith.utils.rate_limiter import RateLimiter
from fakes import LONG_PAGE, FakeModelClient, docx_upload, no_sleep, pdf_upload


def _pipeline(settings, image_client, store=None, synthesizer=None, **kwargs) -> DeckPipeline:
    return DeckPipeline(
        settings=settings,
        synthesizer=synthesizer or HeuristicSynthesizer(),
        renderer=PPTXRenderer(image_client),
        store=store,
        **kwargs,
    )


def _model_reply(executive_titles, creative_titles, technical_titles) -> str:
    def deck(titles):
        return [
            {"title": t, "bullets": [f"{t} detail"], "category": "Topic", "diagramType": "text", "imagePrompt": ""}
            for t in titles
        ]

    return json.dumps(
        {
            "executiveDeck": deck(executive_titles),
            "creativeDeck": deck(creative_titles),
            "technicalDeck": deck(technical_titles),
        }
    )


@pytest.mark.asyncio
async def test_same_millisecond_conversions_keep_both_jobs(settings, image_client, store, monkeypatch):
    """Test that two jobs created at the same instant get distinct ids."""
    import decksmith.pipeline as pipeline_module

    monkeypatch.setattr(pipeline_module.time, "time", lambda: 1700000000.0)
    pipeline = _pipeline(settings, image_client, store=store)

    first = await pipeline.convert(pdf_upload([LONG_PAGE], "a.pdf"))
    second = await pipeline.convert(pdf_upload([LONG_PAGE], "b.pdf"))

    assert first.id != second.id
    assert first.timestamp == second.timestamp == 1700000000000
    assert [j.original_filename for j in store.recent()] == ["b.pdf", "a.pdf"]


@pytest.mark.asyncio
async def test_heuristic_conversion_builds_job(settings, image_client, store):
    """Test a full heuristic run and the job record it produces."""
    progress = []
    pipeline = _pipeline(settings, image_client, store=store)
    document = pdf_upload([LONG_PAGE, "Second page has one sentence that is long enough."], "Q3 Report.PDF")

    job = await pipeline.convert(document, progress_callback=lambda p, s: progress.append(p))

    assert job.id.startswith("job-")
    assert job.title == "Q3 Report"
    assert job.original_filename == "Q3 Report.PDF"
    assert job.page_count == 2
    assert job.status.value == "Completed"
    assert job.synthesis == "heuristic"
    assert job.format == "PPTX"
    assert job.file_size.endswith(" MB")
    assert [v.id for v in job.variants] == ["v1", "v2", "v3"]
    assert [v.theme for v in job.variants] == ["executive", "creative", "minimal"]
    assert job.thumbnail_url.startswith("https://images.unsplash.com/")
    assert progress == [5.0, 15.0, 35.0, 70.0, 90.0, 100.0]
    assert store.get(job.id) == job


@pytest.mark.asyncio
async def test_async_progress_callback(settings, image_client):
    """Test that coroutine progress callbacks are awaited."""
    seen = []

    async def report(percent, stage):
        seen.append(stage)

    await _pipeline(settings, image_client).convert(docx_upload(["A paragraph that is long enough."]), report)
    assert seen[0] == "Validating file..."
    assert seen[-1] == "Complete!"


@pytest.mark.asyncio
async def test_oversized_upload_never_reaches_extraction(settings, image_client, monkeypatch):
    """Test that validation failures stop the pipeline."""
    import decksmith.pipeline as pipeline_module

    def boom(document):
        raise AssertionError("extractor must not be called")

    monkeypatch.setattr(pipeline_module, "get_extractor", boom)
    data = b"%PDF-1.7\n" + b"0" * (60 * 1024 * 1024)
    document = UploadedDocument(data=data, media_type=PDF_MEDIA_TYPE, filename="big.pdf")

    with pytest.raises(ValidationError) as excinfo:
        await _pipeline(settings, image_client).convert(document)
    assert "50MB" in excinfo.value.user_message
    assert excinfo.value.code == "too_large"


@pytest.mark.asyncio
async def test_blank_pdf_never_reaches_synthesis(settings, image_client):
    """Test that an image-only PDF raises before any synthesizer runs."""

    class ExplodingSynthesizer(HeuristicSynthesizer):
        async def synthesize(self, result):
            raise AssertionError("synthesizer must not be called")

    pipeline = _pipeline(settings, image_client, synthesizer=ExplodingSynthesizer())
    with pytest.raises(ExtractionError):
        await pipeline.convert(pdf_upload(["", "", ""]))


@pytest.mark.asyncio
async def test_model_decks_become_variants(settings, image_client):
    """Test that each model deck feeds its own variant."""
    client = FakeModelClient([_model_reply(["ROI", "Outcome"], ["Story"], ["Method", "Data", "Specs"])])
    synthesizer = ModelSynthesizer(client, sleep=no_sleep)

    job = await _pipeline(settings, image_client, synthesizer=synthesizer).convert(pdf_upload([LONG_PAGE]))

    assert job.synthesis == "model"
    assert [len(v.slides) for v in job.variants] == [2, 1, 3]
    assert job.page_count == 2
    assert job.get_variant("v3").slides[0].title == "Method"


@pytest.mark.asyncio
async def test_empty_model_deck_filled_with_heuristic_slides(settings, image_client):
    """Test that an empty deck in the reply is replaced by the page slides."""
    client = FakeModelClient([_model_reply(["ROI"], [], ["Method"])])
    synthesizer = ModelSynthesizer(client, sleep=no_sleep)

    job = await _pipeline(settings, image_client, synthesizer=synthesizer).convert(pdf_upload([LONG_PAGE]))

    creative = job.get_variant("v2")
    assert [s.title for s in creative.slides] == ["Page 1"]


@pytest.mark.asyncio
async def test_model_failure_falls_back_to_heuristic(settings, image_client):
    """Test that exhausted model attempts degrade to heuristic synthesis."""
    client = FakeModelClient([ConnectionError("unavailable")])
    synthesizer = ModelSynthesizer(client, max_retries=2, sleep=no_sleep)

    job = await _pipeline(settings, image_client, synthesizer=synthesizer).convert(pdf_upload([LONG_PAGE]))

    assert client.calls == 3
    assert job.synthesis == "heuristic"
    assert job.variants[0].slides[0].title == "Page 1"


@pytest.mark.asyncio
async def test_three_variant_export(settings, image_client):
    """Test that exporting every variant gives distinct files differing only by theme suffix."""
    pipeline = _pipeline(settings, image_client)
    job = await pipeline.convert(pdf_upload([LONG_PAGE], "board-update.pdf"))

    files = [pipeline.export(job, v.id) for v in job.variants]

    assert [f.filename for f in files] == [
        "board-update_executive.pptx",
        "board-update_creative.pptx",
        "board-update_minimal.pptx",
    ]
    assert len({f.data for f in files}) == 3
    assert all(f.slide_count == 2 for f in files)


@pytest.mark.asyncio
async def test_export_defaults_to_primary_and_rejects_unknown(settings, image_client):
    """Test variant selection on export."""
    pipeline = _pipeline(settings, image_client)
    job = await pipeline.convert(pdf_upload([LONG_PAGE], "deck.pdf"))

    assert pipeline.export(job).filename == "deck_executive.pptx"
    with pytest.raises(RenderError) as excinfo:
        pipeline.export(job, "v7")
    assert excinfo.value.user_message == "No slides found to export"


@pytest.mark.asyncio
async def test_conversion_rate_limit(settings, image_client):
    """Test that conversions beyond the quota are refused."""
    pipeline = _pipeline(settings, image_client, conversion_limiter=RateLimiter(1, 60))
    await pipeline.convert(pdf_upload([LONG_PAGE]))
    with pytest.raises(RateLimitError):
        await pipeline.convert(pdf_upload([LONG_PAGE]))


def test_build_synthesizer_follows_api_key(settings):
    """Test strategy selection from settings."""
    assert isinstance(build_synthesizer(settings), HeuristicSynthesizer)
    placeholder = settings.model_copy(update={"gemini_api_key": "your_api_key_here"})
    assert isinstance(build_synthesizer(placeholder), HeuristicSynthesizer)
    configured = settings.model_copy(update={"gemini_api_key": "test-key"})
    assert isinstance(build_synthesizer(configured), ModelSynthesizer)


def test_job_title_and_size_label():
    """Test filename and size helpers."""
    assert job_title("Plan.DOCX") == "Plan"
    assert job_title("archive.tar.gz") == "archive.tar.gz"
    assert file_size_label(2_621_440) == "2.50 MB"
