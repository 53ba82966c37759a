"""
Main orchestration pipeline for decksmith.

Coordinates validation, extraction, synthesis and job creation for an upload,
and rendering for each export.
"""

import inspect
import time
import uuid
from typing import Awaitable, Callable, List, Optional, Union

from decksmith.config import Settings
from decksmith.errors import RenderError, ValidationError
from decksmith.extractors import get_extractor
from decksmith.models import (
    ConversionJob,
    DeckSet,
    ExtractionResult,
    JobStatus,
    RenderedFile,
    RenderRequest,
    SlideDeckVariant,
    SlideRecord,
    UploadedDocument,
)
from decksmith.renderers import ImageClient, PPTXRenderer, thumbnail_url
from decksmith.store import JobStore
from decksmith.synthesizers import (
    GeminiClient,
    HeuristicSynthesizer,
    ModelSynthesizer,
    Synthesizer,
    build_variants,
    synthesize_heuristic,
)
from decksmith.utils.logging import get_logger
from decksmith.utils.rate_limiter import RateLimiter
from decksmith.validation import DocumentValidator

logger = get_logger(__name__)

ProgressCallback = Callable[[float, str], Union[None, Awaitable[None]]]

TITLE_SUFFIXES = (".pdf", ".docx")


def job_title(filename: str) -> str:
    """Filename without a trailing .pdf/.docx (case-insensitive)."""
    lowered = filename.lower()
    for suffix in TITLE_SUFFIXES:
        if lowered.endswith(suffix):
            return filename[: -len(suffix)]
    return filename


def file_size_label(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f} MB"


def build_synthesizer(settings: Settings) -> Synthesizer:
    """Model-backed synthesis when an API key is configured, heuristic otherwise."""
    if not settings.model_configured:
        logger.warning("Gemini API key not configured; using heuristic synthesis")
        return HeuristicSynthesizer()
    client = GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.model,
        thinking_budget=settings.thinking_budget,
    )
    return ModelSynthesizer(
        client,
        timeout=settings.synthesis_timeout,
        max_retries=settings.synthesis_max_retries,
        base_delay=settings.synthesis_base_delay,
        max_context_chars=settings.max_context_chars,
    )


class DeckPipeline:
    """
    End-to-end pipeline from an uploaded document to exportable decks.

    Stages of `convert`:
    1. Validation: size, extension, media type and signature checks
    2. Extraction: plain text per page
    3. Synthesis: model-backed when configured, heuristic otherwise or on failure
    4. Job creation: three themed variants, saved to the job store

    `export` renders one variant of a finished job on demand.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        synthesizer: Optional[Synthesizer] = None,
        renderer: Optional[PPTXRenderer] = None,
        store: Optional[JobStore] = None,
        validator: Optional[DocumentValidator] = None,
        conversion_limiter: Optional[RateLimiter] = None,
        export_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize pipeline.

        Args:
            settings: Runtime settings (defaults to the environment)
            synthesizer: Slide synthesizer; built from settings when omitted
            renderer: PPTX renderer; built with an HTTP image client when omitted
            store: Job store that finished jobs are added to (optional)
            validator: Upload validator; built from settings when omitted
            conversion_limiter: Quota for conversions
            export_limiter: Quota for exports
        """
        self.settings = settings or Settings.from_env()
        self.synthesizer = synthesizer or build_synthesizer(self.settings)
        self.renderer = renderer or PPTXRenderer(
            ImageClient(base_url=self.settings.image_api_url, timeout=self.settings.image_timeout)
        )
        self.store = store
        self.validator = validator or DocumentValidator(
            max_size=self.settings.max_file_size,
            min_size=self.settings.min_file_size,
            strict_media_type=self.settings.strict_media_type,
            sniff_signature=self.settings.sniff_signature,
        )
        self.conversion_limiter = conversion_limiter or RateLimiter(
            self.settings.conversion_limit,
            self.settings.rate_limit_window,
            message="Too many conversions. Please wait a minute before converting another document.",
        )
        self.export_limiter = export_limiter or RateLimiter(
            self.settings.export_limit,
            self.settings.rate_limit_window,
            message="Too many exports. Please wait a moment before downloading again.",
        )

    async def convert(
        self,
        document: UploadedDocument,
        progress_callback: Optional[ProgressCallback] = None,
        client_key: str = "default",
    ) -> ConversionJob:
        """
        Convert an upload into a ConversionJob.

        Args:
            document: The uploaded file
            progress_callback: Called with (percent, stage description)
            client_key: Rate-limit bucket for the caller

        Returns:
            The completed job, already saved to the store if one is set

        Raises:
            RateLimitError: Conversion quota exhausted
            ValidationError: Upload rejected
            ExtractionError: No text could be read
        """
        self.conversion_limiter.check(client_key)
        logger.info(f"Starting document conversion: {document.filename}")

        await self._report(progress_callback, 5.0, "Validating file...")
        verdict = self.validator.validate(document)
        if not verdict.accepted:
            raise ValidationError(verdict.reason or "File rejected", code=verdict.code or "invalid")
        for warning in verdict.warnings:
            logger.warning(f"{document.filename}: {warning}")

        await self._report(progress_callback, 15.0, f"Extracting text from {document.extension.upper()}...")
        extraction = await get_extractor(document).extract_pages(document)
        logger.info(f"Extracted {extraction.page_count} pages from {document.filename}")

        await self._report(progress_callback, 35.0, "Converting pages to slides...")
        variants, kind = await self._synthesize(extraction)

        await self._report(progress_callback, 70.0, "Building presentation variants...")
        job = self._build_job(document, variants, kind)

        await self._report(progress_callback, 90.0, "Finalizing presentation...")
        if self.store is not None:
            self.store.add(job)

        await self._report(progress_callback, 100.0, "Complete!")
        logger.info(f"Document conversion completed: {job.id} ({job.page_count} slides, {kind})")
        return job

    def export(
        self,
        job: ConversionJob,
        variant_id: Optional[str] = None,
        client_key: str = "default",
    ) -> RenderedFile:
        """
        Render one variant of a job (the primary variant when `variant_id` is None).

        Raises:
            RateLimitError: Export quota exhausted
            RenderError: Unknown/empty variant, or rendering failed
        """
        self.export_limiter.check(client_key)

        variant = job.get_variant(variant_id)
        if variant is None or not variant.slides:
            raise RenderError(
                f"Job {job.id} has no exportable variant {variant_id or '(primary)'}",
                user_message="No slides found to export",
            )

        logger.info(f"Export started: {job.id}/{variant.id} ({len(variant.slides)} slides)")
        rendered = self.renderer.render_request(RenderRequest(variant=variant, source_title=job.title))
        logger.info(f"Export completed: {job.id}/{variant.id} -> {rendered.filename}")
        return rendered

    async def _synthesize(self, extraction: ExtractionResult):
        fallback: List[SlideRecord] = synthesize_heuristic(extraction.pages)

        deckset = await self.synthesizer.synthesize(extraction)
        kind = self.synthesizer.kind
        if deckset is None:
            logger.warning("Model synthesis unavailable; falling back to heuristic slides")
            deckset = DeckSet.uniform(fallback)
            kind = "heuristic"

        # Empty decks from the model are filled with the heuristic slides
        return build_variants(deckset, fallback=fallback), kind

    def _build_job(
        self, document: UploadedDocument, variants: List[SlideDeckVariant], kind: str
    ) -> ConversionJob:
        now_ms = int(time.time() * 1000)
        primary = variants[0]
        first_prompt = primary.slides[0].image_prompt if primary.slides else ""
        return ConversionJob(
            id=f"job-{uuid.uuid4().hex}",
            title=job_title(document.filename),
            original_filename=document.filename,
            page_count=len(primary.slides),
            status=JobStatus.COMPLETED,
            timestamp=now_ms,
            thumbnail_url=thumbnail_url(first_prompt, self.settings.image_api_url),
            format="PPTX",
            file_size=file_size_label(document.size_bytes),
            source=document.filename,
            synthesis=kind,
            variants=variants,
        )

    @staticmethod
    async def _report(callback: Optional[ProgressCallback], percent: float, stage: str) -> None:
        logger.debug(f"[{percent:.0f}%] {stage}")
        if callback is None:
            return
        result = callback(percent, stage)
        if inspect.isawaitable(result):
            await result
