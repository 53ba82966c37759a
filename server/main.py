"""
Main FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

from dotenv import load_dotenv
from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from decksmith import __version__
from decksmith.config import Settings
from decksmith.errors import DecksmithError, RateLimitError
from decksmith.models import ConversionJob, UploadedDocument
from decksmith.pipeline import DeckPipeline
from decksmith.store import JobStore, SQLStorage
from decksmith.utils.logging import get_logger, set_level
from decksmith.utils.rate_limiter import RateLimiter
from decksmith.validation import ALLOWED_EXTENSIONS, sanitize_filename
from server.models import ErrorResponse, JobListResponse, JobSummary, SettingsResponse

logger = get_logger(__name__)

# Error kind -> HTTP status
ERROR_STATUS = {
    "validation": 400,
    "extraction": 422,
    "synthesis": 502,
    "render": 500,
    "rate_limit": 429,
}


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "default"


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[DeckPipeline] = None,
    store: Optional[JobStore] = None,
) -> FastAPI:
    """
    Build the API application.

    Collaborators not passed in are built from settings when the app starts.
    """

    # Lifespan context manager
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        state = app.state
        if state.settings is None:
            load_dotenv()
            state.settings = Settings.from_env()
        set_level(state.settings.log_level)
        if state.store is None:
            state.store = JobStore(SQLStorage(state.settings.database_url))
        if state.pipeline is None:
            state.pipeline = DeckPipeline(settings=state.settings, store=state.store)
        state.upload_limiter = RateLimiter(
            state.settings.upload_limit,
            state.settings.rate_limit_window,
            message="Too many uploads. Please wait a minute and try again.",
        )
        logger.info(f"decksmith API started (model configured: {state.settings.model_configured})")
        yield
        # Shutdown
        pass

    app = FastAPI(
        title="decksmith API",
        description="Convert PDF and DOCX documents into themed PPTX decks",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store if store is not None else (pipeline.store if pipeline else None)
    app.state.pipeline = pipeline

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DecksmithError)
    async def decksmith_error_handler(request: Request, exc: DecksmithError):
        status_code = ERROR_STATUS.get(exc.kind, 500)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc}")

        body = ErrorResponse(error=exc.kind, detail=exc.user_message)
        headers = {}
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            body.retry_after = round(exc.retry_after, 1)
            headers["Retry-After"] = str(max(1, int(exc.retry_after + 0.999)))
        return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)

    def _get_job(job_id: str) -> ConversionJob:
        job = app.state.store.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    # --- API Endpoints ---

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "message": "decksmith API is running"}

    @app.post("/api/convert")
    async def convert_document(request: Request, file: UploadFile = File(...)):
        """
        Upload a PDF or DOCX file and convert it.

        Returns the completed job, including all deck variants.
        """
        client = _client_key(request)
        app.state.upload_limiter.check(client)

        data = await file.read()
        document = UploadedDocument(
            data=data,
            media_type=file.content_type or "",
            filename=sanitize_filename(file.filename or ""),
        )
        job = await app.state.pipeline.convert(document, client_key=client)
        return job.to_dict()

    @app.get("/api/jobs", response_model=JobListResponse)
    async def list_jobs(scope: str = Query("recent", pattern="^(recent|archive)$")):
        """List recent or archived jobs, newest first."""
        store: JobStore = app.state.store
        jobs = store.recent() if scope == "recent" else store.archived()
        return JobListResponse(scope=scope, jobs=[JobSummary.from_job(j) for j in jobs])

    @app.get("/api/jobs/{job_id}")
    async def get_job(job_id: str):
        """Get a job with its full slide content."""
        return _get_job(job_id).to_dict()

    @app.post("/api/jobs/{job_id}/archive", response_model=JobSummary)
    async def archive_job(job_id: str):
        """Move a job from the recent list to the archive."""
        job = app.state.store.archive(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return JobSummary.from_job(job)

    @app.delete("/api/jobs/{job_id}")
    async def delete_job(job_id: str):
        """Delete a job from both lists."""
        if not app.state.store.delete(job_id):
            raise HTTPException(status_code=404, detail="Job not found")
        return {"job_id": job_id, "deleted": True}

    @app.get("/api/jobs/{job_id}/export")
    def export_job(request: Request, job_id: str, variant_id: Optional[str] = None):
        """
        Render one variant of a job and download it.

        Runs in the worker thread pool: rendering fetches images over HTTP.
        """
        job = _get_job(job_id)
        rendered = app.state.pipeline.export(job, variant_id, client_key=_client_key(request))
        disposition = f"attachment; filename*=UTF-8''{quote(rendered.filename)}"
        return Response(
            content=rendered.data,
            media_type=rendered.media_type,
            headers={"Content-Disposition": disposition},
        )

    @app.get("/api/settings", response_model=SettingsResponse)
    async def get_settings():
        """Get current (non-secret) settings."""
        settings: Settings = app.state.settings
        return SettingsResponse(
            model_configured=settings.model_configured,
            model=settings.model,
            max_file_size=settings.max_file_size,
            allowed_extensions=list(ALLOWED_EXTENSIONS),
            conversion_limit=settings.conversion_limit,
            export_limit=settings.export_limit,
            upload_limit=settings.upload_limit,
            rate_limit_window=settings.rate_limit_window,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
