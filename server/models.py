"""
Pydantic models for API responses.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from decksmith.models import ConversionJob


class VariantSummary(BaseModel):
    """A deck variant without its slide content."""
    id: str
    name: str
    theme: str
    color: str
    slide_count: int


class JobSummary(BaseModel):
    """A conversion job as listed in the history views."""
    id: str
    title: str
    original_filename: str
    status: str
    timestamp: int
    page_count: int
    thumbnail_url: Optional[str] = None
    format: str = "PPTX"
    file_size: str = ""
    synthesis: str = "heuristic"
    variants: List[VariantSummary] = Field(default_factory=list)

    @classmethod
    def from_job(cls, job: ConversionJob) -> "JobSummary":
        return cls(
            id=job.id,
            title=job.title,
            original_filename=job.original_filename,
            status=job.status.value,
            timestamp=job.timestamp,
            page_count=job.page_count,
            thumbnail_url=job.thumbnail_url,
            format=job.format,
            file_size=job.file_size,
            synthesis=job.synthesis,
            variants=[
                VariantSummary(
                    id=v.id,
                    name=v.name,
                    theme=v.theme,
                    color=v.color,
                    slide_count=len(v.slides),
                )
                for v in job.variants
            ],
        )


class JobListResponse(BaseModel):
    """One of the two history lists."""
    scope: str
    jobs: List[JobSummary]


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str = Field(description="Error kind, e.g. validation or rate_limit")
    detail: str = Field(description="Short message suitable for display")
    retry_after: Optional[float] = None


class SettingsResponse(BaseModel):
    """Public, non-secret runtime settings."""
    model_configured: bool
    model: str
    max_file_size: int
    allowed_extensions: List[str]
    conversion_limit: int
    export_limit: int
    upload_limit: int
    rate_limit_window: float

    model_config = {
        "protected_namespaces": (),
        "json_schema_extra": {
            "example": {
                "model_configured": True,
                "model": "gemini-2.5-flash",
                "max_file_size": 52428800,
                "allowed_extensions": ["pdf", "docx"],
                "conversion_limit": 5,
                "export_limit": 10,
                "upload_limit": 10,
                "rate_limit_window": 60.0,
            }
        },
    }
