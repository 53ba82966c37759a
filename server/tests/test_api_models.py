import pytest
from decksmith.models import ConversionJob, SlideDeckVariant, SlideRecord
from server.models import ErrorResponse, JobSummary, SettingsResponse


def _job():
    slides = [SlideRecord(title="A", bullets=["b"]), SlideRecord(title="C", bullets=["d"])]
    return ConversionJob(
        id="job-1",
        title="report",
        original_filename="report.pdf",
        page_count=2,
        timestamp=1700000000000,
        file_size="1.25 MB",
        variants=[
            SlideDeckVariant(id="v1", name="Executive Summary", theme="executive", slides=slides),
            SlideDeckVariant(id="v3", name="Technical Details", theme="minimal", color="#0EA5E9", slides=slides[:1]),
        ],
    )


def test_job_summary_from_job():
    summary = JobSummary.from_job(_job())
    assert summary.id == "job-1"
    assert summary.status == "Completed"
    assert [v.slide_count for v in summary.variants] == [2, 1]
    assert summary.variants[1].color == "#0EA5E9"


def test_error_response_model():
    error = ErrorResponse(error="rate_limit", detail="Slow down", retry_after=12.0)
    assert error.model_dump() == {"error": "rate_limit", "detail": "Slow down", "retry_after": 12.0}


def test_settings_response_model():
    settings = SettingsResponse(
        model_configured=False,
        model="gemini-2.5-flash",
        max_file_size=10,
        allowed_extensions=["pdf"],
        conversion_limit=5,
        export_limit=10,
        upload_limit=10,
        rate_limit_window=60.0,
    )
    assert settings.model_configured is False
    with pytest.raises(ValueError):
        SettingsResponse(model="x")
