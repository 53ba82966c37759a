"""
Tests for the job store and its storage backends.
"""

import json

import pytest

from decksmith.models import ConversionJob, SlideDeckVariant, SlideRecord
from decksmith.store import ARCHIVE_KEY, FEED_KEY, JobStore, MemoryStorage, SQLStorage


def _job(job_id: str) -> ConversionJob:
    variant = SlideDeckVariant(
        id="v1", name="Executive Summary", theme="executive", slides=[SlideRecord(title="T", bullets=["b"])]
    )
    return ConversionJob(
        id=job_id,
        title=job_id,
        original_filename=f"{job_id}.pdf",
        page_count=1,
        timestamp=1700000000000,
        variants=[variant],
    )


@pytest.fixture(params=["memory", "sql"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return SQLStorage(f"sqlite:///{tmp_path / 'jobs.db'}")


def test_add_puts_newest_first(backend):
    """Test that new jobs are prepended to the recent list."""
    store = JobStore(backend)
    store.add(_job("job-1"))
    store.add(_job("job-2"))
    assert [j.id for j in store.recent()] == ["job-2", "job-1"]
    assert store.archived() == []


def test_archive_moves_job(backend):
    """Test moving a job from recent to archive."""
    store = JobStore(backend)
    store.add(_job("job-1"))
    store.add(_job("job-2"))

    moved = store.archive("job-1")
    assert moved.id == "job-1"
    assert [j.id for j in store.recent()] == ["job-2"]
    assert [j.id for j in store.archived()] == ["job-1"]
    assert store.archive("job-404") is None


def test_delete_removes_from_both_lists(backend):
    """Test deletion and lookup."""
    store = JobStore(backend)
    store.add(_job("job-1"))
    store.archive("job-1")
    store.add(_job("job-2"))

    assert store.get("job-1").id == "job-1"
    assert store.delete("job-1")
    assert store.get("job-1") is None
    assert not store.delete("job-1")
    assert [j.id for j in store.recent()] == ["job-2"]


def test_clear(backend):
    """Test clearing both lists."""
    store = JobStore(backend)
    store.add(_job("job-1"))
    store.archive("job-1")
    store.clear()
    assert store.load() == {"recent": [], "archive": []}


def test_persists_across_store_instances(tmp_path):
    """Test that SQL storage survives a new store object."""
    url = f"sqlite:///{tmp_path / 'jobs.db'}"
    JobStore(SQLStorage(url)).add(_job("job-1"))
    assert [j.id for j in JobStore(SQLStorage(url)).recent()] == ["job-1"]


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        json.dumps({"id": "job-1"}),
        json.dumps([{"id": "job-1"}]),
    ],
)
def test_corrupted_list_is_discarded(raw):
    """Test that unreadable stored data clears the key instead of failing."""
    backend = MemoryStorage({FEED_KEY: raw, ARCHIVE_KEY: json.dumps([_job("job-9").to_dict()])})
    store = JobStore(backend)

    assert store.recent() == []
    assert backend.get(FEED_KEY) is None
    assert [j.id for j in store.archived()] == ["job-9"]
