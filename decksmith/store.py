"""
Job history: the "recent" and "archive" lists of ConversionJobs.

Lists are stored as JSON arrays under fixed keys in a pluggable key-value
backend. A key whose content cannot be read back is cleared on load instead
of failing the caller.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from decksmith.models import ConversionJob
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

FEED_KEY = "decksmith_feed"
ARCHIVE_KEY = "decksmith_archive"


class StorageBackend(ABC):
    """String key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStorage(StorageBackend):
    """Process-local storage, for tests and one-off runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


Base = declarative_base()


class KeyValue(Base):
    """One stored list."""
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SQLStorage(StorageBackend):
    """Storage in a SQL table through SQLAlchemy."""

    def __init__(self, database_url: str = "sqlite:///decksmith.db", engine=None):
        if engine is None:
            connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
            engine = create_engine(database_url, connect_args=connect_args)
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        Base.metadata.create_all(bind=engine)

    def get(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            row = db.get(KeyValue, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            row = db.get(KeyValue, key)
            if row is None:
                db.add(KeyValue(key=key, value=value))
            else:
                row.value = value
            db.commit()

    def remove(self, key: str) -> None:
        with self.SessionLocal() as db:
            row = db.get(KeyValue, key)
            if row is not None:
                db.delete(row)
                db.commit()


class JobStore:
    """
    Repository of conversion jobs.

    Newest jobs come first in both lists. Jobs are immutable: every change
    rewrites the affected list as a whole.
    """

    def __init__(self, backend: Optional[StorageBackend] = None):
        self.backend = backend or MemoryStorage()

    def _load_list(self, key: str) -> List[ConversionJob]:
        raw = self.backend.get(key)
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
            return [ConversionJob.from_dict(item) for item in payload]
        except (ValueError, TypeError, PydanticValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Discarding corrupted job list '{key}': {e}")
            self.backend.remove(key)
            return []

    def _save_list(self, key: str, jobs: List[ConversionJob]) -> None:
        self.backend.set(key, json.dumps([job.to_dict() for job in jobs]))

    def load(self) -> Dict[str, List[ConversionJob]]:
        """Read both lists, clearing any that are corrupted."""
        return {"recent": self.recent(), "archive": self.archived()}

    def recent(self) -> List[ConversionJob]:
        return self._load_list(FEED_KEY)

    def archived(self) -> List[ConversionJob]:
        return self._load_list(ARCHIVE_KEY)

    def get(self, job_id: str) -> Optional[ConversionJob]:
        for job in self.recent() + self.archived():
            if job.id == job_id:
                return job
        return None

    def add(self, job: ConversionJob) -> None:
        jobs = [j for j in self.recent() if j.id != job.id]
        self._save_list(FEED_KEY, [job] + jobs)
        logger.debug(f"Saved job {job.id} to recent list")

    def archive(self, job_id: str) -> Optional[ConversionJob]:
        """Move a job from the recent list to the archive. Returns the job, or None if unknown."""
        recent = self.recent()
        job = next((j for j in recent if j.id == job_id), None)
        if job is None:
            return next((j for j in self.archived() if j.id == job_id), None)

        archive = [j for j in self.archived() if j.id != job_id]
        self._save_list(ARCHIVE_KEY, [job] + archive)
        self._save_list(FEED_KEY, [j for j in recent if j.id != job_id])
        logger.info(f"Archived job {job_id}")
        return job

    def delete(self, job_id: str) -> bool:
        """Remove a job from both lists. Returns whether anything was removed."""
        removed = False
        for key in (FEED_KEY, ARCHIVE_KEY):
            jobs = self._load_list(key)
            kept = [j for j in jobs if j.id != job_id]
            if len(kept) != len(jobs):
                self._save_list(key, kept)
                removed = True
        if removed:
            logger.info(f"Deleted job {job_id}")
        return removed

    def clear(self) -> None:
        self.backend.remove(FEED_KEY)
        self.backend.remove(ARCHIVE_KEY)
