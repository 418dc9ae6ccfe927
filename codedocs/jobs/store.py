"""Keyed job state shared between the pipeline and status pollers."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from ..models import Job, utcnow


class JobStore(ABC):
    """Storage contract for job records.

    Each job id is written by exactly one pipeline task, so implementations only
    need per-operation atomicity, not field-level locking.
    """

    @abstractmethod
    def create(self, job_id: str, job: Job) -> Job:
        """Register ``job`` under ``job_id``."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        """Return the current snapshot, or None when the id is unknown."""

    @abstractmethod
    def update(self, job_id: str, **fields: Any) -> Optional[Job]:
        """Shallow-merge ``fields`` into the stored job; unknown ids are a logged no-op."""

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """Remove the job, returning whether it existed."""

    @abstractmethod
    def list_all(self) -> List[Job]:
        """Return every stored job in creation order."""


class InMemoryJobStore(JobStore):
    """Process-local store; jobs do not survive a restart."""

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("jobs.store")

    def create(self, job_id: str, job: Job) -> Job:
        if job.id != job_id:
            job = replace(job, id=job_id)
        with self._lock:
            self._jobs[job_id] = job
            total = len(self._jobs)
        self.logger.info("Job created: %s (%d jobs in memory)", job_id, total)
        return job

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            self.logger.debug("Job not found: %s", job_id)
        return job

    def update(self, job_id: str, **fields: Any) -> Optional[Job]:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                updated = None
            else:
                fields.pop("id", None)
                fields.pop("updated_at", None)
                updated = replace(current, **fields, updated_at=utcnow())
                self._jobs[job_id] = updated
        if updated is None:
            self.logger.warning("Cannot update job %s: not found", job_id)
            return None
        self.logger.debug(
            "Job updated: %s - status=%s stage=%s",
            job_id,
            updated.status.value,
            updated.progress.stage,
        )
        return updated

    def delete(self, job_id: str) -> bool:
        with self._lock:
            deleted = self._jobs.pop(job_id, None) is not None
        self.logger.info("Job deleted: %s - success=%s", job_id, deleted)
        return deleted

    def list_all(self) -> List[Job]:
        with self._lock:
            return list(self._jobs.values())


__all__ = ["InMemoryJobStore", "JobStore"]
