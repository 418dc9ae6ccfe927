"""Job state storage."""

from .store import InMemoryJobStore, JobStore

__all__ = ["InMemoryJobStore", "JobStore"]
