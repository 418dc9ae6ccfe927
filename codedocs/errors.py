"""Exception hierarchy shared across codedocs components."""

from __future__ import annotations


class CodeDocsError(RuntimeError):
    """Base class for all codedocs failures."""


class InvalidRepositoryURL(CodeDocsError):
    """Raised synchronously when a submitted repository URL is malformed."""


class FetchError(CodeDocsError):
    """Raised when repository metadata or contents cannot be retrieved."""


class RepositoryNotFoundError(FetchError):
    """The repository does not exist or is not visible."""


class RepositoryAccessError(FetchError):
    """Access was refused (private repository or exhausted rate limit)."""


class NoSupportedFilesError(FetchError):
    """The repository contains no files eligible for analysis."""


class ExtractionError(CodeDocsError):
    """A source file could not be parsed into structural facts."""


class GenerationError(CodeDocsError):
    """A single generation attempt did not produce usable output."""


class StreamTimeout(GenerationError):
    """No chunk arrived within the inactivity window."""


class EmptyStreamError(GenerationError):
    """The stream ended without producing any text."""


class InsufficientOutputError(GenerationError):
    """Generated text was shorter than the viability threshold."""


class JobNotFoundError(CodeDocsError):
    """No job is registered under the requested id."""


class JobNotCompleteError(CodeDocsError):
    """The job exists but has not reached the completed state."""

    def __init__(self, job_id: str, status: str) -> None:
        super().__init__(f"Job {job_id} is {status}")
        self.job_id = job_id
        self.status = status


class InvalidTransition(CodeDocsError):
    """A pipeline state change that the job lifecycle does not allow."""


__all__ = [
    "CodeDocsError",
    "EmptyStreamError",
    "ExtractionError",
    "FetchError",
    "GenerationError",
    "InsufficientOutputError",
    "InvalidRepositoryURL",
    "InvalidTransition",
    "JobNotCompleteError",
    "JobNotFoundError",
    "NoSupportedFilesError",
    "RepositoryAccessError",
    "RepositoryNotFoundError",
    "StreamTimeout",
]
