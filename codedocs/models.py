"""Core data models shared across codedocs components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Language(str, Enum):
    """Semantic language tag assigned to a fetched file."""

    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"
    PYTHON = "Python"
    JAVA = "Java"
    GO = "Go"
    RUST = "Rust"
    RUBY = "Ruby"
    UNKNOWN = "Unknown"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True)
class FileRecord:
    """A repository file as returned by the content fetcher."""

    path: str
    content: str
    size: int
    language: Language = Language.UNKNOWN


@dataclass(frozen=True)
class Parameter:
    """Function parameter descriptor; rest parameters render with a leading marker."""

    name: str
    rest: bool = False

    def __str__(self) -> str:
        return f"...{self.name}" if self.rest else self.name


@dataclass
class FunctionFact:
    name: str
    parameters: Tuple[Parameter, ...]
    is_async: bool
    line_start: int
    line_end: Optional[int] = None
    source_excerpt: str = ""
    docstring: Optional[str] = None
    file: Optional[str] = None

    @property
    def signature(self) -> str:
        params = ", ".join(str(param) for param in self.parameters)
        prefix = "async " if self.is_async else ""
        return f"{prefix}{self.name}({params})"


@dataclass
class ClassFact:
    name: str
    line_start: int
    line_end: Optional[int] = None
    file: Optional[str] = None


@dataclass
class EndpointFact:
    """HTTP route registration discovered in source, e.g. ``router.post('/users', createUser)``."""

    method: HttpMethod
    path: str
    handler: str = "handler"
    file: Optional[str] = None


@dataclass
class FileFacts:
    """Structural facts extracted from a single file."""

    functions: List[FunctionFact] = field(default_factory=list)
    classes: List[ClassFact] = field(default_factory=list)
    endpoints: List[EndpointFact] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "FileFacts":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.functions or self.classes or self.endpoints or self.imports)


@dataclass
class AnalysisResult:
    """Repository-wide fact set, concatenated in file order."""

    functions: List[FunctionFact] = field(default_factory=list)
    classes: List[ClassFact] = field(default_factory=list)
    endpoints: List[EndpointFact] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "functions": len(self.functions),
            "classes": len(self.classes),
            "endpoints": len(self.endpoints),
        }


@dataclass(frozen=True)
class RepoInfo:
    """Repository metadata from the source host."""

    name: str
    full_name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    default_branch: str = "main"


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineState(str, Enum):
    CREATED = "created"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    FORMATTING = "formatting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED)


@dataclass(frozen=True)
class JobProgress:
    stage: str
    percentage: int
    current_file: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"name": self.stage, "percentage": self.percentage}
        if self.current_file is not None:
            payload["currentFile"] = self.current_file
        return payload


@dataclass(frozen=True)
class JobMetadata:
    files_analyzed: int
    functions_found: int
    classes_found: int
    endpoints_found: int
    had_existing_document: bool
    document_length: int = 0
    generation_source: str = "generated"

    def as_dict(self) -> Dict[str, object]:
        return {
            "filesAnalyzed": self.files_analyzed,
            "functionsFound": self.functions_found,
            "classesFound": self.classes_found,
            "endpointsDetected": self.endpoints_found,
            "hadExistingReadme": self.had_existing_document,
            "readmeLength": self.document_length,
            "generationSource": self.generation_source,
        }


@dataclass(frozen=True)
class JobResult:
    document: str
    metadata: JobMetadata
    repo_name: Optional[str] = None


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Job:
    """Snapshot of a documentation job; the store swaps snapshots on update."""

    id: str
    repo_url: str
    user_context: Optional[str] = None
    status: JobStatus = JobStatus.PROCESSING
    state: PipelineState = PipelineState.CREATED
    progress: JobProgress = JobProgress(stage="Cloning Repository", percentage=10)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    result: Optional[JobResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class StatusSnapshot:
    """Poll view of a job handed to external callers."""

    job_id: str
    status: JobStatus
    progress: JobProgress
    error: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Text produced by the generation layer, tagged with where it came from."""

    text: str
    source: str = "generated"
    attempts: int = 1

    GENERATED = "generated"
    FALLBACK = "fallback"

    @property
    def is_fallback(self) -> bool:
        return self.source == self.FALLBACK
