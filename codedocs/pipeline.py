"""Job pipeline: fetch, analyze, generate and format a README for one repository."""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Set

from .analyzers import AnalysisAggregator, StructuralExtractor
from .config import CodeDocsConfig
from .constants import PROGRESS_STAGES
from .errors import (
    FetchError,
    GenerationError,
    InvalidRepositoryURL,
    InvalidTransition,
    JobNotCompleteError,
    JobNotFoundError,
)
from .generation import GenerationOrchestrator
from .github import GitHubFetcher, parse_github_url
from .jobs import InMemoryJobStore, JobStore
from .llm import OllamaClient
from .logging import get_logger, job_logger
from .models import (
    FileRecord,
    Job,
    JobMetadata,
    JobProgress,
    JobResult,
    JobStatus,
    PipelineState,
    RepoInfo,
    StatusSnapshot,
)
from .postproc import MarkdownFormatter
from .validation import validate_github_url

_TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.CREATED: {PipelineState.FETCHING, PipelineState.FAILED},
    PipelineState.FETCHING: {PipelineState.ANALYZING, PipelineState.FAILED},
    PipelineState.ANALYZING: {PipelineState.GENERATING, PipelineState.FAILED},
    PipelineState.GENERATING: {PipelineState.FORMATTING, PipelineState.FAILED},
    PipelineState.FORMATTING: {PipelineState.COMPLETED, PipelineState.FAILED},
    PipelineState.COMPLETED: set(),
    PipelineState.FAILED: set(),
}

_STAGE_KEYS = {
    PipelineState.CREATED: "cloning",
    PipelineState.FETCHING: "fetching",
    PipelineState.ANALYZING: "analyzing",
    PipelineState.GENERATING: "generating",
    PipelineState.FORMATTING: "formatting",
    PipelineState.COMPLETED: "completed",
}


def stage_progress(state: PipelineState, current_file: str | None = None) -> JobProgress:
    label, percentage = PROGRESS_STAGES[_STAGE_KEYS[state]]
    return JobProgress(stage=label, percentage=percentage, current_file=current_file)


def initial_progress() -> JobProgress:
    return stage_progress(PipelineState.CREATED)


class RepositoryFetcher(Protocol):
    async def fetch_repository_info(self, owner: str, repo: str) -> RepoInfo:
        ...

    async def fetch_readme(self, owner: str, repo: str) -> Optional[str]:
        ...

    async def fetch_repository_contents(
        self, owner: str, repo: str, default_branch: str = "main"
    ) -> List[FileRecord]:
        ...


class _JobRun:
    """Tracks the pipeline state of a single run and validates each move.

    Stage moves reset progress to that stage; a move to ``failed`` keeps the
    progress the job last reported.
    """

    def __init__(self, store: JobStore, job_id: str) -> None:
        self.store = store
        self.job_id = job_id
        self.state = PipelineState.CREATED
        self.log = job_logger("pipeline", job_id)

    def advance(self, target: PipelineState, **fields: Any) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(
                f"Job {self.job_id} cannot move from {self.state.value} to {target.value}"
            )
        self.log.debug("%s -> %s", self.state.value, target.value)
        self.state = target
        if "progress" not in fields and target in _STAGE_KEYS:
            fields["progress"] = stage_progress(target)
        self.store.update(self.job_id, state=target, **fields)


class PipelineCoordinator:
    """Drives one job through fetching, analyzing, generating and formatting.

    Each stage transition is a single store update; any stage failure moves
    the job to ``failed`` with a message and stops the run. Later stages are
    never entered after a failure.
    """

    def __init__(
        self,
        store: JobStore,
        fetcher: RepositoryFetcher,
        extractor: StructuralExtractor,
        orchestrator: GenerationOrchestrator,
        formatter: MarkdownFormatter | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.orchestrator = orchestrator
        self.formatter = formatter or MarkdownFormatter()

    async def run(
        self, job_id: str, repo_url: str, user_context: Optional[str] = None
    ) -> Optional[JobResult]:
        """Process ``repo_url`` for ``job_id``; returns None when the job failed."""
        run = _JobRun(self.store, job_id)
        try:
            return await self._run_stages(run, repo_url, user_context)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            run.log.error("Failed during %s: %s", run.state.value, message)
            if not run.state.is_terminal:
                run.advance(PipelineState.FAILED, status=JobStatus.FAILED, error=message)
            return None

    async def _run_stages(
        self, run: _JobRun, repo_url: str, user_context: Optional[str]
    ) -> JobResult:
        run.advance(PipelineState.FETCHING)
        try:
            owner, repo = parse_github_url(repo_url)
            run.log.info("Repository: %s/%s", owner, repo)
            repo_info = await self.fetcher.fetch_repository_info(owner, repo)
            readme = await self.fetcher.fetch_readme(owner, repo)
            files = await self.fetcher.fetch_repository_contents(
                owner, repo, repo_info.default_branch
            )
        except Exception as exc:
            raise FetchError(f"GitHub Error: {exc}") from exc
        if not files:
            raise FetchError("No supported code files found in repository.")
        run.log.info(
            "Fetched %d files from %s (existing README: %s)",
            len(files),
            repo_info.full_name,
            "yes" if readme else "no",
        )

        run.advance(PipelineState.ANALYZING)
        aggregator = AnalysisAggregator()
        for record in files:
            self.store.update(
                run.job_id,
                progress=stage_progress(PipelineState.ANALYZING, current_file=record.path),
            )
            aggregator.add(self.extractor.extract(record.content, record.path, record.language))
        analysis = aggregator.result
        counts = analysis.counts()
        run.log.info(
            "Code analysis complete: %d functions, %d classes, %d API endpoints",
            counts["functions"],
            counts["classes"],
            counts["endpoints"],
        )

        run.advance(PipelineState.GENERATING)
        generated = await self.orchestrator.generate_document(
            repo_info, files, readme, analysis, user_context
        )
        if not generated.text.strip():
            raise GenerationError("README generation produced no content")

        run.advance(PipelineState.FORMATTING)
        document = self.formatter.format(generated.text)

        result = JobResult(
            document=document,
            metadata=JobMetadata(
                files_analyzed=len(files),
                functions_found=counts["functions"],
                classes_found=counts["classes"],
                endpoints_found=counts["endpoints"],
                had_existing_document=bool(readme),
                document_length=len(document),
                generation_source=generated.source,
            ),
            repo_name=repo_info.name,
        )
        run.advance(PipelineState.COMPLETED, status=JobStatus.COMPLETED, result=result)
        run.log.info("Completed (%d characters, %s)", len(document), generated.source)
        return result


class JobService:
    """Accepts submissions, runs each as a background task and answers polls."""

    def __init__(
        self,
        store: JobStore,
        coordinator: PipelineCoordinator,
        *,
        model_client: OllamaClient | None = None,
        github_token: str | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.model_client = model_client
        self.github_token = github_token
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._tasks: Set[asyncio.Task[Optional[JobResult]]] = set()
        self.logger = get_logger("jobs")

    @classmethod
    def from_config(cls, config: CodeDocsConfig, store: JobStore | None = None) -> "JobService":
        store = store or InMemoryJobStore()
        client = OllamaClient(
            config.llm.base_url, config.llm.model, request_timeout=config.llm.request_timeout
        )
        coordinator = PipelineCoordinator(
            store,
            GitHubFetcher.from_config(config),
            StructuralExtractor(),
            GenerationOrchestrator.from_config(config, client),
        )
        return cls(store, coordinator, model_client=client, github_token=config.github.token)

    def create_job(self, repo_url: str, context: Optional[str] = None) -> Job:
        """Validate ``repo_url`` and register a new job without starting it."""
        outcome = validate_github_url(repo_url)
        if not outcome.is_valid:
            raise InvalidRepositoryURL(outcome.error or "Invalid repository URL")
        job_id = self._id_factory()
        self.logger.info("Accepted job %s for %s", job_id, repo_url)
        return self.store.create(
            job_id,
            Job(id=job_id, repo_url=repo_url, user_context=context, progress=initial_progress()),
        )

    def submit_job(self, repo_url: str, context: Optional[str] = None) -> str:
        """Start processing in the running event loop and return the job id immediately."""
        job = self.create_job(repo_url, context)
        task = asyncio.get_running_loop().create_task(
            self.coordinator.run(job.id, repo_url, context), name=f"codedocs-job-{job.id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job.id

    async def run_job(self, repo_url: str, context: Optional[str] = None) -> Job:
        """Process a repository to completion in the current task."""
        job = self.create_job(repo_url, context)
        await self.coordinator.run(job.id, repo_url, context)
        return self._require(job.id)

    async def wait_all(self) -> None:
        """Wait for every submitted job that is still running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def get_status(self, job_id: str) -> StatusSnapshot:
        job = self._require(job_id)
        return StatusSnapshot(
            job_id=job.id, status=job.status, progress=job.progress, error=job.error
        )

    def get_result(self, job_id: str) -> JobResult:
        job = self._require(job_id)
        if job.status is not JobStatus.COMPLETED or job.result is None:
            raise JobNotCompleteError(job_id, job.status.value)
        return job.result

    async def check_health(self) -> Dict[str, Any]:
        """Report model server reachability; raises GenerationError when it is down."""
        if self.model_client is None:
            raise GenerationError("No model client configured")
        models = await self.model_client.list_models()
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "services": {
                "server": "running",
                "ollama": {
                    "status": "connected",
                    "url": self.model_client.base_url,
                    "model": self.model_client.model,
                    "modelAvailable": self.model_client.has_model(models),
                },
                "github": {
                    "status": "authenticated" if self.github_token else "public",
                    "rateLimit": "5000/hour" if self.github_token else "60/hour",
                },
            },
        }

    def _require(self, job_id: str) -> Job:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job not found: {job_id}")
        return job


__all__ = [
    "JobService",
    "PipelineCoordinator",
    "RepositoryFetcher",
    "initial_progress",
    "stage_progress",
]
