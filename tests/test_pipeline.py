"""Tests for the job pipeline and the job service facade."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Tuple

import pytest

from codedocs.analyzers import StructuralExtractor
from codedocs.errors import (
    InvalidRepositoryURL,
    InvalidTransition,
    JobNotCompleteError,
    JobNotFoundError,
    RepositoryNotFoundError,
)
from codedocs.generation import GenerationOrchestrator
from codedocs.jobs import InMemoryJobStore
from codedocs.models import (
    FileRecord,
    Job,
    JobStatus,
    Language,
    PipelineState,
    RepoInfo,
)
from codedocs.pipeline import JobService, PipelineCoordinator, _JobRun

REPO_URL = "https://github.com/acme/widgets"


class RecordingStore(InMemoryJobStore):
    def __init__(self) -> None:
        super().__init__()
        self.updates: List[Tuple[str, dict[str, Any]]] = []

    def update(self, job_id: str, **fields: Any) -> Optional[Job]:
        self.updates.append((job_id, dict(fields)))
        return super().update(job_id, **fields)


class FakeFetcher:
    def __init__(
        self,
        files: List[FileRecord],
        *,
        readme: Optional[str] = None,
        error: Exception | None = None,
    ) -> None:
        self.files = files
        self.readme = readme
        self.error = error
        self.calls: List[str] = []

    async def fetch_repository_info(self, owner: str, repo: str) -> RepoInfo:
        self.calls.append("info")
        if self.error is not None:
            raise self.error
        return RepoInfo(name=repo, full_name=f"{owner}/{repo}", language="JavaScript")

    async def fetch_readme(self, owner: str, repo: str) -> Optional[str]:
        self.calls.append("readme")
        return self.readme

    async def fetch_repository_contents(
        self, owner: str, repo: str, default_branch: str = "main"
    ) -> List[FileRecord]:
        self.calls.append(f"contents:{default_branch}")
        return self.files


def _files() -> List[FileRecord]:
    js = "function start() {}\nrouter.get('/items', listItems);\n"
    py = "class Item:\n    pass\n\ndef list_items():\n    return []\n"
    return [
        FileRecord("src/app.js", js, len(js), Language.JAVASCRIPT),
        FileRecord("tools/items.py", py, len(py), Language.PYTHON),
    ]


def _service(
    scripted_client: Any,
    fetcher: FakeFetcher,
    streams: List[List[str]],
    store: InMemoryJobStore | None = None,
) -> Tuple[JobService, Any, InMemoryJobStore]:
    store = store or RecordingStore()
    client = scripted_client(streams=streams)

    async def no_sleep(_: float) -> None:
        return None

    orchestrator = GenerationOrchestrator(client, stream_inactivity_timeout=0.05, sleep=no_sleep)
    coordinator = PipelineCoordinator(store, fetcher, StructuralExtractor(), orchestrator)
    ids = iter(f"job-{index}" for index in range(1, 100))
    return JobService(store, coordinator, id_factory=lambda: next(ids)), client, store


def test_successful_job_records_result_and_metadata(scripted_client) -> None:
    document = "```markdown\n# Widgets\n" + "Widgets keep track of inventory.\n" * 12 + "```"
    fetcher = FakeFetcher(_files(), readme="Old readme")
    service, client, store = _service(scripted_client, fetcher, [[document]])

    async def scenario() -> str:
        job_id = service.submit_job(REPO_URL, "internal tool")
        await service.wait_all()
        return job_id

    job_id = asyncio.run(scenario())

    status = service.get_status(job_id)
    assert status.status is JobStatus.COMPLETED
    assert status.progress.stage == "Completed"
    assert status.progress.percentage == 100

    result = service.get_result(job_id)
    assert result.document.startswith("# Widgets\n")
    assert result.repo_name == "widgets"
    assert result.metadata.as_dict() == {
        "filesAnalyzed": 2,
        "functionsFound": 2,
        "classesFound": 1,
        "endpointsDetected": 1,
        "hadExistingReadme": True,
        "readmeLength": len(result.document),
        "generationSource": "generated",
    }
    assert fetcher.calls == ["info", "readme", "contents:main"]
    assert "NOTES: internal tool" in client.prompts[0]


def test_stage_updates_follow_lifecycle(scripted_client) -> None:
    store = RecordingStore()
    service, _, _ = _service(
        scripted_client, FakeFetcher(_files()), [["x" * 400]], store=store
    )

    asyncio.run(service.run_job(REPO_URL))

    states = [fields["state"] for _, fields in store.updates if "state" in fields]
    assert states == [
        PipelineState.FETCHING,
        PipelineState.ANALYZING,
        PipelineState.GENERATING,
        PipelineState.FORMATTING,
        PipelineState.COMPLETED,
    ]
    current_files = [
        fields["progress"].current_file
        for _, fields in store.updates
        if "state" not in fields
    ]
    assert current_files == ["src/app.js", "tools/items.py"]
    percentages = [
        fields["progress"].percentage for _, fields in store.updates if "state" in fields
    ]
    assert percentages == [25, 50, 70, 95, 100]


def test_fetch_failure_never_reaches_later_stages(scripted_client) -> None:
    store = RecordingStore()
    fetcher = FakeFetcher([], error=RepositoryNotFoundError('Repository "acme/widgets" not found.'))
    service, client, _ = _service(scripted_client, fetcher, [], store=store)

    job = asyncio.run(service.run_job(REPO_URL))

    assert job.status is JobStatus.FAILED
    assert job.state is PipelineState.FAILED
    assert job.error == 'GitHub Error: Repository "acme/widgets" not found.'
    assert job.progress.stage == "Fetching Files"
    states = [fields.get("state") for _, fields in store.updates]
    assert states == [PipelineState.FETCHING, PipelineState.FAILED]
    assert client.prompts == []


def test_zero_files_fails_during_fetching(scripted_client) -> None:
    service, client, _ = _service(scripted_client, FakeFetcher([]), [])

    job = asyncio.run(service.run_job(REPO_URL))

    assert job.status is JobStatus.FAILED
    assert job.error == "No supported code files found in repository."
    assert job.progress.percentage == 25
    assert client.prompts == []


def test_generation_fallback_still_completes(scripted_client) -> None:
    stall = scripted_client.STALL
    service, _, _ = _service(
        scripted_client, FakeFetcher(_files()), [[stall], [stall], [stall]]
    )

    job = asyncio.run(service.run_job(REPO_URL))

    assert job.status is JobStatus.COMPLETED
    assert job.result is not None
    assert job.result.metadata.generation_source == "fallback"
    assert job.result.document.startswith("# widgets\n")


def test_terminal_status_is_stable_across_polls(scripted_client) -> None:
    service, _, _ = _service(scripted_client, FakeFetcher(_files()), [["x" * 400]])

    job = asyncio.run(service.run_job(REPO_URL))

    assert service.get_status(job.id) == service.get_status(job.id)


def test_invalid_url_is_rejected_before_job_creation(scripted_client) -> None:
    service, _, store = _service(scripted_client, FakeFetcher(_files()), [])

    with pytest.raises(InvalidRepositoryURL):
        service.create_job("https://gitlab.com/acme/widgets")
    assert store.list_all() == []


def test_result_lookup_errors_are_distinct(scripted_client) -> None:
    service, _, _ = _service(scripted_client, FakeFetcher(_files()), [])
    pending = service.create_job(REPO_URL)

    with pytest.raises(JobNotFoundError):
        service.get_result("missing")
    with pytest.raises(JobNotFoundError):
        service.get_status("missing")
    with pytest.raises(JobNotCompleteError) as excinfo:
        service.get_result(pending.id)
    assert excinfo.value.status == "processing"


def test_illegal_transition_is_rejected() -> None:
    store = InMemoryJobStore()
    store.create("job-1", Job(id="job-1", repo_url=REPO_URL))
    run = _JobRun(store, "job-1")

    with pytest.raises(InvalidTransition):
        run.advance(PipelineState.GENERATING)

    run.advance(PipelineState.FETCHING)
    run.advance(PipelineState.FAILED)
    with pytest.raises(InvalidTransition):
        run.advance(PipelineState.ANALYZING)


def test_submitted_job_failure_is_recorded(scripted_client) -> None:
    service, _, _ = _service(scripted_client, FakeFetcher([], error=RuntimeError("boom")), [])

    async def submit_and_wait() -> str:
        job_id = service.submit_job(REPO_URL)
        await service.wait_all()
        return job_id

    job_id = asyncio.run(submit_and_wait())
    snapshot = service.get_status(job_id)

    assert snapshot.status is JobStatus.FAILED
    assert snapshot.error == "GitHub Error: boom"
    assert snapshot.progress.stage == "Fetching Files"
    assert snapshot.progress.percentage == 25


def test_failure_during_analysis_keeps_last_progress(scripted_client) -> None:
    class ExplodingExtractor(StructuralExtractor):
        def extract(self, content: str, path: str, language: Language) -> Any:
            raise RuntimeError("extractor crashed")

    store = RecordingStore()
    client = scripted_client(streams=[])
    orchestrator = GenerationOrchestrator(client)
    coordinator = PipelineCoordinator(
        store, FakeFetcher(_files()), ExplodingExtractor(), orchestrator
    )
    store.create("job-1", Job(id="job-1", repo_url=REPO_URL))

    assert asyncio.run(coordinator.run("job-1", REPO_URL)) is None

    job = store.get("job-1")
    assert job is not None
    assert job.state is PipelineState.FAILED
    assert job.error == "extractor crashed"
    assert job.progress.stage == "Analyzing Code Structure"
    assert job.progress.current_file == "src/app.js"
