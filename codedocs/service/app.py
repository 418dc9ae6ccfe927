"""FastAPI application exposing documentation jobs over HTTP."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..config import CodeDocsConfig, load_config
from ..errors import CodeDocsError, InvalidRepositoryURL, JobNotCompleteError, JobNotFoundError
from ..logging import get_logger
from ..pipeline import JobService


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: Optional[str] = Field(default=None, alias="repoUrl")
    context: Optional[str] = None


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: str
    message: str


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: str
    progress: Dict[str, Any]
    error: Optional[str] = None


class DocumentationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    markdown: str
    metadata: Dict[str, Any]


def _default_service(config: CodeDocsConfig | None = None) -> JobService:
    return JobService.from_config(config or load_config())


def create_app(
    service_factory: Callable[[], JobService] = _default_service,
    *,
    cors_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create the FastAPI application; one JobService instance backs every request."""
    app = FastAPI(title="CodeDocs Service", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    service = service_factory()
    app.state.job_service = service
    logger = get_logger("service")

    def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": message, **extra})

    @app.post("/api/analyze")
    async def analyze(payload: AnalyzeRequest) -> Any:
        logger.info("Analyzing repository: %s", payload.repo_url)
        try:
            job_id = service.submit_job(payload.repo_url or "", payload.context)
        except InvalidRepositoryURL as exc:
            logger.info("Validation failed: %s", exc)
            return _error(400, str(exc))
        return AnalyzeResponse(
            job_id=job_id, status="processing", message="Repository analysis started"
        ).model_dump(by_alias=True)

    @app.get("/api/status/{job_id}")
    async def status(job_id: str) -> Any:
        try:
            snapshot = service.get_status(job_id)
        except JobNotFoundError:
            return _error(404, "Job not found")
        return StatusResponse(
            job_id=snapshot.job_id,
            status=snapshot.status.value,
            progress=snapshot.progress.as_dict(),
            error=snapshot.error,
        ).model_dump(by_alias=True)

    @app.get("/api/documentation/{job_id}")
    async def documentation(job_id: str) -> Any:
        try:
            result = service.get_result(job_id)
        except JobNotFoundError:
            return _error(404, "Job not found")
        except JobNotCompleteError as exc:
            return _error(400, "Documentation not ready", status=exc.status)
        return DocumentationResponse(
            job_id=job_id, markdown=result.document, metadata=result.metadata.as_dict()
        ).model_dump(by_alias=True)

    @app.get("/api/download/{job_id}")
    async def download(job_id: str) -> Any:
        try:
            result = service.get_result(job_id)
        except (JobNotFoundError, JobNotCompleteError):
            return _error(404, "Documentation not available")
        filename = f"{result.repo_name or 'documentation'}.md"
        return Response(
            content=result.document,
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/api/health")
    async def health() -> Any:
        try:
            return await service.check_health()
        except CodeDocsError as exc:
            model = getattr(service.model_client, "model", "<model>")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "error",
                    "message": "Ollama service unavailable",
                    "details": str(exc),
                    "instructions": [
                        "Ensure Ollama is running: ollama serve",
                        f"Pull the model: ollama pull {model}",
                    ],
                },
            )

    return app


def run_service(
    host: str | None = None, port: int | None = None, config: CodeDocsConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    config = config or load_config()
    app = create_app(
        lambda: _default_service(config), cors_origins=config.service.cors_origins
    )
    uvicorn.run(app, host=host or config.service.host, port=port or config.service.port)
