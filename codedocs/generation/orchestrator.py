"""README generation with bounded retries, stream inactivity detection and fallbacks."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Sequence

from ..config import CodeDocsConfig
from ..errors import EmptyStreamError, InsufficientOutputError, StreamTimeout
from ..failsafe import (
    build_fallback_readme,
    fallback_install_instructions,
    fallback_overview,
    fallback_summary,
    fallback_usage_instructions,
)
from ..llm.client import GenerationClient, GenerationOptions, OllamaClient
from ..logging import get_logger
from ..models import (
    AnalysisResult,
    EndpointFact,
    FileRecord,
    FunctionFact,
    GenerationResult,
    RepoInfo,
)
from ..prompting.builder import PromptBuilder

DOCUMENT_OPTIONS = GenerationOptions(temperature=0.4, num_predict=2000, num_ctx=3072)
OVERVIEW_OPTIONS = GenerationOptions(temperature=0.5, num_predict=500)
INSTALL_OPTIONS = GenerationOptions(temperature=0.3, num_predict=400)
USAGE_OPTIONS = GenerationOptions(temperature=0.3, num_predict=400)
SUMMARY_OPTIONS = GenerationOptions(temperature=0.3, num_predict=200)


class GenerationOrchestrator:
    """Turns prompts into documentation text and never raises to its caller.

    ``generate_document`` makes up to ``max_attempts`` attempts. An attempt
    fails when the stream stalls for ``stream_inactivity_timeout`` seconds,
    ends without text, the client errors, or the text is not longer than
    ``min_document_length``. Once attempts are exhausted a deterministic
    README built from metadata is returned instead.
    """

    def __init__(
        self,
        client: GenerationClient,
        prompt_builder: PromptBuilder | None = None,
        *,
        max_attempts: int = 3,
        retry_backoff: float = 2.0,
        stream_inactivity_timeout: float = 30.0,
        min_document_length: int = 300,
        stream: bool = True,
        top_p: Optional[float] = None,
        top_k: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff
        self.stream_inactivity_timeout = stream_inactivity_timeout
        self.min_document_length = min_document_length
        self.stream = stream
        self.top_p = top_p
        self.top_k = top_k
        self._sleep = sleep
        self.logger = get_logger("generation")

    @classmethod
    def from_config(
        cls, config: CodeDocsConfig, client: GenerationClient | None = None
    ) -> "GenerationOrchestrator":
        llm = config.llm
        generation = config.generation
        if client is None:
            client = OllamaClient(llm.base_url, llm.model, request_timeout=llm.request_timeout)
        return cls(
            client,
            max_attempts=generation.max_attempts,
            retry_backoff=generation.retry_backoff,
            stream_inactivity_timeout=generation.stream_inactivity_timeout,
            min_document_length=generation.min_document_length,
            stream=llm.stream,
            top_p=llm.top_p,
            top_k=llm.top_k,
        )

    async def generate_document(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        existing_readme: Optional[str],
        analysis: AnalysisResult,
        user_context: Optional[str] = None,
    ) -> GenerationResult:
        prompt = self.prompt_builder.document_prompt(
            repo_info, files, existing_readme, analysis, user_context
        )
        options = self._options(DOCUMENT_OPTIONS)
        self.logger.debug("README prompt is %d characters", len(prompt))

        for attempt in range(1, self.max_attempts + 1):
            self.logger.info(
                "Generating README for %s (attempt %d/%d)",
                repo_info.full_name,
                attempt,
                self.max_attempts,
            )
            try:
                text = await self._attempt(prompt, options)
                self._check_viable(text)
            except Exception as exc:
                self.logger.warning("README attempt %d failed: %s", attempt, exc)
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_backoff)
                continue
            self.logger.info("Generated README with %d characters", len(text))
            return GenerationResult(text=text, source=GenerationResult.GENERATED, attempts=attempt)

        self.logger.info(
            "All %d attempts failed for %s; using fallback README",
            self.max_attempts,
            repo_info.full_name,
        )
        return GenerationResult(
            text=build_fallback_readme(repo_info, existing_readme, files, analysis),
            source=GenerationResult.FALLBACK,
            attempts=self.max_attempts,
        )

    async def generate_overview(
        self,
        repo_info: RepoInfo,
        analysis: AnalysisResult,
        user_context: Optional[str] = None,
        existing_readme: Optional[str] = None,
    ) -> GenerationResult:
        prompt = self.prompt_builder.overview_prompt(
            repo_info, analysis, user_context, existing_readme
        )
        return await self._single(
            "overview",
            prompt,
            OVERVIEW_OPTIONS,
            lambda: fallback_overview(repo_info, existing_readme),
        )

    async def generate_install_instructions(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        existing_readme: Optional[str] = None,
    ) -> GenerationResult:
        prompt = self.prompt_builder.install_prompt(repo_info, files, existing_readme)
        return await self._single(
            "installation instructions",
            prompt,
            INSTALL_OPTIONS,
            lambda: fallback_install_instructions(repo_info.language),
        )

    async def generate_usage_instructions(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        functions: Sequence[FunctionFact],
        endpoints: Sequence[EndpointFact],
    ) -> GenerationResult:
        prompt = self.prompt_builder.usage_prompt(repo_info, files, functions, endpoints)
        return await self._single(
            "usage instructions", prompt, USAGE_OPTIONS, fallback_usage_instructions
        )

    async def generate_summary(self, code: str, kind: str, name: str) -> GenerationResult:
        prompt = self.prompt_builder.summary_prompt(code, kind, name)
        return await self._single(
            f"summary of {name}", prompt, SUMMARY_OPTIONS, lambda: fallback_summary(kind, name)
        )

    async def _attempt(self, prompt: str, options: GenerationOptions) -> str:
        if not self.stream:
            return await self.client.generate(prompt, options)
        return await self._consume_stream(prompt, options)

    async def _consume_stream(self, prompt: str, options: GenerationOptions) -> str:
        stream = self.client.stream(prompt, options)
        parts: list[str] = []
        try:
            while True:
                try:
                    chunk = await asyncio.wait_for(
                        anext(stream), timeout=self.stream_inactivity_timeout
                    )
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError as exc:
                    raise StreamTimeout(
                        f"no data received for {self.stream_inactivity_timeout:g}s"
                    ) from exc
                if chunk.text:
                    parts.append(chunk.text)
                if chunk.done:
                    break
        finally:
            await stream.aclose()

        text = "".join(parts)
        if not text:
            raise EmptyStreamError("stream ended without any data")
        return text

    def _check_viable(self, text: str) -> None:
        length = len(text.strip())
        if length <= self.min_document_length:
            raise InsufficientOutputError(
                f"response too short ({length} <= {self.min_document_length} characters)"
            )

    async def _single(
        self,
        label: str,
        prompt: str,
        options: GenerationOptions,
        fallback: Callable[[], str],
    ) -> GenerationResult:
        try:
            text = await self.client.generate(prompt, self._options(options))
        except Exception as exc:
            self.logger.warning("Failed to generate %s: %s", label, exc)
            return GenerationResult(text=fallback(), source=GenerationResult.FALLBACK)
        text = text.strip()
        if not text:
            self.logger.warning("Empty response while generating %s", label)
            return GenerationResult(text=fallback(), source=GenerationResult.FALLBACK)
        return GenerationResult(text=text, source=GenerationResult.GENERATED)

    def _options(self, base: GenerationOptions) -> GenerationOptions:
        if self.top_p is None and self.top_k is None:
            return base
        return GenerationOptions(
            temperature=base.temperature,
            num_predict=base.num_predict,
            num_ctx=base.num_ctx,
            top_p=self.top_p,
            top_k=self.top_k,
        )


__all__ = [
    "DOCUMENT_OPTIONS",
    "GenerationOrchestrator",
    "INSTALL_OPTIONS",
    "OVERVIEW_OPTIONS",
    "SUMMARY_OPTIONS",
    "USAGE_OPTIONS",
]
