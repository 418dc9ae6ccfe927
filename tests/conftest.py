from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Iterable, Iterator, List, Sequence

import pytest

from codedocs.llm.client import GenerationOptions, StreamChunk
from codedocs.models import AnalysisResult, FileRecord, Language, RepoInfo


class ScriptedClient:
    """Generation client fake that replays one scripted behaviour per call.

    Stream scripts are sequences of chunk texts; the string ``"<stall>"``
    blocks forever so the caller's inactivity timeout fires.
    """

    STALL = "<stall>"

    def __init__(
        self,
        streams: Iterable[Sequence[str]] = (),
        responses: Iterable[str | Exception] = (),
    ) -> None:
        self._streams: List[Sequence[str]] = list(streams)
        self._responses: List[str | Exception] = list(responses)
        self.stream_calls: List[GenerationOptions] = []
        self.generate_calls: List[GenerationOptions] = []
        self.prompts: List[str] = []

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        self.prompts.append(prompt)
        self.generate_calls.append(options)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def stream(self, prompt: str, options: GenerationOptions) -> AsyncIterator[StreamChunk]:
        self.prompts.append(prompt)
        self.stream_calls.append(options)
        script = self._streams.pop(0)
        for text in script:
            if text == self.STALL:
                await asyncio.sleep(3600)
            yield StreamChunk(text=text)
        yield StreamChunk(text="", done=True)


@pytest.fixture
def scripted_client() -> type[ScriptedClient]:
    return ScriptedClient


@pytest.fixture
def repo_info() -> RepoInfo:
    return RepoInfo(
        name="widgets",
        full_name="acme/widgets",
        description="Widget inventory service",
        language="JavaScript",
        stars=42,
    )


@pytest.fixture
def sample_files() -> List[FileRecord]:
    server = (
        "const express = require('express');\n"
        "const app = express();\n"
        "\n"
        "function listWidgets(req, res) {\n"
        "  res.json([]);\n"
        "}\n"
        "\n"
        "app.get('/widgets', listWidgets);\n"
    )
    package = '{"name": "widgets", "scripts": {"start": "node index.js"}}\n'
    return [
        FileRecord("index.js", server, len(server), Language.JAVASCRIPT),
        FileRecord("package.json", package, len(package), Language.UNKNOWN),
    ]


@pytest.fixture
def empty_analysis() -> AnalysisResult:
    return AnalysisResult()


@pytest.fixture(autouse=True)
def _reset_codedocs_logger() -> Iterator[None]:
    # configure_logging() detaches the logger from the root, which hides records from caplog.
    yield
    logger = logging.getLogger("codedocs")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
