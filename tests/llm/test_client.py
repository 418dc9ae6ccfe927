"""Tests for the Ollama client adapter."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import pytest
from aiohttp import test_utils, web

from codedocs.errors import GenerationError
from codedocs.llm.client import GenerationOptions, OllamaClient, StreamChunk, parse_stream_line


def test_parse_stream_line_handles_chunks_and_noise() -> None:
    assert parse_stream_line(b'{"response": "Hello", "done": false}\n') == StreamChunk("Hello")
    assert parse_stream_line('{"response": "", "done": true}') == StreamChunk("", done=True)
    assert parse_stream_line(b"   \n") is None
    assert parse_stream_line(b"not json") is None
    assert parse_stream_line(b"[1, 2]") is None


def test_build_payload_includes_only_set_options() -> None:
    client = OllamaClient("http://ollama:11434/", "llama3:8b")
    payload = client.build_payload(
        "Describe", GenerationOptions(temperature=0.4, num_predict=2000), stream=True
    )

    assert client.generate_endpoint == "http://ollama:11434/api/generate"
    assert payload == {
        "model": "llama3:8b",
        "prompt": "Describe",
        "stream": True,
        "options": {"temperature": 0.4, "num_predict": 2000},
    }


def test_has_model_matches_base_name() -> None:
    client = OllamaClient(model="llama3:8b")

    assert client.has_model(["llama3:latest", "mistral:7b"])
    assert not client.has_model(["mistral:7b"])


def _ollama_app(received: List[Dict[str, Any]], *, fail: bool = False) -> web.Application:
    async def generate(request: web.Request) -> web.StreamResponse:
        payload = await request.json()
        received.append(payload)
        if fail:
            return web.Response(status=500, text="model crashed")
        if not payload["stream"]:
            return web.json_response({"response": "  full answer  ", "done": True})
        response = web.StreamResponse()
        await response.prepare(request)
        for line in (
            {"response": "Hello", "done": False},
            "garbage",
            {"response": ", world", "done": False},
            {"response": "", "done": True},
        ):
            raw = line if isinstance(line, str) else json.dumps(line)
            await response.write(raw.encode("utf-8") + b"\n")
        await response.write_eof()
        return response

    async def tags(request: web.Request) -> web.Response:
        return web.json_response({"models": [{"name": "llama3:8b"}, {"name": "phi3"}]})

    app = web.Application()
    app.router.add_post("/api/generate", generate)
    app.router.add_get("/api/tags", tags)
    return app


def test_stream_yields_chunks_until_done() -> None:
    received: List[Dict[str, Any]] = []

    async def scenario() -> List[StreamChunk]:
        async with test_utils.TestServer(_ollama_app(received)) as server:
            client = OllamaClient(str(server.make_url("/")), "llama3:8b")
            return [chunk async for chunk in client.stream("Hi", GenerationOptions())]

    chunks = asyncio.run(scenario())

    assert [chunk.text for chunk in chunks] == ["Hello", ", world", ""]
    assert chunks[-1].done is True
    assert received[0]["stream"] is True
    assert "options" not in received[0]


def test_generate_and_list_models() -> None:
    received: List[Dict[str, Any]] = []

    async def scenario() -> tuple[str, List[str]]:
        async with test_utils.TestServer(_ollama_app(received)) as server:
            client = OllamaClient(str(server.make_url("/")))
            text = await client.generate("Hi", GenerationOptions(temperature=0.3))
            models = await client.list_models()
            return text, models

    text, models = asyncio.run(scenario())

    assert text == "full answer"
    assert models == ["llama3:8b", "phi3"]
    assert received[0]["options"] == {"temperature": 0.3}


def test_generate_raises_on_server_error() -> None:
    async def scenario() -> None:
        async with test_utils.TestServer(_ollama_app([], fail=True)) as server:
            client = OllamaClient(str(server.make_url("/")))
            await client.generate("Hi", GenerationOptions())

    with pytest.raises(GenerationError, match="status 500"):
        asyncio.run(scenario())


def test_list_models_raises_when_unreachable() -> None:
    client = OllamaClient("http://127.0.0.1:9")

    with pytest.raises(GenerationError, match="unavailable"):
        asyncio.run(client.list_models())
