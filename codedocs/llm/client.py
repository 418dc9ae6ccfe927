"""Async adapter around the Ollama generation API."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import aiohttp

from ..errors import GenerationError


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling parameters forwarded as Ollama ``options``."""

    temperature: Optional[float] = None
    num_predict: Optional[int] = None
    num_ctx: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for key in ("temperature", "num_predict", "num_ctx", "top_p", "top_k"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True)
class StreamChunk:
    """One decoded line of a streamed response; ``done`` marks the completion signal."""

    text: str
    done: bool = False


class GenerationClient(Protocol):
    """Request/response and request/stream primitive used by the orchestrator."""

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        ...

    def stream(self, prompt: str, options: GenerationOptions) -> AsyncIterator[StreamChunk]:
        ...


def parse_stream_line(line: bytes | str) -> Optional[StreamChunk]:
    """Decode an NDJSON stream line; malformed or empty lines return None."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="ignore")
    line = line.strip()
    if not line:
        return None
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    text = payload.get("response")
    return StreamChunk(
        text=text if isinstance(text, str) else "",
        done=bool(payload.get("done")),
    )


class OllamaClient:
    """Sends prompts to an Ollama server over HTTP."""

    DEFAULT_BASE_URL = "http://localhost:11434"
    DEFAULT_MODEL = "llama3:8b"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        *,
        request_timeout: float = 120.0,
        connect_timeout: float = 30.0,
    ) -> None:
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.model = model or self.DEFAULT_MODEL
        self.request_timeout = request_timeout
        self.connect_timeout = connect_timeout

    @property
    def generate_endpoint(self) -> str:
        return f"{self.base_url}/api/generate"

    def build_payload(
        self, prompt: str, options: GenerationOptions, *, stream: bool
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "prompt": prompt, "stream": stream}
        option_payload = options.as_payload()
        if option_payload:
            payload["options"] = option_payload
        return payload

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        """Issue a blocking request and return the response text."""
        payload = self.build_payload(prompt, options, stream=False)
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.generate_endpoint, json=payload) as response:
                    if response.status != 200:
                        detail = (await response.text()).strip()
                        raise GenerationError(
                            f"Ollama request failed with status {response.status}: {detail}"
                        )
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise GenerationError(f"Ollama request failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise GenerationError(
                f"Ollama request timed out after {self.request_timeout:g}s"
            ) from exc

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Ollama returned an empty response")
        return text.strip()

    async def stream(self, prompt: str, options: GenerationOptions) -> AsyncIterator[StreamChunk]:
        """Yield chunks until the server signals completion or closes the stream.

        No total timeout is applied; callers bound the wait for each chunk.
        """
        payload = self.build_payload(prompt, options, stream=True)
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.connect_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.generate_endpoint, json=payload) as response:
                    if response.status != 200:
                        detail = (await response.text()).strip()
                        raise GenerationError(
                            f"Ollama stream failed with status {response.status}: {detail}"
                        )
                    async for raw_line in response.content:
                        chunk = parse_stream_line(raw_line)
                        if chunk is None:
                            continue
                        yield chunk
                        if chunk.done:
                            return
        except aiohttp.ClientError as exc:
            raise GenerationError(f"Ollama stream failed: {exc}") from exc

    async def list_models(self) -> List[str]:
        """Return the model names the server has pulled."""
        timeout = aiohttp.ClientTimeout(total=5)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(f"{self.base_url}/api/tags") as response:
                    response.raise_for_status()
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise GenerationError(f"Ollama unavailable at {self.base_url}: {exc}") from exc
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return []
        return [
            str(item.get("name"))
            for item in models
            if isinstance(item, dict) and item.get("name")
        ]

    def has_model(self, names: List[str]) -> bool:
        base = self.model.split(":", 1)[0]
        return any(base in name for name in names)


__all__ = [
    "GenerationClient",
    "GenerationOptions",
    "OllamaClient",
    "StreamChunk",
    "parse_stream_line",
]
