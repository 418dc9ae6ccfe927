"""Generation service adapters."""

from .client import (
    GenerationClient,
    GenerationOptions,
    OllamaClient,
    StreamChunk,
    parse_stream_line,
)

__all__ = [
    "GenerationClient",
    "GenerationOptions",
    "OllamaClient",
    "StreamChunk",
    "parse_stream_line",
]
