"""Configuration loading for codedocs (.codedocs.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .constants import EXCLUDE_PATTERNS, MAX_FILE_SIZE, MAX_FILES, SUPPORTED_EXTENSIONS

CONFIG_FILENAME = ".codedocs.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Ollama runtime settings."""

    base_url: str = "http://localhost:11434"
    model: str = "llama3:8b"
    request_timeout: float = 120.0
    stream: bool = True
    top_p: Optional[float] = None
    top_k: Optional[int] = None


@dataclass
class GitHubConfig:
    api_url: str = "https://api.github.com"
    token: Optional[str] = None
    request_timeout: float = 30.0


@dataclass
class LimitsConfig:
    """Bounds applied by the repository fetcher."""

    max_files: int = MAX_FILES
    max_file_size: int = MAX_FILE_SIZE
    supported_extensions: List[str] = field(default_factory=lambda: list(SUPPORTED_EXTENSIONS))
    exclude_patterns: List[str] = field(default_factory=lambda: list(EXCLUDE_PATTERNS))


@dataclass
class GenerationConfig:
    """Retry and streaming policy for README generation."""

    max_attempts: int = 3
    retry_backoff: float = 2.0
    stream_inactivity_timeout: float = 30.0
    min_document_length: int = 300


@dataclass
class ServiceConfig:
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:3000",
            "http://localhost:8080",
        ]
    )


@dataclass
class CodeDocsConfig:
    """Represents the effective settings for a codedocs process."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    source: Optional[Path] = None


def load_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> CodeDocsConfig:
    """Load configuration from disk, then apply environment overrides."""
    environ = os.environ if env is None else env
    config = CodeDocsConfig()

    config_file = _resolve_config_path(config_path) if config_path is not None else None
    if config_file is not None and config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file.name} must contain a mapping at the root")
        _apply_file_settings(config, data)
        config.source = config_file

    _apply_env_overrides(config, environ)
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _apply_file_settings(config: CodeDocsConfig, data: Dict[str, Any]) -> None:
    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        llm = config.llm
        llm.base_url = _as_str(llm_data.get("base_url")) or llm.base_url
        llm.model = _as_str(llm_data.get("model")) or llm.model
        llm.request_timeout = _as_float(llm_data.get("request_timeout"), llm.request_timeout)
        stream = _as_bool(llm_data.get("stream"))
        if stream is not None:
            llm.stream = stream
        llm.top_p = _as_float(llm_data.get("top_p"), llm.top_p)
        llm.top_k = _as_int(llm_data.get("top_k"), llm.top_k)

    github_data = _as_dict(data.get("github"))
    if github_data:
        github = config.github
        github.api_url = _as_str(github_data.get("api_url")) or github.api_url
        github.token = _as_str(github_data.get("token")) or github.token
        github.request_timeout = _as_float(
            github_data.get("request_timeout"), github.request_timeout
        )

    limits_data = _as_dict(data.get("limits"))
    if limits_data:
        limits = config.limits
        limits.max_files = _as_int(limits_data.get("max_files"), limits.max_files)
        limits.max_file_size = _as_int(limits_data.get("max_file_size"), limits.max_file_size)
        extensions = _as_str_list(limits_data.get("supported_extensions"))
        if extensions:
            limits.supported_extensions = extensions
        excludes = _as_str_list(limits_data.get("exclude_patterns"))
        if excludes:
            limits.exclude_patterns = excludes

    generation_data = _as_dict(data.get("generation"))
    if generation_data:
        generation = config.generation
        generation.max_attempts = max(
            1, _as_int(generation_data.get("max_attempts"), generation.max_attempts)
        )
        generation.retry_backoff = _as_float(
            generation_data.get("retry_backoff"), generation.retry_backoff
        )
        generation.stream_inactivity_timeout = _as_float(
            generation_data.get("stream_inactivity_timeout"),
            generation.stream_inactivity_timeout,
        )
        generation.min_document_length = _as_int(
            generation_data.get("min_document_length"), generation.min_document_length
        )

    service_data = _as_dict(data.get("service"))
    if service_data:
        service = config.service
        service.host = _as_str(service_data.get("host")) or service.host
        service.port = _as_int(service_data.get("port"), service.port)
        origins = _as_str_list(service_data.get("cors_origins"))
        if origins:
            service.cors_origins = origins


def _apply_env_overrides(config: CodeDocsConfig, env: Mapping[str, str]) -> None:
    if env.get("OLLAMA_BASE_URL"):
        config.llm.base_url = env["OLLAMA_BASE_URL"]
    if env.get("OLLAMA_MODEL"):
        config.llm.model = env["OLLAMA_MODEL"]
    config.llm.request_timeout = _as_float(
        env.get("CODEDOCS_REQUEST_TIMEOUT"), config.llm.request_timeout
    )
    if env.get("GITHUB_TOKEN"):
        config.github.token = env["GITHUB_TOKEN"]
    config.limits.max_files = _as_int(env.get("MAX_FILES"), config.limits.max_files)
    config.limits.max_file_size = _as_int(env.get("MAX_FILE_SIZE"), config.limits.max_file_size)
    if env.get("HOST"):
        config.service.host = env["HOST"]
    config.service.port = _as_int(env.get("PORT"), config.service.port)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value)


def _as_float(value: Any, default: Any) -> Any:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any, default: Any) -> Any:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CodeDocsConfig",
    "ConfigError",
    "GenerationConfig",
    "GitHubConfig",
    "LLMConfig",
    "LimitsConfig",
    "ServiceConfig",
    "load_config",
]
