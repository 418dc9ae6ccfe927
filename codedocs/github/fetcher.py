"""Fetches repository metadata and source files from the GitHub REST API."""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from ..analyzers.language import detect_language
from ..config import CodeDocsConfig
from ..constants import EXCLUDE_PATTERNS, MAX_FILE_SIZE, MAX_FILES, SUPPORTED_EXTENSIONS
from ..errors import (
    FetchError,
    InvalidRepositoryURL,
    NoSupportedFilesError,
    RepositoryAccessError,
    RepositoryNotFoundError,
)
from ..logging import get_logger
from ..models import FileRecord, RepoInfo

_REPO_PATTERN = re.compile(r"github\.com/([^/]+)/([^/]+)")
_JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
_RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"


def parse_github_url(url: str) -> Tuple[str, str]:
    """Return ``(owner, repo)`` for a github.com repository URL."""
    match = _REPO_PATTERN.search(url or "")
    if not match:
        raise InvalidRepositoryURL(f"Invalid GitHub URL: {url!r}")
    repo = match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return match.group(1), repo


class GitHubFetcher:
    """Reads repositories through the trees and blobs endpoints."""

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: str | None = None,
        *,
        max_files: int = MAX_FILES,
        max_file_size: int = MAX_FILE_SIZE,
        supported_extensions: Sequence[str] = SUPPORTED_EXTENSIONS,
        exclude_patterns: Sequence[str] = EXCLUDE_PATTERNS,
        request_timeout: float = 30.0,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.max_files = max_files
        self.max_file_size = max_file_size
        self.supported_extensions = tuple(supported_extensions)
        self.exclude_patterns = tuple(exclude_patterns)
        self.request_timeout = request_timeout
        self.logger = get_logger("github")

    @classmethod
    def from_config(cls, config: CodeDocsConfig) -> "GitHubFetcher":
        limits = config.limits
        return cls(
            config.github.api_url,
            config.github.token,
            max_files=limits.max_files,
            max_file_size=limits.max_file_size,
            supported_extensions=limits.supported_extensions,
            exclude_patterns=limits.exclude_patterns,
            request_timeout=config.github.request_timeout,
        )

    def headers(self, accept: str = _JSON_MEDIA_TYPE) -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def fetch_repository_info(self, owner: str, repo: str) -> RepoInfo:
        async with self._session() as session:
            data = await self._get_json(session, f"/repos/{owner}/{repo}", owner, repo)
        if not isinstance(data, dict):
            raise FetchError("Failed to fetch repository: unexpected response body")
        return RepoInfo(
            name=str(data.get("name") or repo),
            full_name=str(data.get("full_name") or f"{owner}/{repo}"),
            description=data.get("description"),
            language=data.get("language"),
            stars=int(data.get("stargazers_count") or 0),
            default_branch=str(data.get("default_branch") or "main"),
        )

    async def fetch_readme(self, owner: str, repo: str) -> Optional[str]:
        """Return the raw README markdown, or None when the repository has none."""
        url = f"{self.api_url}/repos/{owner}/{repo}/readme"
        try:
            async with self._session() as session:
                async with session.get(url, headers=self.headers(_RAW_MEDIA_TYPE)) as response:
                    if response.status != 200:
                        self.logger.info("No README found for %s/%s", owner, repo)
                        return None
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.logger.warning("Failed to fetch README for %s/%s: %s", owner, repo, exc)
            return None
        self.logger.info("README fetched for %s/%s", owner, repo)
        return text

    async def fetch_repository_contents(
        self, owner: str, repo: str, default_branch: str = "main"
    ) -> List[FileRecord]:
        """Download every eligible source file on ``default_branch``."""
        async with self._session() as session:
            tree = await self._get_json(
                session,
                f"/repos/{owner}/{repo}/git/trees/{default_branch}?recursive=1",
                owner,
                repo,
            )
            entries = tree.get("tree") if isinstance(tree, dict) else None
            if not isinstance(entries, list):
                raise FetchError("Failed to fetch repository contents: tree listing missing")

            files: List[FileRecord] = []
            for entry in self.select_entries(entries):
                if len(files) >= self.max_files:
                    self.logger.warning("Reached max files limit (%d)", self.max_files)
                    break
                path = entry["path"]
                try:
                    content = await self._fetch_blob(session, owner, repo, entry["sha"])
                except (FetchError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    self.logger.warning("Failed to fetch %s: %s", path, exc)
                    continue
                files.append(
                    FileRecord(
                        path=path,
                        content=content,
                        size=int(entry.get("size") or len(content)),
                        language=detect_language(path),
                    )
                )

        if not files:
            raise NoSupportedFilesError(
                "No supported files found in repository. Looking for: "
                + ", ".join(self.supported_extensions)
            )
        self.logger.info("Fetched %d files from %s/%s", len(files), owner, repo)
        return files

    def select_entries(self, entries: Sequence[Any]) -> List[Dict[str, Any]]:
        """Filter tree entries to blobs with an allowed extension and size."""
        selected: List[Dict[str, Any]] = []
        for entry in entries:
            if not isinstance(entry, dict) or entry.get("type") != "blob":
                continue
            path = entry.get("path")
            if not isinstance(path, str) or not entry.get("sha"):
                continue
            if any(pattern in path for pattern in self.exclude_patterns):
                continue
            if not path.endswith(self.supported_extensions):
                continue
            size = entry.get("size")
            if isinstance(size, int) and size > self.max_file_size:
                self.logger.debug("Skipping %s (%d bytes exceeds limit)", path, size)
                continue
            selected.append(entry)
        return selected

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.request_timeout))

    async def _get_json(
        self, session: aiohttp.ClientSession, path: str, owner: str, repo: str
    ) -> Any:
        try:
            async with session.get(f"{self.api_url}{path}", headers=self.headers()) as response:
                if response.status == 404:
                    raise RepositoryNotFoundError(
                        f'Repository "{owner}/{repo}" not found. Please check the URL.'
                    )
                if response.status == 403:
                    raise RepositoryAccessError(
                        "Access forbidden. The repository might be private or rate limit exceeded."
                    )
                if response.status != 200:
                    raise FetchError(f"Failed to fetch repository: HTTP {response.status}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise FetchError(f"Failed to fetch repository: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise FetchError("Failed to fetch repository: request timed out") from exc

    async def _fetch_blob(
        self, session: aiohttp.ClientSession, owner: str, repo: str, sha: str
    ) -> str:
        url = f"{self.api_url}/repos/{owner}/{repo}/git/blobs/{sha}"
        async with session.get(url, headers=self.headers()) as response:
            if response.status != 200:
                raise FetchError(f"blob request returned HTTP {response.status}")
            try:
                data = await response.json(content_type=None)
            except ValueError as exc:
                raise FetchError(f"blob response is not valid JSON: {exc}") from exc
        encoded = data.get("content") if isinstance(data, dict) else None
        if not isinstance(encoded, str):
            raise FetchError("blob response missing content")
        try:
            return base64.b64decode(encoded).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise FetchError(f"blob content is not valid base64: {exc}") from exc


__all__ = ["GitHubFetcher", "parse_github_url"]
