"""GitHub repository access."""

from .fetcher import GitHubFetcher, parse_github_url

__all__ = ["GitHubFetcher", "parse_github_url"]
