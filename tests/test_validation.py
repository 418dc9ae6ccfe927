from __future__ import annotations

import pytest

from codedocs.validation import validate_github_url


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/widgets",
        "http://github.com/acme/widgets/",
        "https://www.github.com/acme-labs/widgets.js",
        "https://github.com/acme/my_repo",
    ],
)
def test_accepts_repository_urls(url: str) -> None:
    outcome = validate_github_url(url)
    assert outcome.is_valid is True
    assert outcome.error is None


@pytest.mark.parametrize(
    "url",
    [
        "https://gitlab.com/acme/widgets",
        "https://github.com/acme",
        "https://github.com/acme/widgets/tree/main",
        "github.com/acme/widgets",
        "https://github.com/acme/widgets\n",
    ],
)
def test_rejects_other_urls(url: str) -> None:
    outcome = validate_github_url(url)
    assert outcome.is_valid is False
    assert "valid GitHub repository URL" in (outcome.error or "")


@pytest.mark.parametrize("value", [None, "", 42])
def test_requires_a_string(value: object) -> None:
    assert validate_github_url(value) == validate_github_url(None)
    assert validate_github_url(value).error == "URL is required"
