"""GitHub crawler: lists an organization's repositories and indexes READMEs."""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from badgeindexer.extractor import extract_document_badges
from badgeindexer.models import BadgeIndexerError, DocumentRecord
from badgeindexer.store import write_document, write_timestamp

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DEFAULT_WORKER_COUNT = 10
_DEFAULT_TIMEOUT = 10.0
_PER_PAGE = 100


class CrawlError(BadgeIndexerError):
    """Raised when the crawl as a whole cannot proceed."""


class RetryableHTTPStatusError(Exception):
    """Raised for HTTP status codes that should trigger a retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status {status_code}")
        self.status_code = status_code


_retryer = Retrying(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(
        (requests.Timeout, requests.ConnectionError, RetryableHTTPStatusError)
    ),
    before_sleep=before_sleep_log(logger, logging.DEBUG),
    reraise=True,
)


class GitHubClient:
    """Minimal GitHub REST client for repository listings and READMEs."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = GITHUB_API_URL,
        session: requests.Session | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._shared_session = session
        self._local = threading.local()
        if session is not None:
            session.headers.update(self._headers)

    @property
    def session(self) -> requests.Session:
        """The session used by the calling thread.

        Without an explicit session each worker thread gets its own.
        """
        if self._shared_session is not None:
            return self._shared_session
        session: requests.Session | None = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self._headers)
            self._local.session = session
        return session

    def _get_once(self, url: str, params: dict[str, Any] | None) -> requests.Response:
        response = self.session.get(url, params=params, timeout=self.timeout)
        if 500 <= response.status_code < 600:
            raise RetryableHTTPStatusError(response.status_code)
        return response

    def get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        """GET *url*, retrying server errors, timeouts and connection errors."""
        return _retryer(lambda: self._get_once(url, params))

    def list_org_repos(self, org: str) -> list[dict[str, Any]]:
        """Return every repository of *org*, following pagination."""
        repos: list[dict[str, Any]] = []
        url: str | None = f"{self.base_url}/orgs/{org}/repos"
        params: dict[str, Any] | None = {"per_page": _PER_PAGE, "type": "all"}
        while url:
            response = self.get(url, params)
            response.raise_for_status()
            repos.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None
        return repos

    def get_readme(self, owner: str, repo: str) -> bytes | None:
        """Return the decoded README of a repository, or ``None`` if it has none."""
        response = self.get(f"{self.base_url}/repos/{owner}/{repo}/readme")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        payload = response.json()
        content = payload.get("content") or ""
        if payload.get("encoding", "base64") != "base64":
            return content.encode("utf-8")
        return base64.b64decode(content)


@dataclass
class CrawlResult:
    """Outcome of a crawl."""

    repositories: int = 0
    written: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def build_record(repo: dict[str, Any], readme: bytes | None) -> DocumentRecord:
    """Build the stored record for a repository and its README content."""
    return DocumentRecord(
        name=repo.get("name", ""),
        url=repo.get("html_url", ""),
        default_branch=repo.get("default_branch") or "",
        content_found=readme is not None,
        badges=extract_document_badges(readme) if readme is not None else [],
    )


def process_repository(client: GitHubClient, repo: dict[str, Any], output_dir: Path) -> Path:
    """Fetch one repository's README, extract its badges and store the record."""
    name = repo.get("name", "")
    owner = (repo.get("owner") or {}).get("login", "")
    try:
        readme = client.get_readme(owner, name)
    except binascii.Error as e:
        raise CrawlError(f"Failed to decode README for {name}: {e}") from e
    except (requests.RequestException, RetryableHTTPStatusError) as e:
        logger.warning(f"Could not fetch README for {name}: {e}")
        readme = None

    return write_document(build_record(repo, readme), output_dir)


def run_crawl(
    org: str,
    output_dir: Path,
    token: str,
    *,
    include_private: bool = False,
    workers: int = DEFAULT_WORKER_COUNT,
    client: GitHubClient | None = None,
) -> CrawlResult:
    """Crawl every repository of *org* and store one record per repository.

    Repositories are processed on a bounded thread pool. Failures of single
    repositories are logged and collected in the result.

    Raises:
        CrawlError: If the organization's repositories cannot be listed.
    """
    client = client or GitHubClient(token)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info(f"Fetching repositories for org: {org}...")
    try:
        repos = client.list_org_repos(org)
    except (requests.RequestException, RetryableHTTPStatusError) as e:
        raise CrawlError(f"Failed to list repositories for {org}: {e}") from e
    logger.info(f"Found {len(repos)} repositories.")

    if not include_private:
        repos = [r for r in repos if not r.get("private", False)]
        logger.info(f"Filtered to {len(repos)} public repositories.")

    result = CrawlResult(repositories=len(repos))
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = {pool.submit(process_repository, client, r, output_dir): r for r in repos}
        for future in as_completed(futures):
            name = futures[future].get("name", "?")
            try:
                result.written.append(future.result())
            except (BadgeIndexerError, OSError, ValueError) as e:
                logger.warning(f"Error processing {name}: {e}")
                result.errors.append(f"{name}: {e}")

    write_timestamp(output_dir)
    logger.info(f"Crawl complete. Errors: {result.error_count}")
    return result
