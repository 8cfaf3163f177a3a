"""
GitHub GraphQL API client for fetching a user's starred repositories,
with rate limiting and pagination support.
"""

import logging
import os
import time
from typing import Callable, Optional
from datetime import datetime, timedelta, timezone
import requests

from core.entities import (
    UNKNOWN_LANGUAGE,
    FetchResult,
    RateLimitWindow,
    StarredRepository,
    parse_timestamp,
)
from core.filters import IgnoreFilter
from infrastructure.retry_utils import (
    Deadline,
    DeadlineExceeded,
    RateLimiter,
    RateLimitExceeded,
    wait_until_reset,
)
from infrastructure.state_store import RateLimitStateStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 180


class GitHubAPIError(Exception):
    """Raised for any GitHub API failure other than an exhausted quota."""


class StarFetchError(Exception):
    """
    Raised when fetching stars fails.
    Carries the repositories collected before the failure.
    """
    def __init__(self, message: str, partial: Optional[FetchResult] = None, timed_out: bool = False):
        super().__init__(message)
        self.partial = partial if partial is not None else FetchResult()
        self.timed_out = timed_out


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def determine_language(languages: Optional[dict]) -> str:
    """
    Primary language of a repository: the first entry of the languages
    connection, which is ordered by size. "Unknown" if none is reported.
    """
    edges = (languages or {}).get("edges") or []
    if edges and edges[0].get("node", {}).get("name"):
        language = edges[0]["node"]["name"]
        logger.debug(f"Determined repository language: {language}")
        return language
    logger.debug("No language determined for repository")
    return UNKNOWN_LANGUAGE


def determine_license(license_info: Optional[dict]) -> str:
    """
    Display name of a repository license.
    The nickname wins; otherwise the full name, unless it is "Other".
    """
    license_info = license_info or {}
    nickname = license_info.get("nickname") or ""
    name = license_info.get("name") or ""

    if nickname:
        return nickname
    if name and name.lower() != "other":
        return name
    return ""


def normalize_edge(edge: dict) -> tuple[str, StarredRepository]:
    """
    Translate one starredRepositories edge into (language, StarredRepository).

    Raises:
        GitHubAPIError: If the edge does not have the expected shape
    """
    try:
        node = edge["node"]
        license_info = node.get("licenseInfo") or {}
        starred_at = edge.get("starredAt")
        repo = StarredRepository(
            url=node["url"],
            name=node["name"],
            full_name=node["nameWithOwner"],
            description=node.get("description") or "",
            license=determine_license(license_info),
            license_url=license_info.get("url") or "",
            stars=node.get("stargazerCount") or 0,
            archived=bool(node.get("isArchived")),
            starred_at=parse_timestamp(starred_at) if starred_at else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Unexpected repository data in response: {e!r}") from e

    return determine_language(node.get("languages")), repo


class GitHubClient:
    """
    Client for fetching starred repositories from GitHub's GraphQL API.
    Handles authentication, rate limiting, and pagination.
    """

    GRAPHQL_ENDPOINT = "https://api.github.com/graphql"
    PAGE_SIZE = 50
    LANGUAGES_PER_REPO = 1

    # GraphQL query for one page of starred repositories
    STARRED_QUERY = """
    query StarredRepositories($login: String!, $count: Int!, $lc: Int!, $cursor: String) {
      rateLimit {
        limit
        remaining
        resetAt
      }
      user(login: $login) {
        starredRepositories(first: $count, orderBy: {field: STARRED_AT, direction: DESC}, after: $cursor) {
          isOverLimit
          totalCount
          edges {
            starredAt
            node {
              description
              languages(first: $lc, orderBy: {field: SIZE, direction: DESC}) {
                edges {
                  node {
                    name
                  }
                }
              }
              licenseInfo {
                name
                nickname
                url
              }
              isArchived
              isPrivate
              name
              nameWithOwner
              stargazerCount
              url
            }
          }
          pageInfo {
            endCursor
            hasNextPage
          }
        }
      }
    }
    """

    def __init__(
        self,
        token: Optional[str] = None,
        rate_limit: float = 5,
        ignore: Optional[IgnoreFilter] = None,
        state_store: Optional[RateLimitStateStore] = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token (or uses GITHUB_TOKEN env var)
            rate_limit: Maximum API requests per second
            ignore: Repositories to leave out of the result
            state_store: Where the rate limit window is kept between runs
            timeout: Overall budget in seconds for one fetch_stars call
            clock: Monotonic clock, used for pacing and the deadline
            sleep: Sleep function
            now: Returns the current UTC time, used for quota resets
        """
        self.token = token or os.environ.get("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token required. Set GITHUB_TOKEN environment variable "
                "or pass token parameter."
            )
        if rate_limit <= 0:
            raise ValueError("rate_limit must be positive")

        self.rate_limit = rate_limit
        self.ignore = ignore or IgnoreFilter()
        self.state_store = state_store
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._now = now

        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _make_request(self, query: str, variables: dict) -> dict:
        """
        Make a single GraphQL request.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            Response JSON

        Raises:
            RateLimitExceeded: If rate limit is hit
            GitHubAPIError: For every other failure
        """
        try:
            response = requests.post(
                self.GRAPHQL_ENDPOINT,
                json={"query": query, "variables": variables},
                headers=self.headers,
                timeout=30,
            )
        except requests.RequestException as e:
            raise GitHubAPIError(f"Request to GitHub failed: {e}") from e

        if response.status_code in (403, 429) and _is_rate_limited_response(response):
            raise RateLimitExceeded(self._reset_from_headers(response))

        if response.status_code != 200:
            raise GitHubAPIError(
                f"GitHub API returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GitHubAPIError(f"GitHub API returned invalid JSON: {e}") from e

        if data.get("errors"):
            errors = data["errors"]
            error_messages = [e.get("message", "") for e in errors]
            error_str = "; ".join(error_messages)

            if any(_is_rate_limit_error(e) for e in errors):
                reset_at = self._reset_from_headers(response)
                if reset_at is None:
                    rate_limit = (data.get("data") or {}).get("rateLimit") or {}
                    if rate_limit.get("resetAt"):
                        reset_at = parse_timestamp(rate_limit["resetAt"])
                raise RateLimitExceeded(reset_at)

            logger.error(f"GraphQL errors: {error_str}")
            raise GitHubAPIError(f"GraphQL query failed: {error_str}")

        return data

    def _reset_from_headers(self, response: requests.Response) -> Optional[datetime]:
        """Reset time announced by X-RateLimit-Reset or Retry-After, if any."""
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return datetime.fromtimestamp(int(reset), tz=timezone.utc)

        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return self._now() + timedelta(seconds=int(retry_after))

        return None

    def _resolve_reset(self, reported: Optional[datetime], window: RateLimitWindow) -> datetime:
        """
        When to retry after an exhausted quota: the reported reset time, else
        the last known window's reset if it is still ahead, else in one hour.
        """
        if reported:
            return reported
        now = self._now()
        if window.reset_at and window.reset_at > now:
            return window.reset_at
        return now + timedelta(hours=1)

    def _update_window(self, data: dict, window: RateLimitWindow) -> RateLimitWindow:
        """Record the quota reported with a page and persist it."""
        rate_limit = (data.get("data") or {}).get("rateLimit")
        if not rate_limit:
            return window

        window = RateLimitWindow(
            limit=rate_limit.get("limit", 0),
            remaining=rate_limit.get("remaining", 0),
            reset_at=parse_timestamp(rate_limit["resetAt"]) if rate_limit.get("resetAt") else None,
        )
        if self.state_store:
            self.state_store.save(window)

        logger.debug(
            f"Rate limit: {window.remaining}/{window.limit} remaining, "
            f"resets at {window.reset_at}"
        )
        return window

    def fetch_page(self, login: str, cursor: Optional[str] = None) -> dict:
        """
        Fetch one page of starred repositories.

        Args:
            login: GitHub user login
            cursor: Pagination cursor for continuing from previous results

        Returns:
            Raw response JSON
        """
        variables = {
            "login": login,
            "count": self.PAGE_SIZE,
            "lc": self.LANGUAGES_PER_REPO,
            "cursor": cursor,
        }

        logger.debug(
            f"Fetching stars of {login} (cursor: {cursor[:20] if cursor else 'None'})"
        )
        return self._make_request(self.STARRED_QUERY, variables)

    def fetch_stars(self, login: str) -> FetchResult:
        """
        Fetch every public, non-ignored repository starred by a user.

        Args:
            login: GitHub user login

        Returns:
            FetchResult with repositories bucketed by language

        Raises:
            StarFetchError: On any failure other than a recoverable rate limit,
                or when the overall timeout is exceeded
        """
        deadline = Deadline(self.timeout, clock=self._clock)
        limiter = RateLimiter(self.rate_limit, clock=self._clock, sleep=self._sleep)

        window = self.state_store.load() if self.state_store else None
        if window:
            logger.info(
                f"Last known rate limit: {window.remaining}/{window.limit} "
                f"remaining, resets at {window.reset_at}"
            )
        else:
            window = RateLimitWindow()

        result = FetchResult()
        cursor = None
        pages = 0
        skipped = 0

        try:
            while True:
                limiter.acquire(deadline)

                try:
                    data = self.fetch_page(login, cursor)
                except RateLimitExceeded as e:
                    reset_at = self._resolve_reset(e.reset_at, window)
                    wait_until_reset(reset_at, deadline, now=self._now, sleep=self._sleep)
                    continue

                pages += 1
                window = self._update_window(data, window)

                user = (data.get("data") or {}).get("user")
                if user is None:
                    raise GitHubAPIError(f"GitHub user '{login}' not found")
                starred = user.get("starredRepositories") or {}

                for edge in starred.get("edges") or []:
                    node = edge.get("node") or {}
                    if node.get("isPrivate") or self.ignore.is_ignored(node.get("nameWithOwner", "")):
                        skipped += 1
                        continue

                    language, repo = normalize_edge(edge)
                    result.add(language, repo)

                logger.info(
                    f"Fetched page {pages}: {result.total} repositories so far"
                )

                page_info = starred.get("pageInfo") or {}
                if not page_info.get("hasNextPage"):
                    break
                cursor = page_info.get("endCursor")
                if not cursor:
                    raise GitHubAPIError("Response reports a next page but no cursor")

        except DeadlineExceeded as e:
            logger.error(f"Timed out fetching stars for {login}: {e}")
            raise StarFetchError(
                f"Timed out fetching stars for {login}: {e}",
                partial=result,
                timed_out=True,
            ) from e

        except GitHubAPIError as e:
            logger.error(f"Failed to fetch stars for {login}: {e}")
            raise StarFetchError(
                f"Failed to fetch stars for {login}: {e}", partial=result
            ) from e

        logger.info(
            f"Successfully fetched {result.total} starred repositories "
            f"({skipped} skipped) in {pages} pages"
        )
        return result


def _is_rate_limit_error(error: dict) -> bool:
    return (
        error.get("type") == "RATE_LIMITED"
        or "rate limit" in (error.get("message") or "").lower()
    )


def _is_rate_limited_response(response: requests.Response) -> bool:
    """Whether a 403/429 response means an exhausted quota (primary or secondary)."""
    if response.status_code == 429:
        return True
    if response.headers.get("X-RateLimit-Remaining") == "0":
        return True
    return "rate limit" in response.text.lower()
