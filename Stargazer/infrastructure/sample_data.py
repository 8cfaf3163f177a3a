"""
Built-in sample stars used by test mode, so the output can be previewed
without a token or network access.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from core.entities import FetchResult, StarredRepository
from core.filters import IgnoreFilter

logger = logging.getLogger(__name__)


def sample_stars() -> list[tuple[str, StarredRepository]]:
    """(language, repository) pairs covering archived, unlicensed and blank entries."""
    now = datetime.now(timezone.utc)
    return [
        ("Python", StarredRepository(
            url="https://github.com/stargazer-dev/stargazer",
            name="stargazer",
            full_name="stargazer-dev/stargazer",
            description="Creates awesome lists of your starred repositories",
            license="MIT License",
            license_url="http://choosealicense.com/licenses/mit/",
            stars=1,
            starred_at=now,
        )),
        ("Markdown", StarredRepository(
            url="https://github.com/stargazer-dev/stars",
            name="stars",
            full_name="stargazer-dev/stars",
            description="A list of awesome repositories I starred",
            license="MIT License",
            stars=1,
            starred_at=now,
        )),
        ("C#", StarredRepository(
            url="https://github.com/stargazer-dev/test",
            name="test",
            full_name="stargazer-dev/test",
            license="MIT License",
            stars=1,
            starred_at=now,
        )),
        ("C++", StarredRepository(
            url="https://github.com/other-dev/test_2",
            name="test_2",
            full_name="other-dev/test_2",
            description="Some description",
            stars=1,
            archived=True,
            starred_at=now,
        )),
        ("C#", StarredRepository(
            url="https://github.com/stargazer-dev/test_3",
            name="test_3",
            full_name="stargazer-dev/test_3",
            stars=1,
            starred_at=now,
        )),
    ]


class SampleStarFetcher:
    """Stands in for GitHubClient in test mode."""

    def __init__(self, ignore: Optional[IgnoreFilter] = None):
        self.ignore = ignore or IgnoreFilter()

    def fetch_stars(self, login: str) -> FetchResult:
        result = FetchResult()
        for language, repo in sample_stars():
            if self.ignore.is_ignored(repo.full_name):
                continue
            result.add(language, repo)
        logger.info(f"Using {result.total} sample repositories (test mode)")
        return result
