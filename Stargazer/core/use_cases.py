"""
Business logic / use cases for generating the starred repositories list.
This layer orchestrates the interaction between the star source and the renderer.
"""

import logging
from typing import Protocol

from core.entities import FetchResult, LanguageGroups
from core.grouping import count_stars, sort_groups

logger = logging.getLogger(__name__)


class StarFetcher(Protocol):
    """Anything that can fetch a user's starred repositories."""

    def fetch_stars(self, login: str) -> FetchResult:
        ...


class ListWriter(Protocol):
    """Anything that can write the grouped list to a file."""

    def write_list(self, output_path: str, groups: LanguageGroups, total: int):
        ...


class FetchAndSortStars:
    """
    Use case for fetching stars and ordering every language bucket.
    """

    def __init__(self, fetcher: StarFetcher):
        """
        Initialize the use case.

        Args:
            fetcher: Source of starred repositories
        """
        self.fetcher = fetcher

    def execute(self, login: str) -> FetchResult:
        """
        Fetch and sort the stars of a user.

        Args:
            login: GitHub user login

        Returns:
            FetchResult whose groups are sorted by full name
        """
        result = self.fetcher.fetch_stars(login)
        groups = sort_groups(result.groups)

        total = count_stars(groups)
        if total != result.total:
            logger.warning(
                f"Fetcher reported {result.total} repositories but returned {total}"
            )

        return FetchResult(groups=groups, total=total)


class GenerateStarList:
    """
    Use case for generating the list file.
    Nothing is written unless every page was fetched.
    """

    def __init__(self, fetcher: StarFetcher, writer: ListWriter):
        """
        Initialize the use case.

        Args:
            fetcher: Source of starred repositories
            writer: Renders and writes the list
        """
        self.fetcher = fetcher
        self.writer = writer

    def execute(self, login: str, output_path: str = "README.md") -> FetchResult:
        """
        Fetch, sort and write the list.

        Args:
            login: GitHub user login
            output_path: Path to output file

        Returns:
            The sorted FetchResult that was written
        """
        result = FetchAndSortStars(self.fetcher).execute(login)

        logger.info(
            f"Writing {result.total:,} repositories in "
            f"{len(result.groups)} languages to {output_path}"
        )
        self.writer.write_list(output_path, result.groups, result.total)
        return result
