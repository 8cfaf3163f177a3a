"""
Grouping and ordering of starred repositories by language.
"""

from core.entities import LanguageGroups


def sort_groups(groups: LanguageGroups) -> LanguageGroups:
    """
    Sort every language bucket by full name, case-insensitively.

    Returns a new mapping; the input is left untouched. The sort is stable,
    so names equal up to case keep their input order.
    """
    return {
        language: sorted(repos, key=lambda repo: repo.full_name.lower())
        for language, repos in groups.items()
    }


def count_stars(groups: LanguageGroups) -> int:
    """Total number of repositories across all language buckets."""
    return sum(len(repos) for repos in groups.values())


def ordered_languages(groups: LanguageGroups) -> list[str]:
    """Languages with at least one repository, in case-insensitive order."""
    return sorted(
        (language for language, repos in groups.items() if repos),
        key=lambda language: (language.lower(), language),
    )
