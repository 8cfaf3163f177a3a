"""
Core domain entities for Stargazer.
These represent the business objects in our system.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_LANGUAGE = "Unknown"


@dataclass
class StarredRepository:
    """
    A repository starred by the user, normalized from the GitHub API.
    This is the core domain model.
    """
    url: str
    name: str
    full_name: str
    description: str = ""
    license: str = ""
    license_url: str = ""
    stars: int = 0
    archived: bool = False
    starred_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate repository data."""
        if not self.url:
            raise ValueError("url is required")
        if not self.full_name:
            raise ValueError("full_name is required")
        if self.stars < 0:
            raise ValueError("stars cannot be negative")


# Language label -> repositories starred in that language
LanguageGroups = dict[str, list[StarredRepository]]


@dataclass
class FetchResult:
    """
    Result of a fetch operation.
    """
    groups: LanguageGroups = field(default_factory=dict)
    total: int = 0

    def add(self, language: str, repo: StarredRepository):
        """Append a repository to its language bucket."""
        self.groups.setdefault(language, []).append(repo)
        self.total += 1


@dataclass
class RateLimitWindow:
    """
    Last known GitHub API quota window.
    Persisted between runs so a new run knows when the quota resets.
    """
    limit: int = 0
    remaining: int = 0
    reset_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "limit": self.limit,
            "remaining": self.remaining,
            "reset_at": self.reset_at.isoformat() if self.reset_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RateLimitWindow":
        reset_at = data.get("reset_at")
        return cls(
            limit=int(data.get("limit", 0)),
            remaining=int(data.get("remaining", 0)),
            reset_at=parse_timestamp(reset_at) if reset_at else None,
        )


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp as returned by GitHub ("Z" suffix allowed).
    Timestamps without an offset are taken as UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
