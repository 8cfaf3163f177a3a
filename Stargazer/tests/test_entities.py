"""
Tests for the domain entities.
"""

import pytest
from datetime import datetime, timezone

from core.entities import FetchResult, RateLimitWindow, StarredRepository


class TestStarredRepository:
    """Test StarredRepository entity."""

    def test_valid_repository(self):
        """Test creating a valid repository."""
        repo = StarredRepository(
            url="https://github.com/octocat/hello-world",
            name="hello-world",
            full_name="octocat/hello-world",
            stars=100,
        )

        assert repo.full_name == "octocat/hello-world"
        assert repo.description == ""
        assert repo.license == ""
        assert repo.archived is False

    def test_negative_stars(self):
        """Test that negative stars raises error."""
        with pytest.raises(ValueError, match="stars cannot be negative"):
            StarredRepository(
                url="https://github.com/octocat/hello-world",
                name="hello-world",
                full_name="octocat/hello-world",
                stars=-1,
            )

    def test_empty_url(self):
        """Test that empty url raises error."""
        with pytest.raises(ValueError, match="url is required"):
            StarredRepository(url="", name="hello-world", full_name="octocat/hello-world")


class TestFetchResult:
    """Test FetchResult entity."""

    def test_add_buckets_by_language(self):
        """Test that add buckets repositories by language."""
        result = FetchResult()
        result.add("Go", StarredRepository(url="u1", name="a", full_name="o/a"))
        result.add("Go", StarredRepository(url="u2", name="b", full_name="o/b"))
        result.add("Rust", StarredRepository(url="u3", name="c", full_name="o/c"))

        assert result.total == 3
        assert [r.name for r in result.groups["Go"]] == ["a", "b"]
        assert len(result.groups["Rust"]) == 1


class TestRateLimitWindow:
    """Test RateLimitWindow entity."""

    def test_dict_round_trip(self):
        """Test converting a window to a dict and back."""
        window = RateLimitWindow(
            limit=5000,
            remaining=4999,
            reset_at=datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc),
        )

        assert RateLimitWindow.from_dict(window.to_dict()) == window

    def test_zero_window(self):
        """Test the zero window and its dict form."""
        window = RateLimitWindow()

        assert window.to_dict() == {"limit": 0, "remaining": 0, "reset_at": None}
        assert RateLimitWindow.from_dict({}) == window

    def test_parses_github_timestamp(self):
        """Test parsing a GitHub "Z" timestamp."""
        window = RateLimitWindow.from_dict(
            {"limit": 5000, "remaining": 10, "reset_at": "2024-01-01T13:00:00Z"}
        )

        assert window.reset_at == datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)
