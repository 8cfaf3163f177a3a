"""
JSON file store for the last known GitHub API quota window.
"""

import contextlib
import json
import logging
import os
from typing import Optional

from core.entities import RateLimitWindow

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "rate_limit_info.json"


class RateLimitStateStore:
    """
    Persists the RateLimitWindow between runs.
    Failures are logged and never raised; the window is advisory.
    """

    def __init__(self, path: str = DEFAULT_STATE_FILE):
        self.path = path

    def load(self) -> Optional[RateLimitWindow]:
        """
        Load the persisted rate limit window.

        Returns:
            RateLimitWindow if found and readable, None otherwise
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            window = RateLimitWindow.from_dict(data)
        except FileNotFoundError:
            logger.debug(f"No rate limit info at {self.path}")
            return None
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not read rate limit info from {self.path}: {e}")
            return None

        logger.debug(
            f"Loaded rate limit info: {window.remaining}/{window.limit} "
            f"remaining, resets at {window.reset_at}"
        )
        return window

    def save(self, window: RateLimitWindow) -> bool:
        """
        Persist the window, replacing any previous one.

        Args:
            window: RateLimitWindow to store

        Returns:
            True on success, False if the file could not be written
        """
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(window.to_dict(), f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
            logger.warning(f"Failed to save rate limit info to {self.path}: {e}")
            return False

        return True
