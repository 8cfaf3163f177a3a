"""
Filters deciding which starred repositories end up in the list.
"""

from typing import Iterable


class IgnoreFilter:
    """
    Excludes repositories by name.

    Entries are compared to the candidate name case-insensitively and
    exactly; no glob or regex matching is done.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names = {name.lower() for name in names}

    def __bool__(self) -> bool:
        return bool(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def is_ignored(self, name: str) -> bool:
        """Return True if name matches one of the ignored entries."""
        if not self._names:
            return False
        return name.lower() in self._names
