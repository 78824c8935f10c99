"""Output file name allocation."""

from __future__ import annotations

import itertools


class OutputFileNameGenerator:
    """Hands out ``<prefix>1.eml``, ``<prefix>2.eml``, ... in order.

    Each run owns its own generator, so repeated runs in one process
    start numbering from 1 again.
    """

    def __init__(self, prefix: str = "test") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def next_name(self) -> str:
        return f"{self._prefix}{next(self._counter)}.eml"
