"""Extraction path tracker.

Keeps a stack of ``ARCHIVE:name`` / ``MESSAGE:name`` labels describing
where the engine currently is inside the nested input.  The stack is
diagnostic only; it never influences what gets extracted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ingestkit_unnest.errors import PathInvariantViolation
from ingestkit_unnest.models import PathNode, PathNodeKind

logger = logging.getLogger("ingestkit_unnest")

_SEPARATOR = " -> "


class ExtractionPath:
    """Push/pop stack of labelled nodes, innermost last.

    ``enter_archive`` and ``enter_message`` are context managers: leaving
    the ``with`` block pops the node pushed on entry, whether the block
    returns normally or raises.
    """

    def __init__(self) -> None:
        self._nodes: list[PathNode] = []

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[PathNode, ...]:
        return tuple(self._nodes)

    def render(self) -> str:
        """Join the stack outermost to innermost with ``" -> "``."""
        return _SEPARATOR.join(str(node) for node in self._nodes)

    @contextmanager
    def enter_archive(self, name: str) -> Iterator[PathNode]:
        with self._enter(PathNode(PathNodeKind.ARCHIVE, name)) as node:
            yield node

    @contextmanager
    def enter_message(self, name: str) -> Iterator[PathNode]:
        with self._enter(PathNode(PathNodeKind.MESSAGE, name)) as node:
            yield node

    @contextmanager
    def _enter(self, node: PathNode) -> Iterator[PathNode]:
        self._nodes.append(node)
        logger.info("ingestkit_unnest | processing=%s", self.render())
        try:
            yield node
        finally:
            self._leave(node)

    def _leave(self, node: PathNode) -> None:
        if not self._nodes or self._nodes[-1] is not node:
            raise PathInvariantViolation(
                f"Extraction path out of order: expected to leave {node}, "
                f"stack is {self.render()!r}",
                stage="track",
            )
        self._nodes.pop()
