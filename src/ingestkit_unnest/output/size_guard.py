"""Output size guard.

``OutputSizeCounter`` accumulates the bytes written to one output file
and fails once a ceiling is reached.  ``LimitedWriter`` wraps a binary
sink and consults the counter before every write.
"""

from __future__ import annotations

from typing import BinaryIO

from ingestkit_unnest.config import ONE_GB
from ingestkit_unnest.errors import OutputLimitExceeded


class OutputSizeCounter:
    """Running byte total compared against a fixed maximum.

    The bytes of the failing call are still counted, so the counter
    bounds the output near the maximum rather than cutting exactly at it.
    """

    def __init__(self, max_size: int = ONE_GB) -> None:
        self.max_size = max_size
        self.used = 0

    def ensure_size(self, additional_bytes: int) -> None:
        self.used += additional_bytes
        if self.used >= self.max_size:
            raise OutputLimitExceeded(
                f"Total output size exceeded : {self.max_size}",
                stage="write",
            )


class LimitedWriter:
    """Binary sink wrapper that refuses writes past the counter's limit."""

    def __init__(self, sink: BinaryIO, counter: OutputSizeCounter) -> None:
        self._sink = sink
        self._counter = counter

    def write(self, data: bytes) -> int:
        self._counter.ensure_size(len(data))
        return self._sink.write(data)

    def flush(self) -> None:
        self._sink.flush()

    def close(self) -> None:
        self._sink.close()

    @property
    def closed(self) -> bool:
        return self._sink.closed

    def __enter__(self) -> LimitedWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
