"""Output writer for terminal EML files.

Copies a byte stream verbatim into a newly named file inside the output
directory, through a buffered, size-guarded sink.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from ingestkit_unnest.config import ONE_GB
from ingestkit_unnest.errors import IoFailure
from ingestkit_unnest.output.naming import OutputFileNameGenerator
from ingestkit_unnest.output.size_guard import LimitedWriter, OutputSizeCounter

logger = logging.getLogger("ingestkit_unnest")

# Errors a source stream (plain file, archive entry) may raise while read.
_READ_ERRORS = (OSError, EOFError, zipfile.BadZipFile, zlib.error)


class OutputWriter:
    """Write byte streams to new, size-limited output files.

    Parameters
    ----------
    buffer_size:
        Chunk size used for copying and for the file buffer.
    max_output_size_bytes:
        Ceiling applied to every file independently.
    """

    def __init__(
        self,
        buffer_size: int = 8192,
        max_output_size_bytes: int = ONE_GB,
    ) -> None:
        self._buffer_size = buffer_size
        self._max_output_size_bytes = max_output_size_bytes

    def write(
        self,
        name_generator: OutputFileNameGenerator,
        directory: Path,
        source: BinaryIO,
    ) -> Path:
        """Copy *source* into ``directory / name_generator.next_name()``.

        The file is closed on every exit path.  When the size guard trips,
        the partially written file stays on disk and
        :class:`~ingestkit_unnest.errors.OutputLimitExceeded` propagates.

        Raises
        ------
        IoFailure
            If reading *source* or writing the file fails.
        OutputLimitExceeded
            If the file would reach ``max_output_size_bytes``.
        """
        output_path = Path(directory) / name_generator.next_name()
        logger.info("ingestkit_unnest | writing=%s", output_path.resolve())

        try:
            sink = open(output_path, "wb", buffering=self._buffer_size)
        except OSError as exc:
            raise IoFailure(
                f"Cannot create output file {output_path}: {exc}", stage="write"
            ) from exc

        with LimitedWriter(sink, OutputSizeCounter(self._max_output_size_bytes)) as out:
            while True:
                try:
                    chunk = source.read(self._buffer_size)
                except _READ_ERRORS as exc:
                    raise IoFailure(
                        f"Failed reading content for {output_path.name}: {exc}",
                        stage="write",
                    ) from exc
                if not chunk:
                    break
                try:
                    out.write(chunk)
                except OSError as exc:
                    raise IoFailure(
                        f"Failed writing {output_path}: {exc}", stage="write"
                    ) from exc

        return output_path
