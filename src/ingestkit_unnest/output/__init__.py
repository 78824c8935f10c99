"""Output side of the pipeline.

Subpackage containing:
- size_guard: per-file byte ceiling and the guarded sink wrapper
- naming: sequential output file names
- directory: destination directory preparation
- writer: verbatim, size-limited copy of a terminal message to disk
"""

from ingestkit_unnest.output.directory import prepare_output_directory
from ingestkit_unnest.output.naming import OutputFileNameGenerator
from ingestkit_unnest.output.size_guard import LimitedWriter, OutputSizeCounter
from ingestkit_unnest.output.writer import OutputWriter

__all__ = [
    "OutputSizeCounter",
    "LimitedWriter",
    "OutputFileNameGenerator",
    "prepare_output_directory",
    "OutputWriter",
]
