"""Error codes, structured error model and raisable exceptions.

``ErrorCode`` contains every fatal/warning code emitted by the package.
``IngestError`` is the serialisable record stored on a
``ProcessingResult``; ``UnnestException`` and its subclasses wrap an
``IngestError`` so failures can travel through ``raise``/``except``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for ingestkit-unnest.

    Fatal codes use an ``E_`` prefix; warnings use ``W_``.
    Values equal their names for stable metric/alerting strings.
    """

    # Fatal errors
    E_UNNEST_INPUT_NOT_FOUND = "E_UNNEST_INPUT_NOT_FOUND"
    E_UNNEST_INVALID_FORMAT_PATH = "E_UNNEST_INVALID_FORMAT_PATH"
    E_UNNEST_UNSUPPORTED_TAG = "E_UNNEST_UNSUPPORTED_TAG"
    E_UNNEST_MESSAGE_PARSE_FAILED = "E_UNNEST_MESSAGE_PARSE_FAILED"
    E_UNNEST_IO_FAILURE = "E_UNNEST_IO_FAILURE"
    E_UNNEST_OUTPUT_LIMIT_EXCEEDED = "E_UNNEST_OUTPUT_LIMIT_EXCEEDED"
    E_UNNEST_PATH_INVARIANT = "E_UNNEST_PATH_INVARIANT"

    # Warnings (non-fatal)
    W_UNNEST_ENTRY_SKIPPED = "W_UNNEST_ENTRY_SKIPPED"
    W_UNNEST_DIRECTORY_STOP = "W_UNNEST_DIRECTORY_STOP"
    W_UNNEST_UNKNOWN_CONTENT = "W_UNNEST_UNKNOWN_CONTENT"
    W_UNNEST_CONTENT_NOT_EXTRACTED = "W_UNNEST_CONTENT_NOT_EXTRACTED"
    W_UNNEST_PART_UNREADABLE = "W_UNNEST_PART_UNREADABLE"


class IngestError(BaseModel):
    """Structured error/warning with code, message, and context.

    ``path`` holds the rendered extraction trail (``ARCHIVE:a.zip ->
    MESSAGE:b.eml``) at the point the event was recorded, when known.
    """

    code: ErrorCode
    message: str
    stage: str | None = None
    recoverable: bool = False
    path: str | None = None


class UnnestException(Exception):
    """Raisable exception wrapping an ``IngestError`` data model.

    Subclasses fix the ``code``; the structured record is available as
    ``.error`` for inspection and serialization.
    """

    code: ErrorCode = ErrorCode.E_UNNEST_IO_FAILURE

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        path: str | None = None,
    ) -> None:
        self.error = IngestError(
            code=self.code,
            message=message,
            stage=stage,
            path=path,
        )
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable


class InputNotFound(UnnestException):
    """The top-level input file does not exist."""

    code = ErrorCode.E_UNNEST_INPUT_NOT_FOUND


class InvalidFormatPath(UnnestException):
    """The format path is empty or does not end with ``EML``."""

    code = ErrorCode.E_UNNEST_INVALID_FORMAT_PATH


class UnsupportedFormatTag(InvalidFormatPath):
    """A format path element is neither ``ZIP`` nor ``EML``."""

    code = ErrorCode.E_UNNEST_UNSUPPORTED_TAG


class MessageParseFailure(UnnestException):
    """MIME content could not be parsed."""

    code = ErrorCode.E_UNNEST_MESSAGE_PARSE_FAILED


class IoFailure(UnnestException):
    """Malformed archive structure or an underlying I/O error."""

    code = ErrorCode.E_UNNEST_IO_FAILURE


class OutputLimitExceeded(UnnestException):
    """The size guard tripped while writing an output file."""

    code = ErrorCode.E_UNNEST_OUTPUT_LIMIT_EXCEEDED


class PathInvariantViolation(UnnestException):
    """Format path or extraction path bookkeeping was left inconsistent."""

    code = ErrorCode.E_UNNEST_PATH_INVARIANT
