"""Pydantic models, dataclasses and enumerations for ingestkit-unnest.

Contains the format path vocabulary (``FormatTag``), body part
classification (``PartKind``), extraction trail nodes (``PathNode``),
the engine's working types (``Artifact``, ``ArchiveControl``,
``ExtractionOutcome``) and the public ``ProcessingResult``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel

from ingestkit_unnest.errors import IngestError, UnsupportedFormatTag

__all__ = [
    "FormatTag",
    "PartKind",
    "PathNodeKind",
    "PathNode",
    "ArchiveControl",
    "Artifact",
    "ExtractionOutcome",
    "ProcessingResult",
]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FormatTag(str, Enum):
    """Container layer named by one element of a format path."""

    ZIP = "ZIP"
    EML = "EML"

    @classmethod
    def parse(cls, value: str | FormatTag) -> FormatTag:
        """Convert a user-supplied tag (any case) to a ``FormatTag``."""
        if isinstance(value, FormatTag):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedFormatTag(
                f"Unsupported file type : {value!r}. "
                f"Allowed: {[tag.value for tag in cls]}",
                stage="validate",
            ) from None


class PartKind(str, Enum):
    """Classification of a MIME body part by its declared content type."""

    ARCHIVE = "archive"
    SUB_MESSAGE = "sub_message"
    PLAIN_TEXT = "plain_text"
    OTHER = "other"


class PathNodeKind(str, Enum):
    """Kind of container recorded on the extraction trail."""

    ARCHIVE = "ARCHIVE"
    MESSAGE = "MESSAGE"


class ArchiveControl(Enum):
    """Loop signal returned after each archive entry."""

    CONTINUE = "continue"
    STOP_ARCHIVE = "stop_archive"


# ---------------------------------------------------------------------------
# Engine working types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathNode:
    """One ``container: name`` label on the extraction trail."""

    kind: PathNodeKind
    name: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"


@dataclass
class Artifact:
    """The byte stream currently being unwrapped, tagged with its layer."""

    kind: FormatTag
    name: str
    stream: BinaryIO


@dataclass
class ExtractionOutcome:
    """Files written and warnings recorded by one engine run."""

    output_files: list[Path] = field(default_factory=list)
    warnings: list[IngestError] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Processing Result
# ---------------------------------------------------------------------------


class ProcessingResult(BaseModel):
    """Final result of running one input file through the pipeline."""

    input_path: str
    format_path: list[str]
    output_dir: str
    run_id: str
    output_files: list[str] = []
    errors: list[str] = []
    warnings: list[str] = []
    error_details: list[IngestError] = []
    processing_time_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        """True when no fatal (``E_*``) error was recorded."""
        return not any(code.startswith("E_") for code in self.errors)
