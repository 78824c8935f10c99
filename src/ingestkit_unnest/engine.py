"""Recursive extraction engine.

Walks an input file layer by layer as directed by a format path such as
``ZIP, EML, ZIP, EML``.  Each layer is either an archive (iterate its
entries) or a message (select the body parts matching the next layer).
When the format path is exhausted on a message, that message is copied
verbatim into a new output file.

The format path is a ``deque`` consumed from the front on the way down
and restored on the way back up, so the caller's path is unchanged once
``run()`` returns.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from collections import deque
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from email.errors import (
    MessageError,
    MultipartInvariantViolationDefect,
    NoBoundaryInMultipartDefect,
    StartBoundaryNotFoundDefect,
)
from email.message import Message
from email.parser import BytesParser
from email.policy import compat32
from pathlib import Path
from typing import BinaryIO

from ingestkit_unnest.classifier import (
    MESSAGE_CONTENT_TYPE,
    TEXT_CONTENT_TYPE,
    classify,
    content_type_of,
    make_ignorable_text_predicate,
    order_for_traversal,
    text_body,
)
from ingestkit_unnest.config import ONE_GB
from ingestkit_unnest.errors import (
    ErrorCode,
    IngestError,
    InputNotFound,
    InvalidFormatPath,
    IoFailure,
    MessageParseFailure,
)
from ingestkit_unnest.mime_parts import (
    decode_transfer_encoding,
    part_body,
    split_body_parts,
)
from ingestkit_unnest.models import (
    ArchiveControl,
    Artifact,
    ExtractionOutcome,
    FormatTag,
    PartKind,
)
from ingestkit_unnest.output.naming import OutputFileNameGenerator
from ingestkit_unnest.output.writer import OutputWriter
from ingestkit_unnest.security import validate_format_path
from ingestkit_unnest.tracking import ExtractionPath

logger = logging.getLogger("ingestkit_unnest")

_READ_ERRORS = (OSError, EOFError, zipfile.BadZipFile, zlib.error)
_ENTRY_OPEN_ERRORS = (OSError, zipfile.BadZipFile, RuntimeError, NotImplementedError)
_PARSE_ERRORS = (MessageError, ValueError, TypeError, LookupError)
_FATAL_DEFECTS = (
    NoBoundaryInMultipartDefect,
    StartBoundaryNotFoundDefect,
    MultipartInvariantViolationDefect,
)

# Which body parts a message layer hands to the next layer.
_PART_KIND_FOR_TAG = {
    FormatTag.ZIP: PartKind.ARCHIVE,
    FormatTag.EML: PartKind.SUB_MESSAGE,
}


@dataclass
class _Traversal:
    """State shared by every recursive call of one ``run()``."""

    format_path: deque
    extraction_path: ExtractionPath
    name_generator: OutputFileNameGenerator
    outcome: ExtractionOutcome

    def record(self, code: ErrorCode, message: str) -> None:
        self.outcome.warnings.append(
            IngestError(
                code=code,
                message=message,
                stage="extract",
                recoverable=True,
                path=self.extraction_path.render() or None,
            )
        )


class ExtractionEngine:
    """Unwrap nested ZIP/EML layers and write the innermost messages.

    Parameters
    ----------
    output_dir:
        Existing directory that receives the ``test<N>.eml`` files.
    buffer_size:
        Read/write buffer size in bytes.
    max_output_size_bytes:
        Per-file output ceiling enforced by the size guard.
    spool_max_memory_bytes:
        Nested archives up to this size are spooled in memory, larger
        ones to a temporary file.
    ignorable_text:
        Predicate telling whether a text part's body carries no content.
        Defaults to "blank after stripping".
    name_prefix:
        Prefix of the output file names.
    """

    def __init__(
        self,
        output_dir: str | Path,
        buffer_size: int = 8192,
        max_output_size_bytes: int = ONE_GB,
        spool_max_memory_bytes: int = 16 * 1024 * 1024,
        ignorable_text: Callable[[str], bool] | None = None,
        name_prefix: str = "test",
    ) -> None:
        self._output_dir = Path(output_dir)
        self._buffer_size = buffer_size
        self._spool_max_memory_bytes = spool_max_memory_bytes
        self._writer = OutputWriter(buffer_size, max_output_size_bytes)
        self._is_ignorable_text = ignorable_text or make_ignorable_text_predicate()
        self._name_prefix = name_prefix
        self._extraction_path = ExtractionPath()

    @property
    def extraction_path(self) -> ExtractionPath:
        """Tracker of the most recent run; empty once ``run()`` returns."""
        return self._extraction_path

    def run(
        self,
        input_file: str | os.PathLike | BinaryIO,
        format_path: deque | Sequence,
        name_generator: OutputFileNameGenerator | None = None,
    ) -> ExtractionOutcome:
        """Extract every message reachable through *format_path*.

        Parameters
        ----------
        input_file:
            Path of the input file, or an open binary stream.
        format_path:
            Tags to peel off, outermost first.  A ``deque`` is consumed and
            restored in place; any other sequence is copied into one.  Either
            way it holds the same tags in the same order on return.
        name_generator:
            Allocator for output names.  A fresh one is used when *None*.

        Returns
        -------
        ExtractionOutcome
            Output files in write order and the recoverable warnings.

        Raises
        ------
        InvalidFormatPath
            Before any I/O, if the format path is empty, holds an unknown
            tag or does not end with ``EML``.
        InputNotFound
            If *input_file* is a path that does not exist.
        MessageParseFailure, IoFailure, OutputLimitExceeded
            Fatal extraction errors.
        """
        validate_format_path(format_path)
        if not isinstance(format_path, deque):
            format_path = deque(format_path)

        traversal = _Traversal(
            format_path=format_path,
            extraction_path=ExtractionPath(),
            name_generator=name_generator or OutputFileNameGenerator(self._name_prefix),
            outcome=ExtractionOutcome(),
        )
        self._extraction_path = traversal.extraction_path

        logger.debug(
            "ingestkit_unnest | output_dir=%s | format_path=%s",
            self._output_dir,
            _render_tags(format_path),
        )

        if isinstance(input_file, (str, os.PathLike)):
            input_path = Path(input_file)
            if not input_path.is_file():
                raise InputNotFound(f"File not exists : {input_path}", stage="extract")
            try:
                stream = open(input_path, "rb", buffering=self._buffer_size)
            except OSError as exc:
                raise IoFailure(f"Cannot open {input_path}: {exc}", stage="extract") from exc
            with stream:
                self._descend(stream, input_path.name, traversal)
        else:
            name = os.path.basename(str(getattr(input_file, "name", "input")))
            self._descend(input_file, name, traversal)

        logger.debug("ingestkit_unnest | processing_finished")
        return traversal.outcome

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------

    def _descend(self, stream: BinaryIO, name: str, traversal: _Traversal) -> None:
        """Consume the next format tag and unwrap *stream* as that layer."""
        tag = traversal.format_path.popleft()
        try:
            self._extract(Artifact(FormatTag.parse(tag), name, stream), traversal)
        finally:
            traversal.format_path.appendleft(tag)

    def _extract(self, artifact: Artifact, traversal: _Traversal) -> None:
        logger.debug(
            "ingestkit_unnest | node=%s | name=%s | remaining=%s",
            artifact.kind.value,
            artifact.name,
            _render_tags(traversal.format_path),
        )
        if artifact.kind is FormatTag.ZIP:
            self._extract_archive(artifact, traversal)
        else:
            self._extract_message(artifact, traversal)

    # ------------------------------------------------------------------
    # Archive layer
    # ------------------------------------------------------------------

    def _extract_archive(self, artifact: Artifact, traversal: _Traversal) -> None:
        if not traversal.format_path:
            raise InvalidFormatPath(
                "File format should end with EML", stage="extract"
            )

        with traversal.extraction_path.enter_archive(artifact.name):
            with self._open_archive(artifact) as archive:
                if archive is None:
                    logger.debug("ingestkit_unnest | empty_archive=%s", artifact.name)
                    return
                for info in archive.infolist():
                    control = self._extract_entry(archive, info, traversal)
                    if control is ArchiveControl.STOP_ARCHIVE:
                        break

    def _extract_entry(
        self,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        traversal: _Traversal,
    ) -> ArchiveControl:
        """Process one archive entry; failures of this entry are recovered.

        A directory entry ends processing of the whole archive, not just
        the entry itself.
        """
        if info.is_dir():
            logger.debug("ingestkit_unnest | skipping_nested_directory=%s", info.filename)
            traversal.record(
                ErrorCode.W_UNNEST_DIRECTORY_STOP,
                f"Directory entry {info.filename!r} stopped processing of the archive",
            )
            return ArchiveControl.STOP_ARCHIVE

        try:
            with self._open_entry(archive, info) as entry:
                self._descend(entry, info.filename, traversal)
        except (IoFailure, MessageParseFailure) as exc:
            logger.error(
                "ingestkit_unnest | entry=%s | code=%s | detail=%s",
                info.filename,
                exc.code.value,
                exc.message,
                exc_info=True,
            )
            traversal.record(
                ErrorCode.W_UNNEST_ENTRY_SKIPPED,
                f"Entry {info.filename!r} skipped: {exc.message}",
            )
        return ArchiveControl.CONTINUE

    @contextmanager
    def _open_archive(self, artifact: Artifact) -> Iterator[zipfile.ZipFile | None]:
        """Open *artifact* as a ZIP file; yields *None* for a zero-length stream."""
        with self._seekable(artifact) as fp:
            try:
                start = fp.tell()
                size = fp.seek(0, io.SEEK_END) - start
                fp.seek(start)
            except _READ_ERRORS as exc:
                raise IoFailure(
                    f"Cannot read archive {artifact.name}: {exc}", stage="extract"
                ) from exc
            if size == 0:
                yield None
                return
            try:
                archive = zipfile.ZipFile(fp)
            except _READ_ERRORS as exc:
                raise IoFailure(
                    f"Exception while reading zip file {artifact.name}: {exc}",
                    stage="extract",
                ) from exc
            with archive:
                yield archive

    @contextmanager
    def _seekable(self, artifact: Artifact) -> Iterator[BinaryIO]:
        stream = artifact.stream
        # Entries of an enclosing archive re-decompress on every backward seek.
        if stream.seekable() and not isinstance(stream, zipfile.ZipExtFile):
            yield stream
            return
        with tempfile.SpooledTemporaryFile(max_size=self._spool_max_memory_bytes) as spool:
            try:
                shutil.copyfileobj(stream, spool, self._buffer_size)
            except _READ_ERRORS as exc:
                raise IoFailure(
                    f"Cannot read archive {artifact.name}: {exc}", stage="extract"
                ) from exc
            spool.seek(0)
            yield spool

    @staticmethod
    def _open_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> BinaryIO:
        try:
            return archive.open(info)
        except _ENTRY_OPEN_ERRORS as exc:
            raise IoFailure(
                f"Cannot open entry {info.filename}: {exc}", stage="extract"
            ) from exc

    # ------------------------------------------------------------------
    # Message layer
    # ------------------------------------------------------------------

    def _extract_message(self, artifact: Artifact, traversal: _Traversal) -> None:
        with traversal.extraction_path.enter_message(artifact.name):
            if not traversal.format_path:
                # last level of extraction, write the message as-is
                output_path = self._writer.write(
                    traversal.name_generator, self._output_dir, artifact.stream
                )
                traversal.outcome.output_files.append(output_path)
                return

            data = self._read_all(artifact)
            message = self._parse_message(data, artifact.name)
            self._extract_attachments(message, data, traversal)

    def _extract_attachments(
        self,
        message: Message,
        data: bytes,
        traversal: _Traversal,
    ) -> None:
        content_type = content_type_of(message)

        if message.get_content_maintype() == "multipart" and message.is_multipart():
            parts = message.get_payload()
            logger.debug("ingestkit_unnest | multipart_parts=%d", len(parts))
            raw_parts = _raw_parts(message, data, len(parts))
            names = {id(part): _part_name(part, index) for index, part in enumerate(parts)}
            raws = {id(part): raw for part, raw in zip(parts, raw_parts)}
            wanted = _PART_KIND_FOR_TAG[FormatTag.parse(traversal.format_path[0])]

            for part in order_for_traversal(parts):
                kind = classify(part)
                if kind is wanted:
                    stream = self._part_stream(part, raws[id(part)], traversal)
                    if stream is None:
                        continue
                    with stream:
                        self._descend(stream, names[id(part)], traversal)
                elif kind is PartKind.PLAIN_TEXT:
                    self._check_text_part(part, names[id(part)], traversal)
        elif content_type in (TEXT_CONTENT_TYPE, MESSAGE_CONTENT_TYPE):
            logger.debug(
                "ingestkit_unnest | content_type=%s | no attachments", content_type
            )
        else:
            logger.warning(
                "ingestkit_unnest | code=%s | content_type=%s",
                ErrorCode.W_UNNEST_UNKNOWN_CONTENT.value,
                message.get("Content-Type", content_type),
            )
            traversal.record(
                ErrorCode.W_UNNEST_UNKNOWN_CONTENT,
                f"Content type unknown : {content_type}",
            )

    def _part_stream(
        self,
        part: Message,
        raw_part: bytes,
        traversal: _Traversal,
    ) -> BinaryIO | None:
        """Return the transfer-decoded body of a matching part, or *None*.

        The body is taken from the raw bytes of the part, not from the
        parsed tree, so headers and line endings of an attached message
        are kept as sent.
        """
        body = decode_transfer_encoding(
            part_body(raw_part), str(part.get("Content-Transfer-Encoding", ""))
        )
        if not body:
            self._record_unreadable(part, traversal)
            return None
        return io.BytesIO(body)

    def _check_text_part(self, part: Message, name: str, traversal: _Traversal) -> None:
        if self._is_ignorable_text(text_body(part)):
            return
        logger.debug("ingestkit_unnest | text_part_not_extracted=%s", name)
        traversal.record(
            ErrorCode.W_UNNEST_CONTENT_NOT_EXTRACTED,
            f"Text part {name!r} is not carried into any output file",
        )

    @staticmethod
    def _record_unreadable(part: Message, traversal: _Traversal) -> None:
        logger.warning(
            "ingestkit_unnest | code=%s | content_type=%s",
            ErrorCode.W_UNNEST_PART_UNREADABLE.value,
            part.get_content_type(),
        )
        traversal.record(
            ErrorCode.W_UNNEST_PART_UNREADABLE,
            f"Body part of type {part.get_content_type()} has no payload",
        )

    @staticmethod
    def _read_all(artifact: Artifact) -> bytes:
        try:
            return artifact.stream.read()
        except _READ_ERRORS as exc:
            raise IoFailure(
                f"Cannot read {artifact.name}: {exc}", stage="extract"
            ) from exc

    @staticmethod
    def _parse_message(data: bytes, name: str) -> Message:
        try:
            message = BytesParser(policy=compat32).parsebytes(data)
        except _PARSE_ERRORS as exc:
            raise MessageParseFailure(
                f"Cannot parse message {name}: {exc}", stage="extract"
            ) from exc

        fatal = [d for d in message.defects if isinstance(d, _FATAL_DEFECTS)]
        if fatal:
            raise MessageParseFailure(
                f"Malformed multipart message {name}: {type(fatal[0]).__name__}",
                stage="extract",
            )
        return message


def _raw_parts(message: Message, data: bytes, expected: int) -> list[bytes]:
    boundary = message.get_boundary()
    if boundary is None:
        raise MessageParseFailure("Multipart message has no boundary", stage="extract")
    raw_parts = split_body_parts(data, boundary)
    if len(raw_parts) != expected:
        raise MessageParseFailure(
            f"Found {len(raw_parts)} raw body parts, parser found {expected}",
            stage="extract",
        )
    return raw_parts


def _part_name(part: Message, index: int) -> str:
    return part.get_filename() or f"part{index + 1}"


def _render_tags(format_path: deque) -> str:
    return ",".join(FormatTag.parse(tag).value for tag in format_path)
