"""UnnestRouter -- orchestrator and public API for ingestkit-unnest.

Routes an input file through: pre-flight scan, output directory
preparation, recursive extraction, and post-condition checks.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections import deque
from collections.abc import Sequence

from ingestkit_unnest.classifier import make_ignorable_text_predicate
from ingestkit_unnest.config import UnnestConfig
from ingestkit_unnest.engine import ExtractionEngine
from ingestkit_unnest.errors import (
    IngestError,
    IoFailure,
    PathInvariantViolation,
    UnnestException,
)
from ingestkit_unnest.models import ExtractionOutcome, FormatTag, ProcessingResult
from ingestkit_unnest.output.directory import prepare_output_directory
from ingestkit_unnest.output.naming import OutputFileNameGenerator
from ingestkit_unnest.security import UnnestSecurityScanner

logger = logging.getLogger("ingestkit_unnest")


class UnnestRouter:
    """Top-level orchestrator for the ingestkit-unnest pipeline.

    Parameters
    ----------
    config:
        Pipeline configuration. Uses defaults when *None*.
    """

    def __init__(self, config: UnnestConfig | None = None) -> None:
        self._config = config or UnnestConfig()
        self._security_scanner = UnnestSecurityScanner(self._config)

    def can_handle(self, file_path: str) -> bool:
        """Return True if *file_path* looks like a supported outer container."""
        ext = os.path.splitext(file_path)[1].lower()
        return ext in (".zip", ".eml")

    def process(
        self,
        input_path: str,
        format_path: Sequence[str | FormatTag],
        output_dir: str | None = None,
    ) -> ProcessingResult:
        """Extract every message reachable through *format_path*.

        Parameters
        ----------
        input_path:
            Filesystem path to the outermost container.
        format_path:
            Layers to peel off, outermost first, ending with ``EML``.
        output_dir:
            Destination directory; overrides ``config.output_dir``.

        Returns
        -------
        ProcessingResult
            The fully-assembled result.  ``errors`` is non-empty when the
            run failed; files written before a fatal error stay on disk.
        """
        overall_start = time.monotonic()
        config = self._config
        output_dir = output_dir or config.output_dir
        filename = os.path.basename(input_path)
        run_id = str(uuid.uuid4())
        tags = [str(getattr(tag, "value", tag)) for tag in format_path]

        def _result(
            outcome: ExtractionOutcome | None = None,
            fatal: list[IngestError] | None = None,
        ) -> ProcessingResult:
            outcome = outcome or ExtractionOutcome()
            fatal = fatal or []
            return ProcessingResult(
                input_path=input_path,
                format_path=tags,
                output_dir=str(output_dir),
                run_id=run_id,
                output_files=[str(p) for p in outcome.output_files],
                errors=[e.code.value for e in fatal],
                warnings=[w.code.value for w in outcome.warnings],
                error_details=fatal + outcome.warnings,
                processing_time_seconds=time.monotonic() - overall_start,
            )

        # ==============================================================
        # Step 1: Pre-flight Scan
        # ==============================================================
        security_errors = self._security_scanner.scan(input_path, format_path)
        fatal_errors = [e for e in security_errors if e.code.value.startswith("E_")]

        if fatal_errors:
            _log_failure(filename, fatal_errors[0])
            return _result(fatal=fatal_errors)

        # ==============================================================
        # Step 2: Prepare Output Directory
        # ==============================================================
        try:
            directory = prepare_output_directory(output_dir, clean=config.clean_output_dir)
        except OSError as exc:
            err = IoFailure(
                f"Cannot prepare output directory {output_dir}: {exc}", stage="prepare"
            ).error
            _log_failure(filename, err)
            return _result(fatal=[err])

        # ==============================================================
        # Step 3: Extract
        # ==============================================================
        engine = ExtractionEngine(
            output_dir=directory,
            buffer_size=config.buffer_size,
            max_output_size_bytes=config.max_output_size_bytes,
            spool_max_memory_bytes=config.spool_max_memory_bytes,
            ignorable_text=make_ignorable_text_predicate(config.ignorable_text_bodies),
            name_prefix=config.output_name_prefix,
        )
        type_path = deque(FormatTag.parse(tag) for tag in format_path)
        path_before = list(type_path)
        name_generator = OutputFileNameGenerator(config.output_name_prefix)

        logger.debug(
            "ingestkit_unnest | starting | file=%s | output_dir=%s", input_path, directory
        )
        try:
            outcome = engine.run(input_path, type_path, name_generator)
        except UnnestException as exc:
            _log_failure(filename, exc.error)
            return _result(fatal=[exc.error])

        # ==============================================================
        # Step 4: Verify Post-conditions
        # ==============================================================
        if list(type_path) != path_before:
            err = PathInvariantViolation(
                "Processing broken, path after not equal to path before. "
                f"Path before {path_before} path after {list(type_path)}",
                stage="verify",
            ).error
            _log_failure(filename, err)
            return _result(outcome, fatal=[err])

        if len(engine.extraction_path):
            err = PathInvariantViolation(
                f"Extraction path not empty after run: {engine.extraction_path.render()}",
                stage="verify",
            ).error
            _log_failure(filename, err)
            return _result(outcome, fatal=[err])

        # ==============================================================
        # Step 5: Assemble Result
        # ==============================================================
        result = _result(outcome)
        logger.info(
            "ingestkit_unnest | file=%s | format_path=%s | outputs=%d | "
            "warnings=%d | time=%.1fs",
            filename,
            ",".join(tags),
            len(result.output_files),
            len(result.warnings),
            result.processing_time_seconds,
        )
        return result


def _log_failure(filename: str, error: IngestError) -> None:
    logger.error(
        "ingestkit_unnest | file=%s | code=%s | detail=%s",
        filename,
        error.code.value,
        error.message,
    )


def create_default_router(**overrides) -> UnnestRouter:
    """Create an UnnestRouter, building its config from keyword overrides.

    Convenience factory for scripts and tests.  A ready ``config`` may be
    passed instead of individual fields.

    Returns
    -------
    UnnestRouter
        A router ready for ``process()`` calls.
    """
    config = overrides.pop("config", None)
    if config is None:
        config = UnnestConfig(**overrides)
    return UnnestRouter(config=config)
