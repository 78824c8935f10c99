"""Pre-flight checks run before any extraction I/O.

Validates the format path (non-empty, known tags, terminal ``EML``) and
the presence of the input file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from ingestkit_unnest.config import UnnestConfig
from ingestkit_unnest.errors import (
    ErrorCode,
    IngestError,
    InvalidFormatPath,
    UnnestException,
)
from ingestkit_unnest.models import FormatTag

logger = logging.getLogger("ingestkit_unnest")


def validate_format_path(tags: Iterable[str | FormatTag]) -> list[FormatTag]:
    """Parse and validate a format path.

    Returns
    -------
    list[FormatTag]
        The parsed tags, in order.

    Raises
    ------
    UnsupportedFormatTag
        If an element is not a known tag.
    InvalidFormatPath
        If the path is empty or its last tag is not ``EML``.
    """
    parsed = [FormatTag.parse(tag) for tag in tags]
    if not parsed:
        raise InvalidFormatPath("File type is empty", stage="validate")
    if parsed[-1] is not FormatTag.EML:
        raise InvalidFormatPath(
            "File format should end with EML, got "
            f"{','.join(tag.value for tag in parsed)}",
            stage="validate",
        )
    return parsed


class UnnestSecurityScanner:
    """Run pre-flight checks on an input file and its format path.

    Returns a list of errors.  Fatal errors (``E_*`` codes) mean the
    input should not be processed further.
    """

    def __init__(self, config: UnnestConfig) -> None:
        self.config = config

    def scan(
        self,
        input_path: str,
        format_path: Iterable[str | FormatTag],
    ) -> list[IngestError]:
        """Run all pre-flight checks.

        Returns
        -------
        list[IngestError]
            A list of errors.  Fatal errors have codes starting with ``E_``.
        """
        errors: list[IngestError] = []

        # 1. Format path
        try:
            validate_format_path(format_path)
        except UnnestException as exc:
            errors.append(exc.error)
            return errors

        # 2. Input file presence
        if not os.path.exists(input_path):
            errors.append(
                IngestError(
                    code=ErrorCode.E_UNNEST_INPUT_NOT_FOUND,
                    message=f"File not exists : {input_path}",
                    stage="security",
                )
            )
            return errors

        if not os.path.isfile(input_path):
            errors.append(
                IngestError(
                    code=ErrorCode.E_UNNEST_INPUT_NOT_FOUND,
                    message=f"Input is not a regular file : {input_path}",
                    stage="security",
                )
            )
            return errors

        return errors
