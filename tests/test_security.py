"""Tests for ingestkit_unnest.security."""

from __future__ import annotations

import pytest

from ingestkit_unnest.config import UnnestConfig
from ingestkit_unnest.errors import ErrorCode, InvalidFormatPath, UnsupportedFormatTag
from ingestkit_unnest.models import FormatTag
from ingestkit_unnest.security import UnnestSecurityScanner, validate_format_path


class TestValidateFormatPath:
    def test_valid_path(self):
        assert validate_format_path(["zip", "EML", "Zip", "eml"]) == [
            FormatTag.ZIP,
            FormatTag.EML,
            FormatTag.ZIP,
            FormatTag.EML,
        ]

    def test_single_eml(self):
        assert validate_format_path([FormatTag.EML]) == [FormatTag.EML]

    def test_empty(self):
        with pytest.raises(InvalidFormatPath, match="File type is empty"):
            validate_format_path([])

    def test_must_end_with_eml(self):
        with pytest.raises(InvalidFormatPath, match="should end with EML"):
            validate_format_path(["EML", "ZIP"])

    def test_unknown_tag(self):
        with pytest.raises(UnsupportedFormatTag):
            validate_format_path(["ZIP", "RAR", "EML"])


class TestUnnestSecurityScanner:
    def _scanner(self):
        return UnnestSecurityScanner(UnnestConfig())

    def test_valid_input(self, provided_zip_file):
        assert self._scanner().scan(provided_zip_file, ["ZIP", "EML"]) == []

    def test_missing_file(self, tmp_path):
        errors = self._scanner().scan(str(tmp_path / "missing.zip"), ["ZIP", "EML"])
        assert len(errors) == 1
        assert errors[0].code == ErrorCode.E_UNNEST_INPUT_NOT_FOUND
        assert "File not exists" in errors[0].message

    def test_directory_input(self, tmp_path):
        errors = self._scanner().scan(str(tmp_path), ["EML"])
        assert errors[0].code == ErrorCode.E_UNNEST_INPUT_NOT_FOUND

    def test_format_path_checked_first(self, tmp_path):
        """An invalid format path is reported even when the input is missing."""
        errors = self._scanner().scan(str(tmp_path / "missing.zip"), [])
        assert [e.code for e in errors] == [ErrorCode.E_UNNEST_INVALID_FORMAT_PATH]

    def test_unsupported_tag_code(self, provided_zip_file):
        errors = self._scanner().scan(provided_zip_file, ["ZIP", "PDF"])
        assert errors[0].code == ErrorCode.E_UNNEST_UNSUPPORTED_TAG
        assert errors[0].stage == "validate"
