"""Tests for ingestkit_unnest.models."""

from __future__ import annotations

import io

import pytest

from ingestkit_unnest.errors import IngestError, ErrorCode, UnsupportedFormatTag
from ingestkit_unnest.models import (
    Artifact,
    ExtractionOutcome,
    FormatTag,
    PathNode,
    PathNodeKind,
    ProcessingResult,
)


class TestFormatTag:
    @pytest.mark.parametrize("value", ["ZIP", "zip", " Zip "])
    def test_parse_zip(self, value):
        assert FormatTag.parse(value) is FormatTag.ZIP

    def test_parse_eml(self):
        assert FormatTag.parse("eml") is FormatTag.EML

    def test_parse_passthrough(self):
        assert FormatTag.parse(FormatTag.EML) is FormatTag.EML

    @pytest.mark.parametrize("value", ["TAR", "", "E M L"])
    def test_parse_unknown(self, value):
        with pytest.raises(UnsupportedFormatTag, match="Unsupported file type"):
            FormatTag.parse(value)


class TestPathNode:
    def test_str(self):
        assert str(PathNode(PathNodeKind.ARCHIVE, "a.zip")) == "ARCHIVE:a.zip"
        assert str(PathNode(PathNodeKind.MESSAGE, "b.eml")) == "MESSAGE:b.eml"

    def test_frozen(self):
        node = PathNode(PathNodeKind.ARCHIVE, "a.zip")
        with pytest.raises(AttributeError):
            node.name = "other"


class TestEngineTypes:
    def test_artifact(self):
        stream = io.BytesIO(b"")
        artifact = Artifact(FormatTag.ZIP, "a.zip", stream)
        assert artifact.kind is FormatTag.ZIP
        assert artifact.stream is stream

    def test_outcome_defaults_not_shared(self):
        first = ExtractionOutcome()
        first.output_files.append("x")
        assert ExtractionOutcome().output_files == []


class TestProcessingResult:
    def _result(self, **kwargs):
        defaults = dict(
            input_path="in.zip",
            format_path=["ZIP", "EML"],
            output_dir="out",
            run_id="run-1",
        )
        defaults.update(kwargs)
        return ProcessingResult(**defaults)

    def test_succeeded_without_errors(self):
        assert self._result().succeeded is True

    def test_warnings_do_not_fail(self):
        assert self._result(warnings=["W_UNNEST_ENTRY_SKIPPED"]).succeeded is True

    def test_fatal_error_fails(self):
        result = self._result(
            errors=["E_UNNEST_IO_FAILURE"],
            error_details=[
                IngestError(code=ErrorCode.E_UNNEST_IO_FAILURE, message="bad")
            ],
        )
        assert result.succeeded is False

    def test_json_roundtrip(self):
        result = self._result(output_files=["out/test1.eml"])
        assert ProcessingResult.model_validate_json(result.model_dump_json()) == result
