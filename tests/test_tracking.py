"""Tests for ingestkit_unnest.tracking."""

from __future__ import annotations

import logging

import pytest

from ingestkit_unnest.errors import PathInvariantViolation
from ingestkit_unnest.models import PathNode, PathNodeKind
from ingestkit_unnest.tracking import ExtractionPath


class TestExtractionPath:
    def test_starts_empty(self):
        path = ExtractionPath()
        assert len(path) == 0
        assert path.render() == ""

    def test_nested_render(self):
        path = ExtractionPath()
        with path.enter_archive("a.zip"):
            with path.enter_message("b.eml"):
                assert path.render() == "ARCHIVE:a.zip -> MESSAGE:b.eml"
                assert path.nodes == (
                    PathNode(PathNodeKind.ARCHIVE, "a.zip"),
                    PathNode(PathNodeKind.MESSAGE, "b.eml"),
                )
            assert path.render() == "ARCHIVE:a.zip"
        assert len(path) == 0

    def test_pops_on_exception(self):
        path = ExtractionPath()
        with pytest.raises(RuntimeError):
            with path.enter_archive("a.zip"):
                with path.enter_message("b.eml"):
                    raise RuntimeError("boom")
        assert len(path) == 0

    def test_logs_trail_on_entry(self, caplog):
        path = ExtractionPath()
        with caplog.at_level(logging.INFO, logger="ingestkit_unnest"):
            with path.enter_archive("a.zip"):
                with path.enter_message("b.eml"):
                    pass
        messages = [r.getMessage() for r in caplog.records]
        assert "ingestkit_unnest | processing=ARCHIVE:a.zip" in messages
        assert (
            "ingestkit_unnest | processing=ARCHIVE:a.zip -> MESSAGE:b.eml" in messages
        )

    def test_out_of_order_leave_detected(self):
        path = ExtractionPath()
        outer = path.enter_archive("a.zip")
        outer.__enter__()
        # Simulate a stray push left behind by broken bookkeeping.
        path._nodes.append(PathNode(PathNodeKind.MESSAGE, "stray.eml"))
        with pytest.raises(PathInvariantViolation):
            outer.__exit__(None, None, None)
