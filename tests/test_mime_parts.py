"""Tests for ingestkit_unnest.mime_parts."""

from __future__ import annotations

import base64
import quopri

import pytest

from ingestkit_unnest.errors import MessageParseFailure
from ingestkit_unnest.mime_parts import (
    decode_transfer_encoding,
    part_body,
    split_body_parts,
)

CRLF_MULTIPART = (
    b"Subject: Carrier\r\n"
    b'Content-Type: multipart/mixed; boundary="b1"\r\n'
    b"\r\n"
    b"preamble text\r\n"
    b"--b1\r\n"
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"first\r\n"
    b"--b1 \t\r\n"
    b"Content-Type: application/octet-stream\r\n"
    b"\r\n"
    b"second\r\n"
    b"\r\n"
    b"--b1--\r\n"
    b"epilogue\r\n"
)


class TestSplitBodyParts:
    def test_parts_without_preamble_or_epilogue(self):
        parts = split_body_parts(CRLF_MULTIPART, "b1")
        assert parts == [
            b"Content-Type: text/plain\r\n\r\nfirst",
            b"Content-Type: application/octet-stream\r\n\r\nsecond\r\n",
        ]

    def test_lf_line_endings(self):
        data = CRLF_MULTIPART.replace(b"\r\n", b"\n")
        parts = split_body_parts(data, "b1")
        assert parts[0] == b"Content-Type: text/plain\n\nfirst"

    def test_boundary_prefix_is_not_a_delimiter(self):
        data = (
            b'Content-Type: multipart/mixed; boundary="b1"\n\n'
            b"--b1\n\n--b1x is body text\n--b1--\n"
        )
        assert split_body_parts(data, "b1") == [b"\n--b1x is body text"]

    def test_missing_close_boundary(self):
        data = b'Content-Type: multipart/mixed; boundary="b1"\n\n--b1\n\ntail\n'
        assert split_body_parts(data, "b1") == [b"\ntail\n"]

    def test_boundary_in_headers_ignored(self):
        data = (
            b"X-Note: --b1\n"
            b'Content-Type: multipart/mixed; boundary="b1"\n\n'
            b"--b1\n\nonly\n--b1--\n"
        )
        assert split_body_parts(data, "b1") == [b"\nonly"]


class TestPartBody:
    def test_drops_headers(self):
        raw = b"Content-Type: text/plain\r\nX-A: b\r\n\r\nline one\r\nline two"
        assert part_body(raw) == b"line one\r\nline two"

    def test_no_separator(self):
        assert part_body(b"Content-Type: text/plain") == b""


class TestDecodeTransferEncoding:
    def test_base64(self):
        encoded = base64.encodebytes(b"\x00binary\xffdata" * 20)
        assert decode_transfer_encoding(encoded, " Base64 ") == b"\x00binary\xffdata" * 20

    def test_quoted_printable(self):
        original = b"Subject: caf\xc3\xa9 = menu\n"
        encoded = quopri.encodestring(original)
        assert decode_transfer_encoding(encoded, "quoted-printable") == original

    @pytest.mark.parametrize("encoding", [None, "7bit", "8bit", "binary", "x-custom"])
    def test_passthrough(self, encoding):
        assert decode_transfer_encoding(b"as is\r\n", encoding) == b"as is\r\n"

    def test_bad_base64(self):
        with pytest.raises(MessageParseFailure):
            decode_transfer_encoding(b"abc", "base64")
