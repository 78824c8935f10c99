"""Raw body part access for multipart messages.

The parsed ``email`` tree is used to classify parts, but the bytes handed
to the next layer come from the original message: the enclosing
multipart is split at its boundary lines and only the part's
``Content-Transfer-Encoding`` is undone, so embedded messages reach the
output exactly as they were attached.
"""

from __future__ import annotations

import base64
import binascii
import quopri
import re

from ingestkit_unnest.errors import MessageParseFailure

_LINE_ENDINGS = (b"\r\n", b"\n", b"\r")


def _strip_line_ending(line: bytes) -> bytes:
    for ending in _LINE_ENDINGS:
        if line.endswith(ending):
            return line[: -len(ending)]
    return line


def _is_blank(line: bytes) -> bool:
    return not _strip_line_ending(line)


def split_body_parts(data: bytes, boundary: str) -> list[bytes]:
    """Return the raw bytes (headers and body) of each part of *data*.

    *data* is a whole multipart message.  Parts are cut at the lines
    ``--boundary`` and ``--boundary--`` (trailing blanks allowed); the
    line ending before a boundary line belongs to the boundary.  The
    preamble and epilogue are dropped.  A missing close boundary leaves
    the last part running to the end of *data*.
    """
    try:
        marker = boundary.encode("ascii", "surrogateescape")
    except UnicodeEncodeError as exc:
        raise MessageParseFailure(
            f"Unusable multipart boundary {boundary!r}", stage="extract"
        ) from exc
    delimiter = re.compile(rb"--" + re.escape(marker) + rb"(?P<end>--)?[ \t]*$")
    lines = data.splitlines(keepends=True)

    # Skip the header block of the enclosing message.
    index = 0
    while index < len(lines) and not _is_blank(lines[index]):
        index += 1

    parts: list[bytes] = []
    current: list[bytes] | None = None
    for line in lines[index:]:
        match = delimiter.match(_strip_line_ending(line))
        if match is None:
            if current is not None:
                current.append(line)
            continue
        if current is not None:
            parts.append(_close_part(current))
        if match.group("end"):
            current = None
            break
        current = []
    if current is not None:
        parts.append(b"".join(current))
    return parts


def _close_part(lines: list[bytes]) -> bytes:
    if not lines:
        return b""
    return b"".join(lines[:-1]) + _strip_line_ending(lines[-1])


def part_body(raw_part: bytes) -> bytes:
    """Drop the header block of *raw_part* and return its body bytes."""
    lines = raw_part.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if _is_blank(line):
            return b"".join(lines[index + 1 :])
    return b""


def decode_transfer_encoding(body: bytes, encoding: str | None) -> bytes:
    """Undo a part's ``Content-Transfer-Encoding``.

    ``base64`` and ``quoted-printable`` are decoded; ``7bit``, ``8bit``,
    ``binary`` and unknown encodings pass through unchanged.

    Raises
    ------
    MessageParseFailure
        If a base64 body is malformed.
    """
    encoding = (encoding or "").strip().lower()
    if encoding == "base64":
        try:
            return base64.b64decode(body)
        except (binascii.Error, ValueError) as exc:
            raise MessageParseFailure(
                f"Cannot decode base64 body part: {exc}", stage="extract"
            ) from exc
    if encoding == "quoted-printable":
        return quopri.decodestring(body)
    return body
