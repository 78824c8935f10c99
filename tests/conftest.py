"""Shared fixtures for ingestkit-unnest tests."""

from __future__ import annotations

import email
import io
import zipfile
from email.mime.application import MIMEApplication
from email.mime.message import MIMEMessage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# EML builders
# ---------------------------------------------------------------------------

PLAIN_BODY = "Hello, this is a test email body."


def _build_eml_bytes(
    *,
    subject: str = "Test Subject",
    plain: str | None = PLAIN_BODY,
    html: str | None = None,
    zips: list[tuple[str, bytes]] | None = None,
    messages: list[tuple[str, bytes]] | None = None,
    zip_subtype: str = "zip",
) -> bytes:
    """Build an EML as bytes.

    Without attachments the message is a single text part.  With *zips*
    (``application/zip``) or *messages* (``message/rfc822``) attachments
    it becomes ``multipart/mixed`` with the text body first.
    """
    if not zips and not messages:
        if html is not None:
            msg = MIMEText(html, "html")
        else:
            msg = MIMEText(plain or "", "plain")
    else:
        msg = MIMEMultipart("mixed")
        if plain is not None:
            msg.attach(MIMEText(plain, "plain"))
        for filename, payload in zips or []:
            part = MIMEApplication(payload, zip_subtype)
            part.add_header("Content-Disposition", "attachment", filename=filename)
            msg.attach(part)
        for filename, payload in messages or []:
            part = MIMEMessage(email.message_from_bytes(payload))
            part.add_header("Content-Disposition", "attachment", filename=filename)
            msg.attach(part)

    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Date"] = "Mon, 17 Feb 2026 12:00:00 +0000"
    msg["Subject"] = subject
    msg["Message-ID"] = f"<{subject.replace(' ', '-').lower()}@example.com>"
    return msg.as_bytes()


def _build_zip_bytes(entries: list[tuple[str, bytes]]) -> bytes:
    """Build a ZIP archive; names ending in ``/`` become directory entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buf.getvalue()


def _output_subjects(paths) -> list[str]:
    """Subjects of the written output files, in write order."""
    return [
        email.message_from_bytes(Path(p).read_bytes())["Subject"] for p in paths
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def inner_eml_bytes() -> bytes:
    """Plain single-part message used as the innermost payload."""
    return _build_eml_bytes(subject="Inner Message", plain="Innermost body text.")


@pytest.fixture
def provided_eml_bytes(inner_eml_bytes: bytes) -> bytes:
    """Message with a zip attachment and an attached message."""
    return _build_eml_bytes(
        subject="Provided Example",
        zips=[("attached.zip", _build_zip_bytes([("inner.eml", inner_eml_bytes)]))],
        messages=[("forwarded.eml", inner_eml_bytes)],
    )


@pytest.fixture
def provided_zip_file(tmp_path: Path, provided_eml_bytes: bytes) -> str:
    """Archive holding one entry: the provided example message."""
    p = tmp_path / "archive.zip"
    p.write_bytes(_build_zip_bytes([("archive.eml", provided_eml_bytes)]))
    return str(p)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Existing, empty output directory."""
    d = tmp_path / "output"
    d.mkdir()
    return d
