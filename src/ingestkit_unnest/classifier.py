"""Body part classification and traversal ordering.

Pure functions over ``email.message.Message`` parts: ``classify`` maps a
part to a ``PartKind`` from its declared content type, and
``order_for_traversal`` sorts a multipart's parts so that archives come
first, then embedded messages, then everything else.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from email.errors import MessageError
from email.message import Message

from ingestkit_unnest.errors import MessageParseFailure
from ingestkit_unnest.models import PartKind

logger = logging.getLogger("ingestkit_unnest")

ARCHIVE_CONTENT_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})
MESSAGE_CONTENT_TYPE = "message/rfc822"
TEXT_CONTENT_TYPE = "text/plain"

# Lower sorts first: unwrap containers before giving up on a multipart.
_PRIORITIES = {
    PartKind.ARCHIVE: 1,
    PartKind.SUB_MESSAGE: 2,
}
_DEFAULT_PRIORITY = 1000


def content_type_of(part: Message) -> str:
    """Return the declared ``maintype/subtype`` of *part*.

    Raises
    ------
    MessageParseFailure
        If the part's headers cannot be interpreted.
    """
    try:
        return part.get_content_type()
    except (MessageError, ValueError, TypeError, AttributeError) as exc:
        raise MessageParseFailure(
            f"Cannot determine content type of body part: {exc}",
            stage="classify",
        ) from exc


def classify(part: Message) -> PartKind:
    content_type = content_type_of(part)
    if content_type in ARCHIVE_CONTENT_TYPES:
        return PartKind.ARCHIVE
    if content_type == MESSAGE_CONTENT_TYPE:
        return PartKind.SUB_MESSAGE
    if content_type == TEXT_CONTENT_TYPE:
        return PartKind.PLAIN_TEXT
    return PartKind.OTHER


def extraction_priority(part: Message) -> int:
    return _PRIORITIES.get(classify(part), _DEFAULT_PRIORITY)


def order_for_traversal(parts: Iterable[Message]) -> list[Message]:
    """Return *parts* reordered for depth-first extraction.

    Archives (priority 1) sort before sub-messages (priority 2), which
    sort before every other part (priority 1000).  The sort is stable, so
    parts of equal priority keep their source order.  A part whose
    content type cannot be read makes the whole ordering fail.
    """
    return sorted(parts, key=extraction_priority)


# ---------------------------------------------------------------------------
# Text bodies
# ---------------------------------------------------------------------------


def text_body(part: Message) -> str:
    """Decode the payload of a text part using its declared charset."""
    payload = part.get_payload(decode=True)
    if payload is None:
        return ""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        logger.debug("ingestkit_unnest | unknown_charset=%s", charset)
        return payload.decode("utf-8", errors="replace")


def make_ignorable_text_predicate(
    bodies: Iterable[str] = (),
) -> Callable[[str], bool]:
    """Build the policy deciding whether a text body carries no content.

    Blank bodies are always ignorable.  *bodies* lists additional literal
    texts (compared after stripping surrounding whitespace), e.g. the
    placeholder some clients leave where a forwarded message was inlined.
    """
    ignorable = frozenset(body.strip() for body in bodies)

    def is_ignorable(body: str) -> bool:
        stripped = body.strip()
        return not stripped or stripped in ignorable

    return is_ignorable
