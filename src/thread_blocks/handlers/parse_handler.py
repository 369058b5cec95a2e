import logging
from typing import TYPE_CHECKING, Any

from thread_blocks.services.document import parse_document, render_html
from thread_blocks.services.email_parser import extract_reply_text, html_to_text
from thread_blocks.services.payloads import PayloadError, require_text

if TYPE_CHECKING:
    from thread_blocks.config import Settings

logger = logging.getLogger(__name__)


def handle_parse_request(payload: dict[str, Any], settings: "Settings") -> dict[str, Any]:
    raw_body = require_text(payload, "body", max_chars=settings.max_body_chars)

    content_type = str(payload.get("content_type") or "text").lower()
    if content_type not in ("text", "html"):
        raise PayloadError(f"unsupported content_type '{content_type}'")

    plain = html_to_text(raw_body) if content_type == "html" else raw_body
    plain = plain.replace("\r\n", "\n")
    segments = parse_document(plain)

    logger.info(
        "Parsed message body",
        extra={
            "event": "body_parsed",
            "content_type": content_type,
            "body_chars": len(plain),
            "segments": len(segments),
        },
    )
    return {
        "status": "ok",
        "blocks": [segment.block.to_dict() for segment in segments],
        "html": render_html(segments),
        "reply": extract_reply_text(plain),
    }
