import logging
from typing import TYPE_CHECKING, Any, Optional

from thread_blocks.services.document import parse_document
from thread_blocks.services.payloads import PayloadError
from thread_blocks.services.search_records import build_search_record

if TYPE_CHECKING:
    from thread_blocks.config import Settings
    from thread_blocks.services.store import SearchStore

logger = logging.getLogger(__name__)


def handle_index_request(payload: dict[str, Any], settings: "Settings", store: "SearchStore") -> dict[str, Any]:
    messages = payload.get("messages")
    if not isinstance(messages, list):
        raise PayloadError("'messages' must be a list")

    indexed = 0
    skipped = 0
    for message in messages:
        if not isinstance(message, dict):
            skipped += 1
            continue

        body = message.get("body")
        if isinstance(body, str) and len(body) > settings.max_body_chars:
            logger.warning(
                "Skipping oversized message",
                extra={"event": "index_message_oversized", "message_id": message.get("id"), "body_chars": len(body)},
            )
            skipped += 1
            continue

        try:
            segments = parse_document(body) if isinstance(body, str) else []
            record = build_search_record(message, segments)
        except PayloadError as exc:
            logger.warning(
                "Skipping invalid message",
                extra={"event": "index_message_invalid", "message_id": message.get("id"), "error": str(exc)},
            )
            skipped += 1
            continue

        store.upsert_record(record)
        indexed += 1

    logger.info("Indexed messages", extra={"event": "index_completed", "indexed": indexed, "skipped": skipped})
    return {"status": "ok", "indexed": indexed, "skipped": skipped}


def handle_search_request(
    query: str,
    settings: "Settings",
    store: "SearchStore",
    limit: Optional[int] = None,
) -> dict[str, Any]:
    if not (query or "").strip():
        raise PayloadError("missing search query")

    effective_limit = limit if limit and limit > 0 else settings.search_default_limit
    effective_limit = min(effective_limit, settings.search_max_limit)

    records = store.search(query, limit=effective_limit)
    return {
        "status": "ok",
        "query": query,
        "count": len(records),
        "results": [
            {
                "id": record.id,
                "page": record.page,
                "timestamp": record.timestamp,
                "user": record.user,
                "title": record.title,
                "body": record.body,
            }
            for record in records
        ],
    }
