from datetime import datetime, timezone
from typing import Any, Optional

from thread_blocks.services.document import Segment, first_attribution
from thread_blocks.services.payloads import PayloadError
from thread_blocks.services.store import SearchRecord


def _normalize_timestamp(value: Any) -> str:
    if value in (None, ""):
        return ""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise PayloadError(f"invalid timestamp {value!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def build_search_record(message: dict[str, Any], segments: list[Segment]) -> SearchRecord:
    """Turn a parsed message into the record stored in the search index.

    ``user`` and ``timestamp`` fall back to the first attribution line of the
    body when the message does not carry them.
    """
    record_id = str(message.get("id") or "").strip()
    if not record_id:
        raise PayloadError("message is missing 'id'")
    body = message.get("body")
    if not isinstance(body, str) or not body:
        raise PayloadError(f"message {record_id} is missing 'body'")

    raw_user = message.get("user")
    user: Optional[str] = str(raw_user) if raw_user not in (None, "") else None
    timestamp = _normalize_timestamp(message.get("timestamp"))

    attribution = first_attribution(segments)
    if attribution is not None:
        if user is None:
            user = attribution.name
        if not timestamp and attribution.time is not None:
            timestamp = attribution.time.isoformat()

    return SearchRecord(
        id=record_id,
        page=str(message.get("page") or ""),
        timestamp=timestamp,
        user=user or "",
        title=str(message.get("title") or ""),
        body=body,
        flair=str(message.get("flair") or ""),
        year=timestamp[:4],
    )
