from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from thread_blocks.config import get_settings
from thread_blocks.handlers.search_handler import handle_index_request, handle_search_request
from thread_blocks.services.logging_config import configure_logging
from thread_blocks.services.payloads import PayloadError
from thread_blocks.services.store import SearchStore


def _run(args: argparse.Namespace) -> tuple[int, dict[str, Any]]:
    settings = get_settings()
    configure_logging(settings.log_level)

    store = SearchStore(Path(args.database) if args.database else settings.database_file)
    store.init_db()

    if args.mode == "search":
        payload = handle_search_request(args.query, settings, store, limit=args.limit)
        if payload["count"] == 0:
            return 1, payload
        return 0, payload

    messages = json.loads(Path(args.input).read_text(encoding="utf-8"))
    if isinstance(messages, dict):
        messages = messages.get("messages", [])
    payload = handle_index_request({"messages": messages}, settings, store)
    if payload["skipped"] > 0:
        return 2, payload
    return 0, payload


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build or query the message search index.")
    parser.add_argument(
        "--mode",
        choices=["build", "search"],
        default="build",
        help="build=index messages from --input, search=run --query and exit non-zero when nothing matches",
    )
    parser.add_argument("--input", default="search.json", help="JSON list of messages to index.")
    parser.add_argument("--query", default="", help="Search query for --mode search.")
    parser.add_argument("--limit", type=int, default=0, help="Optional max number of search results.")
    parser.add_argument("--database", default="", help="Override the configured index database path.")
    args = parser.parse_args(argv)

    try:
        code, payload = _run(args)
    except (OSError, ValueError) as exc:
        # PayloadError and json.JSONDecodeError are both ValueErrors.
        payload = {"status": "error", "error": str(exc)}
        code = 2 if isinstance(exc, PayloadError) else 1
    print(json.dumps(payload, indent=2, sort_keys=True))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
