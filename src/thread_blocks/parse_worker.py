from __future__ import annotations

import argparse
import json
import sys

from thread_blocks.config import get_settings
from thread_blocks.handlers.parse_handler import handle_parse_request
from thread_blocks.services.logging_config import configure_logging
from thread_blocks.services.payloads import PayloadError


def _read_body(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8", errors="replace") as handle:
        return handle.read()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Split a message body into headers, attributions and dividers.")
    parser.add_argument("path", help="Path to a plain-text or HTML message body, or '-' for stdin.")
    parser.add_argument("--content-type", choices=["text", "html"], default="text")
    parser.add_argument(
        "--output",
        choices=["json", "html", "reply"],
        default="json",
        help="json=structured blocks, html=rendered markup, reply=new text before the first quote",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        body = _read_body(args.path)
        payload = handle_parse_request({"body": body, "content_type": args.content_type}, settings)
    except OSError as exc:
        print(json.dumps({"status": "error", "error": str(exc)}, indent=2), file=sys.stderr)
        return 1
    except PayloadError as exc:
        print(json.dumps({"status": "error", "error": str(exc)}, indent=2), file=sys.stderr)
        return 2

    if args.output == "html":
        print(payload["html"])
    elif args.output == "reply":
        print(payload["reply"])
    else:
        print(json.dumps(payload["blocks"], indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
