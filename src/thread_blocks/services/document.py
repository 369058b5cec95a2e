import html
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Union

from thread_blocks.services.blocks import AttributionBlock, DividerBlock, MessageHeaderBlock

logger = logging.getLogger(__name__)

# Tried in this order on every span.
BLOCK_TYPES = (MessageHeaderBlock, AttributionBlock, DividerBlock)

_PARAGRAPH_SPLIT_RE = re.compile(r"\n[\t ]*\n")
_QUOTE_PREFIX_RE = re.compile(r"^[\t ]*> ?")


@dataclass
class TextBlock:
    text: str

    def to_html(self) -> str:
        parts: list[str] = []
        for paragraph in _PARAGRAPH_SPLIT_RE.split(self.text):
            if not paragraph.strip():
                continue
            lines = paragraph.strip("\n").split("\n")
            if all(line.lstrip().startswith(">") for line in lines):
                quoted = "\n".join(_QUOTE_PREFIX_RE.sub("", line, count=1) for line in lines)
                parts.append(f"<blockquote>{render_html(parse_document(quoted))}</blockquote>")
            else:
                parts.append("<p>" + "<br>".join(html.escape(line) for line in lines) + "</p>")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


AnyBlock = Union[MessageHeaderBlock, AttributionBlock, DividerBlock, TextBlock]


@dataclass
class Segment:
    block: AnyBlock
    raw: str


def parse_document(text: str) -> list[Segment]:
    """Split a message body into recognized blocks and the text between them.

    Joining ``segment.raw`` over the result gives back ``text`` unchanged.
    """
    segments: list[Segment] = []
    _walk(text, segments)
    if logger.isEnabledFor(logging.DEBUG):
        counts = Counter(type(segment.block).__name__ for segment in segments)
        logger.debug("Parsed document", extra={"event": "document_parsed", "blocks": dict(counts)})
    return segments


def _walk(text: str, segments: list[Segment]) -> None:
    while text:
        for block_type in BLOCK_TYPES:
            block = block_type()
            matched, before, after = block.from_text(text)
            if matched:
                break
        else:
            segments.append(Segment(TextBlock(text), text))
            return

        _walk(before, segments)
        segments.append(Segment(block, text[len(before) : len(text) - len(after)]))
        text = after


def render_html(segments: list[Segment]) -> str:
    rendered = (segment.block.to_html() for segment in segments)
    return "\n".join(markup for markup in rendered if markup)


def first_attribution(segments: list[Segment]) -> AttributionBlock | None:
    for segment in segments:
        if isinstance(segment.block, AttributionBlock):
            return segment.block
    return None
