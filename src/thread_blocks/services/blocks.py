import html
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from thread_blocks.services.attribution_patterns import ATTRIBUTION_PATTERNS, NON_NEWLINE_WHITESPACE

logger = logging.getLogger(__name__)

_WS = NON_NEWLINE_WHITESPACE
_BANNER = rf"{_WS}-+ ?Original Message ?-+{_WS}"
_LABEL = r"(From|Reply-To|To|Subject|Date|Sent|Message)"
_RULE = r"[-_]{2,}"

DIVIDER_RE = re.compile(rf"^{_WS}{_RULE}{_WS}$", re.MULTILINE)
FIELD_LABEL_RE = re.compile(rf"^{_WS}{_LABEL}: +(\S)", re.MULTILINE)
MESSAGE_HEADER_START_RE = re.compile(rf"(?:^{_BANNER}\n|^{_WS}\n?|\n{_WS}(?:{_BANNER})?\n){_WS}{_LABEL}: +(\S)")
MESSAGE_HEADER_END_RE = re.compile(rf"^{_WS}\n", re.MULTILINE)


class Block(Protocol):
    def from_text(self, text: str) -> tuple[bool, str, str]:
        """Consume one occurrence of the block from ``text``.

        Returns ``(matched, before, after)``. On a miss both strings are empty
        and the block is left as it was.
        """

    def to_html(self) -> str: ...

    def to_dict(self) -> dict[str, Any]: ...


@dataclass
class Field:
    name: str
    value: str
    raw_value: str = ""


@dataclass
class _FieldPosition:
    label_start: int
    label_end: int
    value_start: int


@dataclass
class MessageHeaderBlock:
    fields: list[Field] = field(default_factory=list)

    def from_text(self, text: str) -> tuple[bool, str, str]:
        start = MESSAGE_HEADER_START_RE.search(text)
        if start is None:
            return False, "", ""

        positions = [_FieldPosition(start.start(1), start.end(1), start.start(2))]
        before = text[: start.start()]
        after = ""

        # Slices keep "^" anchored to the scan position, as it would be for a
        # fresh string.
        offset = positions[0].label_end
        remaining = text[offset:]
        region_end = len(text)

        end = MESSAGE_HEADER_END_RE.search(remaining)
        if end is not None:
            region_end = offset + end.start()
            after = text[offset + end.end() :]
            remaining = remaining[: end.start()]

        while True:
            label = FIELD_LABEL_RE.search(remaining)
            if label is None:
                break
            positions.append(
                _FieldPosition(
                    label_start=offset + label.start(1),
                    label_end=offset + label.end(1),
                    value_start=offset + label.start(2),
                )
            )
            offset += label.end(1)
            remaining = remaining[label.end(1) :]

        boundaries = [position.label_start for position in positions[1:]] + [region_end]
        for position, boundary in zip(positions, boundaries):
            raw_value = text[position.value_start : boundary]
            self.fields.append(
                Field(
                    name=text[position.label_start : position.label_end],
                    value=raw_value.rstrip(),
                    raw_value=raw_value,
                )
            )

        return True, before, after

    def get(self, name: str) -> Optional[str]:
        for header_field in self.fields:
            if header_field.name == name:
                return header_field.value
        return None

    def to_html(self) -> str:
        rows = "".join(
            f"<dt>{html.escape(header_field.name)}</dt><dd>{html.escape(header_field.value)}</dd>"
            for header_field in self.fields
        )
        return f'<dl class="message-header">{rows}</dl>'

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "message_header",
            "fields": [{"name": f.name, "value": f.value} for f in self.fields],
        }


@dataclass
class DividerBlock:
    def from_text(self, text: str) -> tuple[bool, str, str]:
        match = DIVIDER_RE.search(text)
        if match is None:
            return False, "", ""
        return True, text[: match.start()], text[match.end() :]

    def to_html(self) -> str:
        return "<hr>"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "divider"}


@dataclass
class AttributionBlock:
    name: str = ""
    time: Optional[datetime] = None
    has_time: bool = False

    def from_text(self, text: str) -> tuple[bool, str, str]:
        # Every pattern ends in "wrote:".
        if "wrote:" not in text:
            return False, "", ""

        for pattern in ATTRIBUTION_PATTERNS:
            match = pattern.regex.search(text)
            if match is None:
                continue

            name = pattern.name_from(match)
            parsed_time = None
            raw_time = pattern.time_from(match)
            if raw_time is not None:
                try:
                    parsed_time = pattern.format.parse_time(raw_time)
                except ValueError:
                    logger.debug(
                        "Skipping attribution candidate with unparseable date",
                        extra={
                            "event": "attribution_date_unparseable",
                            "format": pattern.format.value,
                            "raw_time": raw_time,
                        },
                    )
                    continue

            self.name = name
            self.time = parsed_time
            self.has_time = pattern.format.has_time
            return True, text[: match.start()], text[match.end() :]

        return False, "", ""

    def to_html(self) -> str:
        name = f'<span class="attribution-name">{html.escape(self.name)}</span>'
        if self.time is None:
            return f'<p class="attribution">{name} wrote:</p>'

        if self.has_time:
            label = self.time.strftime("%Y-%m-%d %H:%M UTC")
        else:
            label = self.time.strftime("%Y-%m-%d")
        return (
            f'<p class="attribution">On <time datetime="{self.time.isoformat()}">{label}</time>, '
            f"{name} wrote:</p>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "attribution",
            "name": self.name,
            "time": self.time.isoformat() if self.time else None,
            "has_time": self.has_time,
        }
