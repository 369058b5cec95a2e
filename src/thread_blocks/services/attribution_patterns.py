import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class PatternTableError(RuntimeError):
    """The attribution pattern table is wired incorrectly."""


class InvalidAttributionFormatError(PatternTableError):
    pass


# Names stay on one line.
_NAME = r"(?:[^<>,\s]|[^<>,\s][^<>,\n]*[^<>,\s])"
_EMAIL = r"[^<>@\s]+@[^<>@\s]+"
_GROUP_EMAIL = r"[^\s@]+@(?:yahoogroups\.com|y?\.{3})"
_SHORT_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_SHORT_WEEKDAY = r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)"
_TIME = r"\d{2}:\d{2}:\d{2}"
_NUMERIC_TIMEZONE = r"[-+]\d{4}"
_ABBREVIATION_TIMEZONE = r"\([A-Z]{2,}\)"
_DASH_MARKER = r"-{2,3}"

# Horizontal whitespace only; shared with the header and divider patterns.
NON_NEWLINE_WHITESPACE = r"[\t ]*"
_WS = NON_NEWLINE_WHITESPACE

_LONG_DATE = _SHORT_WEEKDAY + r", \d{1,2} " + _SHORT_MONTH + r" \d{4}"
_SHORT_DATE = _SHORT_WEEKDAY + r", \d{2}/\d{2}/\d{2}"
_DATE_NUMERIC_TIMEZONE = f"{_LONG_DATE} {_TIME} {_NUMERIC_TIMEZONE}"
_DATE_ABBREVIATION_TIMEZONE = f"{_DATE_NUMERIC_TIMEZONE} {_ABBREVIATION_TIMEZONE}"

_ABBREVIATION_SUFFIX_RE = re.compile(r" \(([A-Z]{2,})\)$")


class UserShape(str, Enum):
    """How an attribution line spells out its author, in priority order."""

    QUOTED_NAME_WITH_EMAIL = "quoted_name"
    NAME_WITH_EMAIL = "name"
    EMAIL = "email"
    BARE_NAME = "bare_name"


ALL_USER_SHAPES = (
    UserShape.QUOTED_NAME_WITH_EMAIL,
    UserShape.NAME_WITH_EMAIL,
    UserShape.EMAIL,
    UserShape.BARE_NAME,
)
EMAIL_USER_SHAPES = ALL_USER_SHAPES[:3]

_USER_ALTERNATIVES = {
    UserShape.QUOTED_NAME_WITH_EMAIL: rf'"(?P<quoted_name>{_NAME})"\s+<{_EMAIL}>',
    UserShape.NAME_WITH_EMAIL: rf"(?P<name>{_NAME})\s+<{_EMAIL}>",
    UserShape.EMAIL: rf"<(?P<email>{_EMAIL})>",
    UserShape.BARE_NAME: rf"(?P<bare_name>{_NAME})",
}


def _user_part(shapes: tuple[UserShape, ...]) -> str:
    return "(?:" + "|".join(_USER_ALTERNATIVES[shape] for shape in shapes) + ")"


_USER = _user_part(ALL_USER_SHAPES)
_USER_WITH_EMAIL = _user_part(EMAIL_USER_SHAPES)


class Format(str, Enum):
    NAME = "Name"
    NAME_LONG_DATE = "NameLongDate"
    NAME_SHORT_DATE = "NameShortDate"
    NAME_DATE_NUMERIC_TIMEZONE = "NameDateNumericTimezone"
    NAME_DATE_ABBREVIATION_TIMEZONE = "NameDateAbbreviationTimezone"

    @property
    def has_time(self) -> bool:
        return _format_traits(self)[0]

    @property
    def date_layout(self) -> Optional[str]:
        return _format_traits(self)[1]

    def parse_time(self, value: str) -> datetime:
        """Parse ``value`` with this format's date layout and return it in UTC.

        Raises ``ValueError`` when the text does not form a real date, e.g.
        ``Mon, 32 Jan 2006``. Layouts without a zone are read as UTC. The
        parenthesized abbreviation of ``NameDateAbbreviationTimezone`` must be
        present and well formed (``UT`` is not) but only the numeric offset
        is used.
        """
        layout = self.date_layout
        if layout is None:
            raise ValueError(f"format {self.value} carries no date")

        if self is Format.NAME_DATE_ABBREVIATION_TIMEZONE:
            suffix = _ABBREVIATION_SUFFIX_RE.search(value)
            if suffix is None:
                raise ValueError(f"missing timezone abbreviation in {value!r}")
            if not _is_timezone_abbreviation(suffix.group(1)):
                raise ValueError(f"unknown timezone abbreviation {suffix.group(1)!r}")
            value = value[: suffix.start()]

        parsed = datetime.strptime(value, layout)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


def _is_timezone_abbreviation(abbreviation: str) -> bool:
    # Three letters, or four or five ending in "T" (plus WITA).
    if len(abbreviation) == 3:
        return True
    if len(abbreviation) == 4:
        return abbreviation.endswith("T") or abbreviation == "WITA"
    if len(abbreviation) == 5:
        return abbreviation.endswith("T")
    return False


_NUMERIC_TIMEZONE_LAYOUT = "%a, %d %b %Y %H:%M:%S %z"

_FORMAT_TRAITS: dict[Format, tuple[bool, Optional[str]]] = {
    Format.NAME: (False, None),
    Format.NAME_LONG_DATE: (False, "%a, %d %b %Y"),
    Format.NAME_SHORT_DATE: (False, "%a, %m/%d/%y"),
    Format.NAME_DATE_NUMERIC_TIMEZONE: (True, _NUMERIC_TIMEZONE_LAYOUT),
    Format.NAME_DATE_ABBREVIATION_TIMEZONE: (True, _NUMERIC_TIMEZONE_LAYOUT),
}


def _format_traits(attribution_format: Format) -> tuple[bool, Optional[str]]:
    try:
        return _FORMAT_TRAITS[attribution_format]
    except (KeyError, TypeError) as exc:
        raise InvalidAttributionFormatError(f"invalid attribution format: {attribution_format!r}") from exc


@dataclass(frozen=True)
class AttributionPattern:
    format: Format
    regex: re.Pattern[str]
    name_slots: tuple[UserShape, ...]
    time_slots: Optional[tuple[str, ...]] = None

    def name_from(self, match: re.Match[str]) -> str:
        return self._first_slot(match, [shape.value for shape in self.name_slots])

    def time_from(self, match: re.Match[str]) -> Optional[str]:
        if self.time_slots is None:
            return None
        return self._first_slot(match, self.time_slots)

    def _first_slot(self, match: re.Match[str], slots: list[str] | tuple[str, ...]) -> str:
        for slot in slots:
            value = match.group(slot)
            if value:
                return value
        raise PatternTableError(
            f"{self.format.value} pattern matched with every slot of {list(slots)} empty"
        )


def _line(body: str) -> re.Pattern[str]:
    return re.compile(rf"^{_WS}{body}\s+wrote:{_WS}$", re.MULTILINE)


# Most temporally specific first. A candidate whose date does not parse is
# skipped in favour of the next one.
ATTRIBUTION_PATTERNS: tuple[AttributionPattern, ...] = (
    AttributionPattern(
        format=Format.NAME_DATE_ABBREVIATION_TIMEZONE,
        regex=_line(rf"On\s+(?P<time>{_DATE_ABBREVIATION_TIMEZONE}),\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
        time_slots=("time",),
    ),
    AttributionPattern(
        format=Format.NAME_DATE_NUMERIC_TIMEZONE,
        regex=_line(rf"On\s+(?P<time>{_DATE_NUMERIC_TIMEZONE}),\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
        time_slots=("time",),
    ),
    AttributionPattern(
        format=Format.NAME_LONG_DATE,
        regex=_line(rf"On\s+(?P<time>{_LONG_DATE}),\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
        time_slots=("time",),
    ),
    AttributionPattern(
        format=Format.NAME_SHORT_DATE,
        regex=_line(rf"{_DASH_MARKER}\s+On\s+(?P<time>{_SHORT_DATE}),\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
        time_slots=("time",),
    ),
    AttributionPattern(
        format=Format.NAME,
        regex=_line(rf"{_DASH_MARKER}\s+In\s+{_GROUP_EMAIL},\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
    ),
    AttributionPattern(
        format=Format.NAME,
        regex=_line(rf"{_DASH_MARKER}\s+{_USER}"),
        name_slots=ALL_USER_SHAPES,
    ),
    # Not anchored to the end of the line: stops after "wrote:" and its
    # trailing whitespace.
    AttributionPattern(
        format=Format.NAME,
        regex=re.compile(rf"^{_WS}{_USER_WITH_EMAIL}{_WS}wrote:\s+", re.MULTILINE),
        name_slots=EMAIL_USER_SHAPES,
    ),
)


def validate_pattern_table(patterns: tuple[AttributionPattern, ...]) -> None:
    for index, pattern in enumerate(patterns):
        if not isinstance(pattern.format, Format):
            raise InvalidAttributionFormatError(f"pattern #{index}: invalid attribution format {pattern.format!r}")
        if not pattern.name_slots:
            raise PatternTableError(f"pattern #{index}: no name slots")

        groups = pattern.regex.groupindex
        missing = [shape.value for shape in pattern.name_slots if shape.value not in groups]
        if missing:
            raise PatternTableError(f"pattern #{index}: name slots {missing} are not capture groups")

        has_layout = pattern.format.date_layout is not None
        if has_layout != (pattern.time_slots is not None):
            raise PatternTableError(
                f"pattern #{index}: time slots do not agree with format {pattern.format.value}"
            )
        if pattern.time_slots is not None:
            if not pattern.time_slots:
                raise PatternTableError(f"pattern #{index}: empty time slot list")
            missing = [slot for slot in pattern.time_slots if slot not in groups]
            if missing:
                raise PatternTableError(f"pattern #{index}: time slots {missing} are not capture groups")


validate_pattern_table(ATTRIBUTION_PATTERNS)
