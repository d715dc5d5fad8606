"""Library for parsing TZ rules.

TZ supports these two formats

No DST: std offset
  - std: Name of the timezone, 3 to 6 letters or quoted e.g. <-03>
  - offset: Time added to local time to get UTC
  Example: EST+5

DST: std offset dst [offset][,start[/time],end[/time]]
  - dst: Name of the Daylight savings time timezone
  - offset: Defaults to 1 hour ahead of STD offset if not specified
  - start & end: Time period when DST is in effect. The start/end have
    the following formats:
      Jn: A julian day between 1 and 365 (Feb 29th never counted)
      n: A julian day between 0 and 365 (Feb 29th is counted in leap years)
      Mm.w.d:
          m: Month between 1 and 12
          w: Between 1 and 5. Week 1 is first week d occurs, 5 is the last
          d: Between 0 (Sunday) and 6 (Saturday)
      The time field is in hh:mm:ss and defaults to 02:00:00. In TZif
      version 3 footers the hour can be 167 to -167.

Offsets are returned as signed seconds exactly as written: the standard
time utc_offset of "EST5" is 18000. The daylight saving std_offset is the
difference between the daylight and standard offsets.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
import logging
import re
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from .exceptions import GrammarError, RangeError, TzRuleError

__all__ = [
    "ParseOptions",
    "StdRule",
    "DstRule",
    "JulianOneBased",
    "JulianZeroBased",
    "MonthBased",
    "PointInYear",
    "Rule",
    "parse_tz_rule",
]

_LOGGER = logging.getLogger(__name__)

_HOUR = 3600
_DEFAULT_MIDNIGHT_OFFSET = 2 * _HOUR
_DEFAULT_DST_OFFSET = _HOUR
_OFFSET_LIMIT = 25 * _HOUR
_EXTENDED_OFFSET_LIMIT = 168 * _HOUR
_DAY = 24 * _HOUR

_ALPHA_ABBR_RE = re.compile(r"[A-Za-z]{3,6}")
_QUOTED_ABBR_RE = re.compile(r"<(?P<abbr>[A-Za-z0-9+\-]+)>")
_OFFSET_RE = re.compile(
    r"(?P<sign>[+-])?(?P<hours>[0-9]{1,3})"
    r"(?::(?P<minutes>[0-9]{2})(?::(?P<seconds>[0-9]{2}))?)?"
)
_MONTH_BASED_RE = re.compile(
    r"M(?P<month>[0-9]{1,2})\.(?P<week>[0-9])\.(?P<day>[0-9])"
)
_JULIAN_ONE_BASED_RE = re.compile(r"J(?P<value>[0-9]{1,3})")
_JULIAN_ZERO_BASED_RE = re.compile(r"(?P<value>[0-9]{1,3})")


class ParseOptions(BaseModel):
    """Extensions to the POSIX TZ string grammar."""

    extended_transition_offset: bool = False
    """Allow signed transition times with hours from -167 to 167 (TZif version 3)."""

    all_year_dst: bool = False
    """Report rules where daylight saving time covers the whole year without std."""

    model_config = ConfigDict(frozen=True, extra="forbid")


@dataclass(frozen=True)
class JulianOneBased:
    """A julian day between 1 and 365, leap days never counted."""

    value: int

    midnight_offset: int = _DEFAULT_MIDNIGHT_OFFSET
    """Seconds after local midnight when the rule goes into effect."""


@dataclass(frozen=True)
class JulianZeroBased:
    """A julian day between 0 and 365, leap days counted."""

    value: int

    midnight_offset: int = _DEFAULT_MIDNIGHT_OFFSET
    """Seconds after local midnight when the rule goes into effect."""


@dataclass(frozen=True)
class MonthBased:
    """A day of the week in a week of a month."""

    month: int
    """A month between 1 and 12."""

    week: int
    """A week of the month between 1 and 5 where 5 means the last occurrence."""

    day: int
    """A day of the week between 0 (Sunday) and 6 (Saturday)."""

    midnight_offset: int = _DEFAULT_MIDNIGHT_OFFSET
    """Seconds after local midnight when the rule goes into effect."""


PointInYear = Union[JulianOneBased, JulianZeroBased, MonthBased]


@dataclass(frozen=True)
class StdRule:
    """Standard time for a timezone rule."""

    abbr: str
    """The name of the timezone occurrence e.g. EST."""

    utc_offset: int
    """Seconds added to local time to get UTC, as written."""

    std_offset: int = 0


@dataclass(frozen=True)
class DstRule:
    """Daylight saving time for a timezone rule."""

    abbr: str

    utc_offset: int
    """The utc_offset of standard time."""

    std_offset: int
    """Seconds of the daylight saving time offset relative to standard time."""

    start: Optional[PointInYear] = None
    """When daylight saving time starts, None when not specified."""

    end: Optional[PointInYear] = None
    """When daylight saving time ends, None when not specified."""


@dataclass(frozen=True)
class Rule:
    """A rule for evaluating future timezone transitions."""

    std: Optional[StdRule]
    """Standard time, None when daylight saving time is in effect all year."""

    dst: Optional[DstRule] = None


class _TzRuleParser:
    """A recursive descent parser for a single TZ string."""

    def __init__(self, tz_str: str, options: ParseOptions) -> None:
        self._text = tz_str
        self._options = options
        self._pos = 0

    def parse(self) -> Rule:
        """Parse the full string into a Rule."""
        std_abbr = self._abbr()
        if (utc_offset := self._offset(extended=False)) is None:
            raise self._error(GrammarError, "Expected a UTC offset")
        std = StdRule(abbr=std_abbr, utc_offset=utc_offset)
        if self._at_end():
            return Rule(std=std)

        dst_abbr = self._abbr()
        dst_offset = self._offset(extended=False)
        start: Optional[PointInYear] = None
        end: Optional[PointInYear] = None
        if self._peek() == ",":
            self._expect(",")
            start = self._rule()
            self._expect(",")
            end = self._rule()
        if not self._at_end():
            raise self._error(GrammarError, "Expected end of string")

        dst = DstRule(
            abbr=dst_abbr,
            utc_offset=std.utc_offset,
            std_offset=(
                _DEFAULT_DST_OFFSET if dst_offset is None else dst_offset - std.utc_offset
            ),
            start=start,
            end=end,
        )
        if self._options.all_year_dst and _is_all_year_dst(dst):
            _LOGGER.debug("Daylight saving time in effect all year: %s", self._text)
            return Rule(std=None, dst=dst)
        return Rule(std=std, dst=dst)

    def _abbr(self) -> str:
        """Parse an alphabetic or <quoted> timezone abbreviation."""
        if (match := self._match(_ALPHA_ABBR_RE)) is not None:
            return match.group(0)
        if (match := self._match(_QUOTED_ABBR_RE)) is not None:
            return match.group("abbr")
        raise self._error(GrammarError, "Expected a timezone abbreviation")

    def _offset(self, extended: bool) -> Optional[int]:
        """Parse an optional [+-]hh[:mm[:ss]] offset in seconds."""
        start = self._pos
        if (match := self._match(_OFFSET_RE)) is None:
            return None
        minutes = int(match.group("minutes") or 0)
        seconds = int(match.group("seconds") or 0)
        if minutes > 59 or seconds > 59:
            raise self._error(
                RangeError, f"Invalid offset {match.group(0)}", pos=start
            )
        value = int(match.group("hours")) * _HOUR + minutes * 60 + seconds
        if match.group("sign") == "-":
            value = -value
        if not self._in_range(value, extended):
            raise self._error(
                RangeError, f"Invalid offset {value} for {match.group(0)}", pos=start
            )
        return value

    def _in_range(self, value: int, extended: bool) -> bool:
        """Return True if the offset is within the bound for its form."""
        if not extended:
            return abs(value) < _OFFSET_LIMIT
        if self._options.extended_transition_offset:
            return abs(value) < _EXTENDED_OFFSET_LIMIT
        return 0 <= value < _OFFSET_LIMIT

    def _rule(self) -> PointInYear:
        """Parse a date with an optional /time."""
        point = self._date()
        if self._peek() != "/":
            return point
        self._expect("/")
        if (midnight_offset := self._offset(extended=True)) is None:
            raise self._error(GrammarError, "Expected a transition time")
        return dataclasses.replace(point, midnight_offset=midnight_offset)

    def _date(self) -> PointInYear:
        """Parse a date, the form is selected by the leading character."""
        start = self._pos
        if self._peek() == "M":
            if (match := self._match(_MONTH_BASED_RE)) is None:
                raise self._error(GrammarError, "Expected a date of the form Mm.w.d")
            month, week, day = (int(match.group(key)) for key in ("month", "week", "day"))
            if not 1 <= month <= 12:
                raise self._error(GrammarError, f"Invalid month {month}", pos=start)
            if not 1 <= week <= 5:
                raise self._error(GrammarError, f"Invalid week {week}", pos=start)
            if not 0 <= day <= 6:
                raise self._error(GrammarError, f"Invalid day of week {day}", pos=start)
            return MonthBased(month=month, week=week, day=day)
        if self._peek() == "J":
            if (match := self._match(_JULIAN_ONE_BASED_RE)) is None:
                raise self._error(GrammarError, "Expected a julian day of the form Jn")
            if not 1 <= (value := int(match.group("value"))) <= 365:
                raise self._error(GrammarError, f"Invalid julian day {value}", pos=start)
            return JulianOneBased(value=value)
        if (match := self._match(_JULIAN_ZERO_BASED_RE)) is None:
            raise self._error(GrammarError, "Expected a date")
        if not 0 <= (value := int(match.group("value"))) <= 365:
            raise self._error(GrammarError, f"Invalid day of year {value}", pos=start)
        return JulianZeroBased(value=value)

    def _at_end(self) -> bool:
        """Return True if the whole string has been consumed."""
        return self._pos >= len(self._text)

    def _peek(self) -> str:
        """Return the next character, or empty at the end of the string."""
        return self._text[self._pos : self._pos + 1]

    def _expect(self, char: str) -> None:
        """Consume a single required character."""
        if self._peek() != char:
            raise self._error(GrammarError, f"Expected '{char}'")
        self._pos += 1

    def _match(self, pattern: re.Pattern[str]) -> Optional[re.Match[str]]:
        """Consume a token matching pattern at the current position."""
        if (match := pattern.match(self._text, self._pos)) is not None:
            self._pos = match.end()
        return match

    def _error(
        self, error: type[TzRuleError], message: str, pos: Optional[int] = None
    ) -> TzRuleError:
        """Create an error located at pos, or the current position."""
        if pos is None:
            pos = self._pos
        line_start = self._text.rfind("\n", 0, pos) + 1
        return error(
            message,
            line=self._text.count("\n", 0, pos) + 1,
            column=pos - line_start + 1,
            rest=self._text[pos:],
        )


def _is_all_year_dst(dst: DstRule) -> bool:
    """Return True if the rule starts at the new year and ends after the year ends."""
    start, end = dst.start, dst.end
    if start is None or start.midnight_offset != 0:
        return False
    if not isinstance(end, JulianOneBased) or end.value != 365:
        return False
    if not (
        (isinstance(start, JulianZeroBased) and start.value == 0)
        or (isinstance(start, JulianOneBased) and start.value == 1)
    ):
        return False
    return end.midnight_offset >= _DAY + dst.std_offset


def parse_tz_rule(tz_str: str, options: Optional[ParseOptions] = None) -> Rule:
    """Parse the TZ string into a Rule object."""
    if options is None:
        options = ParseOptions()
    _LOGGER.debug("Parsing TZ string %r with %s", tz_str, options)
    return _TzRuleParser(tz_str, options).parse()
