"""
Calendar model for OSM date-range conditions.

Parses the individual points of a range ("2014 Dec 24", "Oct", "Mar 15",
"Sa", "24.12.2014", ...) into ParsedCalendar values and combines two of
them into a DateRange that can be checked against a date.

Supported point formats:
- Year, month name and day: "2014 Dec 24"
- ISO date: "2014-12-24"
- Day, month and year: "24.12.2014"
- Year and month name: "2015 Mar"
- Month name and day: "Mar 15"
- Day and month: "15.03"
- Month name: "Mar", "March"
- Weekday: "Mo", "Sa", "Sun"
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# Monday is 0, same as date.weekday()
WEEKDAYS = {
    "mo": 0, "mon": 0,
    "tu": 1, "tue": 1,
    "we": 2, "wed": 2,
    "th": 3, "thu": 3,
    "fr": 4, "fri": 4,
    "sa": 5, "sat": 5,
    "su": 6, "sun": 6,
}

# Leap year so that "Feb 29" is accepted without a year
_YEARLESS_REFERENCE = 2000

_YEAR_MONTH_DAY = re.compile(r"^(\d{4})\s+([A-Za-z]+)\.?\s+(\d{1,2})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_YEAR_MONTH = re.compile(r"^(\d{4})\s+([A-Za-z]+)\.?$")
_MONTH_DAY = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2})$")
_DAY_MONTH = re.compile(r"^(\d{1,2})\.(\d{1,2})\.?$")
_NAME = re.compile(r"^([A-Za-z]+)\.?$")


class ParseType(str, Enum):
    """Precision of a parsed calendar point."""
    YEAR_MONTH_DAY = "year_month_day"
    YEAR_MONTH = "year_month"
    MONTH_DAY = "month_day"
    MONTH = "month"
    WEEKDAY = "weekday"


@dataclass(frozen=True)
class ParsedCalendar:
    """
    A single point of a date range with the precision it was written in.

    Attributes:
        parse_type: Which fields were present in the source text
        year: Year, if given
        month: Month 1-12, unless this is a weekday
        day: Day of month, if given
        weekday: Weekday 0-6 (Monday is 0), only for WEEKDAY
    """
    parse_type: ParseType
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    weekday: Optional[int] = None

    @property
    def is_weekday(self) -> bool:
        return self.parse_type is ParseType.WEEKDAY

    @property
    def has_year(self) -> bool:
        return self.year is not None

    def first_day(self, year: Optional[int] = None) -> date:
        """First date covered by this point in the given (or own) year."""
        year = self.year if self.year is not None else year
        return date(year, self.month, self.day or 1)

    def last_day(self, year: Optional[int] = None) -> date:
        """Last date covered by this point, a month-only point covers the whole month."""
        year = self.year if self.year is not None else year
        if self.day is not None:
            return date(year, self.month, self.day)
        return date(year, self.month, calendar.monthrange(year, self.month)[1])

    def yearless_start(self) -> Tuple[int, int]:
        return (self.month, self.day or 1)

    def yearless_end(self) -> Tuple[int, int]:
        if self.day is not None:
            return (self.month, self.day)
        return (self.month, calendar.monthrange(_YEARLESS_REFERENCE, self.month)[1])


def _month(name: str) -> int:
    month = MONTHS.get(name.lower())
    if month is None:
        raise ValueError(f"unknown month {name!r}")
    return month


def _checked(year: Optional[int], month: int, day: Optional[int]) -> Tuple[Optional[int], int, Optional[int]]:
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    if day is not None:
        # date() validates the day for the real year, or a leap year when yearless
        date(year if year is not None else _YEARLESS_REFERENCE, month, day)
    return year, month, day


def parse_calendar(text: str) -> ParsedCalendar:
    """
    Parse one point of a date range.

    Args:
        text: Point text, for example "2014 Dec 24" or "Sa"

    Returns:
        ParsedCalendar with the precision found in the text

    Raises:
        ValueError: If the text is not a supported date point
    """
    text = " ".join(text.split())
    if not text:
        raise ValueError("empty date")

    m = _YEAR_MONTH_DAY.match(text)
    if m:
        year, month, day = _checked(int(m.group(1)), _month(m.group(2)), int(m.group(3)))
        return ParsedCalendar(ParseType.YEAR_MONTH_DAY, year=year, month=month, day=day)

    m = _ISO_DATE.match(text)
    if m:
        year, month, day = _checked(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        return ParsedCalendar(ParseType.YEAR_MONTH_DAY, year=year, month=month, day=day)

    m = _DAY_MONTH_YEAR.match(text)
    if m:
        year, month, day = _checked(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        return ParsedCalendar(ParseType.YEAR_MONTH_DAY, year=year, month=month, day=day)

    m = _YEAR_MONTH.match(text)
    if m:
        year, month, _ = _checked(int(m.group(1)), _month(m.group(2)), None)
        return ParsedCalendar(ParseType.YEAR_MONTH, year=year, month=month)

    m = _MONTH_DAY.match(text)
    if m:
        _, month, day = _checked(None, _month(m.group(1)), int(m.group(2)))
        return ParsedCalendar(ParseType.MONTH_DAY, month=month, day=day)

    m = _DAY_MONTH.match(text)
    if m:
        _, month, day = _checked(None, int(m.group(2)), int(m.group(1)))
        return ParsedCalendar(ParseType.MONTH_DAY, month=month, day=day)

    m = _NAME.match(text)
    if m:
        name = m.group(1).lower()
        if name in WEEKDAYS:
            return ParsedCalendar(ParseType.WEEKDAY, weekday=WEEKDAYS[name])
        return ParsedCalendar(ParseType.MONTH, month=_month(name))

    raise ValueError(f"unsupported date format {text!r}")


class DateRange:
    """
    Inclusive range between two calendar points.

    Yearless ranges repeat every year and may wrap around the year end
    ("Oct-May"), weekday ranges may wrap around the week end ("Fr-Mo").

    Raises:
        ValueError: On construction, for combinations that have no meaning
            (weekday with a calendar date, yearless start with dated end,
            reversed dated range)
    """

    def __init__(self, start: ParsedCalendar, end: ParsedCalendar):
        if start.is_weekday != end.is_weekday:
            raise ValueError("cannot combine a weekday with a calendar date")
        if not start.has_year and end.has_year:
            raise ValueError("range start needs a year when the end has one")

        self.start = start
        self.end = end
        self._absolute: Optional[Tuple[date, date]] = None

        if start.has_year:
            first = start.first_day()
            last = end.last_day(start.year)
            if not end.has_year and last < first:
                last = end.last_day(start.year + 1)
            if last < first:
                raise ValueError(f"range ends before it starts: {first} > {last}")
            self._absolute = (first, last)

    @property
    def is_weekday_range(self) -> bool:
        return self.start.is_weekday

    def is_in_range(self, day: date) -> bool:
        """Check whether the given date lies within the range (inclusive)."""
        if self.is_weekday_range:
            return _in_cycle(day.weekday(), self.start.weekday, self.end.weekday)

        if self._absolute is not None:
            first, last = self._absolute
            return first <= day <= last

        return _in_cycle(
            (day.month, day.day),
            self.start.yearless_start(),
            self.end.yearless_end()
        )

    def __repr__(self) -> str:
        return f"DateRange(start={self.start!r}, end={self.end!r})"


def _in_cycle(value, start, end) -> bool:
    if start <= end:
        return start <= value <= end
    return value >= start or value <= end
