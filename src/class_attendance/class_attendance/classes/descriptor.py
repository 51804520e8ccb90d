"""Compact day+time schedule strings such as ``MWF 9:00 AM-10:00 AM``.

Days are written in weekly order (Mon..Sun) with the abbreviations
M, T, W, TH, F, SAT, SUN and no separator. The set {Tue, Thu} on its own is
written ``TTH``. Times are local 12-hour clock values; no time zone is implied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable

from ..core.enums import Weekday
from ..core.exceptions import InvalidSchedule

DAY_ABBREVIATIONS = {
    Weekday.MON: "M",
    Weekday.TUE: "T",
    Weekday.WED: "W",
    Weekday.THU: "TH",
    Weekday.FRI: "F",
    Weekday.SAT: "SAT",
    Weekday.SUN: "SUN",
}

TUESDAY_THURSDAY = "TTH"

# Longest tokens first so "TH" is not read as "T" followed by garbage.
_DAY_TOKENS = (
    ("SAT", (Weekday.SAT,)),
    ("SUN", (Weekday.SUN,)),
    ("TTH", (Weekday.TUE, Weekday.THU)),
    ("TH", (Weekday.THU,)),
    ("M", (Weekday.MON,)),
    ("T", (Weekday.TUE,)),
    ("W", (Weekday.WED,)),
    ("F", (Weekday.FRI,)),
)

_SCHEDULE_RE = re.compile(
    r"^\s*(?P<days>[A-Za-z]+)\s+"
    r"(?P<start>\d{1,2}:\d{2}\s*[AaPp][Mm])\s*-\s*"
    r"(?P<end>\d{1,2}:\d{2}\s*[AaPp][Mm])\s*$"
)


@dataclass(frozen=True)
class ScheduleDescriptor:
    days: tuple[Weekday, ...]
    start: time
    end: time

    def __str__(self) -> str:
        return format_schedule(self.days, self.start, self.end)


def _ordered(days: Iterable[Weekday]) -> list[Weekday]:
    return sorted({Weekday(d) for d in days}, key=lambda d: d.value)


def parse_days(schedule_text: str) -> list[Weekday]:
    """Return the weekdays named by the leading day token of a schedule string."""

    if not schedule_text or not schedule_text.strip():
        raise InvalidSchedule("No days selected")

    token = schedule_text.strip().split()[0].upper()
    found: set[Weekday] = set()
    pos = 0
    while pos < len(token):
        for abbr, days in _DAY_TOKENS:
            if token.startswith(abbr, pos):
                found.update(days)
                pos += len(abbr)
                break
        else:
            raise InvalidSchedule(f"Unknown day token in {schedule_text!r}")

    return _ordered(found)


def format_days(days: Iterable[Weekday]) -> str:
    ordered = _ordered(days)
    if not ordered:
        raise InvalidSchedule("No days selected")
    if ordered == [Weekday.TUE, Weekday.THU]:
        return TUESDAY_THURSDAY
    return "".join(DAY_ABBREVIATIONS[d] for d in ordered)


def format_time(value: time) -> str:
    hour = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {period}"


def parse_time(value: str) -> time:
    text = re.sub(r"\s+", "", value).upper()
    try:
        return datetime.strptime(text, "%I:%M%p").time()
    except ValueError as e:
        raise InvalidSchedule(f"Invalid time {value!r}") from e


def format_schedule(days: Iterable[Weekday], start: time, end: time) -> str:
    """Render the canonical `<days> <start>-<end>` string.

    >>> format_schedule({Weekday.TUE, Weekday.THU}, time(13, 0), time(14, 0))
    'TTH 1:00 PM-2:00 PM'
    """

    return f"{format_days(days)} {format_time(start)}-{format_time(end)}"


def parse_schedule(schedule_text: str) -> ScheduleDescriptor:
    m = _SCHEDULE_RE.match(schedule_text or "")
    if not m:
        raise InvalidSchedule(f"Unrecognised schedule {schedule_text!r}")

    return ScheduleDescriptor(
        days=tuple(parse_days(m.group("days"))),
        start=parse_time(m.group("start")),
        end=parse_time(m.group("end")),
    )
