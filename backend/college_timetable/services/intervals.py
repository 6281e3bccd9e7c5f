"""Weekly time ranges and the overlap rule every conflict check is built on.

A slot is a standing weekly recurrence: a weekday plus a start and end time.
Ranges are half-open, ``[start, end)``, so a lecture ending at 10:00 does not
clash with one starting at 10:00.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, TypeVar

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
# Postgres TIME columns and older clients send seconds as well.
TIME_WITH_SECONDS_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"


DAY_VALUES: tuple[str, ...] = tuple(day.value for day in Weekday)
DAY_INDEX: dict[str, int] = {day: index for index, day in enumerate(DAY_VALUES, start=1)}


def weekday_index(day: str) -> int:
    try:
        return DAY_INDEX[day]
    except KeyError:
        raise ValueError(f"Invalid day. Must be one of: {', '.join(DAY_VALUES)}") from None


def normalize_day(value: str) -> str:
    day = value.strip()
    if day not in DAY_INDEX:
        raise ValueError(f"Invalid day. Must be one of: {', '.join(DAY_VALUES)}")
    return day


def normalize_time(value: str) -> str:
    text = value.strip()
    if TIME_WITH_SECONDS_PATTERN.match(text):
        text = text[:5]
    if not TIME_PATTERN.match(text):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return text


def parse_time_to_minutes(value: str) -> int:
    hours, minutes = normalize_time(value).split(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class TimeRange:
    day: str
    start_time: str
    end_time: str

    @classmethod
    def build(cls, day: str, start_time: str, end_time: str) -> "TimeRange":
        """Normalize and validate raw input; raises ``ValueError`` on bad input."""
        time_range = cls(
            day=normalize_day(day),
            start_time=normalize_time(start_time),
            end_time=normalize_time(end_time),
        )
        if time_range.start_minutes >= time_range.end_minutes:
            raise ValueError("End time must be after start time")
        return time_range

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)

    @property
    def label(self) -> str:
        return f"{self.start_time} - {self.end_time}"


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    if a.day != b.day:
        return False
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def ordering_key(day: str, start_time: str) -> tuple[int, str]:
    return weekday_index(day), start_time


T = TypeVar("T")


def group_by_day(rows: Iterable[T], *, day_of=lambda row: row["day"]) -> dict[str, list[T]]:
    """Bucket rows into a fixed Monday..Saturday mapping, preserving input order."""
    grouped: dict[str, list[T]] = {day: [] for day in DAY_VALUES}
    for row in rows:
        day = day_of(row)
        if day in grouped:
            grouped[day].append(row)
    return grouped
