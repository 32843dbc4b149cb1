"""Conversion between decimal hours and the ``H:MM`` duration text."""

from __future__ import annotations

from typing import Iterable

from .schemas import TimeEntry

DURATION_HINT = "Use H:MM (e.g., 1:30)"


class DurationError(ValueError):
    """Duration text could not be turned into hours."""


class EmptyDuration(DurationError):
    def __init__(self) -> None:
        super().__init__("Duration cannot be empty")


class InvalidFormat(DurationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid duration format. {DURATION_HINT}")
        self.value = value


def format_duration(hours: float) -> str:
    total_minutes = round(hours * 60)
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"


def parse_duration(text: str) -> float:
    value = text.strip()
    if not value:
        raise EmptyDuration()

    parts = value.split(":")
    if len(parts) != 2:
        raise InvalidFormat(value)
    hours_text, minutes_text = parts
    # isdecimal() rejects signs, so "-1:30" and "1:-5" fail here
    if not (hours_text.isdecimal() and minutes_text.isdecimal()):
        raise InvalidFormat(value)

    hours, minutes = int(hours_text), int(minutes_text)
    if minutes >= 60:
        raise InvalidFormat(value)
    return hours + minutes / 60


def daily_total(entries: Iterable[TimeEntry]) -> float:
    return sum(entry.hours for entry in entries)


__all__ = [
    "DURATION_HINT",
    "DurationError",
    "EmptyDuration",
    "InvalidFormat",
    "daily_total",
    "format_duration",
    "parse_duration",
]
