"""Bookable time slots for a calendar date.

Weekdays run from 09:00 through 17:00 and weekends from 09:00 through 12:00,
both in 30-minute steps. The closing hour only offers its on-the-hour slot.
"""

import re
from collections.abc import Iterator
from datetime import date, datetime, time
from typing import NamedTuple

from law_office.scheduling.errors import InvalidDate, InvalidTime

SLOT_INCREMENT_MINUTES = 30
ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class OfficeHours(NamedTuple):
    open_hour: int
    close_hour: int


WEEKDAY_HOURS = OfficeHours(open_hour=9, close_hour=17)
WEEKEND_HOURS = OfficeHours(open_hour=9, close_hour=12)


def parse_slot_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip() if isinstance(value, str) else ''
    if not ISO_DATE_PATTERN.fullmatch(text):
        raise InvalidDate(f'Invalid date: {value!r}. Expected YYYY-MM-DD.')

    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDate(f'Invalid date: {value!r}. Expected YYYY-MM-DD.') from exc


def is_weekend(slot_date: date) -> bool:
    return slot_date.weekday() >= 5


def office_hours_for(slot_date: date) -> OfficeHours:
    return WEEKEND_HOURS if is_weekend(slot_date) else WEEKDAY_HOURS


def iter_slots(slot_date: str | date) -> Iterator[time]:
    hours = office_hours_for(parse_slot_date(slot_date))

    for hour in range(hours.open_hour, hours.close_hour + 1):
        for minute in range(0, 60, SLOT_INCREMENT_MINUTES):
            if hour == hours.close_hour and minute:
                break
            yield time(hour, minute)


def generate_slots(slot_date: str | date) -> list[time]:
    """Return the ordered bookable slots for ``slot_date``.

    Raises ``InvalidDate`` when the value cannot be parsed as an ISO date.
    """
    return list(iter_slots(slot_date))


def format_slot(slot: time) -> str:
    return slot.strftime('%H:%M')


def ensure_bookable_date(slot_date: str | date, today: date | None = None) -> date:
    parsed = parse_slot_date(slot_date)
    if parsed < (today or date.today()):
        raise InvalidDate('Appointments must be scheduled for today or a later date.')
    return parsed


def ensure_bookable_slot(slot_date: str | date, slot_time: time, today: date | None = None) -> tuple[date, time]:
    parsed = ensure_bookable_date(slot_date, today=today)
    if slot_time.tzinfo is not None:
        raise InvalidTime('Appointment times are office-local and must not carry a timezone offset.')

    if slot_time not in iter_slots(parsed):
        label = 'weekend' if is_weekend(parsed) else 'weekday'
        raise InvalidTime(f'{format_slot(slot_time)} is not an available {label} time for {parsed.isoformat()}.')

    return parsed, slot_time
