from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol

import holidays as pyholidays

from .models import Holiday

_COUNTRY_HOLIDAY_CACHE: dict[tuple[str, str | None, int], dict[date, str]] = {}


class HolidayStore(Protocol):
    def find_by_date(self, target_date: date) -> Holiday | None: ...


class InMemoryHolidayStore:
    def __init__(self, holidays: Iterable[Holiday] = ()) -> None:
        self._by_date: dict[date, Holiday] = {}
        for holiday in holidays:
            self.add(holiday)

    def add(self, holiday: Holiday) -> None:
        # an explicit record replaces an imported one for the same date
        self._by_date[holiday.date] = holiday

    def find_by_date(self, target_date: date) -> Holiday | None:
        return self._by_date.get(target_date)

    def all(self) -> list[Holiday]:
        return sorted(self._by_date.values(), key=lambda holiday: holiday.date)


class HolidayCalendar:
    """Answers whether bookings are allowed on a date.

    A date without a holiday record is a normal working day. A date with a record
    is bookable only if the record says so.
    """

    def __init__(self, store: HolidayStore) -> None:
        self.store = store

    def is_booking_allowed(self, target_date: date) -> bool:
        holiday = self.store.find_by_date(target_date)
        if holiday is None:
            return True
        return holiday.booking_allowed


def country_holidays(
    country: str,
    years: Iterable[int],
    subdivision: str | None = None,
    booking_allowed: bool = False,
) -> list[Holiday]:
    """Build holiday records for a country's public holidays."""
    records: list[Holiday] = []
    for year in sorted(set(years)):
        for holiday_date, name in _load_country_year(country, subdivision, year).items():
            records.append(Holiday(date=holiday_date, description=name, booking_allowed=booking_allowed))
    records.sort(key=lambda holiday: holiday.date)
    return records


def _load_country_year(country: str, subdivision: str | None, year: int) -> dict[date, str]:
    key = (country.upper(), subdivision, year)
    if key not in _COUNTRY_HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(country.upper(), subdiv=subdivision, years=[year])
        _COUNTRY_HOLIDAY_CACHE[key] = {day: str(name) for day, name in holiday_map.items()}
    return _COUNTRY_HOLIDAY_CACHE[key]
