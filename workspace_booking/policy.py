from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Sequence

from .errors import AdvanceWindowExceeded, HolidayBlackout, PastDate, WeekendNotAllowed
from .holiday_calendar import HolidayCalendar
from .models import Employee, ResourceKind, Role

NORMAL_ADVANCE_WEEKS = 1
EXTENDED_ADVANCE_WEEKS = 12

PolicyRule = Callable[[Employee, date, date, HolidayCalendar], None]


def max_advance_weeks(role: Role) -> int:
    if role == Role.NORMAL:
        return NORMAL_ADVANCE_WEEKS
    return EXTENDED_ADVANCE_WEEKS


def check_not_in_past(employee: Employee, booking_date: date, today: date, calendar: HolidayCalendar) -> None:
    if booking_date < today:
        raise PastDate(booking_date, today)


def check_weekday(employee: Employee, booking_date: date, today: date, calendar: HolidayCalendar) -> None:
    if booking_date.weekday() >= 5:
        raise WeekendNotAllowed(booking_date)


def check_advance_window(employee: Employee, booking_date: date, today: date, calendar: HolidayCalendar) -> None:
    max_weeks = max_advance_weeks(employee.role)
    if booking_date > today + timedelta(weeks=max_weeks):
        raise AdvanceWindowExceeded(booking_date, max_weeks)


def check_holiday(employee: Employee, booking_date: date, today: date, calendar: HolidayCalendar) -> None:
    if not calendar.is_booking_allowed(booking_date):
        raise HolidayBlackout(booking_date)


DESK_RULES: tuple[PolicyRule, ...] = (check_not_in_past, check_weekday, check_advance_window, check_holiday)
SHARED_RULES: tuple[PolicyRule, ...] = (check_not_in_past, check_holiday)


class BookingPolicy:
    """Runs an ordered list of rules; the first violation is raised."""

    def __init__(self, rules: Sequence[PolicyRule], calendar: HolidayCalendar) -> None:
        self.rules = tuple(rules)
        self.calendar = calendar

    def validate(self, employee: Employee, booking_date: date, today: date) -> None:
        for rule in self.rules:
            rule(employee, booking_date, today, self.calendar)


def policy_for(kind: ResourceKind, calendar: HolidayCalendar) -> BookingPolicy:
    if kind == ResourceKind.DESK:
        return BookingPolicy(DESK_RULES, calendar)
    return BookingPolicy(SHARED_RULES, calendar)
