from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Iterable, Mapping, TypeVar

if TYPE_CHECKING:
    from .models import Reservation

T = TypeVar("T", datetime, time)


@dataclass(frozen=True)
class Interval:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Interval start time must be earlier than end time.")

    @classmethod
    def parse(cls, start: str, end: str) -> "Interval":
        return cls(time.fromisoformat(start), time.fromisoformat(end))


def has_time_overlap(new_start: T, new_end: T, exist_start: T, exist_end: T) -> bool:
    """Return True when two time intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap,
    while an interval that fully contains the other always does.
    """
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise ValueError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and exist_start < new_end


def overlaps(a: Interval, b: Interval) -> bool:
    return has_time_overlap(a.start, a.end, b.start, b.end)


def can_reserve(new_start: T, new_end: T, existing_intervals: Iterable[Interval]) -> bool:
    """Return True if the requested interval does not overlap any existing interval."""
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")

    for existing in existing_intervals:
        if has_time_overlap(new_start, new_end, existing.start, existing.end):
            return False
    return True


def find_conflicts(
    resource_id: str,
    booking_date: date,
    interval: Interval,
    existing_reservations: Iterable["Reservation"],
    exclude_reservation_id: str | None = None,
) -> list["Reservation"]:
    """Return the reservations on ``resource_id``/``booking_date`` that overlap ``interval``.

    ``existing_reservations`` may contain rows for other resources or dates; they
    are ignored. ``exclude_reservation_id`` lets an update skip its own row.
    """
    conflicts = [
        reservation
        for reservation in existing_reservations
        if reservation.resource_id == resource_id
        and reservation.date == booking_date
        and reservation.reservation_id != exclude_reservation_id
        and overlaps(interval, reservation.interval)
    ]
    conflicts.sort(key=lambda reservation: (reservation.start, reservation.end, reservation.reservation_id))
    return conflicts


def is_resource_available(
    resource_id: str,
    booking_date: date,
    interval: Interval,
    existing_reservations: Iterable["Reservation"],
) -> bool:
    return not find_conflicts(resource_id, booking_date, interval, existing_reservations)


def find_available_resources(
    all_resources: Iterable[str],
    booking_date: date,
    interval: Interval,
    reservations_by_resource: Mapping[str, Iterable["Reservation"]],
) -> set[str]:
    available: set[str] = set()
    for resource_id in all_resources:
        existing = reservations_by_resource.get(resource_id, ())
        if is_resource_available(resource_id, booking_date, interval, existing):
            available.add(resource_id)
    return available
