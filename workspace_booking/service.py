from __future__ import annotations

from datetime import date
from typing import Any, Callable, Mapping, TypeVar

from .booking import Interval
from .errors import BookingError, BookingResult
from .lifecycle import BookingLifecycleManager, ReservationChanges, ReservationRequest
from .models import Reservation, ResourceKind, Role

T = TypeVar("T")

_UPDATABLE_FIELDS = {"employee_id", "resource_id", "date", "interval", "timeslot_id"}


class BookingService:
    """In-process entry point for the outer layers.

    Business failures come back as a failed ``BookingResult``. Storage failures
    (``ReservationStorageError``) are raised so the caller can retry the whole
    operation.
    """

    def __init__(self, managers: Mapping[ResourceKind, BookingLifecycleManager]) -> None:
        self.managers = dict(managers)

    def manager(self, kind: ResourceKind | str) -> BookingLifecycleManager:
        resolved = ResourceKind.parse(kind)
        try:
            return self.managers[resolved]
        except KeyError as error:
            raise ValueError(f"No booking manager configured for {resolved.value}") from error

    @staticmethod
    def _run(operation: Callable[[], T]) -> BookingResult[T]:
        try:
            return BookingResult.success(operation())
        except BookingError as error:
            return BookingResult.failure(error)

    def create_reservation(
        self,
        kind: ResourceKind | str,
        employee_id: str,
        resource_id: str,
        booking_date: date,
        interval: Interval | None = None,
        timeslot_id: str | None = None,
    ) -> BookingResult[Reservation]:
        manager = self.manager(kind)
        request = ReservationRequest(
            employee_id=employee_id,
            resource_id=resource_id,
            date=booking_date,
            interval=interval,
            timeslot_id=timeslot_id,
        )
        return self._run(lambda: manager.create(request))

    def update_reservation(
        self,
        kind: ResourceKind | str,
        reservation_id: str,
        caller_role: Role | None = None,
        **fields: Any,
    ) -> BookingResult[Reservation]:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        manager = self.manager(kind)
        changes = ReservationChanges(**fields)
        return self._run(lambda: manager.update(reservation_id, changes, caller_role=caller_role))

    def cancel_reservation(self, kind: ResourceKind | str, reservation_id: str) -> BookingResult[None]:
        manager = self.manager(kind)

        def cancel() -> None:
            manager.cancel(reservation_id)

        return self._run(cancel)

    def get_reservation(self, kind: ResourceKind | str, reservation_id: str) -> BookingResult[Reservation]:
        manager = self.manager(kind)
        return self._run(lambda: manager.get(reservation_id))

    def list_available(self, kind: ResourceKind | str, booking_date: date, interval: Interval) -> list[str]:
        return self.manager(kind).find_available(booking_date, interval)

    def is_available(self, kind: ResourceKind | str, resource_id: str, booking_date: date, interval: Interval) -> bool:
        return self.manager(kind).is_available(resource_id, booking_date, interval)

    def booking_history(self, kind: ResourceKind | str, employee_id: str) -> list[Reservation]:
        return self.manager(kind).history_for_employee(employee_id)
