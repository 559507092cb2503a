from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Generic, Sequence, TypeVar

if TYPE_CHECKING:
    from .models import Reservation

T = TypeVar("T")


class BookingError(Exception):
    """Deterministic business failure; retrying the same input fails the same way."""

    code = "BOOKING_ERROR"
    retryable = False


class PolicyViolation(BookingError):
    code = "POLICY_VIOLATION"


class PastDate(PolicyViolation):
    code = "PAST_DATE"

    def __init__(self, booking_date: date, today: date) -> None:
        super().__init__(f"Cannot book {booking_date.isoformat()}: the date is in the past (today is {today.isoformat()}).")
        self.booking_date = booking_date
        self.today = today


class WeekendNotAllowed(PolicyViolation):
    code = "WEEKEND_NOT_ALLOWED"

    def __init__(self, booking_date: date) -> None:
        super().__init__(f"Cannot book {booking_date.isoformat()}: desks can only be booked Monday to Friday.")
        self.booking_date = booking_date


class AdvanceWindowExceeded(PolicyViolation):
    code = "ADVANCE_WINDOW_EXCEEDED"

    def __init__(self, booking_date: date, max_weeks: int) -> None:
        unit = "week" if max_weeks == 1 else "weeks"
        super().__init__(f"Cannot book {booking_date.isoformat()}: bookings are limited to {max_weeks} {unit} in advance.")
        self.booking_date = booking_date
        self.max_weeks = max_weeks


class HolidayBlackout(PolicyViolation):
    code = "HOLIDAY_BLACKOUT"

    def __init__(self, booking_date: date) -> None:
        super().__init__(f"Cannot book {booking_date.isoformat()}: bookings are not allowed on this holiday.")
        self.booking_date = booking_date


class EmployeeAlreadyBooked(PolicyViolation):
    code = "EMPLOYEE_ALREADY_BOOKED"

    def __init__(self, employee_id: str, booking_date: date, existing: Sequence["Reservation"] = ()) -> None:
        super().__init__(f"Employee {employee_id} already holds a desk reservation on {booking_date.isoformat()}.")
        self.employee_id = employee_id
        self.booking_date = booking_date
        self.existing = list(existing)


class PermissionDenied(PolicyViolation):
    code = "PERMISSION_DENIED"


class ResourceConflict(BookingError):
    code = "RESOURCE_CONFLICT"

    def __init__(self, resource_id: str, booking_date: date, conflicts: Sequence["Reservation"]) -> None:
        super().__init__(
            f"Resource {resource_id} is already reserved on {booking_date.isoformat()} "
            f"for {len(conflicts)} overlapping reservation(s)."
        )
        self.resource_id = resource_id
        self.booking_date = booking_date
        self.conflicts = list(conflicts)


class NotFound(BookingError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: str) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class ReservationStorageError(RuntimeError):
    """I/O or timeout failure below the engine; the whole operation may be retried."""

    retryable = True


class StoreConflictError(ReservationStorageError):
    """Raised by a store whose exclusion check rejects an overlapping write."""

    retryable = False

    def __init__(self, message: str, conflicts: Sequence["Reservation"]) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts)


@dataclass(frozen=True)
class BookingResult(Generic[T]):
    value: T | None = None
    error: BookingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str | None:
        return self.error.code if self.error is not None else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @staticmethod
    def success(value: T) -> "BookingResult[T]":
        return BookingResult(value=value)

    @staticmethod
    def failure(error: BookingError) -> "BookingResult[T]":
        return BookingResult(error=error)
