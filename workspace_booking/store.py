from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, Protocol
import threading

from .booking import find_conflicts
from .errors import ReservationStorageError, StoreConflictError
from .models import Reservation, ResourceKind

LOCK_TIMEOUT_SECONDS = 10.0

LockKey = tuple[str, str, str]


class ReservationStore(Protocol):
    def find_by_id(self, reservation_id: str) -> Reservation | None: ...

    def find_by_resource_and_date(self, kind: ResourceKind, resource_id: str, booking_date: date) -> list[Reservation]: ...

    def find_by_employee_and_date(self, kind: ResourceKind, employee_id: str, booking_date: date) -> list[Reservation]: ...

    def find_by_employee(self, kind: ResourceKind, employee_id: str) -> list[Reservation]: ...

    def find_by_date(self, kind: ResourceKind, booking_date: date) -> list[Reservation]: ...

    def save(self, reservation: Reservation) -> Reservation: ...

    def delete_by_id(self, reservation_id: str) -> Reservation | None: ...

    def exists_by_id(self, reservation_id: str) -> bool: ...


def lock_key(kind: ResourceKind, resource_id: str, booking_date: date) -> LockKey:
    return (kind.value, resource_id, booking_date.isoformat())


def reservation_lock_key(reservation_id: str) -> LockKey:
    return ("reservation", reservation_id, "")


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class ResourceLockRegistry:
    """Named mutexes for the read-conflicts-then-write window.

    An entry lives only while some thread holds or waits for it.
    """

    def __init__(self, timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[LockKey, _LockEntry] = {}

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: LockKey) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _LockEntry()
                self._locks[key] = entry
            entry.users += 1
            return entry.lock

    def _checkin(self, key: LockKey) -> None:
        with self._guard:
            entry = self._locks[key]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        # sorted acquisition so two updates swapping resources cannot deadlock
        ordered = sorted(set(keys))
        held: list[tuple[LockKey, threading.Lock]] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                if not lock.acquire(timeout=self.timeout):
                    self._checkin(key)
                    raise ReservationStorageError(f"Timed out waiting for reservation lock: {'/'.join(key)}")
                held.append((key, lock))
            yield
        finally:
            for key, lock in reversed(held):
                lock.release()
                self._checkin(key)


def check_exclusion(reservation: Reservation, existing: Iterable[Reservation]) -> None:
    """Store-side exclusion check over resource+date+interval."""
    conflicts = find_conflicts(
        reservation.resource_id,
        reservation.date,
        reservation.interval,
        [row for row in existing if row.kind == reservation.kind],
        exclude_reservation_id=reservation.reservation_id,
    )
    if conflicts:
        raise StoreConflictError(
            f"Reservation {reservation.reservation_id} overlaps an existing reservation on {reservation.resource_id}.",
            conflicts,
        )


class InMemoryReservationStore:
    def __init__(self, reservations: Iterable[Reservation] = ()) -> None:
        self._lock = threading.RLock()
        self._rows: dict[str, Reservation] = {row.reservation_id: row for row in reservations}

    def _select(self, kind: ResourceKind, **criteria: object) -> list[Reservation]:
        with self._lock:
            rows = [row for row in self._rows.values() if row.kind == kind]
        for field, value in criteria.items():
            rows = [row for row in rows if getattr(row, field) == value]
        rows.sort(key=lambda row: (row.date, row.start, row.resource_id))
        return rows

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._rows.get(reservation_id)

    def find_by_resource_and_date(self, kind: ResourceKind, resource_id: str, booking_date: date) -> list[Reservation]:
        return self._select(kind, resource_id=resource_id, date=booking_date)

    def find_by_employee_and_date(self, kind: ResourceKind, employee_id: str, booking_date: date) -> list[Reservation]:
        return self._select(kind, employee_id=employee_id, date=booking_date)

    def find_by_employee(self, kind: ResourceKind, employee_id: str) -> list[Reservation]:
        return self._select(kind, employee_id=employee_id)

    def find_by_date(self, kind: ResourceKind, booking_date: date) -> list[Reservation]:
        return self._select(kind, date=booking_date)

    def save(self, reservation: Reservation) -> Reservation:
        with self._lock:
            check_exclusion(reservation, self._rows.values())
            self._rows[reservation.reservation_id] = reservation
        return reservation

    def delete_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._rows.pop(reservation_id, None)

    def exists_by_id(self, reservation_id: str) -> bool:
        with self._lock:
            return reservation_id in self._rows
