from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from .booking import Interval, find_available_resources, find_conflicts
from .directory import EmployeeDirectory
from .errors import EmployeeAlreadyBooked, NotFound, PermissionDenied, ResourceConflict, StoreConflictError
from .models import Reservation, ResourceKind, Role
from .policy import BookingPolicy
from .store import LockKey, ReservationStore, ResourceLockRegistry, lock_key, reservation_lock_key
from .timeslots import TimeslotCatalog

HISTORY_WEEKS = 2

ExtraRule = Callable[[ReservationStore, ResourceKind, str, date, str | None], None]


def check_one_desk_per_day(
    store: ReservationStore,
    kind: ResourceKind,
    employee_id: str,
    booking_date: date,
    exclude_reservation_id: str | None,
) -> None:
    existing = [
        row
        for row in store.find_by_employee_and_date(kind, employee_id, booking_date)
        if row.reservation_id != exclude_reservation_id
    ]
    if existing:
        raise EmployeeAlreadyBooked(employee_id, booking_date, existing)


@dataclass(frozen=True)
class KindStrategy:
    kind: ResourceKind
    extra_rules: tuple[ExtraRule, ...] = ()
    one_per_employee_per_day: bool = False

    def lock_keys(self, resource_id: str, employee_id: str, booking_date: date) -> list[LockKey]:
        keys = [lock_key(self.kind, resource_id, booking_date)]
        if self.one_per_employee_per_day:
            keys.append((f"{self.kind.value}:employee", employee_id, booking_date.isoformat()))
        return keys


DESK_STRATEGY = KindStrategy(ResourceKind.DESK, extra_rules=(check_one_desk_per_day,), one_per_employee_per_day=True)
ROOM_STRATEGY = KindStrategy(ResourceKind.ROOM)
EQUIPMENT_STRATEGY = KindStrategy(ResourceKind.EQUIPMENT)

STRATEGIES = {strategy.kind: strategy for strategy in (DESK_STRATEGY, ROOM_STRATEGY, EQUIPMENT_STRATEGY)}


@dataclass(frozen=True)
class ReservationRequest:
    employee_id: str
    resource_id: str
    date: date
    interval: Interval | None = None
    timeslot_id: str | None = None


@dataclass(frozen=True)
class ReservationChanges:
    employee_id: str | None = None
    resource_id: str | None = None
    date: date | None = None
    interval: Interval | None = None
    timeslot_id: str | None = None


@dataclass
class BookingLifecycleManager:
    """Create, update and cancel reservations of one resource kind.

    Every operation validates completely before it writes. The conflict read and
    the write happen while holding the lock for the affected resource and date,
    so of two overlapping requests only one is committed.
    """

    strategy: KindStrategy
    store: ReservationStore
    policy: BookingPolicy
    directory: EmployeeDirectory
    timeslots: TimeslotCatalog
    resources: Sequence[str]
    locks: ResourceLockRegistry = field(default_factory=ResourceLockRegistry)
    clock: Callable[[], datetime] = datetime.now

    @property
    def kind(self) -> ResourceKind:
        return self.strategy.kind

    def _resolve_window(self, interval: Interval | None, timeslot_id: str | None) -> Interval:
        if interval is not None and timeslot_id is not None:
            raise ValueError("Pass either an interval or a timeslot_id, not both.")
        if timeslot_id is not None:
            return self.timeslots.resolve(timeslot_id)
        if interval is None:
            raise ValueError("An interval or a timeslot_id is required.")
        return interval

    def _require_resource(self, resource_id: str) -> None:
        if resource_id not in self.resources:
            raise NotFound(self.kind.value.capitalize(), resource_id)

    def _load(self, reservation_id: str) -> Reservation:
        reservation = self.store.find_by_id(reservation_id)
        if reservation is None or reservation.kind != self.kind:
            raise NotFound("Reservation", reservation_id)
        return reservation

    def _check_extra_rules(self, employee_id: str, booking_date: date, exclude_reservation_id: str | None) -> None:
        for rule in self.strategy.extra_rules:
            rule(self.store, self.kind, employee_id, booking_date, exclude_reservation_id)

    def _check_conflicts(
        self,
        resource_id: str,
        booking_date: date,
        interval: Interval,
        exclude_reservation_id: str | None = None,
    ) -> None:
        existing = self.store.find_by_resource_and_date(self.kind, resource_id, booking_date)
        conflicts = find_conflicts(resource_id, booking_date, interval, existing, exclude_reservation_id)
        if conflicts:
            raise ResourceConflict(resource_id, booking_date, conflicts)

    def _persist(self, reservation: Reservation) -> Reservation:
        try:
            return self.store.save(reservation)
        except StoreConflictError as error:
            raise ResourceConflict(reservation.resource_id, reservation.date, error.conflicts) from error

    def create(self, request: ReservationRequest) -> Reservation:
        interval = self._resolve_window(request.interval, request.timeslot_id)
        self._require_resource(request.resource_id)
        employee = self.directory.get(request.employee_id)
        now = self.clock()
        self.policy.validate(employee, request.date, now.date())

        keys = self.strategy.lock_keys(request.resource_id, request.employee_id, request.date)
        with self.locks.hold(*keys):
            self._check_extra_rules(request.employee_id, request.date, None)
            self._check_conflicts(request.resource_id, request.date, interval)
            reservation = Reservation(
                reservation_id=str(uuid4()),
                kind=self.kind,
                employee_id=request.employee_id,
                resource_id=request.resource_id,
                date=request.date,
                start=interval.start,
                end=interval.end,
                created_at=now,
                updated_at=now,
                timeslot_id=request.timeslot_id,
            )
            return self._persist(reservation)

    def update(self, reservation_id: str, changes: ReservationChanges, caller_role: Role | None = None) -> Reservation:
        # the row is read and merged under its own lock, so racing updates of one id apply in turn
        with self.locks.hold(reservation_lock_key(reservation_id)):
            current = self._load(reservation_id)

            new_employee_id = changes.employee_id if changes.employee_id is not None else current.employee_id
            if new_employee_id != current.employee_id and (caller_role is None or not caller_role.can_reassign):
                raise PermissionDenied("Only operators and admins can move a reservation to another employee.")

            if changes.timeslot_id is not None or changes.interval is not None:
                interval = self._resolve_window(changes.interval, changes.timeslot_id)
                timeslot_id = changes.timeslot_id
            else:
                interval = current.interval
                timeslot_id = current.timeslot_id
            new_resource_id = changes.resource_id if changes.resource_id is not None else current.resource_id
            new_date = changes.date if changes.date is not None else current.date

            self._require_resource(new_resource_id)
            employee = self.directory.get(new_employee_id)
            now = self.clock()
            self.policy.validate(employee, new_date, now.date())

            keys = self.strategy.lock_keys(current.resource_id, current.employee_id, current.date)
            keys += self.strategy.lock_keys(new_resource_id, new_employee_id, new_date)
            with self.locks.hold(*keys):
                self._check_extra_rules(new_employee_id, new_date, current.reservation_id)
                self._check_conflicts(new_resource_id, new_date, interval, current.reservation_id)
                updated = current.with_changes(
                    employee_id=new_employee_id,
                    resource_id=new_resource_id,
                    date=new_date,
                    start=interval.start,
                    end=interval.end,
                    timeslot_id=timeslot_id,
                    updated_at=now,
                )
                return self._persist(updated)

    def cancel(self, reservation_id: str) -> Reservation:
        with self.locks.hold(reservation_lock_key(reservation_id)):
            current = self._load(reservation_id)
            keys = self.strategy.lock_keys(current.resource_id, current.employee_id, current.date)
            with self.locks.hold(*keys):
                deleted = self.store.delete_by_id(reservation_id)
        if deleted is None:
            raise NotFound("Reservation", reservation_id)
        return deleted

    def get(self, reservation_id: str) -> Reservation:
        return self._load(reservation_id)

    def find_available(self, booking_date: date, interval: Interval, resource_id_hint: str | None = None) -> list[str]:
        if resource_id_hint is not None:
            if resource_id_hint not in self.resources:
                return []
            candidates: Iterable[str] = [resource_id_hint]
        else:
            candidates = self.resources

        by_resource: dict[str, list[Reservation]] = {}
        for row in self.store.find_by_date(self.kind, booking_date):
            by_resource.setdefault(row.resource_id, []).append(row)

        available = find_available_resources(candidates, booking_date, interval, by_resource)
        return [resource_id for resource_id in candidates if resource_id in available]

    def is_available(self, resource_id: str, booking_date: date, interval: Interval) -> bool:
        return bool(self.find_available(booking_date, interval, resource_id_hint=resource_id))

    def list_for_employee(self, employee_id: str) -> list[Reservation]:
        return self.store.find_by_employee(self.kind, employee_id)

    def history_for_employee(self, employee_id: str, weeks: int = HISTORY_WEEKS) -> list[Reservation]:
        """Past reservations of the last ``weeks`` weeks, newest first."""
        today = self.clock().date()
        cutoff = today - timedelta(weeks=weeks)
        history = [row for row in self.list_for_employee(employee_id) if cutoff < row.date < today]
        history.sort(key=lambda row: (row.date, row.start), reverse=True)
        return history
