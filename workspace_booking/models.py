from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from .booking import Interval


class ResourceKind(str, Enum):
    DESK = "desk"
    ROOM = "room"
    EQUIPMENT = "equipment"

    @classmethod
    def parse(cls, value: "ResourceKind | str") -> "ResourceKind":
        if isinstance(value, ResourceKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as error:
            raise ValueError(f"Unknown resource kind: {value!r}") from error


_LEGACY_ROLE_NAMES = {
    "ROLE_N_EMPLOYEE": "NORMAL",
    "ROLE_P_EMPLOYEE": "PRIVILEGED",
    "ROLE_OPERATOR": "OPERATOR",
    "ROLE_ADMIN": "ADMIN",
}


class Role(str, Enum):
    NORMAL = "NORMAL"
    PRIVILEGED = "PRIVILEGED"
    OPERATOR = "OPERATOR"
    ADMIN = "ADMIN"

    @property
    def can_reassign(self) -> bool:
        """Operators and admins may move a reservation to another employee."""
        return self in (Role.OPERATOR, Role.ADMIN)

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        if isinstance(value, Role):
            return value
        name = str(value).strip().upper()
        name = _LEGACY_ROLE_NAMES.get(name, name)
        try:
            return cls(name)
        except ValueError as error:
            raise ValueError(f"Unknown role: {value!r}") from error


@dataclass(frozen=True)
class Employee:
    employee_id: str
    role: Role
    name: str | None = None


@dataclass(frozen=True)
class Holiday:
    date: date
    description: str
    booking_allowed: bool = False


@dataclass(frozen=True)
class Timeslot:
    timeslot_id: str
    start: time
    end: time
    name: str

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Timeslot start time must be earlier than end time.")

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)


@dataclass(frozen=True)
class Reservation:
    """A confirmed claim on one resource for one date and one [start, end) window.

    ``start``/``end`` are stored denormalized even when the reservation was made
    from a timeslot, so editing the timeslot later leaves existing rows alone.
    """

    reservation_id: str
    kind: ResourceKind
    employee_id: str
    resource_id: str
    date: date
    start: time
    end: time
    created_at: datetime
    updated_at: datetime
    timeslot_id: str | None = None

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Reservation start time must be earlier than end time.")

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def with_changes(self, **changes: Any) -> "Reservation":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, str]:
        payload = {
            "reservation_id": self.reservation_id,
            "kind": self.kind.value,
            "employee_id": self.employee_id,
            "resource_id": self.resource_id,
            "date": self.date.isoformat(),
            "start": self.start.isoformat(timespec="minutes"),
            "end": self.end.isoformat(timespec="minutes"),
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }
        if self.timeslot_id is not None:
            payload["timeslot_id"] = self.timeslot_id
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        return Reservation(
            reservation_id=str(data["reservation_id"]),
            kind=ResourceKind.parse(data["kind"]),
            employee_id=str(data["employee_id"]),
            resource_id=str(data["resource_id"]),
            date=parse_date(data["date"]),
            start=parse_time(data["start"]),
            end=parse_time(data["end"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
            timeslot_id=(str(data.get("timeslot_id")) if data.get("timeslot_id") is not None else None),
        )


def parse_date(value: Any) -> date:
    # PyYAML already turns unquoted ISO dates into date objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        # YAML 1.1 reads unquoted 12:30 as the base-60 integer 750
        hours, minutes = divmod(value, 60)
        return time(hours, minutes)
    return time.fromisoformat(str(value))
