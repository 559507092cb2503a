from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import yaml

from .directory import InMemoryEmployeeDirectory
from .holiday_calendar import HolidayCalendar, InMemoryHolidayStore, country_holidays
from .lifecycle import STRATEGIES, BookingLifecycleManager
from .models import Employee, Holiday, ResourceKind, Role, Timeslot, parse_date, parse_time
from .policy import policy_for
from .service import BookingService
from .store import ReservationStore, ResourceLockRegistry
from .timeslots import DEFAULT_TIMESLOTS, InMemoryTimeslotStore, TimeslotCatalog
from .yaml_store import ReservationYamlRepository

DEFAULT_SETTINGS_FILE = "booking.yaml"


@dataclass
class BookingSettings:
    data_dir: Path = Path("data")
    resources: dict[ResourceKind, list[str]] = field(default_factory=dict)
    employees: list[Employee] = field(default_factory=list)
    timeslots: list[Timeslot] = field(default_factory=lambda: list(DEFAULT_TIMESLOTS))
    holidays: list[Holiday] = field(default_factory=list)
    holiday_country: str | None = None
    holiday_subdivision: str | None = None

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "BookingSettings":
        if not isinstance(data, dict):
            raise ValueError("settings must be a mapping")

        resources: dict[ResourceKind, list[str]] = {}
        for kind_name, resource_ids in (data.get("resources") or {}).items():
            if not isinstance(resource_ids, list):
                raise ValueError(f"resources.{kind_name} must be a list")
            resources[ResourceKind.parse(kind_name)] = [str(resource_id) for resource_id in resource_ids]

        employees = [
            Employee(employee_id=str(row["id"]), role=Role.parse(row.get("role", Role.NORMAL)), name=row.get("name"))
            for row in _rows(data, "employees")
        ]

        timeslots = list(DEFAULT_TIMESLOTS)
        if "timeslots" in data:
            timeslots = [
                Timeslot(
                    timeslot_id=str(row["id"]),
                    start=parse_time(row["start"]),
                    end=parse_time(row["end"]),
                    name=str(row.get("name", row["id"])),
                )
                for row in _rows(data, "timeslots")
            ]

        holidays = [
            Holiday(
                date=parse_date(row["date"]),
                description=str(row.get("description", "")),
                booking_allowed=bool(row.get("booking_allowed", False)),
            )
            for row in _rows(data, "holidays")
        ]

        return BookingSettings(
            data_dir=Path(str(data.get("data_dir", "data"))),
            resources=resources,
            employees=employees,
            timeslots=timeslots,
            holidays=holidays,
            holiday_country=data.get("holiday_country"),
            holiday_subdivision=data.get("holiday_subdivision"),
        )


def _rows(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    rows = data.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValueError(f"{key} must be a list of mappings")
    return rows


def load_settings(path: str | Path = DEFAULT_SETTINGS_FILE) -> BookingSettings:
    settings_path = Path(path)
    if not settings_path.exists():
        return BookingSettings()

    try:
        payload = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as error:
        raise ValueError(f"Invalid settings file: {settings_path}") from error

    try:
        return BookingSettings.from_dict(payload or {})
    except KeyError as error:
        raise ValueError(f"Missing key {error} in settings file: {settings_path}") from error


def build_holiday_store(settings: BookingSettings, today: datetime | None = None) -> InMemoryHolidayStore:
    store = InMemoryHolidayStore()
    if settings.holiday_country:
        year = (today or datetime.now()).year
        # the longest advance window can reach into next year
        imported = country_holidays(
            settings.holiday_country,
            years=[year, year + 1],
            subdivision=settings.holiday_subdivision,
        )
        for holiday in imported:
            store.add(holiday)
    for holiday in settings.holidays:
        store.add(holiday)
    return store


def build_service(
    settings: BookingSettings,
    store: ReservationStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> BookingService:
    effective_clock: Callable[[], datetime] = clock or datetime.now
    reservation_store = store if store is not None else ReservationYamlRepository(settings.data_dir)
    calendar = HolidayCalendar(build_holiday_store(settings, effective_clock()))
    directory = InMemoryEmployeeDirectory(settings.employees)
    timeslots = TimeslotCatalog(InMemoryTimeslotStore(settings.timeslots))
    locks = ResourceLockRegistry()

    managers = {
        kind: BookingLifecycleManager(
            strategy=STRATEGIES[kind],
            store=reservation_store,
            policy=policy_for(kind, calendar),
            directory=directory,
            timeslots=timeslots,
            resources=list(settings.resources.get(kind, [])),
            locks=locks,
            clock=effective_clock,
        )
        for kind in ResourceKind
    }
    return BookingService(managers)
