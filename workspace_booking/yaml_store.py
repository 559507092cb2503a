from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any
import shutil
import threading

import yaml

from .errors import ReservationStorageError
from .models import Reservation, ResourceKind
from .store import check_exclusion


class ReservationYamlRepository:
    """Reservation store backed by a YAML list, with a YAML event log beside it.

    Every write replaces the file atomically. A corrupted file is backed up and
    reset to an empty list instead of failing every later read.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = threading.RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.reservations_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise ReservationStorageError(f"Failed to prepare data directory: {self.base_dir}") from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._write_yaml_list(path, [])
            return []
        except (UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []
        except OSError as error:
            raise ReservationStorageError(f"Cannot read {path}") from error

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError(f"expected a YAML list, got {type(payload).__name__}"))
            return []

        mappings = [row for row in payload if isinstance(row, dict)]
        if path != self.log_file:
            for index, row in enumerate(payload):
                if not isinstance(row, dict):
                    self._skip_row(path, index, f"expected a mapping, got {type(row).__name__}")
        return mappings

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        staging = path.with_name(path.name + ".tmp")
        text = yaml.safe_dump(rows, allow_unicode=True, sort_keys=False)
        try:
            staging.write_text(text, encoding="utf-8")
            staging.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Cannot write {path}") from error
        finally:
            staging.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup: Path | None = path.with_name(f"{path.stem}.corrupt.{stamp}{path.suffix}")
        try:
            shutil.copy2(path, backup)
        except OSError:
            backup = None

        self._write_yaml_list(path, [])
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                file=path.name,
                backup=backup.name if backup else None,
                reason=str(error),
            )

    def _skip_row(self, path: Path, index: int, reason: str) -> None:
        self._log_event("YAML_ROW_SKIPPED", file=path.name, index=index, reason=reason)

    def _log_event(self, event_type: str, at: datetime | None = None, **details: Any) -> None:
        entry = {
            "event_time": (at or datetime.now()).isoformat(timespec="seconds"),
            "event_type": event_type,
            "payload": details,
        }
        self._write_yaml_list(self.log_file, [*self._read_yaml_list(self.log_file), entry])

    def _load_all(self) -> list[Reservation]:
        records: list[Reservation] = []
        for index, row in enumerate(self._read_yaml_list(self.reservations_file)):
            try:
                records.append(Reservation.from_dict(row))
            except (KeyError, TypeError, ValueError) as error:
                self._skip_row(self.reservations_file, index, f"invalid reservation row: {error}")
        return records

    def _select(self, kind: ResourceKind, **criteria: object) -> list[Reservation]:
        with self._lock:
            rows = [row for row in self._load_all() if row.kind == kind]
        for field, value in criteria.items():
            rows = [row for row in rows if getattr(row, field) == value]
        rows.sort(key=lambda row: (row.date, row.start, row.resource_id))
        return rows

    def get_all_reservations(self) -> list[Reservation]:
        with self._lock:
            return self._load_all()

    def get_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read_yaml_list(self.log_file)

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            for row in self._load_all():
                if row.reservation_id == reservation_id:
                    return row
        return None

    def find_by_resource_and_date(self, kind: ResourceKind, resource_id: str, booking_date: date) -> list[Reservation]:
        return self._select(kind, resource_id=resource_id, date=booking_date)

    def find_by_employee_and_date(self, kind: ResourceKind, employee_id: str, booking_date: date) -> list[Reservation]:
        return self._select(kind, employee_id=employee_id, date=booking_date)

    def find_by_employee(self, kind: ResourceKind, employee_id: str) -> list[Reservation]:
        return self._select(kind, employee_id=employee_id)

    def find_by_date(self, kind: ResourceKind, booking_date: date) -> list[Reservation]:
        return self._select(kind, date=booking_date)

    def exists_by_id(self, reservation_id: str) -> bool:
        return self.find_by_id(reservation_id) is not None

    def save(self, reservation: Reservation) -> Reservation:
        with self._lock:
            existing = self._load_all()
            check_exclusion(reservation, existing)

            rows = [row.to_dict() for row in existing if row.reservation_id != reservation.reservation_id]
            is_update = len(rows) != len(existing)
            rows.append(reservation.to_dict())
            self._write_yaml_list(self.reservations_file, rows)

            self._log_event(
                "RESERVATION_UPDATED" if is_update else "RESERVATION_CREATED",
                reservation.updated_at,
                **_event_details(reservation),
            )
        return reservation

    def delete_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            existing = self._load_all()
            deleted = next((row for row in existing if row.reservation_id == reservation_id), None)
            if deleted is None:
                return None

            rows = [row.to_dict() for row in existing if row.reservation_id != reservation_id]
            self._write_yaml_list(self.reservations_file, rows)
            self._log_event("RESERVATION_CANCELLED", **_event_details(deleted))
        return deleted


def _event_details(reservation: Reservation) -> dict[str, Any]:
    return {
        "reservation_id": reservation.reservation_id,
        "kind": reservation.kind.value,
        "employee_id": reservation.employee_id,
        "resource_id": reservation.resource_id,
        "date": reservation.date.isoformat(),
        "window": f"{reservation.start:%H:%M}-{reservation.end:%H:%M}",
    }
