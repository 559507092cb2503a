import tempfile
import unittest
from datetime import date, datetime, time
from pathlib import Path
from unittest import mock

from workspace_booking import Reservation, ReservationYamlRepository, ResourceKind
from workspace_booking.errors import ReservationStorageError, StoreConflictError

CREATED = datetime(2026, 10, 18, 9, 0)
BOOKING_DATE = date(2026, 10, 20)


def _reservation(
    reservation_id: str,
    resource_id: str = "D1",
    start: time = time(9, 0),
    end: time = time(12, 0),
    kind: ResourceKind = ResourceKind.DESK,
    employee_id: str = "E",
    timeslot_id: str | None = None,
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        kind=kind,
        employee_id=employee_id,
        resource_id=resource_id,
        date=BOOKING_DATE,
        start=start,
        end=end,
        created_at=CREATED,
        updated_at=CREATED,
        timeslot_id=timeslot_id,
    )


class TestReservationYamlRepository(unittest.TestCase):
    def test_creates_data_files(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            ReservationYamlRepository(data_dir)

            self.assertTrue((data_dir / "reservations.yaml").exists())
            self.assertTrue((data_dir / "reservation_events.yaml").exists())

    def test_saved_reservation_survives_reload(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            saved = ReservationYamlRepository(data_dir).save(_reservation("r1", timeslot_id="AM"))

            reloaded = ReservationYamlRepository(data_dir).find_by_id("r1")

            self.assertEqual(reloaded, saved)

    def test_queries_filter_by_kind_resource_employee_and_date(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = ReservationYamlRepository(Path(temp_dir) / "data")
            repo.save(_reservation("desk-1", resource_id="D1"))
            repo.save(_reservation("desk-2", resource_id="D2", employee_id="F"))
            repo.save(_reservation("room-1", resource_id="D1", kind=ResourceKind.ROOM))

            by_resource = repo.find_by_resource_and_date(ResourceKind.DESK, "D1", BOOKING_DATE)
            by_employee = repo.find_by_employee_and_date(ResourceKind.DESK, "E", BOOKING_DATE)
            by_date = repo.find_by_date(ResourceKind.DESK, BOOKING_DATE)

            self.assertEqual([row.reservation_id for row in by_resource], ["desk-1"])
            self.assertEqual([row.reservation_id for row in by_employee], ["desk-1"])
            self.assertEqual({row.reservation_id for row in by_date}, {"desk-1", "desk-2"})
            self.assertEqual(repo.find_by_employee(ResourceKind.ROOM, "E")[0].reservation_id, "room-1")

    def test_save_rejects_overlap_on_same_resource(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = ReservationYamlRepository(Path(temp_dir) / "data")
            repo.save(_reservation("r1"))

            with self.assertRaises(StoreConflictError) as context:
                repo.save(_reservation("r2", start=time(11, 0), end=time(13, 0), employee_id="F"))

            self.assertEqual([row.reservation_id for row in context.exception.conflicts], ["r1"])
            self.assertEqual(len(repo.get_all_reservations()), 1)

    def test_save_replaces_existing_row(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = ReservationYamlRepository(Path(temp_dir) / "data")
            original = repo.save(_reservation("r1"))

            repo.save(original.with_changes(start=time(10, 0), end=time(13, 0)))

            rows = repo.get_all_reservations()
            self.assertEqual(len(rows), 1)
            self.assertEqual(rows[0].start, time(10, 0))

    def test_delete_reservation_removes_record(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = ReservationYamlRepository(Path(temp_dir) / "data")
            repo.save(_reservation("r1"))

            deleted = repo.delete_by_id("r1")

            self.assertEqual(deleted.reservation_id, "r1")
            self.assertFalse(repo.exists_by_id("r1"))
            self.assertIsNone(repo.delete_by_id("r1"))

    def test_logs_create_update_cancel_events(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = ReservationYamlRepository(Path(temp_dir) / "data")
            created = repo.save(_reservation("r1"))
            repo.save(created.with_changes(end=time(13, 0)))
            repo.delete_by_id("r1")

            event_types = [event["event_type"] for event in repo.get_events()]
            self.assertEqual(event_types, ["RESERVATION_CREATED", "RESERVATION_UPDATED", "RESERVATION_CANCELLED"])
            self.assertEqual(repo.get_events()[-1]["payload"]["window"], "09:00-13:00")

            contents = (Path(temp_dir) / "data" / "reservation_events.yaml").read_text(encoding="utf-8")
            self.assertIn("RESERVATION_CREATED", contents)

    def test_corrupted_yaml_is_recovered(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            repo = ReservationYamlRepository(data_dir)
            reservations_path = data_dir / "reservations.yaml"
            reservations_path.write_text("this: [is: invalid", encoding="utf-8")

            rows = repo.get_all_reservations()

            self.assertEqual(rows, [])
            self.assertIn("[]", reservations_path.read_text(encoding="utf-8"))
            self.assertEqual(len(list(data_dir.glob("reservations.corrupt.*.yaml"))), 1)
            self.assertIn("YAML_RECOVERED", [event["event_type"] for event in repo.get_events()])

    def test_invalid_rows_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            repo = ReservationYamlRepository(data_dir)
            repo.save(_reservation("r1"))
            contents = (data_dir / "reservations.yaml").read_text(encoding="utf-8")
            (data_dir / "reservations.yaml").write_text(contents + "- just a string\n- {reservation_id: broken}\n", encoding="utf-8")

            rows = repo.get_all_reservations()

            self.assertEqual([row.reservation_id for row in rows], ["r1"])
            skipped = [event for event in repo.get_events() if event["event_type"] == "YAML_ROW_SKIPPED"]
            self.assertEqual(len(skipped), 2)

    def test_write_failure_becomes_storage_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            repo = ReservationYamlRepository(data_dir)

            with mock.patch.object(Path, "replace", side_effect=OSError("read-only file system")):
                with self.assertRaises(ReservationStorageError) as context:
                    repo.save(_reservation("r1"))

            self.assertTrue(context.exception.retryable)
            self.assertIsInstance(context.exception.__cause__, OSError)
            self.assertEqual(repo.get_all_reservations(), [])
            self.assertEqual(list(data_dir.glob("*.tmp")), [])


if __name__ == "__main__":
    unittest.main()
