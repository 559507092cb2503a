from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
import tempfile
import traceback

from workspace_booking import BookingSettings, Employee, Interval, ResourceKind, Role, build_service


def _next_weekday(start: date) -> date:
    cursor = start
    while cursor.weekday() >= 5:
        cursor += timedelta(days=1)
    return cursor


def main() -> int:
    print("[INFO] Workspace Booking Quick Check")

    with tempfile.TemporaryDirectory() as temp_dir:
        data_dir = Path(temp_dir) / "data"
        settings = BookingSettings(
            data_dir=data_dir,
            resources={ResourceKind.DESK: ["D1", "D2"], ResourceKind.ROOM: ["R1"]},
            employees=[Employee("E", Role.NORMAL), Employee("F", Role.NORMAL)],
        )
        service = build_service(settings)
        booking_date = _next_weekday(datetime.now().date() + timedelta(days=1))
        morning = Interval.parse("09:00", "12:00")

        first = service.create_reservation(ResourceKind.DESK, "E", "D1", booking_date, interval=morning)
        print(f"[OK] E books D1 on {booking_date.isoformat()}: {first.ok}")

        second = service.create_reservation(
            ResourceKind.DESK, "F", "D1", booking_date, interval=Interval.parse("11:00", "13:00")
        )
        print(f"[OK] F books D1 11:00-13:00: {second.code}")

        third = service.create_reservation(ResourceKind.DESK, "E", "D2", booking_date, interval=morning)
        print(f"[OK] E books D2 as well: {third.code}")

        free = service.list_available(ResourceKind.DESK, booking_date, morning)
        print(f"[OK] Free desks 09:00-12:00: {', '.join(free) or '-'}")
        print(f"[OK] Reservations YAML: {(data_dir / 'reservations.yaml').resolve()}")
        print(f"[OK] Event Log YAML: {(data_dir / 'reservation_events.yaml').resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
