from __future__ import annotations

import os
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

from workspace_booking import BookingResult, BookingService, Interval, build_service, load_settings

mcp = FastMCP(
    "Workspace Booking MCP Server",
    instructions="Reserve desks, rooms and equipment and look up free resources.",
    json_response=True,
)

SETTINGS = load_settings(os.environ.get("WORKSPACE_BOOKING_SETTINGS", "booking.yaml"))
SERVICE: BookingService = build_service(SETTINGS)


def _result_payload(result: BookingResult[Any]) -> dict[str, Any]:
    if result.ok:
        value = result.value
        return {"ok": True, "reservation": value.to_dict() if value is not None else None}

    payload: dict[str, Any] = {"ok": False, "code": result.code, "message": str(result.error)}
    conflicts = getattr(result.error, "conflicts", None)
    if conflicts:
        payload["conflicts"] = [row.to_dict() for row in conflicts]
    return payload


@mcp.resource("booking://resources/{kind}")
async def list_resources(kind: str) -> list[str]:
    """List the configured resource ids of one kind (desk, room, equipment)."""
    return list(SERVICE.manager(kind).resources)


@mcp.tool()
def list_available(kind: str, booking_date: str, start: str, end: str) -> list[str]:
    """Return the resources of a kind that are free on a date between start and end (HH:MM)."""
    return SERVICE.list_available(kind, date.fromisoformat(booking_date), Interval.parse(start, end))


@mcp.tool()
def create_reservation(
    kind: str,
    employee_id: str,
    resource_id: str,
    booking_date: str,
    start: str | None = None,
    end: str | None = None,
    timeslot_id: str | None = None,
) -> dict[str, Any]:
    """Reserve a resource for a time window or a named timeslot."""
    interval = Interval.parse(start, end) if start and end else None
    result = SERVICE.create_reservation(
        kind,
        employee_id,
        resource_id,
        date.fromisoformat(booking_date),
        interval=interval,
        timeslot_id=timeslot_id,
    )
    return _result_payload(result)


@mcp.tool()
def cancel_reservation(kind: str, reservation_id: str) -> dict[str, Any]:
    """Cancel a reservation by id."""
    return _result_payload(SERVICE.cancel_reservation(kind, reservation_id))


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
