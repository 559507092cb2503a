from __future__ import annotations

from datetime import time
from typing import Iterable, Protocol

from .booking import Interval
from .errors import NotFound
from .models import Timeslot

DEFAULT_TIMESLOTS = (
    Timeslot("AM", time(8, 0), time(12, 30), "Morning"),
    Timeslot("PM", time(12, 30), time(17, 0), "Afternoon"),
    Timeslot("ALL_DAY", time(8, 0), time(17, 0), "Full day"),
)


class TimeslotStore(Protocol):
    def find_by_id(self, timeslot_id: str) -> Timeslot | None: ...


class InMemoryTimeslotStore:
    def __init__(self, timeslots: Iterable[Timeslot] = DEFAULT_TIMESLOTS) -> None:
        self._by_id = {timeslot.timeslot_id: timeslot for timeslot in timeslots}

    def find_by_id(self, timeslot_id: str) -> Timeslot | None:
        return self._by_id.get(timeslot_id)

    def all(self) -> list[Timeslot]:
        return sorted(self._by_id.values(), key=lambda timeslot: (timeslot.start, timeslot.end))


class TimeslotCatalog:
    def __init__(self, store: TimeslotStore) -> None:
        self.store = store

    def get(self, timeslot_id: str) -> Timeslot:
        timeslot = self.store.find_by_id(timeslot_id)
        if timeslot is None:
            raise NotFound("Timeslot", timeslot_id)
        return timeslot

    def resolve(self, timeslot_id: str) -> Interval:
        return self.get(timeslot_id).interval
