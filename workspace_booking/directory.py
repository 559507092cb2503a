from __future__ import annotations

from typing import Iterable, Protocol

from .errors import NotFound
from .models import Employee, Role


class EmployeeDirectory(Protocol):
    def get(self, employee_id: str) -> Employee: ...

    def get_role(self, employee_id: str) -> Role: ...


class InMemoryEmployeeDirectory:
    def __init__(self, employees: Iterable[Employee] = ()) -> None:
        self._by_id = {employee.employee_id: employee for employee in employees}

    def get(self, employee_id: str) -> Employee:
        employee = self._by_id.get(employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)
        return employee

    def get_role(self, employee_id: str) -> Role:
        return self.get(employee_id).role

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._by_id
