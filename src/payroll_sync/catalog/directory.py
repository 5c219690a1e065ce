"""Employee lookup by id or name against the payroll directory."""

from __future__ import annotations

from collections.abc import Iterable

from payroll_sync.catalog.types import CatalogEmployee
from payroll_sync.names import find_unique_match, normalize_name


class EmployeeDirectory:
    """Active employees of one sync run, indexed for matching.

    Names are matched exactly after normalization first; a loose match
    (same last name, compatible first name) is only accepted when it
    identifies exactly one employee.
    """

    def __init__(self, employees: Iterable[CatalogEmployee]):
        self.employees = [e for e in employees if e.is_active]
        self._by_id = {e.employee_id: e for e in self.employees}
        self._by_name: dict[str, CatalogEmployee] = {}
        for employee in self.employees:
            self._by_name.setdefault(employee.normalized_name, employee)

    def __len__(self) -> int:
        return len(self.employees)

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._by_id

    def get(self, employee_id: str | None) -> CatalogEmployee | None:
        if not employee_id:
            return None
        return self._by_id.get(employee_id)

    def find_by_name(self, name: str | None) -> CatalogEmployee | None:
        key = normalize_name(name)
        if not key:
            return None
        if key in self._by_name:
            return self._by_name[key]
        match = find_unique_match(key, self._by_name)
        return self._by_name[match] if match is not None else None

    def resolve(self, employee_id: str | None, name: str | None) -> CatalogEmployee | None:
        """Match by external id when known, else by name."""
        return self.get(employee_id) or self.find_by_name(name)
