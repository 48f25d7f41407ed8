"""Typed view over the rows produced by the employee ``$lookup`` join.

The join output has no fixed schema: the looked-up arrays may be missing,
empty, hold non-document elements, or come back as tuples depending on the
driver's document class. Every accessor here is total and degrades to an
empty string or zero instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from staff_api.models.employee import EmployeeFull

DEPARTMENT_FIELD = "department_info"
DEVELOPER_FIELD = "developer_info"
TESTER_FIELD = "tester_info"


def int_from_any(value: Any) -> int:
    """Coerce a BSON numeric (int32, int64, double) to ``int``; anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value)
    return 0


def _string_field(item: Any, field_name: str) -> str | None:
    if not isinstance(item, Mapping):
        return None
    value = item.get(field_name)
    return value if isinstance(value, str) else None


def _array(row: Any, array_name: str) -> list[Any]:
    if not isinstance(row, Mapping):
        return []
    value = row.get(array_name)
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def first_string_field(row: Any, array_name: str, field_name: str) -> str:
    """Return ``row[array_name][0][field_name]`` when it is a string, else ``""``."""
    items = _array(row, array_name)
    if not items:
        return ""
    return _string_field(items[0], field_name) or ""


class DepartmentCandidate(BaseModel):
    name: str | None = None


class RoleCandidate(BaseModel):
    language: str | None = None


class JoinedEmployeeRow(BaseModel):
    id: int = 0
    name: str = ""
    department_candidates: list[DepartmentCandidate] = []
    developer_candidates: list[RoleCandidate] = []
    tester_candidates: list[RoleCandidate] = []

    @classmethod
    def from_document(cls, doc: Any) -> JoinedEmployeeRow:
        if not isinstance(doc, Mapping):
            return cls()

        name = doc.get("name")
        return cls(
            id=int_from_any(doc.get("id")),
            name=name if isinstance(name, str) else "",
            department_candidates=[
                DepartmentCandidate(name=_string_field(item, "name"))
                for item in _array(doc, DEPARTMENT_FIELD)
            ],
            developer_candidates=[
                RoleCandidate(language=_string_field(item, "language"))
                for item in _array(doc, DEVELOPER_FIELD)
            ],
            tester_candidates=[
                RoleCandidate(language=_string_field(item, "language"))
                for item in _array(doc, TESTER_FIELD)
            ],
        )

    @property
    def department(self) -> str:
        if not self.department_candidates:
            return ""
        return self.department_candidates[0].name or ""

    @property
    def language(self) -> str:
        # No stored role field: a developer row wins, a tester row is the fallback.
        if self.developer_candidates and self.developer_candidates[0].language:
            return self.developer_candidates[0].language
        if self.tester_candidates:
            return self.tester_candidates[0].language or ""
        return ""

    def to_employee_full(self) -> EmployeeFull:
        return EmployeeFull(
            id=self.id,
            name=self.name,
            department=self.department,
            language=self.language,
        )
