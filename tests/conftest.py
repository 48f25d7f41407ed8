from __future__ import annotations

import asyncio
import copy
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from staff_api.core.dependencies import get_employee_service
from staff_api.main import app
from staff_api.models.joined import DEPARTMENT_FIELD, DEVELOPER_FIELD, TESTER_FIELD
from staff_api.services.employee_service import EmployeeService
from staff_api.services.storage import (
    DEPARTMENTS,
    DEVELOPERS,
    EMPLOYEES,
    TESTERS,
    CursorReadError,
    DuplicateEmployeeIdError,
    StorageError,
)

ALLOWED_ORIGIN = "http://localhost:5173"


class InMemoryEmployeeStore:
    """EmployeeStore backed by dicts, with $lookup-style outer joins.

    ``fail_on`` names collections whose inserts raise StorageError,
    ``hang`` makes every call block until cancelled.
    """

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {
            EMPLOYEES: [],
            DEPARTMENTS: [],
            DEVELOPERS: [],
            TESTERS: [],
        }
        self.fail_on: set[str] = set()
        self.fail_find = False
        self.fail_aggregate = False
        self.fail_cursor = False
        self.fail_ping = False
        self.hang = False
        self.closed = False

    async def _maybe_hang(self) -> None:
        if self.hang:
            await asyncio.Event().wait()

    async def find_latest_employee(self) -> dict[str, Any] | None:
        await self._maybe_hang()
        if self.fail_find:
            raise StorageError("find failed")
        employees = self.collections[EMPLOYEES]
        if not employees:
            return None
        return copy.deepcopy(max(employees, key=lambda doc: doc["id"]))

    async def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        await self._maybe_hang()
        if collection in self.fail_on:
            raise StorageError(f"insert into {collection} failed")
        if collection == EMPLOYEES and any(d["id"] == document["id"] for d in self.collections[EMPLOYEES]):
            raise DuplicateEmployeeIdError(f"duplicate id {document['id']}")
        self.collections[collection].append(copy.deepcopy(document))

    async def aggregate_employees(self) -> list[dict[str, Any]]:
        await self._maybe_hang()
        if self.fail_aggregate:
            raise StorageError("aggregate failed")
        if self.fail_cursor:
            raise CursorReadError("cursor read failed")

        def lookup(collection: str, emp_id: Any) -> list[dict[str, Any]]:
            return [copy.deepcopy(d) for d in self.collections[collection] if d.get("emp_id") == emp_id]

        rows = []
        for employee in self.collections[EMPLOYEES]:
            row = copy.deepcopy(employee)
            row[DEPARTMENT_FIELD] = lookup(DEPARTMENTS, employee.get("id"))
            row[DEVELOPER_FIELD] = lookup(DEVELOPERS, employee.get("id"))
            row[TESTER_FIELD] = lookup(TESTERS, employee.get("id"))
            rows.append(row)
        return rows

    async def ping(self) -> None:
        if self.fail_ping:
            raise StorageError("ping failed")

    async def close(self) -> None:
        self.closed = True

    def count(self, collection: str) -> int:
        return len(self.collections[collection])

    def total_documents(self) -> int:
        return sum(len(docs) for docs in self.collections.values())


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> InMemoryEmployeeStore:
    return InMemoryEmployeeStore()


@pytest.fixture
def service(store) -> EmployeeService:
    return EmployeeService(store=store)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store_client(service):
    app.dependency_overrides[get_employee_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(service):
    app.dependency_overrides[get_employee_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
