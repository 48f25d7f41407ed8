"""Employee service: creation across the four collections and the joined listing."""

from __future__ import annotations

import asyncio
import logging

from staff_api.core.config import Settings, settings
from staff_api.models.employee import (
    ROLE_DEVELOPER,
    ROLE_TESTER,
    Department,
    Developer,
    Employee,
    EmployeeCreateRequest,
    EmployeeFull,
    Tester,
)
from staff_api.models.joined import JoinedEmployeeRow, int_from_any
from staff_api.services.storage import (
    DEPARTMENTS,
    DEVELOPERS,
    EMPLOYEES,
    TESTERS,
    CursorReadError,
    DuplicateEmployeeIdError,
    EmployeeStore,
    MongoEmployeeStore,
    StorageError,
)

logger = logging.getLogger(__name__)


class EmployeeValidationError(Exception):
    pass


class EmployeeServiceError(Exception):
    """Storage-side failure. ``str(err)`` is safe to show to the client."""


class EmployeeService:
    def __init__(self, store: EmployeeStore | None = None) -> None:
        self.store: EmployeeStore | None = store
        self.initialized: bool = store is not None
        self.create_timeout: float = settings.CREATE_TIMEOUT_SECONDS
        self.list_timeout: float = settings.LIST_TIMEOUT_SECONDS
        self.id_retries: int = settings.ID_ALLOCATION_RETRIES

    async def initialize(self, config: Settings) -> None:
        self.create_timeout = config.CREATE_TIMEOUT_SECONDS
        self.list_timeout = config.LIST_TIMEOUT_SECONDS
        self.id_retries = config.ID_ALLOCATION_RETRIES

        if self.initialized:
            return

        if not config.MONGODB_URI:
            logger.warning("MONGODB_URI missing — EmployeeService not initialized")
            return

        self.store = await MongoEmployeeStore.connect(config)
        self.initialized = True
        logger.info("EmployeeService initialized (database=%s)", config.MONGODB_DATABASE)

    async def close(self) -> None:
        if self.store:
            await self.store.close()
            self.store = None
            self.initialized = False

    async def check_connection(self) -> bool:
        if not self.store:
            return False
        try:
            await self.store.ping()
            return True
        except StorageError:
            logger.exception("MongoDB connection check failed")
            return False

    async def next_employee_id(self) -> int:
        """Highest stored employee id plus one, or 1 on an empty collection."""
        latest = await self._require_store().find_latest_employee()
        if latest is None:
            return 1
        return int_from_any(latest.get("id")) + 1

    async def create_employee(self, request: EmployeeCreateRequest) -> int:
        if not request.name or not request.department or not request.role:
            raise EmployeeValidationError("missing required fields")

        self._require_store()
        try:
            return await asyncio.wait_for(self._create(request), self.create_timeout)
        except asyncio.TimeoutError as e:
            logger.error("create employee timed out after %.1fs", self.create_timeout)
            raise EmployeeServiceError("request timed out") from e

    async def list_employees(self) -> list[EmployeeFull]:
        store = self._require_store()
        try:
            rows = await asyncio.wait_for(store.aggregate_employees(), self.list_timeout)
        except asyncio.TimeoutError as e:
            logger.error("list employees timed out after %.1fs", self.list_timeout)
            raise EmployeeServiceError("request timed out") from e
        except CursorReadError as e:
            logger.error("cursor read err: %s", e)
            raise EmployeeServiceError("cursor read error") from e
        except StorageError as e:
            logger.error("aggregate err: %s", e)
            raise EmployeeServiceError("aggregation error") from e

        return [JoinedEmployeeRow.from_document(row).to_employee_full() for row in rows]

    def _require_store(self) -> EmployeeStore:
        if not self.store:
            raise EmployeeServiceError("storage not initialized")
        return self.store

    async def _create(self, request: EmployeeCreateRequest) -> int:
        store = self._require_store()

        # The unique index on employees.id makes this insert the commit point
        # for an id; a concurrent writer that got there first forces a re-read.
        duplicate: DuplicateEmployeeIdError | None = None
        for attempt in range(self.id_retries + 1):
            try:
                new_id = await self.next_employee_id()
            except StorageError as e:
                logger.error("next employee id err: %s", e)
                raise EmployeeServiceError("error generating emp id") from e

            try:
                await store.insert_one(EMPLOYEES, Employee(id=new_id, name=request.name).model_dump())
                break
            except DuplicateEmployeeIdError as e:
                logger.warning("Employee id %d already taken (attempt %d)", new_id, attempt + 1)
                duplicate = e
            except StorageError as e:
                logger.error("insert emp err: %s", e)
                raise EmployeeServiceError("error inserting employee") from e
        else:
            logger.error("gave up allocating an employee id after %d attempts", self.id_retries + 1)
            raise EmployeeServiceError("error inserting employee") from duplicate

        # No rollback: a failure below leaves the rows already written in place.
        await self._insert(
            DEPARTMENTS,
            Department(name=request.department, emp_id=new_id).model_dump(),
            "department",
        )
        if request.role == ROLE_DEVELOPER:
            await self._insert(
                DEVELOPERS,
                Developer(language=request.language, emp_id=new_id).model_dump(),
                "developer",
            )
        elif request.role == ROLE_TESTER:
            await self._insert(
                TESTERS,
                Tester(language=request.language, emp_id=new_id).model_dump(),
                "tester",
            )
        else:
            logger.info("Unrecognized role %r for employee %d; no role row written", request.role, new_id)

        logger.info("Inserted employee id=%d role=%s", new_id, request.role)
        return new_id

    async def _insert(self, collection: str, document: dict, what: str) -> None:
        try:
            await self._require_store().insert_one(collection, document)
        except StorageError as e:
            logger.error("insert %s err: %s", what, e)
            raise EmployeeServiceError(f"error inserting {what}") from e


employee_service = EmployeeService()
