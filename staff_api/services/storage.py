"""MongoDB access for the four employee collections."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from bson.errors import BSONError
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from staff_api.core.config import Settings
from staff_api.models.joined import DEPARTMENT_FIELD, DEVELOPER_FIELD, TESTER_FIELD

logger = logging.getLogger(__name__)

EMPLOYEES = "employees"
DEPARTMENTS = "departments"
DEVELOPERS = "developers"
TESTERS = "testers"

SIDE_COLLECTIONS: tuple[str, ...] = (DEPARTMENTS, DEVELOPERS, TESTERS)


class StorageError(Exception):
    pass


class DuplicateEmployeeIdError(StorageError):
    pass


class CursorReadError(StorageError):
    pass


def _lookup(collection: str, as_field: str) -> dict[str, Any]:
    return {
        "$lookup": {
            "from": collection,
            "localField": "id",
            "foreignField": "emp_id",
            "as": as_field,
        }
    }


EMPLOYEE_JOIN_PIPELINE: list[dict[str, Any]] = [
    _lookup(DEPARTMENTS, DEPARTMENT_FIELD),
    _lookup(DEVELOPERS, DEVELOPER_FIELD),
    _lookup(TESTERS, TESTER_FIELD),
]


class EmployeeStore(Protocol):
    """What the employee service needs from storage."""

    async def find_latest_employee(self) -> dict[str, Any] | None:
        """Return the employee document with the highest ``id``, or None."""
        ...

    async def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        """Insert ``document``; raise DuplicateEmployeeIdError on an id clash."""
        ...

    async def aggregate_employees(self) -> list[dict[str, Any]]:
        """Return every employee joined with its department/developer/tester rows."""
        ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


class MongoEmployeeStore:
    def __init__(self, client: AsyncMongoClient, database_name: str) -> None:
        self.client = client
        self.db = client[database_name]

    @classmethod
    async def connect(cls, settings: Settings) -> MongoEmployeeStore:
        timeout_ms = int(settings.MONGODB_CONNECT_TIMEOUT_SECONDS * 1000)
        client: AsyncMongoClient = AsyncMongoClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
        )
        store = cls(client, settings.MONGODB_DATABASE)
        try:
            await asyncio.wait_for(store.ping(), settings.MONGODB_CONNECT_TIMEOUT_SECONDS)
        except (StorageError, asyncio.TimeoutError):
            await client.close()
            raise
        await store.ensure_indexes()
        logger.info("Connected to MongoDB (database=%s)", settings.MONGODB_DATABASE)
        return store

    async def ensure_indexes(self) -> None:
        try:
            await self.db[EMPLOYEES].create_index([("id", ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.warning("Could not create unique index on %s.id: %s", EMPLOYEES, e)

        for name in SIDE_COLLECTIONS:
            try:
                await self.db[name].create_index([("emp_id", ASCENDING)])
            except PyMongoError as e:
                logger.warning("Could not create index on %s.emp_id: %s", name, e)

    async def find_latest_employee(self) -> dict[str, Any] | None:
        try:
            return await self.db[EMPLOYEES].find_one({}, sort=[("id", DESCENDING)])
        except PyMongoError as e:
            raise StorageError(f"find latest employee failed: {e}") from e

    async def insert_one(self, collection: str, document: dict[str, Any]) -> None:
        try:
            # insert_one adds _id to the dict it is given
            await self.db[collection].insert_one(dict(document))
        except DuplicateKeyError as e:
            raise DuplicateEmployeeIdError(f"duplicate key in {collection}: {e}") from e
        except (PyMongoError, BSONError, UnicodeError) as e:
            raise StorageError(f"insert into {collection} failed: {e}") from e

    async def aggregate_employees(self) -> list[dict[str, Any]]:
        try:
            cursor = await self.db[EMPLOYEES].aggregate(EMPLOYEE_JOIN_PIPELINE)
        except PyMongoError as e:
            raise StorageError(f"employee aggregation failed: {e}") from e

        try:
            return await cursor.to_list()
        except (PyMongoError, BSONError, UnicodeError) as e:
            raise CursorReadError(f"reading aggregation cursor failed: {e}") from e

    async def ping(self) -> None:
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise StorageError(f"ping failed: {e}") from e

    async def close(self) -> None:
        await self.client.close()
        logger.info("MongoDB connection closed")
