"""Employee models: stored documents, API payloads and the joined read row."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

ROLE_DEVELOPER = "developer"
ROLE_TESTER = "tester"


class Employee(BaseModel):
    id: int
    name: str


class Department(BaseModel):
    name: str
    emp_id: int


class Developer(BaseModel):
    language: str
    emp_id: int


class Tester(BaseModel):
    language: str
    emp_id: int


class EmployeeCreateRequest(BaseModel):
    """Body of POST /employee. Emptiness is checked by the service, not here."""

    name: str = ""
    department: str = ""
    language: str = ""
    role: str = ""

    @field_validator("name", "department", "language", "role")
    @classmethod
    def _encodable(cls, value: str) -> str:
        # Lone surrogates survive JSON decoding but cannot be stored as BSON.
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("not valid UTF-8 text") from e
        return value


class EmployeeCreated(BaseModel):
    message: str = "inserted"
    id: int


class EmployeeFull(BaseModel):
    """Denormalized employee as returned by GET /employees."""

    id: int
    name: str
    department: str
    language: str
