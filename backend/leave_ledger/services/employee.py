# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class EmployeeInfo(BaseModel):
    """Employee metadata from the employee directory."""

    id: uuid.UUID
    name: str
    email: str
    country_code: str  # ISO 3166-1 alpha-2, drives holiday lookups


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all known employees."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all known employees."""
        return list(self._employees.values())


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the employee directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory
