# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the stub directory."""

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=1, max_length=255)
    country_code: str = Field(pattern=r"^[A-Za-z]{2}$")


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    name: str
    email: str
    country_code: str


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
