# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Acting identity supplied by the upstream authentication layer."""

    user_id: uuid.UUID
