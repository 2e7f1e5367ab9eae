# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from leave_ledger.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
) -> AuthContext:
    """Extract the acting identity from request headers."""
    return AuthContext(user_id=x_user_id)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
