"""
Caller identity.

Session verification happens upstream (identity provider + gateway); the
gateway forwards the verified user id in `X-User-Id`. Every query in the
service is scoped by the value returned here.
"""
from typing import Optional

from fastapi import Header

from app.core.errors import UnauthorizedError


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> str:
    if x_user_id is None or not x_user_id.strip():
        raise UnauthorizedError()
    return x_user_id.strip()
