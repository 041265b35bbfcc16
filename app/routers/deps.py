from fastapi import Depends, Header, Query

from app.core.errors import UserIdRequiredError


def get_optional_user_id(
    x_user_id: str | None = Header(default=None),
    user_id: str | None = Query(default=None, alias="userId"),
) -> str | None:
    """Identity is supplied by the caller; authentication happens upstream."""
    return x_user_id or user_id


def get_current_user_id(user_id: str | None = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise UserIdRequiredError()
    return user_id
