from typing import Iterable, Set

from fastapi import Depends, HTTPException, status
from loguru import logger

from fortmix.users.auth import get_current_user
from fortmix.users.roles import Role
from fortmix.users import schemas as user_schemas

__all__ = ["Role", "role_required", "role_forbidden"]


def _deny(current_user: user_schemas.UserDisplaySchema):
    logger.warning(
        f"Permission denied for {current_user.username} ({current_user.role.value})"
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient permissions"
    )


def role_required(allowed_roles: Iterable[Role]):
    allowed_set: Set[Role] = set(allowed_roles or [])

    def wrapper(current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)):
        if current_user.role not in allowed_set:
            _deny(current_user)
        return current_user

    return wrapper


def role_forbidden(denied_roles: Iterable[Role]):
    """Every authenticated role except the listed ones."""
    denied_set: Set[Role] = set(denied_roles or [])

    def wrapper(current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)):
        if current_user.role in denied_set:
            _deny(current_user)
        return current_user

    return wrapper
