"""Route handlers for the ``/api/ldap`` API.

All the route handlers are intentionally defined in a single file to encourage
the implementation to be very short. All the business logic should be defined
in service objects and the output formatting should be handled by response
models.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from safir.models import ErrorModel

from ..dependencies.context import RequestContext, context_dependency
from ..exceptions import NotFoundError
from ..models.ldap import LDAPUser

__all__ = ["router"]

router = APIRouter(prefix="/api/ldap")

_error_responses = {
    500: {
        "description": "LDAP query failed",
        "content": {"text/plain": {"schema": {"type": "string"}}},
    },
}


@router.get(
    "/users",
    description=(
        "Return the profiles of all members of the LDAP group for a role."
        " Members that cannot be found in LDAP are omitted, and a role with"
        " no corresponding group returns an empty list."
    ),
    response_model=list[LDAPUser],
    responses=_error_responses,
    summary="Get users with a role",
    tags=["user"],
)
async def get_users_by_role(
    *,
    role: Annotated[
        str,
        Query(
            title="Role name",
            description="Name of the LDAP group for the role",
            examples=["tellers"],
            min_length=1,
        ),
    ],
    context: Annotated[RequestContext, Depends(context_dependency)],
) -> list[LDAPUser]:
    context.rebind_logger(role=role)
    role_service = context.factory.create_role_service()
    return await role_service.get_users_by_role(role)


@router.get(
    "/users/{uid}",
    description="Return the profile of a single user",
    response_model=LDAPUser,
    responses={
        404: {"description": "User not found", "model": ErrorModel},
        **_error_responses,
    },
    summary="Get user",
    tags=["user"],
)
async def get_user(
    *,
    uid: Annotated[
        str,
        Path(title="User ID", examples=["jdoe"], min_length=1),
    ],
    context: Annotated[RequestContext, Depends(context_dependency)],
) -> LDAPUser:
    context.rebind_logger(uid=uid)
    role_service = context.factory.create_role_service()
    user = await role_service.get_user(uid)
    if not user:
        raise NotFoundError(f"User {uid} not found")
    return user
