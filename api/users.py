"""
User endpoints — /api/users.

Self-service:
    GET  /profile            current user
    PUT  /update-info        email and/or fullname
    PUT  /change-password
    PUT  /avatar

Admin:
    GET    ""                paginated list
    GET    /{user_id}
    PUT    /{user_id}/status
    PUT    /{user_id}/role
    DELETE /{user_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dependencies import get_current_user, get_user_service, object_id, require_admin
from schemas.dto.requests.user import (
    AvatarRequest,
    ChangePasswordRequest,
    SetRoleRequest,
    SetStatusRequest,
    UpdateInfoRequest,
)
from schemas.dto.responses.common import MessageResponse, PaginationMeta
from schemas.dto.responses.user import UserListResponse, UserResponse
from schemas.models.user import UserDoc
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=UserResponse)
async def profile(user: UserDoc = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_doc(user)


@router.put("/update-info", response_model=UserResponse)
async def update_info(
    body: UpdateInfoRequest,
    user: UserDoc = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    updated = await users.update_info(
        user,
        email=str(body.email) if body.email is not None else None,
        fullname=body.fullname,
    )
    return UserResponse.from_doc(updated)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: UserDoc = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.change_password(
        user, body.old_password, body.new_password, body.confirm_password
    )
    return MessageResponse(message="Password updated")


@router.put("/avatar", response_model=UserResponse)
async def set_avatar(
    body: AvatarRequest,
    user: UserDoc = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    updated = await users.set_avatar(user, str(body.avatar_url))
    return UserResponse.from_doc(updated)


# ── Admin ───────────────────────────────────────────────────────────────────


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    items, total = await users.list_users(page=page, limit=limit)
    return UserListResponse(
        items=[UserResponse.from_doc(u) for u in items],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_user(object_id(user_id, field="user_id"))
    return UserResponse.from_doc(user)


@router.put("/{user_id}/status", response_model=UserResponse)
async def set_status(
    user_id: str,
    body: SetStatusRequest,
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    updated = await users.set_status(admin, object_id(user_id, field="user_id"), body.status)
    return UserResponse.from_doc(updated)


@router.put("/{user_id}/role", response_model=UserResponse)
async def set_role(
    user_id: str,
    body: SetRoleRequest,
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    updated = await users.set_role(admin, object_id(user_id, field="user_id"), body.role)
    return UserResponse.from_doc(updated)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.delete_user(admin, object_id(user_id, field="user_id"))
    return MessageResponse(message="User deleted")
