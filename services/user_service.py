"""
UserService — self-service profile changes and admin user management.

Changing the email address drops verification: the new address starts
unverified, any outstanding verification challenge for the old one is
removed, and a notice goes to the old address.
"""

from __future__ import annotations

from typing import Optional

from bson import ObjectId

from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.auth_service import check_new_password
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger

log = get_logger(__name__)


class UserService:
    def __init__(
        self,
        users: UserRepository,
        email: EmailProvider,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._email = email
        self._clock = clock

    async def get_user(self, user_id: ObjectId) -> UserDoc:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_info(
        self,
        user: UserDoc,
        email: Optional[str] = None,
        fullname: Optional[str] = None,
    ) -> UserDoc:
        """Update fullname and/or email.

        Raises:
            ValidationError: nothing to update.
            ConflictError: the email belongs to another account.
        """
        if email is None and fullname is None:
            raise ValidationError("Nothing to update")

        now = self._clock()
        updated = user
        if fullname is not None:
            updated = await self._users.update_fields(
                user.id, {"fullname": fullname.strip()}, now
            )
            if updated is None:
                raise NotFoundError("User not found")

        new_email = email.strip().lower() if email is not None else None
        if new_email is not None and new_email != user.email:
            holder = await self._users.find_by_email(new_email)
            if holder is not None and holder.id != user.id:
                raise ConflictError("Email is already used by another account", field="email")
            updated = await self._users.change_email(user.id, new_email, now)
            if updated is None:
                raise NotFoundError("User not found")

            log.info("user_email_changed", user_id=str(user.id))
            result = await self._email.send_email_changed_notice(
                user.email, user.username, new_email
            )
            if not result.success:
                log.warning(
                    "email_changed_notice_failed", user_id=str(user.id), error=result.error
                )
        return updated

    async def change_password(
        self,
        user: UserDoc,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        current = await self.get_user(user.id)
        if not current.password_hash or not verify_password(
            old_password, current.password_hash
        ):
            raise ValidationError("Current password is incorrect", field="old_password")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")
        check_new_password(new_password, field="new_password")

        await self._users.update_password(
            user.id, hash_password(new_password), self._clock()
        )
        log.info("password_changed", user_id=str(user.id))

    async def set_avatar(self, user: UserDoc, avatar_url: str) -> UserDoc:
        updated = await self._users.update_fields(
            user.id, {"avatar_url": avatar_url}, self._clock()
        )
        if updated is None:
            raise NotFoundError("User not found")
        return updated

    # ── Admin ────────────────────────────────────────────────────────────────

    async def list_users(self, page: int = 1, limit: int = 20) -> tuple[list[UserDoc], int]:
        users = await self._users.list_all(skip=(page - 1) * limit, limit=limit)
        return users, await self._users.count()

    async def set_status(self, actor: UserDoc, user_id: ObjectId, status: str) -> UserDoc:
        if actor.id == user_id:
            raise ForbiddenError("You cannot change your own status")
        updated = await self._users.update_fields(user_id, {"status": status}, self._clock())
        if updated is None:
            raise NotFoundError("User not found")
        log.info("user_status_changed", user_id=str(user_id), status=status, by=str(actor.id))
        return updated

    async def set_role(self, actor: UserDoc, user_id: ObjectId, role: str) -> UserDoc:
        if actor.id == user_id:
            raise ForbiddenError("You cannot change your own role")
        updated = await self._users.update_fields(user_id, {"role": role}, self._clock())
        if updated is None:
            raise NotFoundError("User not found")
        log.info("user_role_changed", user_id=str(user_id), role=role, by=str(actor.id))
        return updated

    async def delete_user(self, actor: UserDoc, user_id: ObjectId) -> None:
        if actor.id == user_id:
            raise ForbiddenError("You cannot delete your own account")
        if not await self._users.delete(user_id):
            raise NotFoundError("User not found")
        log.info("user_deleted", user_id=str(user_id), by=str(actor.id))
