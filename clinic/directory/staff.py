from loguru import logger

from clinic.domain.exceptions import (
    DuplicateStaffUserError,
    RecordNotFoundError,
    RecordStoreUnavailableError,
)
from clinic.domain.models import StaffUser, StaffUserRequest
from clinic.records.ports import ClinicStoreProtocol


class StaffDirectory:
    """Staff users who can be assigned appointments.

    Usernames and emails are unique, compared case-insensitively. Users are
    never deleted, only deactivated.
    """

    def __init__(self, store: ClinicStoreProtocol) -> None:
        self._store = store

    async def list_staff_users(self) -> list[StaffUser]:
        try:
            return await self._store.list_staff_users()
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Staff listing failed: {exc}") from exc

    async def get_staff_user(self, user_id: str) -> StaffUser:
        try:
            user = await self._store.get_staff_user(user_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Staff lookup failed: {exc}") from exc

        if user is None:
            raise RecordNotFoundError("Staff user", user_id)
        return user

    async def create_staff_user(self, request: StaffUserRequest) -> StaffUser:
        logger.info("Creating staff user: role={}", request.role.value)
        await self._ensure_unique(request.username, request.email)

        user = await self._persist(
            StaffUser(
                full_name=request.full_name,
                email=request.email,
                username=request.username,
                role=request.role,
                is_active=True,
            )
        )
        logger.info("Staff user created: id={}", user.user_id)
        return user

    async def update_staff_user(self, user_id: str, request: StaffUserRequest) -> StaffUser:
        current = await self.get_staff_user(user_id)
        username = (
            request.username
            if request.username.casefold() != current.username.casefold()
            else None
        )
        email = request.email if request.email.casefold() != current.email.casefold() else None
        await self._ensure_unique(username, email, exclude_id=user_id)

        user = await self._persist(
            current.model_copy(
                update={
                    "full_name": request.full_name,
                    "email": request.email,
                    "username": request.username,
                    "role": request.role,
                    "is_active": request.is_active,
                }
            )
        )
        logger.info("Staff user updated: id={}", user_id)
        return user

    async def deactivate_staff_user(self, user_id: str) -> StaffUser:
        """Disable a staff account. Deactivating an inactive user is a no-op."""
        user = await self.get_staff_user(user_id)
        if not user.is_active:
            return user

        user = await self._persist(user.model_copy(update={"is_active": False}))
        logger.info("Staff user deactivated: id={}", user_id)
        return user

    async def _persist(self, user: StaffUser) -> StaffUser:
        try:
            return await self._store.persist_staff_user(user)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Staff user write failed: {exc}") from exc

    async def _ensure_unique(
        self,
        username: str | None,
        email: str | None,
        *,
        exclude_id: str | None = None,
    ) -> None:
        if username is None and email is None:
            return

        others = [u for u in await self.list_staff_users() if u.user_id != exclude_id]
        if username is not None and any(
            u.username.casefold() == username.casefold() for u in others
        ):
            raise DuplicateStaffUserError("username", username)
        if email is not None and any(u.email.casefold() == email.casefold() for u in others):
            raise DuplicateStaffUserError("email", email)
