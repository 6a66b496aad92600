from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError
from app.core.plans import is_valid_plan
from app.core.security import hash_password, revoke_all_user_tokens, verify_password
from app.models.user import User
from app.schemas.user import AccountSettingsUpdate, UserCreate
from app.services.base import BaseService

# Verified against when the email is unknown so both paths cost one bcrypt check
_DUMMY_HASH = "$2b$12$LQv3c1yqBWVHxkd0LHAkCOYz6TtxMQJqhN8/X4.S9h0vqXp1V.1Wy"


def _is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


class UserService(BaseService[User]):
    """Service for accounts, credentials and plans."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, obj_in: UserCreate) -> User:
        """Create a new user with a hashed password.

        Raises:
            ConflictError: If the email is already registered.
        """
        db_obj = User(
            email=obj_in.email,
            hashed_password=hash_password(obj_in.password),
            full_name=obj_in.full_name,
            company=obj_in.company,
        )
        self.db.add(db_obj)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if _is_unique_violation(e):
                raise ConflictError("Email already registered") from None
            raise
        await self.db.refresh(db_obj)
        return db_obj

    async def authenticate(self, email: str, password: str) -> User | None:
        user = await self.get_by_email(email)
        if not user:
            verify_password(password, _DUMMY_HASH)
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    async def update_account(self, user: User, data: AccountSettingsUpdate) -> User:
        """Update name, email and company.

        Raises:
            ConflictError: If the new email belongs to another account.
        """
        values = data.model_dump(exclude_unset=True)
        if values.get("email") is None:
            values.pop("email", None)
        try:
            return await self.update_fields(user, values)
        except IntegrityError as e:
            await self.db.rollback()
            if _is_unique_violation(e):
                raise ConflictError("Email already in use") from None
            raise

    async def update_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        *,
        redis: Redis | None = None,
    ) -> User:
        """Change a password and revoke every outstanding token.

        Raises:
            BadRequestError: If the current password is incorrect.
        """
        if not verify_password(current_password, user.hashed_password):
            raise BadRequestError("Current password is incorrect.")
        user = await self.update_fields(user, {"hashed_password": hash_password(new_password)})
        await revoke_all_user_tokens(user.id, redis=redis)
        return user

    async def deactivate(self, user: User, *, redis: Redis | None = None) -> User:
        """Soft delete: the row stays, the account can no longer sign in."""
        user = await self.update_fields(user, {"is_active": False})
        await revoke_all_user_tokens(user.id, redis=redis)
        return user

    async def set_plan(self, user: User, plan: str) -> User:
        if not is_valid_plan(plan):
            raise BadRequestError("Invalid plan.")
        return await self.update_fields(user, {"plan": plan})
