"""
User store.

All reads and writes of the users table go through UserService. Each method
issues single-statement queries and commits its own writes.
"""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_backend.logging_config import get_logger
from ielts_backend.models.user import User

logger = get_logger(component="user_service")

# Fields a student may set through the profile form
PROFILE_FIELDS = ("first_name", "last_name", "phone", "group_name")


def split_display_name(name: str | None) -> tuple[str, str]:
    """
    Split a Google display name on the first whitespace run.

    "Ann Marie Lee" -> ("Ann", "Marie Lee"); None or "" -> ("", "").
    """
    parts = (name or "").strip().split(None, 1)
    first = parts[0] if parts else ""
    last = parts[1] if len(parts) > 1 else ""
    return first, last


class UserService:
    """Service for reading and writing student accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_google_id(self, google_id: str) -> User | None:
        """
        Get user by Google subject id.

        google_id is unique, so at most one row matches.
        """
        stmt = select(User).where(User.google_id == google_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        """All users, newest first."""
        stmt = select(User).order_by(User.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        google_id: str,
        email: str,
        name: str | None = None,
        avatar_url: str | None = None
    ) -> User:
        """
        Insert a new, incomplete user.

        Raises:
            IntegrityError: google_id or email already taken. The session has
                been rolled back when this propagates.
        """
        first_name, last_name = split_display_name(name)
        user = User(
            google_id=google_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
            is_profile_complete=False
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        await self.db.refresh(user)
        return user

    async def get_or_create(
        self,
        google_id: str,
        email: str,
        name: str | None = None,
        avatar_url: str | None = None
    ) -> tuple[User, bool]:
        """
        Find the user for a Google subject id, creating it when absent.

        Two first logins for the same account can race past the lookup; the
        loser's insert violates the unique constraint and re-reads the row
        the winner created.

        Returns:
            (user, created)
        """
        user = await self.get_by_google_id(google_id)
        if user is not None:
            return user, False

        try:
            user = await self.create(
                google_id=google_id,
                email=email,
                name=name,
                avatar_url=avatar_url
            )
        except IntegrityError:
            user = await self.get_by_google_id(google_id)
            if user is None:
                # The email is held by a different Google account
                raise
            logger.info("duplicate_user_insert_resolved", user_id=user.id)
            return user, False

        logger.info("user_created", user_id=user.id)
        return user, True

    async def refresh_avatar(self, user: User, avatar_url: str | None) -> bool:
        """
        Store a new avatar URL if it changed.

        Returns whether an update was written. Rolls back and re-raises on
        store errors.
        """
        if not avatar_url or avatar_url == user.avatar_url:
            return False

        user.avatar_url = avatar_url
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return True

    async def complete_profile(self, user_id: int, **fields) -> User | None:
        """
        Apply profile form fields and mark the profile complete.

        Only keys in PROFILE_FIELDS are applied; identity columns never change.

        Returns:
            The updated user, or None if no user has that id.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        for field in PROFILE_FIELDS:
            if field in fields and fields[field] is not None:
                setattr(user, field, fields[field])
        user.is_profile_complete = True

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(user)
        return user
