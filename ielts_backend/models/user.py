"""
User model.

One row per Google account that has signed in at least once.
"""
from sqlalchemy import Boolean, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from ielts_backend.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """
    A student account keyed by the Google subject id.

    first_name/last_name start out split from the Google display name and are
    replaced when the student completes the profile form. is_profile_complete
    only ever goes from False to True.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    google_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    group_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_profile_complete: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false()
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, complete={self.is_profile_complete})>"
