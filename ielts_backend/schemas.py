"""
Request and response models for the JSON endpoints.
"""
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    """A users row as returned to the front-end."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    google_id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    group_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_profile_complete: bool
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    # id is optional here so a missing id yields 400 rather than a 422
    id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    group_name: Optional[str] = None


class GoogleTokenRequest(BaseModel):
    """ID token from Google Identity Services; "credential" is its field name there."""
    token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("token", "credential")
    )


class GoogleUser(BaseModel):
    id: int
    email: str
    name: str
    picture: Optional[str] = None
