"""
User profile models.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from cook4me.models.recipe import CamelModel


class UserProfile(CamelModel):
    user_id: str
    email: str
    username: str
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileCreate(CamelModel):
    username: str
    profile_picture_url: Optional[str] = None


class UserProfileUpdate(CamelModel):
    username: Optional[str] = None
    profile_picture_url: Optional[str] = None


class CurrentUser(CamelModel):
    """Identity of the caller, resolved per request."""

    user_id: str
    email: Optional[str] = None
