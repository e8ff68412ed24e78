# cook4me/api/users.py
"""
Profile endpoints for the signed-in user.

- GET   /users/me                   profile (404 until created)
- POST  /users/me                   create the profile after sign-up
- PATCH /users/me                   change username / picture URL
- POST  /users/me/profile-picture   upload a new picture (multipart)
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from cook4me.api.deps import get_current_user, get_storage, get_user_service
from cook4me.config.settings import settings
from cook4me.models.recipe import CamelModel
from cook4me.models.user import (
    CurrentUser,
    UserProfile,
    UserProfileCreate,
    UserProfileUpdate,
)
from cook4me.services.base import unwrap
from cook4me.services.storage_service import ProfilePictureStorage
from cook4me.services.user_service import UserService

logger = logging.getLogger(__name__)
router = APIRouter()


class ProfilePictureOut(CamelModel):
    profile_picture_url: str


def _no_profile() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")


@router.get("/users/me", response_model=UserProfile)
async def get_my_profile(
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    profile = unwrap(await users.get_user_profile(user.user_id))
    if profile is None:
        raise _no_profile()
    return profile


@router.post("/users/me", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    body: UserProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    return unwrap(
        await users.create_user_profile(
            user.user_id,
            email=user.email or "",
            username=body.username,
            profile_picture_url=body.profile_picture_url,
        )
    )


@router.patch("/users/me", response_model=UserProfile)
async def update_my_profile(
    body: UserProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    profile = unwrap(await users.update_user_profile(user.user_id, body))
    if profile is None:
        raise _no_profile()
    return profile


@router.post("/users/me/profile-picture", response_model=ProfilePictureOut)
async def upload_profile_picture(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
    storage: ProfilePictureStorage = Depends(get_storage),
) -> ProfilePictureOut:
    profile = unwrap(await users.get_user_profile(user.user_id))
    if profile is None:
        raise _no_profile()

    # read one byte past the limit so oversized files are detectable
    data = await file.read(settings.max_upload_bytes + 1)
    url = await storage.replace_profile_picture(
        user.user_id,
        file.filename or "upload",
        data,
        file.content_type or "",
        old_url=profile.profile_picture_url,
    )
    return ProfilePictureOut(profile_picture_url=url)
