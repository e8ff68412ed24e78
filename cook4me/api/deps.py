# cook4me/api/deps.py
"""
Request dependencies: caller identity and service instances.

Identity is resolved from the `Authorization: Bearer <access token>` header
through Supabase Auth and handed to handlers as an explicit CurrentUser.
Tests replace any of these through `app.dependency_overrides`.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cook4me.config.supabase import supabase_client
from cook4me.models.user import CurrentUser
from cook4me.services.base import run_blocking
from cook4me.services.recipe_generator import RecipeGenerator
from cook4me.services.recipe_store import RecipeStore
from cook4me.services.storage_service import ProfilePictureStorage
from cook4me.services.taste_profile import TasteProfileAnalyzer
from cook4me.services.user_service import UserService

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(token: str) -> CurrentUser:
    client = supabase_client.client
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication backend not configured",
        )
    try:
        resp = await run_blocking(client.auth.get_user, token)
    except Exception as exc:
        logger.info("Token rejected by Supabase Auth: %s", exc)
        resp = None
    user = getattr(resp, "user", None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(user_id=str(user.id), email=getattr(user, "email", None))


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[CurrentUser]:
    if credentials is None:
        return None
    return await _resolve_user(credentials.credentials)


async def get_current_user(
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_recipe_store() -> RecipeStore:
    return RecipeStore()


def get_user_service() -> UserService:
    return UserService()


def get_storage(
    user_service: UserService = Depends(get_user_service),
) -> ProfilePictureStorage:
    return ProfilePictureStorage(user_service=user_service)


def get_analyzer(
    store: RecipeStore = Depends(get_recipe_store),
) -> TasteProfileAnalyzer:
    return TasteProfileAnalyzer(store)


@lru_cache(maxsize=1)
def get_generator() -> RecipeGenerator:
    return RecipeGenerator()
