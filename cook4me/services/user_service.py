# cook4me/services/user_service.py
"""
User profile operations on the Supabase `users` table, keyed by user_id.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from cook4me.models.user import UserProfile, UserProfileUpdate
from cook4me.services.base import SupabaseService, first_row, make_result, now_iso
from cook4me.services.errors import ValidationError

logger = logging.getLogger(__name__)

USERS_TABLE = "users"


def _row_to_profile(row: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        user_id=row["user_id"],
        email=row.get("email") or "",
        username=row.get("username") or "",
        profile_picture_url=row.get("profile_picture_url") or None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def clean_username(username: Optional[str]) -> str:
    cleaned = (username or "").strip()
    if not cleaned:
        raise ValidationError("Username is required")
    return cleaned


class UserService(SupabaseService):

    def _table(self):
        return self.client.table(USERS_TABLE)

    async def create_user_profile(
        self,
        user_id: str,
        email: str,
        username: str,
        profile_picture_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create (or overwrite) the profile row for `user_id`; `data` is the
        UserProfile. An existing row keeps its `created_at`.
        """
        logger.info("create_user_profile user=%s", user_id)
        row = {
            "user_id": user_id,
            "email": email,
            "username": clean_username(username),
            "profile_picture_url": profile_picture_url or "",
            "updated_at": now_iso(),
        }

        existing = await self.user_profile_exists(user_id)
        if not existing["ok"]:
            return existing
        if not existing["data"]:
            row["created_at"] = row["updated_at"]

        def _upsert(r):
            return self._table().upsert(r, on_conflict="user_id").execute()

        res = await self._call_db(_upsert, row)
        if not res["ok"]:
            return res
        stored = first_row(res["data"]) or row
        return make_result(True, data=_row_to_profile(stored), diagnostics=res["diagnostics"])

    async def get_user_profile(self, user_id: str) -> Dict[str, Any]:
        """`data` is the UserProfile, or None if there is none."""

        def _select(uid):
            return self._table().select("*").eq("user_id", uid).limit(1).execute()

        res = await self._call_db(_select, user_id)
        if not res["ok"]:
            return res
        row = first_row(res["data"])
        if row is None:
            return make_result(True, data=None, diagnostics=res["diagnostics"])
        try:
            return make_result(True, data=_row_to_profile(row), diagnostics=res["diagnostics"])
        except (KeyError, PydanticValidationError) as exc:
            logger.exception("Malformed user row for %s: %s", user_id, exc)
            return make_result(False, error="malformed_record", diagnostics=res["diagnostics"])

    async def user_profile_exists(self, user_id: str) -> Dict[str, Any]:
        res = await self.get_user_profile(user_id)
        if not res["ok"]:
            return res
        return make_result(True, data=res["data"] is not None, diagnostics=res["diagnostics"])

    async def update_user_profile(
        self, user_id: str, update: UserProfileUpdate
    ) -> Dict[str, Any]:
        """
        Apply a partial update; `data` is the refreshed UserProfile (None if
        the user has no profile). Raises ValidationError for a blank username.
        """
        changes: Dict[str, Any] = {}
        if update.username is not None:
            changes["username"] = clean_username(update.username)
        if update.profile_picture_url is not None:
            changes["profile_picture_url"] = update.profile_picture_url
        logger.info("update_user_profile user=%s fields=%s", user_id, sorted(changes))
        if not changes:
            return await self.get_user_profile(user_id)
        changes["updated_at"] = now_iso()

        def _update(uid, c):
            return self._table().update(c).eq("user_id", uid).execute()

        res = await self._call_db(_update, user_id, changes)
        if not res["ok"]:
            return res
        row = first_row(res["data"])
        if row is None:
            return make_result(True, data=None, diagnostics=res["diagnostics"])
        return make_result(True, data=_row_to_profile(row), diagnostics=res["diagnostics"])
