# cook4me/services/recipe_store.py
"""
Saved-recipe persistence on the Supabase `saved_recipes` table.

Row layout: id (uuid), user_id, name, is_loved, saved_at, recipe (jsonb,
camelCase Recipe). Every query is scoped by user_id so a caller can never
read or touch another user's recipes.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from cook4me.models.recipe import Recipe, SavedRecipe
from cook4me.services.base import SupabaseService, first_row, make_result, now_iso

logger = logging.getLogger(__name__)

RECIPES_TABLE = "saved_recipes"


def is_record_id(value: str) -> bool:
    """Record ids are uuids; anything else cannot name a stored recipe."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def row_to_saved_recipe(row: Dict[str, Any]) -> SavedRecipe:
    payload = dict(row.get("recipe") or {})
    payload.update(
        {
            "id": str(row["id"]),
            "userId": row["user_id"],
            "savedAt": row["saved_at"],
            "isLoved": bool(row.get("is_loved")),
        }
    )
    return SavedRecipe.model_validate(payload)


class RecipeStore(SupabaseService):

    def _table(self):
        return self.client.table(RECIPES_TABLE)

    async def save_recipe(self, user_id: str, recipe: Recipe) -> Dict[str, Any]:
        """Insert a recipe for `user_id`; `data` is the new record id."""
        logger.info("save_recipe user=%s name=%r", user_id, recipe.name)
        row = {
            "user_id": user_id,
            "name": recipe.name,
            "is_loved": False,
            "saved_at": now_iso(),
            "recipe": recipe.model_dump(mode="json", by_alias=True, exclude_none=True),
        }

        def _insert(r):
            return self._table().insert(r).execute()

        res = await self._call_db(_insert, row)
        if not res["ok"]:
            return res
        created = first_row(res["data"])
        if not created or not created.get("id"):
            return make_result(False, error="no_id_returned", diagnostics=res["diagnostics"])
        return make_result(True, data=str(created["id"]), diagnostics=res["diagnostics"])

    async def get_saved_recipes(self, user_id: str) -> Dict[str, Any]:
        """All recipes of `user_id`, newest first."""

        def _select(uid):
            return (
                self._table()
                .select("*")
                .eq("user_id", uid)
                .order("saved_at", desc=True)
                .execute()
            )

        res = await self._call_db(_select, user_id)
        if not res["ok"]:
            return res

        recipes: List[SavedRecipe] = []
        for row in res["data"] or []:
            try:
                recipes.append(row_to_saved_recipe(row))
            except (KeyError, PydanticValidationError) as exc:
                # one corrupt row should not hide the rest of the collection
                logger.warning("Skipping malformed saved recipe %s: %s", row.get("id"), exc)
        res["diagnostics"]["count"] = len(recipes)
        return make_result(True, data=recipes, diagnostics=res["diagnostics"])

    async def get_recipe(self, user_id: str, recipe_id: str) -> Dict[str, Any]:
        """`data` is the SavedRecipe, or None when it does not exist for this user."""
        if not is_record_id(recipe_id):
            return make_result(True, data=None)

        def _select(uid, rid):
            return (
                self._table()
                .select("*")
                .eq("id", rid)
                .eq("user_id", uid)
                .limit(1)
                .execute()
            )

        res = await self._call_db(_select, user_id, recipe_id)
        if not res["ok"]:
            return res
        row = first_row(res["data"])
        if row is None:
            return make_result(True, data=None, diagnostics=res["diagnostics"])
        try:
            return make_result(True, data=row_to_saved_recipe(row), diagnostics=res["diagnostics"])
        except (KeyError, PydanticValidationError) as exc:
            logger.exception("Malformed saved recipe %s: %s", recipe_id, exc)
            return make_result(False, error="malformed_record", diagnostics=res["diagnostics"])

    async def find_saved_recipe_id(self, user_id: str, name: str) -> Dict[str, Any]:
        """`data` is the id of the user's recipe called `name`, or None."""

        def _select(uid, n):
            return (
                self._table()
                .select("id")
                .eq("user_id", uid)
                .eq("name", n)
                .limit(1)
                .execute()
            )

        res = await self._call_db(_select, user_id, name)
        if not res["ok"]:
            return res
        row = first_row(res["data"])
        return make_result(
            True, data=str(row["id"]) if row else None, diagnostics=res["diagnostics"]
        )

    async def delete_recipe(self, user_id: str, recipe_id: str) -> Dict[str, Any]:
        """`data` is True when a row was removed."""
        if not is_record_id(recipe_id):
            return make_result(True, data=False)
        logger.info("delete_recipe user=%s id=%s", user_id, recipe_id)

        def _delete(uid, rid):
            return self._table().delete().eq("id", rid).eq("user_id", uid).execute()

        res = await self._call_db(_delete, user_id, recipe_id)
        if not res["ok"]:
            return res
        return make_result(True, data=bool(res["data"]), diagnostics=res["diagnostics"])

    async def set_loved(self, user_id: str, recipe_id: str, is_loved: bool) -> Dict[str, Any]:
        """`data` is True when a row was updated."""
        if not is_record_id(recipe_id):
            return make_result(True, data=False)
        logger.info("set_loved user=%s id=%s loved=%s", user_id, recipe_id, is_loved)

        def _update(uid, rid, loved):
            return (
                self._table()
                .update({"is_loved": loved})
                .eq("id", rid)
                .eq("user_id", uid)
                .execute()
            )

        res = await self._call_db(_update, user_id, recipe_id, is_loved)
        if not res["ok"]:
            return res
        return make_result(True, data=bool(res["data"]), diagnostics=res["diagnostics"])
