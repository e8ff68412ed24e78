# cook4me/api/recipes.py
"""
Recipe endpoints: generation, saved recipes and the caller's taste profile.

- POST /generate-recipe              preferences -> generated recipe
- GET  /preferences/options          choices offered by the preference form
- GET  /recipes                      caller's saved recipes, newest first
- POST /recipes                      save a recipe (idempotent by name)
- GET  /recipes/lookup?name=...      id of a saved recipe with that name
- GET  /recipes/{id}                 one saved recipe
- DELETE /recipes/{id}               remove a saved recipe
- PUT  /recipes/{id}/loved           flip the loved flag
- GET  /taste-profile                inferred taste profile (204 when none)
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from cook4me.api.deps import (
    get_analyzer,
    get_current_user,
    get_generator,
    get_optional_user,
    get_recipe_store,
)
from cook4me.models.recipe import (
    COOKING_TIME_RANGE,
    CUISINE_OPTIONS,
    DIETARY_OPTIONS,
    MEAL_TYPE_OPTIONS,
    SERVINGS_RANGE,
    SKILL_LEVEL_OPTIONS,
    CamelModel,
    Recipe,
    RecipePreferences,
    SavedRecipe,
    TasteProfile,
)
from cook4me.models.user import CurrentUser
from cook4me.services.base import unwrap
from cook4me.services.recipe_generator import RecipeGenerator
from cook4me.services.recipe_store import RecipeStore
from cook4me.services.taste_profile import TasteProfileAnalyzer

logger = logging.getLogger(__name__)
router = APIRouter()


class SavedRecipeRef(CamelModel):
    id: Optional[str] = None
    saved: bool = True


class LovedUpdate(CamelModel):
    is_loved: bool


class LovedState(CamelModel):
    id: str
    is_loved: bool


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")


@router.post(
    "/generate-recipe",
    response_model=Recipe,
    response_model_exclude_none=True,
)
async def generate_recipe(
    preferences: RecipePreferences,
    personalize: bool = Query(False, description="Bias the recipe with the caller's taste profile"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    generator: RecipeGenerator = Depends(get_generator),
    analyzer: TasteProfileAnalyzer = Depends(get_analyzer),
) -> Recipe:
    if personalize and user is not None and preferences.taste_profile is None:
        profile = await analyzer.analyze(user.user_id)
        if profile is not None:
            preferences = preferences.model_copy(update={"taste_profile": profile})
    return await generator.generate(preferences)


@router.get("/preferences/options")
async def preference_options() -> Dict[str, Any]:
    return {
        "cuisineTypes": CUISINE_OPTIONS,
        "dietaryRestrictions": DIETARY_OPTIONS,
        "skillLevels": SKILL_LEVEL_OPTIONS,
        "mealTypes": MEAL_TYPE_OPTIONS,
        "maxCookingTime": {"min": COOKING_TIME_RANGE[0], "max": COOKING_TIME_RANGE[1]},
        "servings": {"min": SERVINGS_RANGE[0], "max": SERVINGS_RANGE[1]},
    }


@router.get("/recipes", response_model=List[SavedRecipe], response_model_exclude_none=True)
async def list_saved_recipes(
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> List[SavedRecipe]:
    return unwrap(await store.get_saved_recipes(user.user_id))


@router.post("/recipes", response_model=SavedRecipeRef)
async def save_recipe(
    recipe: Recipe,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> SavedRecipeRef:
    existing = unwrap(await store.find_saved_recipe_id(user.user_id, recipe.name))
    if existing:
        return SavedRecipeRef(id=existing)
    new_id = unwrap(await store.save_recipe(user.user_id, recipe))
    response.status_code = status.HTTP_201_CREATED
    return SavedRecipeRef(id=new_id)


@router.get("/recipes/lookup", response_model=SavedRecipeRef)
async def lookup_saved_recipe(
    name: str = Query(..., min_length=1),
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> SavedRecipeRef:
    recipe_id = unwrap(await store.find_saved_recipe_id(user.user_id, name))
    return SavedRecipeRef(id=recipe_id, saved=recipe_id is not None)


@router.get("/recipes/{recipe_id}", response_model=SavedRecipe, response_model_exclude_none=True)
async def get_saved_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> SavedRecipe:
    recipe = unwrap(await store.get_recipe(user.user_id, recipe_id))
    if recipe is None:
        raise _not_found()
    return recipe


@router.delete("/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> Response:
    if not unwrap(await store.delete_recipe(user.user_id, recipe_id)):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/recipes/{recipe_id}/loved", response_model=LovedState)
async def set_recipe_loved(
    recipe_id: str,
    body: LovedUpdate,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> LovedState:
    if not unwrap(await store.set_loved(user.user_id, recipe_id, body.is_loved)):
        raise _not_found()
    return LovedState(id=recipe_id, is_loved=body.is_loved)


@router.get(
    "/taste-profile",
    response_model=TasteProfile,
    response_model_exclude_none=True,
    responses={204: {"description": "No saved recipes yet"}},
)
async def get_taste_profile(
    user: CurrentUser = Depends(get_current_user),
    analyzer: TasteProfileAnalyzer = Depends(get_analyzer),
):
    profile = await analyzer.analyze(user.user_id)
    if profile is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return profile
