"""Data models for recipes, preferences and user profiles."""
from cook4me.models.recipe import (
    Ingredient,
    MacroTargets,
    NutritionInfo,
    Recipe,
    RecipePreferences,
    SavedRecipe,
    TasteProfile,
)
from cook4me.models.user import (
    CurrentUser,
    UserProfile,
    UserProfileCreate,
    UserProfileUpdate,
)

__all__ = [
    "Ingredient",
    "MacroTargets",
    "NutritionInfo",
    "Recipe",
    "RecipePreferences",
    "SavedRecipe",
    "TasteProfile",
    "CurrentUser",
    "UserProfile",
    "UserProfileCreate",
    "UserProfileUpdate",
]
