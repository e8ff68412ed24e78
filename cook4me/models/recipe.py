"""
Recipe, preference and taste-profile models.

Attributes are snake_case in Python; the wire format (HTTP bodies, stored
JSON, LLM output) is camelCase through the alias generator.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SkillLevel = Literal["Beginner", "Intermediate", "Advanced"]

DIFFICULTIES = ("Easy", "Medium", "Hard")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MacroTargets(CamelModel):
    """Per-serving targets; a missing field means no target."""

    model_config = ConfigDict(frozen=True)

    calories: Optional[int] = Field(default=None, ge=0)
    protein: Optional[int] = Field(default=None, ge=0)
    carbs: Optional[int] = Field(default=None, ge=0)
    fats: Optional[int] = Field(default=None, ge=0)

    def is_empty(self) -> bool:
        return all(
            v is None for v in (self.calories, self.protein, self.carbs, self.fats)
        )


class Ingredient(CamelModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    item: str
    amount: str
    notes: Optional[str] = None


class NutritionInfo(CamelModel):
    model_config = ConfigDict(frozen=True)

    calories: float
    protein: float
    carbs: float
    fats: float
    fiber: Optional[float] = None


class Recipe(CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    prep_time: int = Field(ge=0)
    cook_time: int = Field(ge=0)
    total_time: int = Field(ge=0)
    servings: int = Field(ge=1)
    difficulty: str
    ingredients: List[Ingredient]
    instructions: List[str]
    tips: Optional[List[str]] = None
    nutrition: Optional[NutritionInfo] = None

    @field_validator("difficulty")
    @classmethod
    def normalize_difficulty(cls, v: str) -> str:
        normalized = (v or "").strip().title()
        if normalized not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
        return normalized


class SavedRecipe(Recipe):
    """A recipe persisted for one user; only `is_loved` changes after save."""

    id: str
    user_id: str
    saved_at: datetime
    is_loved: bool = False


class TasteProfile(CamelModel):
    """Preferences inferred from saved recipes. Recomputed on demand."""

    model_config = ConfigDict(frozen=True)

    favorite_cuisines: List[str] = Field(default_factory=list, max_length=3)
    common_dietary_restrictions: List[str] = Field(default_factory=list)
    preferred_difficulty: List[str] = Field(default_factory=list)
    average_cooking_time: int
    favorite_ingredients: List[str] = Field(default_factory=list, max_length=10)
    macro_preferences: Optional[MacroTargets] = None


class RecipePreferences(CamelModel):
    """What the user asked for. Defaults mirror the preference form."""

    model_config = ConfigDict(frozen=True)

    cuisine_type: str = "Italian"
    dietary_restrictions: List[str] = Field(default_factory=list)
    skill_level: SkillLevel = "Beginner"
    max_cooking_time: int = Field(default=45, ge=1)
    servings: int = Field(default=4, ge=1)
    meal_type: str = "Dinner"
    additional_instructions: str = "None"
    macro_targets: Optional[MacroTargets] = None
    taste_profile: Optional[TasteProfile] = None

    @field_validator("cuisine_type", "meal_type")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("dietary_restrictions")
    @classmethod
    def dedupe_restrictions(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for r in v:
            r = r.strip()
            if r and r not in seen:
                seen.append(r)
        return seen


# Choices offered by the preference form
CUISINE_OPTIONS = [
    "Italian",
    "Mexican",
    "Chinese",
    "Japanese",
    "Indian",
    "Thai",
    "French",
    "Mediterranean",
    "American",
    "Korean",
    "Middle Eastern",
]
MEAL_TYPE_OPTIONS = [
    "Breakfast",
    "Brunch",
    "Lunch",
    "Dinner",
    "Appetizer",
    "Dessert",
    "Snack",
]
DIETARY_OPTIONS = [
    "Vegetarian",
    "Vegan",
    "Gluten-Free",
    "Dairy-Free",
    "Nut-Free",
    "Low-Carb",
    "Keto",
    "Paleo",
]
SKILL_LEVEL_OPTIONS = ["Beginner", "Intermediate", "Advanced"]
COOKING_TIME_RANGE = (15, 180)
SERVINGS_RANGE = (1, 12)
