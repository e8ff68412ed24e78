# cook4me/services/taste_profile.py
"""
Taste profile inference from a user's saved recipes.

The profile is a cheap keyword heuristic over recipe text, ingredients,
difficulty, time and nutrition. It is recomputed on every request and never
stored.
"""
from __future__ import annotations

import logging
import math
import re
from collections import Counter
from typing import List, Optional, Sequence

from cook4me.models.recipe import MacroTargets, SavedRecipe, TasteProfile
from cook4me.services.base import unwrap
from cook4me.services.recipe_store import RecipeStore

logger = logging.getLogger(__name__)

KNOWN_CUISINES = (
    "italian",
    "mexican",
    "chinese",
    "japanese",
    "indian",
    "thai",
    "french",
    "mediterranean",
    "american",
    "korean",
    "middle eastern",
)
KNOWN_RESTRICTIONS = ("vegetarian", "vegan", "gluten-free", "dairy-free", "low-carb", "keto")

# A restriction is "common" when strictly more than this share of recipes mention it
DIETARY_MATCH_THRESHOLD = 0.3

MAX_CUISINES = 3
MAX_INGREDIENTS = 10
PROMPT_INGREDIENTS = 5

_PREP_WORDS_RE = re.compile(
    r"\b(fresh|dried|chopped|minced|sliced|diced|ground|whole|raw|cooked)\b"
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _recipe_text(recipe: SavedRecipe) -> str:
    return f"{recipe.name} {recipe.description}".lower()


def _title_hyphenated(phrase: str) -> str:
    return "-".join(part.capitalize() for part in phrase.split("-"))


def main_ingredient(item: str) -> str:
    """Strip preparation words and keep the last two words ("fresh basil leaves" -> "basil leaves")."""
    stripped = _PREP_WORDS_RE.sub("", item.lower()).strip()
    return " ".join(stripped.split()[-2:])


def select_analysis_set(
    recipes: Sequence[SavedRecipe], prefer_loved: bool = True
) -> List[SavedRecipe]:
    """Loved recipes when there are any, otherwise everything."""
    if prefer_loved:
        loved = [r for r in recipes if r.is_loved]
        if loved:
            return loved
    return list(recipes)


def infer_cuisines(recipes: Sequence[SavedRecipe]) -> List[str]:
    counts: Counter = Counter()
    for recipe in recipes:
        text = _recipe_text(recipe)
        for cuisine in KNOWN_CUISINES:
            if cuisine in text:
                counts[cuisine] += 1
    return [c.title() for c, _ in counts.most_common(MAX_CUISINES)]


def infer_difficulty(recipes: Sequence[SavedRecipe]) -> List[str]:
    counts = Counter(r.difficulty.casefold() for r in recipes)
    return [d.title() for d, _ in counts.most_common()]


def average_cooking_time(recipes: Sequence[SavedRecipe]) -> int:
    return _round_half_up(sum(r.total_time for r in recipes) / len(recipes))


def infer_ingredients(recipes: Sequence[SavedRecipe]) -> List[str]:
    counts: Counter = Counter()
    for recipe in recipes:
        for ingredient in recipe.ingredients:
            name = main_ingredient(ingredient.item)
            if len(name) > 2:
                counts[name] += 1
    return [name for name, _ in counts.most_common(MAX_INGREDIENTS)]


def infer_dietary_restrictions(
    recipes: Sequence[SavedRecipe], threshold: float = DIETARY_MATCH_THRESHOLD
) -> List[str]:
    texts = [_recipe_text(r) for r in recipes]
    found = []
    for restriction in KNOWN_RESTRICTIONS:
        phrase = restriction.replace("-", " ")
        matches = sum(1 for t in texts if phrase in t)
        if matches / len(texts) > threshold:
            found.append(_title_hyphenated(restriction))
    return found


def infer_macros(recipes: Sequence[SavedRecipe]) -> Optional[MacroTargets]:
    with_nutrition = [r.nutrition for r in recipes if r.nutrition is not None]
    if not with_nutrition:
        return None
    n = len(with_nutrition)
    return MacroTargets(
        calories=_round_half_up(sum(x.calories for x in with_nutrition) / n),
        protein=_round_half_up(sum(x.protein for x in with_nutrition) / n),
        carbs=_round_half_up(sum(x.carbs for x in with_nutrition) / n),
        fats=_round_half_up(sum(x.fats for x in with_nutrition) / n),
    )


def build_taste_profile(
    recipes: Sequence[SavedRecipe],
    prefer_loved: bool = True,
    dietary_threshold: float = DIETARY_MATCH_THRESHOLD,
) -> Optional[TasteProfile]:
    """Pure inference step; None when there is nothing to analyze."""
    if not recipes:
        return None
    analysis_set = select_analysis_set(recipes, prefer_loved=prefer_loved)
    return TasteProfile(
        favorite_cuisines=infer_cuisines(analysis_set),
        common_dietary_restrictions=infer_dietary_restrictions(
            analysis_set, threshold=dietary_threshold
        ),
        preferred_difficulty=infer_difficulty(analysis_set),
        average_cooking_time=average_cooking_time(analysis_set),
        favorite_ingredients=infer_ingredients(analysis_set),
        macro_preferences=infer_macros(analysis_set),
    )


def format_taste_profile_for_prompt(profile: TasteProfile) -> str:
    parts = []
    if profile.favorite_cuisines:
        parts.append(f"Favorite cuisines: {', '.join(profile.favorite_cuisines)}")
    if profile.common_dietary_restrictions:
        parts.append(
            f"Common dietary preferences: {', '.join(profile.common_dietary_restrictions)}"
        )
    if profile.preferred_difficulty:
        parts.append(
            f"Preferred difficulty levels: {', '.join(profile.preferred_difficulty)}"
        )
    parts.append(f"Average preferred cooking time: {profile.average_cooking_time} minutes")
    if profile.favorite_ingredients:
        top = profile.favorite_ingredients[:PROMPT_INGREDIENTS]
        parts.append(f"Favorite ingredients: {', '.join(top)}")
    macros = profile.macro_preferences
    if macros is not None:
        parts.append(
            f"Typical macro preferences: {macros.calories} cal, "
            f"{macros.protein}g protein, "
            f"{macros.carbs}g carbs, "
            f"{macros.fats}g fats"
        )
    return "\n".join(parts)


class TasteProfileAnalyzer:
    """Reads a user's saved recipes and infers their taste profile."""

    def __init__(
        self,
        store: Optional[RecipeStore] = None,
        prefer_loved: bool = True,
        dietary_threshold: float = DIETARY_MATCH_THRESHOLD,
    ):
        self.store = store or RecipeStore()
        self.prefer_loved = prefer_loved
        self.dietary_threshold = dietary_threshold

    async def analyze(self, user_id: str) -> Optional[TasteProfile]:
        """
        Profile for `user_id`, or None if they have no saved recipes.

        Raises PersistenceError when the store read fails.
        """
        if not user_id:
            raise ValueError("user_id is required")
        recipes = unwrap(await self.store.get_saved_recipes(user_id))
        profile = build_taste_profile(
            recipes,
            prefer_loved=self.prefer_loved,
            dietary_threshold=self.dietary_threshold,
        )
        logger.info(
            "analyze user=%s recipes=%d profile=%s",
            user_id,
            len(recipes),
            "yes" if profile else "none",
        )
        return profile
