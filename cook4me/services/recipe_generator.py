# cook4me/services/recipe_generator.py
"""
Recipe generation through the OpenAI chat completions API.

One call per request: build the prompt from the preferences, send it, pull
the JSON object out of the reply and validate it as a Recipe. No retries,
no caching.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional

from openai import APIConnectionError, APIError, APIStatusError, OpenAI
from pydantic import ValidationError as PydanticValidationError

from cook4me.config.settings import settings
from cook4me.models.recipe import MacroTargets, Recipe, RecipePreferences
from cook4me.services.errors import GenerationError, RecipeParseError
from cook4me.services.taste_profile import format_taste_profile_for_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?(.*?)```", re.DOTALL)

RECIPE_JSON_SHAPE = """{
  "name": "Recipe Name",
  "description": "Brief description of the dish (2-3 sentences)",
  "prepTime": number (in minutes),
  "cookTime": number (in minutes),
  "totalTime": number (in minutes),
  "servings": number,
  "difficulty": "Easy" | "Medium" | "Hard",
  "ingredients": [
    {
      "item": "ingredient name",
      "amount": "quantity and unit",
      "notes": "optional preparation notes"
    }
  ],
  "instructions": [
    "Step 1 description",
    "Step 2 description"
  ],
  "tips": [
    "Optional cooking tip 1",
    "Optional cooking tip 2"
  ],
  "nutrition": {
    "calories": number (per serving),
    "protein": number (grams per serving),
    "carbs": number (grams per serving),
    "fats": number (grams per serving),
    "fiber": number (grams per serving, optional)
  }
}"""


def _mask_key(k: Optional[str]) -> str:
    if not k:
        return "(none)"
    if len(k) <= 8:
        return k
    return f"{k[:4]}...{k[-4:]}"


def _format_macro_targets(macros: MacroTargets) -> str:
    parts = []
    if macros.calories is not None:
        parts.append(f"{macros.calories} calories")
    if macros.protein is not None:
        parts.append(f"{macros.protein}g protein")
    if macros.carbs is not None:
        parts.append(f"{macros.carbs}g carbs")
    if macros.fats is not None:
        parts.append(f"{macros.fats}g fats")
    return ", ".join(parts)


def build_recipe_prompt(preferences: RecipePreferences) -> str:
    lines = [
        "Generate a complete recipe based on these preferences:",
        f"Cuisine Type: {preferences.cuisine_type}",
        f"Dietary Restrictions: {', '.join(preferences.dietary_restrictions) or 'None'}",
        f"Skill Level: {preferences.skill_level}",
        f"Maximum Cooking Time: {preferences.max_cooking_time} minutes",
        f"Servings: {preferences.servings}",
        f"Meal Type: {preferences.meal_type}",
        f"Additional Instructions: {preferences.additional_instructions or 'None'}",
    ]
    if preferences.macro_targets and not preferences.macro_targets.is_empty():
        lines.append(
            f"Macro Targets (per serving): {_format_macro_targets(preferences.macro_targets)}"
        )
    if preferences.taste_profile is not None:
        lines.append("")
        lines.append(
            "The user's taste profile, inferred from recipes they saved and loved. "
            "Use it to personalize the recipe, but the preferences above take priority:"
        )
        lines.append(format_taste_profile_for_prompt(preferences.taste_profile))

    lines.extend(
        [
            "",
            "Please create an original, detailed recipe that matches ALL of these criteria.",
            "",
            "IMPORTANT: You must respond with ONLY a valid JSON object in this exact format. "
            "Do not include any text, explanations, or markdown formatting outside the JSON structure:",
            "",
            RECIPE_JSON_SHAPE,
            "",
            "DO NOT include markdown code blocks or any text outside the JSON object. "
            "Your entire response must be valid JSON only.",
        ]
    )
    return "\n".join(lines)


def extract_json_payload(text: Optional[str]) -> str:
    """
    Pull the JSON object out of a model reply.

    Accepts bare JSON or exactly one fenced block (```json ... ``` or
    ``` ... ```). Raises RecipeParseError on empty input, on several
    fenced blocks, or when what remains is not a {...} object.
    """
    if text is None or not text.strip():
        raise RecipeParseError("empty response", raw_text=text or "")

    stripped = text.strip()
    blocks = _FENCE_RE.findall(stripped)
    if len(blocks) > 1:
        raise RecipeParseError(
            f"ambiguous response: {len(blocks)} fenced blocks", raw_text=text
        )
    if blocks:
        candidate = blocks[0].strip()
    else:
        # an unterminated fence is still just a wrapper
        candidate = re.sub(r"```[a-zA-Z]*", "", stripped).strip()

    if not (candidate.startswith("{") and candidate.endswith("}")):
        raise RecipeParseError("response is not a JSON object", raw_text=text)
    return candidate


def parse_recipe_response(text: Optional[str]) -> Recipe:
    payload = extract_json_payload(text)
    try:
        return Recipe.model_validate(json.loads(payload))
    except json.JSONDecodeError as exc:
        raise RecipeParseError(f"invalid JSON: {exc}", raw_text=text or "") from exc
    except PydanticValidationError as exc:
        raise RecipeParseError(
            f"JSON does not match the recipe shape: {exc.error_count()} error(s)",
            raw_text=text or "",
        ) from exc


def _response_text(resp: Any) -> Optional[str]:
    """Text of the first choice; None when the reply carries no content."""
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


class RecipeGenerator:

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.model = model or settings.openai_model
        self.max_tokens = max_tokens or settings.generation_max_tokens
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = OpenAI(api_key=settings.openai_api_key)
            logger.info(
                "OpenAI client created (model=%s key=%s)",
                self.model,
                _mask_key(settings.openai_api_key),
            )
        if self.client is None:
            logger.info("RecipeGenerator: OpenAI client not configured.")

    async def generate(self, preferences: RecipePreferences) -> Recipe:
        """
        Generate one recipe.

        Raises GenerationError when the service call fails and
        RecipeParseError when the reply is not a valid recipe.
        """
        if self.client is None:
            raise GenerationError("generation service not configured", status_code=503)

        prompt = build_recipe_prompt(preferences)
        logger.info(
            "generate cuisine=%s meal=%s personalized=%s prompt_chars=%d",
            preferences.cuisine_type,
            preferences.meal_type,
            preferences.taste_profile is not None,
            len(prompt),
        )

        loop = asyncio.get_running_loop()
        func = lambda: self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
        )
        try:
            resp = await loop.run_in_executor(None, func)
        except APIStatusError as exc:
            logger.error("OpenAI returned status %s: %s", exc.status_code, exc)
            raise GenerationError("generation request failed", status_code=exc.status_code) from exc
        except APIConnectionError as exc:
            logger.error("OpenAI connection failed: %s", exc)
            raise GenerationError("generation service unreachable", status_code=502) from exc
        except APIError as exc:
            logger.error("OpenAI error: %s", exc)
            raise GenerationError("generation request failed") from exc

        text = _response_text(resp)
        try:
            return parse_recipe_response(text)
        except RecipeParseError as exc:
            logger.error("Failed to parse recipe JSON: %s", exc)
            logger.error("Raw response: %s", exc.raw_text)
            raise
