"""
Request DTOs for recipe endpoints.

CreateRecipeRequest   — POST /api/recipes
UpdateRecipeRequest   — PUT /api/recipes/{id}  (partial)
RateRecipeRequest     — POST /api/recipes/{id}/rate
CommentRequest        — POST /api/recipes/{id}/comments, POST /api/blogs/{id}/comment

``time`` accepts a number of minutes (treated as cook time), a numeric
string, or an object with any of prep/cook/total. Missing parts are filled:
cook falls back to total, total falls back to prep + cook.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, HttpUrl, field_validator

from schemas.models.recipe import Difficulty, RecipeTime


def normalize_time(value: Any) -> Any:
    if value is None or isinstance(value, RecipeTime):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text)
        except ValueError:
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(
                    "time must be minutes or an object with prep/cook/total"
                ) from exc
    if isinstance(value, bool):
        raise ValueError("time must be minutes or an object with prep/cook/total")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError("time must not be negative")
        return {"prep": 0, "cook": value, "total": value}
    if isinstance(value, dict):
        prep = float(value.get("prep") or 0)
        cook = float(value.get("cook") or value.get("total") or 0)
        total = value.get("total")
        total = float(total) if total is not None else prep + cook
        if min(prep, cook, total) < 0:
            raise ValueError("time must not be negative")
        return {"prep": prep, "cook": cook, "total": total}
    raise ValueError("time must be minutes or an object with prep/cook/total")


class IngredientIn(BaseModel):
    name: str = Field(min_length=1)
    quantity: Optional[float] = Field(default=None, gt=0)
    unit: Optional[str] = None


def split_tags(value: Any) -> Any:
    """Accept "a,b,c" as well as a list."""
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return value


TimeIn = Annotated[Optional[RecipeTime], BeforeValidator(normalize_time)]
Tags = Annotated[list[str], BeforeValidator(split_tags)]


class CreateRecipeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=5, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    content: str = Field(min_length=20)
    ingredients: list[IngredientIn] = Field(min_length=1)
    steps: list[str] = Field(min_length=1)
    time: TimeIn = None
    difficulty: Difficulty = "easy"
    servings: Optional[float] = Field(default=None, gt=0)
    tags: Tags = []
    thumbnail: Optional[HttpUrl] = None
    images: list[HttpUrl] = []


class UpdateRecipeRequest(BaseModel):
    """Every field optional; only the fields sent are changed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=5, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = Field(default=None, min_length=20)
    ingredients: Optional[list[IngredientIn]] = Field(default=None, min_length=1)
    steps: Optional[list[str]] = Field(default=None, min_length=1)
    time: TimeIn = None
    difficulty: Optional[Difficulty] = None
    servings: Optional[float] = Field(default=None, gt=0)
    tags: Optional[Tags] = None
    thumbnail: Optional[HttpUrl] = None
    images: Optional[list[HttpUrl]] = None


class RateRecipeRequest(BaseModel):
    """Also accepts the ``{value, content}`` shape older clients send."""

    model_config = ConfigDict(populate_by_name=True)

    stars: int = Field(ge=1, le=5, alias="value")
    comment: Optional[str] = Field(default=None, alias="content", max_length=2000)


class CommentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("comment must not be blank")
        return v.strip()
