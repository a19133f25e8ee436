"""Tone presets and the category selector used to build the system prompt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union


_OUTPUT_RULES = (
    "Output ONLY the rephrased message. "
    "No introductions, quotes or explanations. "
    "Preserve the language and the meaning of the original message."
)


class Category(str, Enum):
    POSITIVE = "positive"
    SUPPORTIVE = "supportive"
    COLLABORATIVE = "collaborative"
    PROBLEM_SOLVING = "problem-solving"


DEFAULT_CATEGORY = Category.COLLABORATIVE

CATEGORY_PROMPTS: Dict[Category, str] = {
    Category.POSITIVE: (
        "You rewrite chat messages so they sound positive and encouraging. "
        "Turn negative wording into constructive, upbeat phrasing. " + _OUTPUT_RULES
    ),
    Category.SUPPORTIVE: (
        "You rewrite chat messages so they sound supportive and empathetic. "
        "Acknowledge the recipient's feelings and offer reassurance. " + _OUTPUT_RULES
    ),
    Category.COLLABORATIVE: (
        "You rewrite chat messages so they sound collaborative. "
        "Frame the message as a shared effort and invite the recipient to work on it together. "
        + _OUTPUT_RULES
    ),
    Category.PROBLEM_SOLVING: (
        "You rewrite chat messages so they focus on solving the problem. "
        "State the issue calmly and suggest a concrete next step. " + _OUTPUT_RULES
    ),
}

_ALIASES = {
    "problem_solving": Category.PROBLEM_SOLVING,
    "problemsolving": Category.PROBLEM_SOLVING,
}


@dataclass(frozen=True)
class Preset:
    category: Category


@dataclass(frozen=True)
class Freeform:
    text: str


CategorySelector = Union[Preset, Freeform]


def parse_category(key: Optional[str], default: Category = DEFAULT_CATEGORY) -> Category:
    """Map a category key to a :class:`Category`; unknown or empty keys give ``default``."""
    if not key:
        return default
    norm = key.strip().lower()
    try:
        return Category(norm)
    except ValueError:
        return _ALIASES.get(norm, default)


def resolve_instruction(selector: CategorySelector) -> str:
    """Return the system instruction for a selector."""
    if isinstance(selector, Freeform):
        return selector.text
    if isinstance(selector, Preset):
        return CATEGORY_PROMPTS[selector.category]
    raise TypeError(f"Unsupported category selector: {selector!r}")


def selector_label(selector: CategorySelector) -> str:
    """Short label stored with a message entry ("custom" for free text)."""
    if isinstance(selector, Freeform):
        return "custom"
    return selector.category.value
