from __future__ import annotations

import pytest

from message_relay.prompts import (
    CATEGORY_PROMPTS,
    Category,
    Freeform,
    Preset,
    parse_category,
    resolve_instruction,
    selector_label,
)


@pytest.mark.parametrize(
    "key, expected",
    [
        ("positive", Category.POSITIVE),
        (" Supportive ", Category.SUPPORTIVE),
        ("problem-solving", Category.PROBLEM_SOLVING),
        ("problem_solving", Category.PROBLEM_SOLVING),
        ("nonsense", Category.COLLABORATIVE),
        ("", Category.COLLABORATIVE),
        (None, Category.COLLABORATIVE),
    ],
)
def test_parse_category(key, expected):
    assert parse_category(key) is expected


def test_every_category_has_a_prompt():
    assert set(CATEGORY_PROMPTS) == set(Category)


def test_unknown_key_resolves_like_collaborative():
    unknown = resolve_instruction(Preset(parse_category("grumpy")))
    assert unknown == resolve_instruction(Preset(Category.COLLABORATIVE))


def test_freeform_passes_text_through():
    sel = Freeform("Rewrite as a haiku.")
    assert resolve_instruction(sel) == "Rewrite as a haiku."
    assert selector_label(sel) == "custom"
    assert selector_label(Preset(Category.PROBLEM_SOLVING)) == "problem-solving"
