"""
Tests for the evasion normalizer (normalize): each technique, ordering,
idempotence, and clean text passing through untouched.
"""

from __future__ import annotations

import random
import string

import pytest

from backend_modguard.analysis_engine.normalizer import (
    LEET_DIGITS,
    SYMBOL_SUBSTITUTIONS,
    TECHNIQUE_SEVERITY,
    UNICODE_LOOKALIKES,
    bypass_techniques,
    normalize,
)


def test_elongation_collapsed():
    result = normalize("fuuuuck you")
    assert result.normalized_text == "fuck you"
    assert result.techniques == ["elongation"]
    assert result.detected_techniques[0].severity == 2
    assert result.was_modified is True


def test_separator_bypassing():
    result = normalize("f.u.c.k")
    assert result.normalized_text == "fuck"
    assert result.techniques == ["separator-bypassing"]
    assert result.max_severity == 3


def test_spacing_manipulation():
    result = normalize("f u c k you")
    assert result.normalized_text == "fuck you"
    assert result.techniques == ["spacing-manipulation"]


def test_two_single_letters_are_not_joined():
    """'a b' is ordinary text; joining needs three or more isolated letters."""
    result = normalize("i am a b")
    assert result.normalized_text == "i am a b"
    assert result.techniques == []


def test_symbol_substitution():
    result = normalize("f*ck")
    assert result.normalized_text == "fuck"
    assert result.techniques == ["character-substitution"]


def test_leading_symbol_substitution():
    assert normalize("$hit").normalized_text == "shit"


def test_leetspeak():
    result = normalize("sh1t")
    assert result.normalized_text == "shit"
    assert result.techniques == ["leetspeak"]


def test_plain_numbers_untouched():
    result = normalize("at 404")
    assert result.normalized_text == "at 404"
    assert "leetspeak" not in result.techniques


def test_unicode_lookalike():
    # Cyrillic "і" (U+0456) in place of Latin "i"
    result = normalize("idіot")
    assert result.normalized_text == "idiot"
    assert result.techniques == ["unicode-substitution"]


def test_accented_letters_folded():
    result = normalize("fuç")
    assert result.normalized_text == "fuc"
    assert "unicode-substitution" in result.techniques


def test_fullwidth_letters_folded():
    result = normalize("ｆｕｃｋ")
    assert result.normalized_text == "fuck"


def test_techniques_in_detection_order_and_unique():
    result = normalize("fuuuck y.o.u, sh1t sh1t")
    assert result.techniques == ["elongation", "separator-bypassing", "leetspeak"]
    assert len(result.techniques) == len(set(result.techniques))


def test_whitespace_recollapsed():
    assert normalize("  hi    there  ").normalized_text == "hi there"


def test_case_only_is_not_modification():
    result = normalize("Hi There")
    assert result.normalized_text == "hi there"
    assert result.was_modified is False
    assert result.techniques == []


def test_empty_input():
    result = normalize("")
    assert result.normalized_text == ""
    assert result.detected_techniques == ()
    assert result.was_modified is False


@pytest.mark.parametrize(
    "text",
    [
        "fuuuuck you",
        "f.u.c.k",
        "F U C K",
        "sh1t h3ll0",
        "f*ck @ss",
        "idіot",
        "s.h.1.t",
        "$$$ !!! ***",
        "Charizard.pk9 adamant",
        "",
        "normal sentence, nothing to see",
    ],
)
def test_idempotent(text):
    """Normalizing the output again changes nothing and reports nothing."""
    first = normalize(text)
    second = normalize(first.normalized_text)
    assert second.normalized_text == first.normalized_text
    assert second.techniques == []
    assert second.was_modified is False


def test_every_technique_has_a_severity():
    assert set(TECHNIQUE_SEVERITY) == {
        "elongation",
        "separator-bypassing",
        "spacing-manipulation",
        "character-substitution",
        "unicode-substitution",
        "leetspeak",
    }
    assert all(1 <= s <= 5 for s in TECHNIQUE_SEVERITY.values())


_ALPHABET = (
    string.ascii_lowercase * 3
    + "".join(LEET_DIGITS)
    + "".join(SYMBOL_SUBSTITUTIONS)
    + "".join(UNICODE_LOOKALIKES)
    + "  .-_"
)


def test_idempotent_on_generated_text():
    rng = random.Random(20261018)
    for _ in range(500):
        text = "".join(rng.choice(_ALPHABET) for _ in range(rng.randint(1, 40)))
        once = normalize(text).normalized_text
        assert normalize(once).normalized_text == once, text


@pytest.mark.parametrize(
    "text,expected",
    [
        ("good morning", []),
        ("see you tomorrow", []),
        ("fuuuck off", ["elongation"]),
        ("FUUuck off", ["elongation"]),
        ("f.u.c.k", ["separator-bypassing"]),
        ("sh1t happens", ["leetspeak"]),
    ],
)
def test_bypass_techniques(text, expected):
    assert bypass_techniques(text, normalize(text)) == expected
