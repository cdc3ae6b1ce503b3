"""
Evasion normalizer: canonicalize obfuscated text before keyword matching.

Pure function of its input (no I/O, no shared state) so it can run inline
before the source fan-out. Steps run in a fixed order because later steps
assume earlier canonicalization:

1. elongation: collapse runs of identical non-space characters ("fuuuck").
2. separators: join isolated single letters split by punctuation or spaces
   ("f.u.c.k", "f u c k").
3. substitution: map digits, ASCII symbols and Unicode look-alikes to Latin
   letters ("sh1t", "f*ck", Cyrillic "а").
4. whitespace: re-collapse whitespace left behind by steps 2-3.

The pass is repeated until the text stops changing, so normalizing an already
normalized string is a no-op.
"""

from __future__ import annotations

import re
import unicodedata

from backend_modguard.analysis_engine.models import DetectedTechnique, EvasionResult

TECHNIQUE_ELONGATION = "elongation"
TECHNIQUE_SEPARATOR = "separator-bypassing"
TECHNIQUE_SPACING = "spacing-manipulation"
TECHNIQUE_CHAR_SUBSTITUTION = "character-substitution"
TECHNIQUE_UNICODE_SUBSTITUTION = "unicode-substitution"
TECHNIQUE_LEETSPEAK = "leetspeak"

TECHNIQUE_SEVERITY: dict[str, int] = {
    TECHNIQUE_ELONGATION: 2,
    TECHNIQUE_SEPARATOR: 3,
    TECHNIQUE_SPACING: 2,
    TECHNIQUE_CHAR_SUBSTITUTION: 3,
    TECHNIQUE_UNICODE_SUBSTITUTION: 3,
    TECHNIQUE_LEETSPEAK: 2,
}

# Upper bound on repeated passes; every changing pass shortens the text or
# removes a mappable character, so the loop settles long before this.
MAX_PASSES = 8

_LETTER = r"[^\W\d_]"
_ALNUM = r"[^\W_]"
_SEPARATOR = r"[\s.\-_*/\\|+=~`^:;,!?#%&()\[\]{}<>\"'°•·]"

ELONGATION_RE = re.compile(r"(\S)\1+")
# A doubled letter is ordinary spelling ("good", "tomorrow"); three or more
# identical characters in a row is a deliberate stretch.
DELIBERATE_ELONGATION_RE = re.compile(r"(\S)\1{2,}", re.IGNORECASE)
SPACED_LETTERS_RE = re.compile(
    rf"(?<!{_ALNUM}){_LETTER}(?:{_SEPARATOR}+{_LETTER}(?!{_ALNUM})){{2,}}"
)
WHITESPACE_RE = re.compile(r"\s+")

LEET_DIGITS: dict[str, str] = {
    "0": "o",
    "1": "i",
    "3": "e",
    "4": "a",
    "5": "s",
    "6": "b",
    "7": "t",
    "8": "b",
    "9": "g",
}
# Digits count as leetspeak only when touching a letter ("sh1t", "h3ll0"),
# never inside plain numbers.
LEET_DIGIT_RE = re.compile(rf"(?<={_LETTER})[0-9]|[0-9](?={_LETTER})")

SYMBOL_SUBSTITUTIONS: dict[str, str] = {
    "@": "a",
    "$": "s",
    "!": "i",
    "|": "i",
    "+": "t",
    "*": "u",
    "(": "c",
    "[": "c",
}
# Interior symbols ("f*ck", "sh!t") and word-leading @/$ ("@ss", "$hit").
SYMBOL_RE = re.compile(
    rf"(?<={_ALNUM})[@$!|+*(\[](?={_ALNUM})|(?<!{_ALNUM})[@$](?={_LETTER})"
)

UNICODE_LOOKALIKES: dict[str, str] = {
    # Cyrillic
    "а": "a", "в": "b", "е": "e", "ё": "e", "к": "k", "м": "m", "н": "h",
    "о": "o", "р": "p", "с": "c", "т": "t", "у": "y", "х": "x", "і": "i",
    "ї": "i", "ј": "j", "ѕ": "s", "ь": "b", "ԁ": "d",
    # Greek
    "α": "a", "β": "b", "ε": "e", "η": "n", "ι": "i", "κ": "k", "ν": "v",
    "ο": "o", "ρ": "p", "σ": "o", "ς": "s", "τ": "t", "υ": "u", "χ": "x",
    # Symbols used as letters
    "∆": "a", "ß": "b", "¢": "c", "©": "c", "€": "e", "£": "e", "§": "s",
    "†": "t", "°": "o", "ø": "o", "ð": "d", "þ": "p", "ł": "l", "đ": "d",
}


def _collapse_elongation(text: str) -> str:
    return ELONGATION_RE.sub(r"\1", text)


def _join_spaced_letters(text: str) -> tuple[str, set[str]]:
    """Join single letters split by separators; report which technique was used."""
    found: set[str] = set()

    def _join(match: re.Match[str]) -> str:
        chunk = match.group(0)
        letters = "".join(ch for ch in chunk if ch.isalpha())
        separators = [ch for ch in chunk if not ch.isalpha()]
        if all(ch.isspace() for ch in separators):
            found.add(TECHNIQUE_SPACING)
        else:
            found.add(TECHNIQUE_SEPARATOR)
        return letters

    return SPACED_LETTERS_RE.sub(_join, text), found


def _fold_unicode(text: str) -> str:
    """Map non-ASCII look-alikes and accented letters to plain Latin."""
    if text.isascii():
        return text
    out: list[str] = []
    for ch in text:
        if ch.isascii():
            out.append(ch)
            continue
        ch = unicodedata.normalize("NFKC", ch).lower()
        ch = "".join(UNICODE_LOOKALIKES.get(c, c) for c in ch)
        decomposed = unicodedata.normalize("NFKD", ch)
        stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
        out.append(stripped or ch)
    return "".join(out)


def _substitute(text: str) -> tuple[str, list[str]]:
    """Apply look-alike, symbol and digit substitutions; return techniques seen."""
    found: list[str] = []

    folded = _fold_unicode(text)
    if folded != text:
        found.append(TECHNIQUE_UNICODE_SUBSTITUTION)

    symbols = SYMBOL_RE.sub(lambda m: SYMBOL_SUBSTITUTIONS[m.group(0)], folded)
    if symbols != folded:
        found.append(TECHNIQUE_CHAR_SUBSTITUTION)

    digits = LEET_DIGIT_RE.sub(lambda m: LEET_DIGITS.get(m.group(0), m.group(0)), symbols)
    if digits != symbols:
        found.append(TECHNIQUE_LEETSPEAK)

    return digits, found


def _normalize_pass(text: str) -> tuple[str, list[str]]:
    techniques: list[str] = []

    collapsed = _collapse_elongation(text)
    if collapsed != text:
        techniques.append(TECHNIQUE_ELONGATION)

    joined, separator_techniques = _join_spaced_letters(collapsed)
    # Separator before spacing keeps report order stable across runs.
    techniques.extend(t for t in (TECHNIQUE_SEPARATOR, TECHNIQUE_SPACING) if t in separator_techniques)

    substituted, substitution_techniques = _substitute(joined)
    techniques.extend(substitution_techniques)

    tidy = WHITESPACE_RE.sub(" ", substituted).strip().lower()
    return tidy, techniques


def normalize(text: str) -> EvasionResult:
    """
    Canonicalize text and report the evasion techniques found.

    Each technique is listed once, in the order first detected.
    was_modified compares the result against the lower-cased input.
    """
    lowered = (text or "").lower()
    current = lowered
    seen: dict[str, None] = {}
    for _ in range(MAX_PASSES):
        updated, techniques = _normalize_pass(current)
        for technique in techniques:
            seen.setdefault(technique, None)
        if updated == current:
            break
        current = updated

    detected = tuple(
        DetectedTechnique(technique=t, severity=TECHNIQUE_SEVERITY[t]) for t in seen
    )
    return EvasionResult(
        normalized_text=current,
        detected_techniques=detected,
        was_modified=current != lowered,
    )


def bypass_techniques(text: str, evasion: EvasionResult) -> list[str]:
    """
    Techniques in evasion that indicate a deliberate filter bypass.

    Elongation only counts when the original text stretches a character to
    three or more repeats; every other technique always counts.
    """
    deliberate = DELIBERATE_ELONGATION_RE.search(text or "") is not None
    return [t for t in evasion.techniques if t != TECHNIQUE_ELONGATION or deliberate]
