"""
Content classifier: tag a message with the coarse domain that selects the
weight profile.

Deterministic vocabulary membership plus a structural obfuscation check.
Precedence is protected > evasion-suspected > informal > general: trading
chatter legitimately contains odd tokens (".pk9", trade codes) that would
otherwise look like evasion.
"""

from __future__ import annotations

import re

from backend_modguard.analysis_engine.models import ContentType, SourceContext

# --- Protected (game-trading) vocabulary ---

TRADE_FILE_EXTENSION_RE = re.compile(
    r"\.(pk[3-9]|pb[78]|pa[78]|pkm|3gpkm|ck3|bk4|rk4|sk2|xk3)(\s|$)", re.IGNORECASE
)
TRADE_CODE_RE = re.compile(r"\.trade\s+\d{4,8}", re.IGNORECASE)
MYSTERY_EGG_RE = re.compile(r"\.(me|mysteryegg)\s+\d{4,8}", re.IGNORECASE)
BATTLE_TEAM_RE = re.compile(r"\.bt\s+", re.IGNORECASE)
PASTE_LINK_RE = re.compile(r"pokepast(e|\.es)", re.IGNORECASE)

TRADING_TERMS: tuple[str, ...] = (
    "shiny", "level", "ball", "ability", "nature", "evs", "ivs", "moves", "item",
    "tera type", "hidden power", "happiness", "ot", "tid", "gigantamax",
    "metlocation", "dusk ball", "poke ball", "ultra ball", "master ball", "beast ball",
)
NATURES: tuple[str, ...] = (
    "adamant", "modest", "jolly", "timid", "bold", "impish", "careful", "calm",
    "hasty", "naive", "serious", "hardy", "lonely", "brave", "relaxed", "quiet",
)
SPECIES: tuple[str, ...] = (
    "charizard", "pikachu", "mewtwo", "mew", "rayquaza", "arceus", "dialga", "palkia",
    "giratina", "kyogre", "groudon", "lugia", "ho-oh", "celebi", "jirachi", "deoxys",
    "eevee", "vaporeon", "jolteon", "flareon", "espeon", "umbreon", "leafeon",
    "glaceon", "sylveon", "lucario", "garchomp", "dragapult", "mimikyu", "toxapex",
    "pokemon",
)
PROTECTED_CHANNEL_KEYWORDS: tuple[str, ...] = ("pokemon", "trade", "trading")
MIN_TRADING_TERMS = 2

# --- Informal (gaming chatter) vocabulary ---

INFORMAL_TERMS: tuple[str, ...] = (
    "gg", "ggwp", "wp", "game", "games", "gaming", "play", "playing", "played",
    "team", "match", "ranked", "lobby", "noob", "nerf", "buff", "op", "respawn",
    "queue", "carry", "clutch", "rekt", "pvp", "pve", "raid", "loot",
)
INFORMAL_CHANNEL_KEYWORDS: tuple[str, ...] = ("game", "gaming", "play", "lfg")

# --- Structural obfuscation shape ---

# Ellipses and dashes between words are ordinary punctuation; starred or
# underscored gaps inside a word are not.
EVASION_SHAPE_RE = re.compile(r"[*@$!]{2,}|(.)\1{4,}|[a-z][*_]{2,}[a-z]", re.IGNORECASE)
PUNCTUATED_LETTERS_RE = re.compile(
    r"(?<![a-z0-9])[a-z](?:(?:[^\w\s]|_)+[a-z](?![a-z0-9])){2,}", re.IGNORECASE
)


def _word_pattern(terms: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(t) for t in sorted(terms, key=len, reverse=True))
    return re.compile(rf"(?<![a-z0-9])(?:{alternatives})(?![a-z0-9])", re.IGNORECASE)


_TRADING_TERMS_RE = _word_pattern(TRADING_TERMS)
_NATURES_RE = _word_pattern(NATURES)
_SPECIES_RE = _word_pattern(SPECIES)
_INFORMAL_RE = _word_pattern(INFORMAL_TERMS)


def _channel_matches(context: SourceContext | None, keywords: tuple[str, ...]) -> bool:
    if context is None or not context.channel_name:
        return False
    name = context.channel_name.lower()
    return any(k in name for k in keywords)


def is_protected_content(text: str, context: SourceContext | None = None) -> bool:
    """True for game-trading content: file names, trade commands, species, set details."""
    if _channel_matches(context, PROTECTED_CHANNEL_KEYWORDS):
        return True
    if (
        TRADE_FILE_EXTENSION_RE.search(text)
        or TRADE_CODE_RE.search(text)
        or MYSTERY_EGG_RE.search(text)
        or BATTLE_TEAM_RE.search(text)
        or PASTE_LINK_RE.search(text)
    ):
        return True

    term_count = len({m.group(0).lower() for m in _TRADING_TERMS_RE.finditer(text)})
    has_species = _SPECIES_RE.search(text) is not None
    has_nature = _NATURES_RE.search(text) is not None

    if has_species or term_count >= MIN_TRADING_TERMS:
        return True
    # Natures are ordinary adjectives ("calm", "serious"); they need a trading term.
    if has_nature and term_count >= 1:
        return True
    return False


def has_evasion_shape(text: str) -> bool:
    """True when the raw text looks deliberately obfuscated."""
    return bool(EVASION_SHAPE_RE.search(text) or PUNCTUATED_LETTERS_RE.search(text))


def is_informal_content(text: str, context: SourceContext | None = None) -> bool:
    if _channel_matches(context, INFORMAL_CHANNEL_KEYWORDS):
        return True
    return _INFORMAL_RE.search(text) is not None


def classify(text: str, context: SourceContext | None = None) -> ContentType:
    """
    Return the content type for text (optionally using the channel name).

    Deterministic: the same text and channel always give the same type.
    """
    text = text or ""
    if is_protected_content(text, context):
        return ContentType.PROTECTED
    if has_evasion_shape(text):
        return ContentType.EVASION_SUSPECTED
    if is_informal_content(text, context):
        return ContentType.INFORMAL
    return ContentType.GENERAL
