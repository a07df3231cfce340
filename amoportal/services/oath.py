"""Arabic text normalization used to check the admin application oath."""
from __future__ import annotations

import re
from typing import Iterable

REQUIRED_OATH = "اقسم بان لا اضر السيرفر وان لا اغدر بالسيرفر"
OATH_KEY_TOKENS: tuple[str, ...] = ("اقسم", "اضر", "السيرفر", "اغدر")

_DIACRITICS = re.compile("[\u064b-\u065f\u0670\u0671]")
_ALIF_VARIANTS = re.compile("[\u0623\u0625\u0622]")
_YA_VARIANTS = re.compile("[\u0649\u064a]")
_NON_ARABIC = re.compile("[^\u0600-\u06ff\\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_arabic(text: str) -> str:
    """Return the canonical comparison form of ``text``.

    Diacritics are removed, alif/ya variants and ta marbuta are unified,
    anything outside the Arabic block is dropped and whitespace is collapsed.
    """

    value = (text or "").strip().casefold()
    value = _DIACRITICS.sub("", value)
    value = _ALIF_VARIANTS.sub("\u0627", value)
    value = _YA_VARIANTS.sub("\u064a", value)
    value = value.replace("\u0629", "\u0647")
    value = _NON_ARABIC.sub("", value)
    return _WHITESPACE.sub(" ", value).strip()


def contains_key_tokens(text: str, tokens: Iterable[str] = OATH_KEY_TOKENS) -> bool:
    normalized = normalize_arabic(text)
    return all(normalize_arabic(token) in normalized for token in tokens)


def validate_oath(text: str, required: str = REQUIRED_OATH) -> bool:
    normalized = normalize_arabic(text)
    if not normalized:
        return False
    if normalized == normalize_arabic(required):
        return True
    # Partial oaths pass as long as every key token appears.
    return contains_key_tokens(normalized)


__all__ = [
    "OATH_KEY_TOKENS",
    "REQUIRED_OATH",
    "contains_key_tokens",
    "normalize_arabic",
    "validate_oath",
]
