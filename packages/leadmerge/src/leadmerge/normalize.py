"""Normalization of listing fields for comparison.

Every function here is total: missing or malformed input degrades to an
empty string instead of raising.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

ADDRESS_ABBREVIATIONS: dict[str, str] = {
    "street": "st",
    "avenue": "ave",
    "boulevard": "blvd",
    "drive": "dr",
    "road": "rd",
    "lane": "ln",
    "court": "ct",
    "suite": "ste",
    "apartment": "apt",
}

LEGAL_SUFFIXES: frozenset[str] = frozenset({"llc", "inc", "corp", "ltd", "co"})

_ADDRESS_WORD_RE = re.compile(r"\b(" + "|".join(ADDRESS_ABBREVIATIONS) + r")\b")
_ADDRESS_PUNCT_RE = re.compile(r"[.,#]")
_WHITESPACE_RE = re.compile(r"\s+")
_APOSTROPHE_RE = re.compile(r"[‘’`]")
_NAME_PUNCT_RE = re.compile(r"[^\w\s']")
_SCHEME_WWW_RE = re.compile(r"^(https?://)?(www\.)?")
_LEADING_WWW_RE = re.compile(r"^(?:www\.)+")


def normalize_phone(phone: str | None, digits: int = 10) -> str:
    """Digits only, keeping the last ``digits`` characters.

    Longer international numbers lose their country prefix.
    """
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)[-digits:]


def normalize_address(address: str | None) -> str:
    """Lower-case, standardize street/unit words, drop punctuation."""
    if not address:
        return ""
    s = address.lower()
    s = _ADDRESS_PUNCT_RE.sub("", s)
    s = _ADDRESS_WORD_RE.sub(lambda m: ADDRESS_ABBREVIATIONS[m.group(1)], s)
    return _WHITESPACE_RE.sub(" ", s).strip()


def extract_domain(website: str | None) -> str:
    """Host part of a URL, lower-cased and without leading ``www.``."""
    if not website:
        return ""
    url = website.strip()
    if not url:
        return ""
    if "://" not in url:
        url = f"https://{url}"

    try:
        host = urlsplit(url).hostname
    except ValueError:
        host = None

    if not host:
        # Best effort for strings urlsplit cannot make sense of
        host = _SCHEME_WWW_RE.sub("", website.strip().lower()).split("/")[0]

    return _LEADING_WWW_RE.sub("", host.lower())


def normalize_business_name(name: str | None) -> str:
    """Comparable form of a business name.

    Unifies apostrophes, spells out ``&``, drops punctuation and trailing
    legal suffixes (llc, inc, corp, ltd, co). A suffix is kept if it is the
    only word left.
    """
    if not name:
        return ""
    s = name.lower()
    s = _APOSTROPHE_RE.sub("'", s)
    s = s.replace("&", "and")
    s = _NAME_PUNCT_RE.sub("", s)

    tokens = s.split()
    while len(tokens) > 1 and tokens[-1] in LEGAL_SUFFIXES:
        tokens.pop()
    return " ".join(tokens)
