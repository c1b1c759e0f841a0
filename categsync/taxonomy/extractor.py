"""
Extraction des slugs de catégorie depuis le corps brut d'un post.

Grammaire reconnue : ``<marker><parent>/`` ou ``<marker><parent>/<child>/`` où chaque segment est
terminé par ``/``, un guillemet, un blanc (ou ``<``, ``>``, ``?``, ``#``, ``&``). Fonctions pures.
"""

# taxonomy/extractor.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re
from urllib.parse import unquote

from categsync.utils.config import CATEGORY_MARKER, SLUG_MAX_LENGTH

_VALID_SLUG = re.compile(r"^[a-z0-9-]+$")
_STRIP_CHARS = "\"'\\` \t\r\n"
# guillemets encodés laissés par les exports HTML/JSON
_ENCODED_QUOTES = re.compile(r"%2[27]|%5c", re.IGNORECASE)

MAX_SEGMENTS = 2


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    slugs: tuple[str, ...]
    rejected: tuple[str, ...]


@lru_cache(maxsize=8)
def _link_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(re.escape(marker) + r"(?P<path>[^\s\"'<>?#&]*)", re.IGNORECASE)


def _as_text(body: str | bytes | None) -> str:
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    return str(body)


def normalize_slug(raw: str, max_length: int = SLUG_MAX_LENGTH) -> str | None:
    """
    Normalise un segment brut ; None si le résultat sort des bornes ou contient autre chose que [a-z0-9-].
    """
    candidate = _ENCODED_QUOTES.sub("", raw)
    try:
        candidate = unquote(candidate, errors="strict")
    except UnicodeDecodeError:
        return None
    candidate = candidate.strip(_STRIP_CHARS).lower()
    if not 1 <= len(candidate) <= max_length:
        return None
    if not _VALID_SLUG.match(candidate):
        return None
    return candidate


def scan_category_links(
    body: str | bytes | None,
    *,
    marker: str = CATEGORY_MARKER,
    max_length: int = SLUG_MAX_LENGTH,
) -> ExtractionResult:
    """
    Retourne les slugs (ordre d'apparition, sans doublon, parent avant enfant) et les segments rejetés.
    """
    text = _as_text(body)
    if not text or marker.lower() not in text.lower():
        return ExtractionResult(slugs=(), rejected=())

    seen: set[str] = set()
    slugs: list[str] = []
    rejected: list[str] = []
    for match in _link_pattern(marker).finditer(text):
        # "a//b" → ["a", "b"] : slashs répétés écrasés
        segments = [s for s in match.group("path").split("/") if s.strip(_STRIP_CHARS)]
        for raw in segments[:MAX_SEGMENTS]:
            slug = normalize_slug(raw, max_length)
            if slug is None:
                rejected.append(raw)
                continue
            if slug not in seen:
                seen.add(slug)
                slugs.append(slug)
    return ExtractionResult(slugs=tuple(slugs), rejected=tuple(rejected))


def extract_slugs(
    body: str | bytes | None,
    *,
    marker: str = CATEGORY_MARKER,
    max_length: int = SLUG_MAX_LENGTH,
) -> list[str]:
    return list(scan_category_links(body, marker=marker, max_length=max_length).slugs)
