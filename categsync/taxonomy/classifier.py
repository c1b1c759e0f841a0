"""
Classification des slugs (année, dossier CI, numéro d'affaire, mémo, libre).

Table de règles ordonnée, compilée une fois à l'import ; la première règle qui matche gagne.
L'ordre INFORMANT avant CASE_NUMBER tranche les slugs qui pourraient relever des deux formes.
"""

# taxonomy/classifier.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import re

from categsync.models.classification import Classification, SlugClass
from categsync.utils.config import INFORMANT_MARKER, MEMO_KEYWORD

_SEP = r"[-_\s]"

YearKeyFn = Callable[[re.Match[str]], str]


def _century_prefix(match: re.Match[str]) -> str:
    return "20" + match.group("yy")


def _whole_slug(match: re.Match[str]) -> str:
    return match.group(0)


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    name: str
    pattern: re.Pattern[str]
    slug_class: SlugClass
    specificity: int
    year_key: YearKeyFn | None = None
    min_length: int = 0

    def match(self, slug: str) -> re.Match[str] | None:
        if len(slug) < self.min_length:
            return None
        return self.pattern.search(slug)


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="year",
        pattern=re.compile(r"^\d{4}$", re.ASCII),
        slug_class=SlugClass.YEAR,
        specificity=1,
        year_key=_whole_slug,
    ),
    ClassificationRule(
        name="informant",
        pattern=re.compile(
            rf"^(?P<yy>\d{{2}}){_SEP}?{re.escape(INFORMANT_MARKER)}{_SEP}?\d+(?:{_SEP}[a-z0-9]+)*$",
            re.IGNORECASE | re.ASCII,
        ),
        slug_class=SlugClass.INFORMANT,
        specificity=3,
        year_key=_century_prefix,
    ),
    ClassificationRule(
        name="case_number",
        pattern=re.compile(rf"^(?P<yy>\d{{2}})(?:{_SEP}\d+)+$", re.ASCII),
        slug_class=SlugClass.CASE_NUMBER,
        specificity=3,
        year_key=_century_prefix,
        min_length=8,
    ),
    ClassificationRule(
        name="memo",
        pattern=re.compile(re.escape(MEMO_KEYWORD), re.IGNORECASE),
        slug_class=SlugClass.MEMO,
        specificity=2,
    ),
    ClassificationRule(
        name="plain",
        pattern=re.compile(r"", re.DOTALL),
        slug_class=SlugClass.PLAIN,
        specificity=1,
    ),
)


def classify(slug: str | bytes) -> Classification:
    """
    Fonction totale : tout str/bytes reçoit exactement une classe (la règle "plain" matche tout).
    """
    if isinstance(slug, (bytes, bytearray)):
        slug = bytes(slug).decode("utf-8", errors="replace")
    text = str(slug).strip()
    for rule in RULES:
        match = rule.match(text)
        if match is None:
            continue
        year_key = rule.year_key(match) if rule.year_key else None
        return Classification(
            slug=text,
            slug_class=rule.slug_class,
            specificity=rule.specificity,
            year_key=year_key,
        )
    # inatteignable tant que "plain" reste en dernière position
    return Classification(slug=text, slug_class=SlugClass.PLAIN, specificity=1)


_ACRONYMS = frozenset({INFORMANT_MARKER})


def display_name(classification: Classification) -> str:
    """
    Nom affiché : année telle quelle, numéros d'affaire en majuscules, le reste en "Title Case".
    """
    slug = classification.slug
    if classification.slug_class is SlugClass.YEAR:
        return slug
    if classification.slug_class in (SlugClass.CASE_NUMBER, SlugClass.INFORMANT):
        return slug.upper()
    words = [w for w in slug.split("-") if w]
    if not words:
        return slug
    return " ".join(w.upper() if w in _ACRONYMS else w.capitalize() for w in words)
