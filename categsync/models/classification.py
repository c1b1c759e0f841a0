"""
# models/classification.py
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SlugClass(StrEnum):
    YEAR = "year"
    INFORMANT = "informant"
    CASE_NUMBER = "case_number"
    MEMO = "memo"
    PLAIN = "plain"


@dataclass(frozen=True, slots=True)
class Classification:
    """
    Résultat de la classification d'un slug.
    """

    slug: str
    slug_class: SlugClass
    specificity: int
    year_key: str | None = None  # slug de l'année parente ("2022"), si dérivable


@dataclass(frozen=True, slots=True)
class Candidate:
    """
    Slug candidat d'un post, avec son rang d'extraction (0 = premier trouvé).
    """

    position: int
    classification: Classification

    @property
    def slug(self) -> str:
        return self.classification.slug
