"""# models/category.py"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, kw_only=True)
class Category:
    """Miroir de la table categories."""

    id: int
    slug: str
    name: str
    parent_id: int | None = None
    post_count: int = 0
    is_default: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Category:
        """
        Construit une Category depuis une ligne DictCursor.
        """
        parent = row.get("parent_id")
        return cls(
            id=int(row["id"]),
            slug=str(row["slug"]).lower(),
            name=str(row["name"]),
            parent_id=int(parent) if parent is not None else None,
            post_count=int(row.get("post_count") or 0),
            is_default=bool(row.get("is_default") or False),
        )
