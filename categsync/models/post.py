"""
# models/post.py
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True, kw_only=True)
class Post:
    """
    Miroir (partiel) de la table `posts`.

    La table appartient à l'ingestion : on ne lit que body/modified_at et on n'écrit que category_id.
    """

    id: int
    body: str | None = None
    category_id: int | None = None
    modified_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Post:
        body = row.get("body")
        if isinstance(body, (bytes, bytearray)):
            body = bytes(body).decode("utf-8", errors="replace")
        category_id = row.get("category_id")
        return cls(
            id=int(row["id"]),
            body=body,
            category_id=int(category_id) if category_id is not None else None,
            modified_at=row.get("modified_at"),
        )
