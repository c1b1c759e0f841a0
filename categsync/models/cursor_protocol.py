# categsync/models/cursor_protocol.py

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DictCursorProtocol(Protocol):
    """
    Protocole minimal compatible avec les DictCursor pymysql, utilisé pour typage mypy des fonctions SQL génériques.
    """

    rowcount: int
    lastrowid: int | None

    # Contexte "with"
    def __enter__(self) -> DictCursorProtocol: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...

    # Exécution de requêtes
    def execute(
        self,
        query: str,
        args: Sequence[Any] | Mapping[str, Any] | None = ...,
    ) -> int: ...

    def nextset(self) -> bool | None: ...

    # Récupération
    def fetchone(self) -> dict[str, Any] | None: ...
    def fetchall(self) -> Sequence[dict[str, Any]]: ...
    def close(self) -> None: ...
