# tests/conftest.py
"""Fixtures partagées : logs en dossier temporaire, store mémoire, fabrique de posts."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta

# avant tout import categsync : la config est lue à l'import
os.environ.setdefault("LOG_FILE_PATH", tempfile.mkdtemp(prefix="categsync-logs-"))
os.environ.setdefault("CATEGSYNC_ENV_FILE", os.path.join(os.environ["LOG_FILE_PATH"], "absent.env"))

import pytest  # noqa: E402

from categsync.models.post import Post  # noqa: E402
from categsync.services.reconcile_service import ReconciliationOrchestrator  # noqa: E402
from categsync.store.memory_store import MemoryStore  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def link(*segments: str, host: str = "https://intel.example.org") -> str:
    path = "/".join(segments)
    return f'<a href="{host}/category/{path}/">{segments[-1]}</a>'


def make_post(post_id: int, body: str | None, minutes: int = 0) -> Post:
    return Post(id=post_id, body=body, modified_at=BASE_TIME + timedelta(minutes=minutes))


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def orchestrator(store: MemoryStore) -> ReconciliationOrchestrator:
    return ReconciliationOrchestrator(store, workers=3)
