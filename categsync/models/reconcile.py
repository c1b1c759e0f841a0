from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any, TypedDict


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


class SyncMode(StrEnum):
    FULL = "full"
    INCREMENTAL = "incremental"


class RunState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CategoryRow(TypedDict):
    id: int
    slug: str
    name: str
    parent_id: int | None
    post_count: int
    is_default: int


class PostRow(TypedDict):
    id: int
    body: str | None
    category_id: int | None
    modified_at: datetime | None


class CategoryNode(TypedDict):
    id: int
    name: str
    slug: str
    parent_id: int | None
    post_count: int


class CategoryDetail(CategoryNode):
    parent_name: str | None
    has_children: bool
    actual_post_count: int


@dataclass
class Anomaly:
    severity: Severity
    code: str
    message: str
    category_ids: tuple[int, ...] = ()
    post_ids: tuple[int, ...] = ()
    slugs: tuple[str, ...] = ()


@dataclass(frozen=True)
class Resolution:
    """
    Issue de la résolution d'un post : catégorie cible + slug gagnant (None = catch-all).
    """

    post_id: int
    category_id: int
    slug: str | None
    fallback_reason: str | None = None


@dataclass
class AggregateResult:
    counts: dict[int, int] = field(default_factory=dict)
    pruned_ids: list[int] = field(default_factory=list)
    pruned_slugs: list[str] = field(default_factory=list)


@dataclass
class ReconcileReport:
    mode: SyncMode
    status: RunState = RunState.IDLE
    posts_processed: int = 0
    posts_failed: int = 0
    categories_created: int = 0
    categories_pruned: int = 0
    watermark: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    anomalies: list[Anomaly] = field(default_factory=list)
    failed_post_ids: list[int] = field(default_factory=list)
    cancelled: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = str(self.mode)
        data["status"] = str(self.status)
        for key in ("watermark", "started_at", "finished_at"):
            value = data[key]
            data[key] = value.isoformat() if value is not None else None
        data["anomalies"] = [
            {**a, "severity": a["severity"].value} for a in data["anomalies"]
        ]
        return data
