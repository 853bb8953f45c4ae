"""
The Mind data model.

Thoughts, connections, sessions and clusters as immutable snapshots. Values
handed out by the store never alias its rows: change something by upserting
a new snapshot, not by mutating one.

Dict forms keep the field names the desktop client already speaks
(position_x, from_thought, center_x, thought_count ...).
"""

import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> str:
    """Current timestamp as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Thought:
    id: str
    content: str
    category: str
    importance: float
    position_x: float
    position_y: float
    position_z: float
    created_at: str
    last_referenced: str
    role: Optional[str] = None

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.position_x, self.position_y, self.position_z)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Thought":
        return cls(
            id=str(data["id"]),
            content=str(data["content"]),
            role=data.get("role"),
            category=str(data.get("category") or "other"),
            importance=float(data.get("importance", 0.5)),
            position_x=float(data.get("position_x", 0.0)),
            position_y=float(data.get("position_y", 0.0)),
            position_z=float(data.get("position_z", 0.0)),
            created_at=str(data["created_at"]),
            last_referenced=str(data.get("last_referenced") or data["created_at"]),
        )

    @classmethod
    def from_row(cls, row) -> "Thought":
        return cls(
            id=row["id"],
            content=row["content"],
            role=row["role"],
            category=row["category"],
            importance=row["importance"],
            position_x=row["position_x"],
            position_y=row["position_y"],
            position_z=row["position_z"],
            created_at=row["created_at"],
            last_referenced=row["last_referenced"],
        )


@dataclass(frozen=True)
class Connection:
    """Directed, weighted edge. Endpoints are not checked against thoughts."""

    id: str
    from_thought: str
    to_thought: str
    strength: float
    reason: str
    created_at: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Connection":
        return cls(
            id=str(data["id"]),
            from_thought=str(data["from_thought"]),
            to_thought=str(data["to_thought"]),
            strength=float(data.get("strength", 0.5)),
            reason=str(data.get("reason") or ""),
            created_at=str(data["created_at"]),
        )

    @classmethod
    def from_row(cls, row) -> "Connection":
        return cls(
            id=row["id"],
            from_thought=row["from_thought"],
            to_thought=row["to_thought"],
            strength=row["strength"],
            reason=row["reason"] or "",
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class Session:
    id: str
    title: str
    started_at: str
    summary: Optional[str] = None
    ended_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row) -> "Session":
        return cls(
            id=row["id"],
            title=row["title"] or "",
            summary=row["summary"],
            started_at=row["started_at"],
            ended_at=row["ended_at"],
        )


@dataclass(frozen=True)
class Cluster:
    """Derived grouping of one category. Ids change on every recompute."""

    id: str
    name: str
    category: str
    center_x: float
    center_y: float
    center_z: float
    thought_count: int
    created_at: str

    @property
    def center(self) -> tuple[float, float, float]:
        return (self.center_x, self.center_y, self.center_z)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row) -> "Cluster":
        return cls(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            center_x=row["center_x"],
            center_y=row["center_y"],
            center_z=row["center_z"],
            thought_count=row["thought_count"],
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class DbVersion:
    """Change counters for polling clients."""

    thought_max_id: int
    connection_max_id: int

    def to_dict(self) -> dict:
        return asdict(self)
