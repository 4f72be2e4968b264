from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class ModeRecord:
    """One finished timed round kept on a leaderboard."""

    id: str
    score: int
    elapsed: float
    duration_minutes: Optional[int] = None
    target_score: Optional[int] = None
    created_at: float = 0.0

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ModeRecord":
        duration = payload.get("duration_minutes")
        target = payload.get("target_score")
        return cls(
            id=str(payload["id"]),
            score=int(payload.get("score", 0)),
            elapsed=float(payload.get("elapsed", 0.0)),
            duration_minutes=int(duration) if duration is not None else None,
            target_score=int(target) if target is not None else None,
            created_at=float(payload.get("created_at", 0.0)),
        )
