"""Leaderboard of finished timed rounds, bucketed per mode scope and persisted as JSON."""
from __future__ import annotations

import json
import logging
import time
import uuid
from functools import cmp_to_key
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rowmatch.components.game_state import GameMode
from rowmatch.components.mode_record import ModeRecord
from rowmatch.constants import MAX_RECORDS_PER_SCOPE
from rowmatch.events.bus import EVENT_RECORD_ADDED, EventBus

logger = logging.getLogger(__name__)

_ELAPSED_EPSILON = 0.0001
RANKED_MODES = (GameMode.SCORE_ATTACK, GameMode.SPEED_RUN)


def scope_id(mode: GameMode, detail: int) -> str:
    return f"{mode.value}_{detail}"


def _compare_score_attack(lhs: ModeRecord, rhs: ModeRecord) -> int:
    if lhs.score != rhs.score:
        return -1 if lhs.score > rhs.score else 1
    lhs_minutes = lhs.duration_minutes if lhs.duration_minutes is not None else float("inf")
    rhs_minutes = rhs.duration_minutes if rhs.duration_minutes is not None else float("inf")
    if lhs_minutes != rhs_minutes:
        return -1 if lhs_minutes < rhs_minutes else 1
    if abs(lhs.elapsed - rhs.elapsed) > _ELAPSED_EPSILON:
        return -1 if lhs.elapsed < rhs.elapsed else 1
    return (lhs.created_at > rhs.created_at) - (lhs.created_at < rhs.created_at)


def _compare_speed_run(lhs: ModeRecord, rhs: ModeRecord) -> int:
    if abs(lhs.elapsed - rhs.elapsed) > _ELAPSED_EPSILON:
        return -1 if lhs.elapsed < rhs.elapsed else 1
    lhs_target = lhs.target_score or 0
    rhs_target = rhs.target_score or 0
    if lhs_target != rhs_target:
        return -1 if lhs_target > rhs_target else 1
    if lhs.score != rhs.score:
        return -1 if lhs.score > rhs.score else 1
    return (lhs.created_at > rhs.created_at) - (lhs.created_at < rhs.created_at)


_COMPARATORS = {
    GameMode.SCORE_ATTACK: _compare_score_attack,
    GameMode.SPEED_RUN: _compare_speed_run,
}


class ModeRecordStore:
    """Keeps the best ``max_records`` rounds for every (mode, detail) scope."""

    def __init__(
        self,
        *,
        save_path: Path | None = None,
        load_existing: bool = True,
        max_records: int = MAX_RECORDS_PER_SCOPE,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._save_path = Path(save_path) if save_path is not None else self._default_save_path()
        self.max_records = max_records
        self.event_bus = event_bus
        self._clock = clock or time.time
        self._records: Dict[str, List[ModeRecord]] = {}
        if load_existing:
            self.load()

    @staticmethod
    def _default_save_path() -> Path:
        return Path.home() / ".rowmatch" / "mode_records.json"

    @property
    def save_path(self) -> Path:
        return self._save_path

    def records(self, mode: GameMode, detail: int) -> List[ModeRecord]:
        return list(self._records.get(scope_id(mode, detail), []))

    def add_score_attack_record(self, score: int, elapsed: float, duration_minutes: int) -> Optional[ModeRecord]:
        minutes = max(1, int(duration_minutes))
        record = self._new_record(score, elapsed, duration_minutes=minutes)
        return self._append(record, GameMode.SCORE_ATTACK, minutes)

    def add_speed_run_record(self, score: int, elapsed: float, target_score: int) -> Optional[ModeRecord]:
        target = max(1, int(target_score))
        record = self._new_record(score, elapsed, target_score=target)
        return self._append(record, GameMode.SPEED_RUN, target)

    def load(self) -> None:
        try:
            with self._save_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            self._records = {}
            return
        except json.JSONDecodeError:
            logger.warning("discarding unreadable record file %s", self._save_path)
            self._records = {}
            return
        if not isinstance(payload, dict):
            logger.warning("discarding record file %s: expected an object", self._save_path)
            self._records = {}
            return
        records: Dict[str, List[ModeRecord]] = {}
        for scope, entries in payload.items():
            if not isinstance(entries, list):
                logger.warning("skipping malformed records for scope %s", scope)
                continue
            try:
                records[scope] = [ModeRecord.from_payload(entry) for entry in entries]
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed records for scope %s", scope)
        self._records = records
        if self._migrate_legacy_buckets():
            self.save()

    def save(self) -> None:
        self._save_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            scope: [record.to_payload() for record in bucket]
            for scope, bucket in self._records.items()
        }
        with self._save_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)

    def _new_record(self, score: int, elapsed: float, **detail) -> ModeRecord:
        return ModeRecord(
            id=uuid.uuid4().hex,
            score=int(score),
            elapsed=float(elapsed),
            created_at=self._clock(),
            **detail,
        )

    def _append(self, record: ModeRecord, mode: GameMode, detail: int) -> Optional[ModeRecord]:
        scope = scope_id(mode, detail)
        bucket = self._records.get(scope, []) + [record]
        self._records[scope] = self._sort_and_trim(bucket, mode)
        self.save()
        if not any(existing.id == record.id for existing in self._records[scope]):
            return None
        if self.event_bus is not None:
            self.event_bus.emit(EVENT_RECORD_ADDED, scope=scope, record=record)
        return record

    def _sort_and_trim(self, bucket: List[ModeRecord], mode: GameMode) -> List[ModeRecord]:
        ordered = sorted(bucket, key=cmp_to_key(_COMPARATORS[mode]))
        return ordered[: self.max_records]

    def _migrate_legacy_buckets(self) -> bool:
        """Move records stored under a bare mode key into their detail scope."""
        changed = False
        for mode in RANKED_MODES:
            legacy = self._records.pop(mode.value, None)
            if legacy is None:
                continue
            changed = True
            for record in legacy:
                detail = record.duration_minutes if mode is GameMode.SCORE_ATTACK else record.target_score
                if not detail or detail <= 0:
                    continue
                scope = scope_id(mode, detail)
                bucket = self._records.get(scope, []) + [record]
                self._records[scope] = self._sort_and_trim(bucket, mode)
        return changed
