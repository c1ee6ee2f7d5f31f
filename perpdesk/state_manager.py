"""Snapshots and version history of positions."""

from __future__ import annotations

import copy
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from perpdesk.models import PositionView


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PositionSnapshot:
    id: str
    timestamp: datetime
    positions: list[PositionView]
    version: int


@dataclass
class PositionVersion:
    position_id: str
    version: int
    data: PositionView
    created_at: datetime
    migration_applied: bool = False


@dataclass
class StateManager:
    """Keeps snapshots of position sets and a per-position version history."""

    clock: Callable[[], datetime] = _utc_now
    snapshots: list[PositionSnapshot] = field(default_factory=list)
    versions: dict[str, list[PositionVersion]] = field(default_factory=dict)
    current_version: int = 1

    def create_snapshot(self, positions: Iterable[PositionView]) -> str:
        """Store the positions and return the new snapshot's id."""
        snapshot = PositionSnapshot(
            id=str(uuid.uuid4()),
            timestamp=self.clock(),
            positions=list(positions),
            version=self.current_version,
        )
        self.snapshots.append(snapshot)
        return snapshot.id

    def restore_snapshot(self, snapshot_id: str) -> list[PositionView] | None:
        for snapshot in self.snapshots:
            if snapshot.id == snapshot_id:
                return copy.deepcopy(snapshot.positions)
        return None

    def version_position(self, position: PositionView) -> str:
        """Record a version of position; returns its "<owner>_<symbol>" id."""
        position_id = f"{position.owner}_{position.symbol}"
        self.versions.setdefault(position_id, []).append(
            PositionVersion(
                position_id=position_id,
                version=self.current_version,
                data=position,
                created_at=self.clock(),
            )
        )
        return position_id

    def get_position_history(self, position_id: str) -> list[PositionVersion]:
        return copy.deepcopy(self.versions.get(position_id, []))

    def reconstruct_position(
        self, position_id: str, target_time: datetime
    ) -> PositionView | None:
        """The latest recorded state at or before target_time."""
        latest = None
        for version in self.versions.get(position_id, []):
            if version.created_at <= target_time and (
                latest is None or version.created_at >= latest.created_at
            ):
                latest = version
        return copy.deepcopy(latest.data) if latest is not None else None

    def migrate_to_version(self, target_version: int) -> list[str]:
        """Mark older unmigrated versions migrated; one id per version touched."""
        migrated = []
        for position_id, versions in self.versions.items():
            for version in versions:
                if version.version < target_version and not version.migration_applied:
                    version.migration_applied = True
                    migrated.append(position_id)
        self.current_version = target_version
        return migrated

    def cleanup_old_versions(self, keep_days: int) -> None:
        """Drop versions and snapshots not newer than keep_days ago."""
        cutoff = self.clock() - timedelta(days=keep_days)
        for position_id, versions in self.versions.items():
            self.versions[position_id] = [v for v in versions if v.created_at > cutoff]
        self.snapshots = [s for s in self.snapshots if s.timestamp > cutoff]

    def export_state(self) -> str:
        """A JSON summary: current version, snapshot count and position count."""
        return (
            f'{{"version":{self.current_version},'
            f'"snapshots":{len(self.snapshots)},'
            f'"positions":{len(self.versions)}}}'
        )

    def import_state(self, data: str) -> None:
        """Restore the current version from an exported summary."""
        try:
            state = json.loads(data)
            version = state["version"]
        except (json.JSONDecodeError, TypeError, KeyError) as exc:
            raise ValueError(f"invalid state: {exc}") from exc
        if not isinstance(version, int) or isinstance(version, bool) or version < 0:
            raise ValueError(f"invalid state version: {version!r}")
        self.current_version = version