"""Latest-position store.

Holds exactly one :class:`RiderSnapshot` per rider key and reports which
riders moved between two consecutive ingests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fleettrack.ingestion.rows import parse_rider_rows
from fleettrack.models.rider import RiderRow, RiderSnapshot

_logger = logging.getLogger(__name__)


class IngestResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshots: list[RiderSnapshot] = Field(default_factory=list)
    moved: list[RiderSnapshot] = Field(default_factory=list)


def _has_moved(previous: RiderSnapshot, current: RiderSnapshot) -> bool:
    return previous.lat != current.lat or previous.lng != current.lng


class PositionStore:
    """In-memory store of the latest snapshot per rider.

    Every ingest replaces the stored snapshot for each rider it mentions
    (last-write-wins); fields are never merged from an older snapshot.
    Riders absent from an ingest are dropped, since each poll returns the
    full rider table.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, RiderSnapshot] = {}

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, rider_key: object) -> bool:
        return rider_key in self._snapshots

    def ingest(self, rows: Iterable[Mapping[str, Any] | RiderRow | RiderSnapshot]) -> IngestResult:
        """Diff a full poll against the stored positions and replace them.

        A rider moved when either coordinate changed, null transitions
        included. A rider seen for the first time has nothing to diff
        against and is not reported as moved.
        """
        incoming: dict[str, RiderSnapshot] = {}
        for snapshot in self._to_snapshots(rows):
            # Duplicate keys within one poll: last row wins.
            incoming[snapshot.rider_key] = snapshot

        moved: list[RiderSnapshot] = []
        for key, snapshot in incoming.items():
            previous = self._snapshots.get(key)
            if previous is not None and _has_moved(previous, snapshot):
                moved.append(snapshot)

        self._snapshots = incoming
        if moved:
            _logger.debug("Ingested %d riders, %d moved", len(incoming), len(moved))
        return IngestResult(snapshots=list(incoming.values()), moved=moved)

    def get(self, rider_key: str) -> RiderSnapshot | None:
        return self._snapshots.get(rider_key)

    def snapshots(self) -> list[RiderSnapshot]:
        return list(self._snapshots.values())

    def clear(self) -> None:
        self._snapshots.clear()

    @staticmethod
    def _to_snapshots(rows: Iterable[Mapping[str, Any] | RiderRow | RiderSnapshot]) -> list[RiderSnapshot]:
        snapshots: list[RiderSnapshot] = []
        for row in rows:
            if isinstance(row, RiderSnapshot):
                snapshots.append(row)
                continue
            for rider_row in parse_rider_rows([row]):
                snapshot = RiderSnapshot.from_row(rider_row)
                if snapshot is None:
                    _logger.debug("Ignoring rider row without a key: %s", rider_row.raw)
                    continue
                snapshots.append(snapshot)
        return snapshots
