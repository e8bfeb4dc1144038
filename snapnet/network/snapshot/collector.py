# MIT License
# Copyright (c) 2025 Hashborn

"""
Snapshot Collector

Listens for per-peer completion reports and assembles them per epoch.
"""

import logging
from typing import Dict, List

from .types import GlobalSnapshot, SnapshotReport
from ..core.events import EventBus, SNAPSHOT_COMPLETED

logger = logging.getLogger(__name__)


class SnapshotCollector:
    """
    Groups SnapshotReports by epoch.

    A peer reports each epoch at most once; a second report for the same
    (peer, epoch) is logged and ignored.
    """

    def __init__(self, events: EventBus):
        self._epochs: Dict[int, GlobalSnapshot] = {}
        self.reports: List[SnapshotReport] = []
        self._events = events
        events.subscribe(SNAPSHOT_COMPLETED, self._on_completed)

    def _on_completed(self, report: SnapshotReport, **_) -> None:
        snapshot = self._epochs.setdefault(report.epoch_id, GlobalSnapshot(epoch_id=report.epoch_id))
        if report.peer_id in snapshot.reports:
            logger.warning(f"Duplicate report from {report.peer_id} for epoch {report.epoch_id}")
            return
        snapshot.reports[report.peer_id] = report
        self.reports.append(report)

    @property
    def epochs(self) -> List[int]:
        return sorted(self._epochs)

    def get(self, epoch_id: int) -> GlobalSnapshot:
        """Reports for `epoch_id` (empty GlobalSnapshot if none arrived yet)."""
        return self._epochs.get(epoch_id, GlobalSnapshot(epoch_id=epoch_id))

    def close(self) -> None:
        self._events.unsubscribe(SNAPSHOT_COMPLETED, self._on_completed)
