# MIT License
# Copyright (c) 2025 Hashborn

"""
Snapshot reporting

Per-peer completion reports and their per-epoch aggregation.
"""

from .collector import SnapshotCollector
from .types import GlobalSnapshot, SnapshotReport

__all__ = ["SnapshotCollector", "GlobalSnapshot", "SnapshotReport"]
