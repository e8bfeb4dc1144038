# MIT License
# Copyright (c) 2025 Hashborn

"""
Snapshot Data Structures
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Iterable, Tuple


class SnapshotReport(BaseModel):
    """
    One peer's finished contribution to an epoch.
    """
    model_config = ConfigDict(frozen=True)

    peer_id: str = Field(..., description="Reporting peer")
    epoch_id: int = Field(..., description="Snapshot epoch")
    vector: Tuple[int, ...] = Field(..., description="In-transit amount per inbound channel, then captured balance")
    channels: Tuple[str, ...] = Field(default=(), description="Remote peer id per vector slot, in channel order")
    started_at: float = Field(default=0, description="Simulated time the peer joined the epoch")
    completed_at: float = Field(default=0, description="Simulated time the last channel closed")

    @property
    def captured_balance(self) -> int:
        return self.vector[-1]

    @property
    def in_transit(self) -> Tuple[int, ...]:
        return self.vector[:-1]

    def in_transit_from(self, peer_id: str) -> int:
        """Amount recorded on the channel coming from `peer_id`."""
        return self.vector[self.channels.index(peer_id)]


class GlobalSnapshot(BaseModel):
    """
    All reports received so far for one epoch, keyed by peer id.
    """
    epoch_id: int = Field(..., description="Snapshot epoch")
    reports: Dict[str, SnapshotReport] = Field(default_factory=dict)

    @property
    def captured_balance(self) -> int:
        return sum(r.captured_balance for r in self.reports.values())

    @property
    def in_transit(self) -> int:
        return sum(sum(r.in_transit) for r in self.reports.values())

    @property
    def total(self) -> int:
        """Captured balances plus in-transit amounts: the cut's total."""
        return self.captured_balance + self.in_transit

    def is_complete(self, peer_ids: Iterable[str]) -> bool:
        return all(pid in self.reports for pid in peer_ids)

    def summary(self) -> Dict[str, object]:
        return {
            "epoch_id": self.epoch_id,
            "peers": {pid: list(r.vector) for pid, r in sorted(self.reports.items())},
            "captured_balance": self.captured_balance,
            "in_transit": self.in_transit,
            "total": self.total,
        }
