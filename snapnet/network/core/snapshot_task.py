# MIT License
# Copyright (c) 2025 Hashborn

"""
Per-peer, per-epoch snapshot state.

A peer joins an epoch on its first marker for that epoch. From then on each
inbound channel is either still recording (open) or closed by that channel's
marker. The resource vector has one slot per inbound channel, holding what
arrived on it while it was recording, plus a final slot with the balance the
peer held when it joined.

States: open(k of n closed) -> complete. Closed flags only ever go from
False to True, and a complete task is never modified again.
"""

from typing import List, Optional, Tuple

from ...protocol.types.common import SnapshotState


class SnapshotTask:
    def __init__(self, epoch_id: int, channel_count: int, balance: int, started_at: float = 0):
        self.epoch_id = epoch_id
        self.closed: List[bool] = [False] * channel_count
        self._vector: List[int] = [0] * channel_count + [balance]
        self.started_at = started_at
        self.completed_at: Optional[float] = None

    @property
    def channel_count(self) -> int:
        return len(self.closed)

    @property
    def closed_count(self) -> int:
        return sum(self.closed)

    @property
    def is_complete(self) -> bool:
        return all(self.closed)

    @property
    def state(self) -> SnapshotState:
        return SnapshotState.COMPLETE if self.is_complete else SnapshotState.OPEN

    @property
    def captured_balance(self) -> int:
        return self._vector[-1]

    @property
    def vector(self) -> Tuple[int, ...]:
        return tuple(self._vector)

    def is_closed(self, index: int) -> bool:
        return self.closed[index]

    def close(self, index: int) -> bool:
        """
        Stop recording on channel `index`.

        Returns:
            False if the channel was already closed (duplicate marker)
        """
        if self.closed[index]:
            return False
        self.closed[index] = True
        return True

    def record_transfer(self, index: int, amount: int) -> bool:
        """
        Attribute an inbound transfer to channel `index` if still recording.

        Returns:
            True if the amount was recorded
        """
        if self.closed[index]:
            return False
        self._vector[index] += amount
        return True

    def mark_complete(self, now: float) -> None:
        self.completed_at = now

    def __repr__(self) -> str:
        return (f"SnapshotTask(epoch={self.epoch_id}, "
                f"closed={self.closed_count}/{self.channel_count}, vector={list(self._vector)})")
