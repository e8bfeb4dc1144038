# MIT License
# Copyright (c) 2025 Hashborn

import logging
from typing import Dict, List, Optional, Union, TYPE_CHECKING

from ...protocol.types.common import (
    MarkerForwarding, ProtocolError, TopologyError, UnknownReceiverError,
)
from ...protocol.types.message import ResourceTransfer, SnapshotMarker
from ..observability import metrics
from ..snapshot.types import SnapshotReport
from .channel import Channel
from .events import SNAPSHOT_INITIATED, SNAPSHOT_COMPLETED, MARKER_DISCARDED
from .snapshot_task import SnapshotTask

if TYPE_CHECKING:
    from .simulation import Simulation

logger = logging.getLogger(__name__)

PeerRef = Union['Peer', str]


class Peer:
    """
    A simulated node holding a signed resource balance.

    `channels[i]` is the outbound channel to some remote R, and index i also
    identifies the inbound channel from R: `connect` creates both directions
    together, so slot i of every snapshot vector belongs to R.
    """

    def __init__(self, peer_id: str, balance: int, network: 'Simulation'):
        self.peer_id = peer_id
        self.balance = balance
        self.network = network

        self.channels: List[Channel] = []
        self._index_by_peer: Dict[str, int] = {}

        # epoch_id -> SnapshotTask, at most one per epoch
        self.snapshot_tasks: Dict[int, SnapshotTask] = {}
        self.reports: Dict[int, SnapshotReport] = {}

    # --- Topology ---

    def attach_channel(self, remote: 'Peer', delay: float) -> Channel:
        """Append an outbound channel to `remote`. Used by connect()."""
        if remote.peer_id in self._index_by_peer:
            raise TopologyError(f"{self.peer_id} is already connected to {remote.peer_id}")
        index = len(self.channels)
        channel = Channel(f"{self.peer_id}->{remote.peer_id}", self, remote, delay, index)
        self.channels.append(channel)
        self._index_by_peer[remote.peer_id] = index
        return channel

    @property
    def neighbors(self) -> List[str]:
        return [c.remote.peer_id for c in self.channels]

    def channel_to(self, receiver: PeerRef) -> Channel:
        receiver_id = receiver if isinstance(receiver, str) else receiver.peer_id
        index = self._index_by_peer.get(receiver_id)
        if index is None:
            raise UnknownReceiverError(self.peer_id, receiver_id)
        return self.channels[index]

    def inbound_index(self, sender: 'Peer') -> int:
        index = self._index_by_peer.get(sender.peer_id)
        if index is None:
            raise TopologyError(f"{self.peer_id} received a message from unconnected peer {sender.peer_id}")
        return index

    # --- Driver-facing operations ---

    def initiate_snapshot(self, epoch_id: int) -> None:
        """Start epoch `epoch_id` here: handled as a marker with no sender."""
        marker = SnapshotMarker(epoch_id=epoch_id)
        logger.info(f"[t={self.network.scheduler.now}] {self} initiates snapshot {epoch_id}")
        metrics.snapshots_initiated_total.inc()
        self.network.events.emit(SNAPSHOT_INITIATED, peer=self, epoch_id=epoch_id)
        self.handle_message(marker)

    def initiate_payment(self, receiver: PeerRef, amount: int) -> None:
        """
        Debit `amount` now and send it to `receiver`.

        Raises:
            UnknownReceiverError: if there is no channel to `receiver`
            pydantic.ValidationError: if `amount` is not an integer
        """
        channel = self.channel_to(receiver)
        transfer = ResourceTransfer(amount=amount)
        self.balance -= amount
        logger.info(f"[t={self.network.scheduler.now}] {self} pays {amount} to {channel.remote.peer_id}")
        metrics.payments_total.inc()
        channel.send(transfer)

    # --- Inbound dispatch ---

    def handle_message(self, message: Union[ResourceTransfer, SnapshotMarker], sender: Optional['Peer'] = None) -> None:
        if isinstance(message, SnapshotMarker):
            self._handle_marker(message, sender)
        elif isinstance(message, ResourceTransfer):
            self._handle_transfer(message, sender)
        else:
            raise ProtocolError(f"Unknown message type: {type(message).__name__}")

    def _handle_transfer(self, transfer: ResourceTransfer, sender: Optional['Peer']) -> None:
        if sender is None:
            raise ProtocolError("Resource transfer without a sender")
        index = self.inbound_index(sender)

        self.balance += transfer.amount
        for task in self.snapshot_tasks.values():
            task.record_transfer(index, transfer.amount)

    def _handle_marker(self, marker: SnapshotMarker, sender: Optional['Peer']) -> None:
        epoch_id = marker.epoch_id
        now = self.network.scheduler.now
        index = self.inbound_index(sender) if sender is not None else None

        task = self.snapshot_tasks.get(epoch_id)
        joined = task is None
        if joined:
            # Local snapshot instant for this epoch
            task = SnapshotTask(epoch_id, len(self.channels), self.balance, started_at=now)
            self.snapshot_tasks[epoch_id] = task
            logger.debug(f"[t={now}] {self} joined epoch {epoch_id}, captured balance {self.balance}")
        elif sender is None:
            logger.warning(f"{self} re-originates epoch {epoch_id} it already joined")

        if sender is None:
            self._broadcast(marker)
            # Only a peer without channels completes on origination
            if task.is_complete and task.completed_at is None:
                self._complete(task)
            return

        if not task.close(index):
            logger.debug(f"[t={now}] {self} discarded duplicate marker {epoch_id} from {sender.peer_id}")
            metrics.markers_discarded_total.inc()
            self.network.events.emit(MARKER_DISCARDED, peer=self, sender=sender, epoch_id=epoch_id)
            return

        if self.network.config.forwarding == MarkerForwarding.FIRST_RECEIPT:
            forward = joined
        else:
            forward = not task.is_complete
        if forward:
            self._broadcast(marker)

        if task.is_complete:
            self._complete(task)

    def _broadcast(self, marker: SnapshotMarker) -> None:
        for channel in self.channels:
            channel.send(marker)

    def _complete(self, task: SnapshotTask) -> None:
        now = self.network.scheduler.now
        task.mark_complete(now)
        report = SnapshotReport(
            peer_id=self.peer_id,
            epoch_id=task.epoch_id,
            vector=task.vector,
            channels=tuple(self.neighbors),
            started_at=task.started_at,
            completed_at=now,
        )
        self.reports[task.epoch_id] = report
        logger.info(f"[t={now}] {self} completed snapshot {task.epoch_id}: {list(task.vector)}")
        metrics.update_snapshot_completed(self.peer_id)
        self.network.events.emit(SNAPSHOT_COMPLETED, report=report)

    def __repr__(self) -> str:
        return f"Peer({self.peer_id!r}, balance={self.balance})"

    def __str__(self) -> str:
        return f"{self.peer_id}({self.balance})"
