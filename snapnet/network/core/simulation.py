# MIT License
# Copyright (c) 2025 Hashborn

"""
Simulation context.

Owns the scheduler, peers, channels, event bus and snapshot collector for one
run. Nothing is shared between Simulation instances.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...protocol.config.params import CURRENT_CONFIG, SimulationConfig
from ...protocol.types.common import SetupOrderError, TopologyError
from ..observability.metrics import update_scheduler_metrics
from ..snapshot.collector import SnapshotCollector
from ..snapshot.types import GlobalSnapshot
from .channel import Channel
from .events import EventBus
from .peer import Peer
from .scheduler import EventScheduler
from .topology import connect as connect_peers

logger = logging.getLogger(__name__)


class Simulation:
    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or CURRENT_CONFIG
        self.scheduler = EventScheduler(max_events=self.config.max_events)
        self.events = EventBus()
        self.collector = SnapshotCollector(self.events)

        self.peers: Dict[str, Peer] = {}
        self.channels: List[Channel] = []
        # Set by the first Channel.send; topology is frozen from then on
        self.traffic_started = False

    @property
    def now(self) -> float:
        return self.scheduler.now

    # --- Setup ---

    def add_peer(self, peer_id: str, balance: Optional[int] = None) -> Peer:
        if self.traffic_started:
            raise SetupOrderError(f"Cannot add peer {peer_id} after traffic started")
        if peer_id in self.peers:
            raise TopologyError(f"Peer {peer_id} already exists")
        if balance is None:
            balance = self.config.initial_balance
        peer = Peer(peer_id, balance, self)
        self.peers[peer_id] = peer
        return peer

    def peer(self, peer_id: str) -> Peer:
        try:
            return self.peers[peer_id]
        except KeyError:
            raise TopologyError(f"Unknown peer {peer_id}") from None

    def connect(self, a: Peer, b: Peer, delay_ab: Optional[float] = None,
                delay_ba: Optional[float] = None) -> Tuple[Channel, Channel]:
        if delay_ab is None:
            delay_ab = self.config.default_delay
        if delay_ba is None:
            delay_ba = delay_ab
        return connect_peers(a, b, delay_ab, delay_ba)

    def fully_connect(self, delay: Optional[float] = None) -> None:
        """Link every pair of peers, in insertion order."""
        peers = list(self.peers.values())
        for i, a in enumerate(peers):
            for b in peers[i + 1:]:
                self.connect(a, b, delay, delay)

    # --- Driving ---

    def schedule(self, at: float, callback: Callable[..., Any], *args: Any) -> None:
        """Run a driver action at simulated time `at`."""
        self.scheduler.call_at(at, callback, *args)

    def run(self, until: Optional[float] = None) -> int:
        count = self.scheduler.run(until)
        update_scheduler_metrics(self.scheduler)
        return count

    # --- Inspection ---

    def total_balance(self) -> int:
        return sum(p.balance for p in self.peers.values())

    def in_flight_amount(self) -> int:
        return sum(c.in_flight_amount for c in self.channels)

    def global_snapshot(self, epoch_id: int) -> GlobalSnapshot:
        return self.collector.get(epoch_id)

    def is_snapshot_complete(self, epoch_id: int) -> bool:
        return self.collector.get(epoch_id).is_complete(self.peers)

    def __repr__(self) -> str:
        return (f"Simulation(t={self.now}, peers={len(self.peers)}, "
                f"channels={len(self.channels)}, pending={self.scheduler.pending})")
