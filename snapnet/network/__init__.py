# MIT License
# Copyright (c) 2025 Hashborn

"""
Simulated peer network: channels, peers, snapshot protocol, scheduler.
"""

from .core.simulation import Simulation
from .core.peer import Peer
from .core.channel import Channel
from .core.topology import connect

__all__ = ["Simulation", "Peer", "Channel", "connect"]
