# MIT License
# Copyright (c) 2025 Hashborn

import logging
from typing import Tuple, TYPE_CHECKING

from ...protocol.types.common import SetupOrderError, TopologyError
from .channel import Channel

if TYPE_CHECKING:
    from .peer import Peer

logger = logging.getLogger(__name__)


def connect(a: 'Peer', b: 'Peer', delay_ab: float, delay_ba: float) -> Tuple[Channel, Channel]:
    """
    Link two peers with a pair of independent one-directional channels.

    Each channel is appended to its owner's channel list, so the index it
    gets here is permanent. All links must exist before any message is sent.

    Raises:
        SetupOrderError: if traffic has already started
        TopologyError: self-loop, duplicate link, negative delay, or peers
            from different simulations
    """
    if a.network is not b.network:
        raise TopologyError(f"{a.peer_id} and {b.peer_id} belong to different simulations")
    network = a.network
    if network.traffic_started:
        raise SetupOrderError(f"Cannot connect {a.peer_id} and {b.peer_id} after traffic started")
    if a is b:
        raise TopologyError(f"Cannot connect {a.peer_id} to itself")
    if delay_ab < 0 or delay_ba < 0:
        raise TopologyError(f"Channel delays must be >= 0, got {delay_ab}/{delay_ba}")

    ab = a.attach_channel(b, delay_ab)
    ba = b.attach_channel(a, delay_ba)
    network.channels.extend((ab, ba))

    logger.debug(f"Connected {a.peer_id} <-> {b.peer_id} ({delay_ab}/{delay_ba})")
    return ab, ba
