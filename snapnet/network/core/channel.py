# MIT License
# Copyright (c) 2025 Hashborn

from collections import deque
from typing import Deque, Tuple, TYPE_CHECKING
import logging

from ...protocol.types.message import Message, ResourceTransfer
from ..observability.metrics import update_message_sent, update_message_delivered
from .events import MESSAGE_SENT, MESSAGE_DELIVERED

if TYPE_CHECKING:
    from .peer import Peer

logger = logging.getLogger(__name__)


class Channel:
    """
    One-directional link from `local` to `remote` with a fixed delay.

    Messages in flight are kept in send order; each scheduled delivery pops
    the head of that queue, so the channel is FIFO regardless of how the
    scheduler orders deliveries that fall on the same instant.
    """

    def __init__(self, channel_id: str, local: 'Peer', remote: 'Peer', delay: float, index: int):
        self.channel_id = channel_id
        self.local = local
        self.remote = remote
        self.delay = delay
        # Position in local.channels; also the vector slot on both ends
        self.index = index

        self._in_flight: Deque[Message] = deque()
        self._last_delivery_at: float = 0
        self.sent_count = 0
        self.delivered_count = 0

    @property
    def in_flight(self) -> Tuple[Message, ...]:
        return tuple(self._in_flight)

    @property
    def in_flight_amount(self) -> int:
        return sum(m.amount for m in self._in_flight if isinstance(m, ResourceTransfer))

    def send(self, message: Message) -> None:
        """Queue `message` for delivery after `delay`. Never blocks."""
        network = self.local.network
        network.traffic_started = True
        scheduler = network.scheduler

        deliver_at = max(scheduler.now + self.delay, self._last_delivery_at)
        self._last_delivery_at = deliver_at
        self._in_flight.append(message)
        self.sent_count += 1
        scheduler.call_at(deliver_at, self._deliver)

        logger.debug(f"[t={scheduler.now}] {self} sent {message} (due t={deliver_at})")
        update_message_sent(message)
        network.events.emit(MESSAGE_SENT, channel=self, message=message, deliver_at=deliver_at)

    def _deliver(self) -> None:
        message = self._in_flight.popleft()
        self.delivered_count += 1
        network = self.local.network

        logger.debug(f"[t={network.scheduler.now}] {self} delivered {message}")
        update_message_delivered(message)
        network.events.emit(MESSAGE_DELIVERED, channel=self, message=message)
        self.remote.handle_message(message, self.local)

    def __repr__(self) -> str:
        return f"Channel({self.channel_id}, delay={self.delay})"

    def __str__(self) -> str:
        return self.channel_id
