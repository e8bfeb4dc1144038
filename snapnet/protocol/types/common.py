# MIT License
# Copyright (c) 2025 Hashborn

from enum import Enum


class MessageKind(str, Enum):
    RESOURCE = "resource"   # Resource transfer between peers
    SNAPSHOT = "snapshot"   # Snapshot marker carrying an epoch id


class SnapshotState(str, Enum):
    OPEN = "open"           # Some inbound channels still recording
    COMPLETE = "complete"   # All inbound channels closed, vector final


class MarkerForwarding(str, Enum):
    # Forward on every close that does not complete the epoch
    EVERY_CLOSE = "every-close"
    # Forward once, when the peer first joins the epoch
    FIRST_RECEIPT = "first-receipt"


class SimulationError(Exception):
    pass

class ProtocolError(SimulationError):
    pass

class UnknownReceiverError(ProtocolError):
    def __init__(self, sender: str, receiver: str):
        super().__init__(f"{sender} has no channel to {receiver}")
        self.sender = sender
        self.receiver = receiver

class TopologyError(SimulationError):
    pass

class SetupOrderError(TopologyError):
    pass

class SchedulerError(SimulationError):
    pass
