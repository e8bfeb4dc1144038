# MIT License
# Copyright (c) 2025 Hashborn

"""
Declarative scenarios: peers, links and a timeline of driver actions.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from ..protocol.config.params import SimulationConfig
from .core.simulation import Simulation

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    SNAPSHOT = "snapshot"
    PAYMENT = "payment"


class PeerSpec(BaseModel):
    name: str
    balance: Optional[int] = None    # None -> config.initial_balance


class LinkSpec(BaseModel):
    a: str
    b: str
    delay_ab: float = Field(..., ge=0)
    delay_ba: float = Field(..., ge=0)


class ActionSpec(BaseModel):
    at: float = Field(..., ge=0)
    peer: str
    action: ActionType
    epoch_id: Optional[int] = None
    receiver: Optional[str] = None
    amount: Optional[int] = None

    @model_validator(mode="after")
    def _check_fields(self) -> 'ActionSpec':
        if self.action == ActionType.SNAPSHOT and self.epoch_id is None:
            raise ValueError("snapshot action requires epoch_id")
        if self.action == ActionType.PAYMENT and (self.receiver is None or self.amount is None):
            raise ValueError("payment action requires receiver and amount")
        return self


class Scenario(BaseModel):
    peers: List[PeerSpec]
    links: List[LinkSpec] = Field(default_factory=list)
    actions: List[ActionSpec] = Field(default_factory=list)
    run_until: Optional[float] = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Scenario':
        with open(path, "r") as f:
            return cls.model_validate(json.load(f))

    def build(self, config: Optional[SimulationConfig] = None) -> Simulation:
        """Create peers and links, and schedule every action."""
        sim = Simulation(config)
        for spec in self.peers:
            sim.add_peer(spec.name, spec.balance)
        for link in self.links:
            sim.connect(sim.peer(link.a), sim.peer(link.b), link.delay_ab, link.delay_ba)

        for action in sorted(self.actions, key=lambda a: a.at):
            peer = sim.peer(action.peer)
            if action.action == ActionType.SNAPSHOT:
                sim.schedule(action.at, peer.initiate_snapshot, action.epoch_id)
            else:
                receiver = sim.peer(action.receiver)
                sim.schedule(action.at, peer.initiate_payment, receiver, action.amount)
        return sim

    def run(self, config: Optional[SimulationConfig] = None, until: Optional[float] = None) -> Simulation:
        sim = self.build(config)
        until = until if until is not None else self.run_until
        processed = sim.run(until)
        logger.info(f"Scenario finished at t={sim.now} after {processed} event(s)")
        return sim


# Three peers, overlapping epochs 201 and 301, two payments in between
DEMO_SCENARIO = Scenario(
    peers=[
        PeerSpec(name="i", balance=100),
        PeerSpec(name="j", balance=100),
        PeerSpec(name="k", balance=100),
    ],
    links=[
        LinkSpec(a="i", b="j", delay_ab=1000, delay_ba=1300),
        LinkSpec(a="j", b="k", delay_ab=2100, delay_ba=2400),
        LinkSpec(a="i", b="k", delay_ab=1600, delay_ba=1900),
    ],
    actions=[
        ActionSpec(at=0, peer="i", action=ActionType.SNAPSHOT, epoch_id=201),
        ActionSpec(at=700, peer="j", action=ActionType.PAYMENT, receiver="k", amount=35),
        ActionSpec(at=1900, peer="i", action=ActionType.SNAPSHOT, epoch_id=301),
        ActionSpec(at=3500, peer="i", action=ActionType.PAYMENT, receiver="j", amount=32),
    ],
)
