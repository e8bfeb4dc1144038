# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict
from ..types.common import MarkerForwarding

# Simulated time is unit-less; the presets treat it as milliseconds
TIME_UNIT = "ms"

class SimulationConfig:
    def __init__(self,
                 profile: str,
                 initial_balance: int = 100,
                 default_delay: float = 1000,
                 forwarding: MarkerForwarding = MarkerForwarding.EVERY_CLOSE,
                 # Upper bound on callbacks processed by a single run()
                 max_events: int = 1_000_000,
                 time_unit: str = TIME_UNIT):
        if default_delay < 0:
            raise ValueError(f"default_delay must be >= 0, got {default_delay}")
        if max_events <= 0:
            raise ValueError(f"max_events must be positive, got {max_events}")
        self.profile = profile
        self.initial_balance = initial_balance
        self.default_delay = default_delay
        self.forwarding = MarkerForwarding(forwarding)
        self.max_events = max_events
        self.time_unit = time_unit

    def with_forwarding(self, forwarding: MarkerForwarding) -> 'SimulationConfig':
        return SimulationConfig(
            profile=self.profile,
            initial_balance=self.initial_balance,
            default_delay=self.default_delay,
            forwarding=forwarding,
            max_events=self.max_events,
            time_unit=self.time_unit,
        )

    def __repr__(self) -> str:
        return f"SimulationConfig(profile={self.profile!r}, forwarding={self.forwarding.value})"

PROFILES: Dict[str, SimulationConfig] = {
    "default": SimulationConfig(
        profile="default",
        initial_balance=100,
        default_delay=1000,
        forwarding=MarkerForwarding.EVERY_CLOSE,
    ),
    "textbook": SimulationConfig(
        profile="textbook",
        initial_balance=100,
        default_delay=1000,
        forwarding=MarkerForwarding.FIRST_RECEIPT,
    ),
    "fast": SimulationConfig(
        profile="fast",
        initial_balance=100,
        default_delay=10,
        max_events=100_000,
    ),
}

def get_config(profile: str) -> SimulationConfig:
    try:
        return PROFILES[profile]
    except KeyError:
        raise ValueError(f"Unknown profile '{profile}'. Known: {', '.join(sorted(PROFILES))}") from None

CURRENT_CONFIG = get_config(os.environ.get("SNAPNET_PROFILE", "default"))
