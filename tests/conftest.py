import pytest

from snapnet.protocol.config.params import get_config
from snapnet.network.core.simulation import Simulation


@pytest.fixture
def sim():
    """Empty simulation on the default profile, independent of SNAPNET_PROFILE."""
    return Simulation(get_config("default"))


@pytest.fixture
def textbook_sim():
    return Simulation(get_config("textbook"))


@pytest.fixture
def mesh3(sim):
    """A, B, C with 100 each, fully connected with a uniform delay of 10."""
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    c = sim.add_peer("C", 100)
    sim.connect(a, b, 10, 10)
    sim.connect(a, c, 10, 10)
    sim.connect(b, c, 10, 10)
    return sim, a, b, c
