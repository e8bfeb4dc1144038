"""
Tests for peer behaviour: payments, marker handling, setup errors.

Tests:
- Payments debit at send and credit at delivery
- Unknown receiver fails synchronously without touching the balance
- Marker handling: join, close, forward, complete, duplicate discard
- Forwarding policies (every-close vs first-receipt)
- Topology and setup-order errors
"""
import pytest
from pydantic import ValidationError

from snapnet.network.core.events import MARKER_DISCARDED, SNAPSHOT_COMPLETED, SNAPSHOT_INITIATED
from snapnet.network.core.simulation import Simulation
from snapnet.protocol.config.params import get_config
from snapnet.protocol.types.common import (
    ProtocolError, SetupOrderError, TopologyError, UnknownReceiverError,
)
from snapnet.protocol.types.message import ResourceTransfer, SnapshotMarker


def _sent(peer):
    return sum(c.sent_count for c in peer.channels)


# ═══════════════════════════════════════════════════════════════════
# PAYMENTS
# ═══════════════════════════════════════════════════════════════════

def test_payment_conserves_total(mesh3):
    sim, a, b, c = mesh3
    before = a.balance + b.balance

    a.initiate_payment(b, 30)
    assert a.balance == 70
    assert b.balance == 100
    assert sim.total_balance() + sim.in_flight_amount() == 300

    sim.run()
    assert b.balance == 130
    assert a.balance + b.balance == before
    assert sim.in_flight_amount() == 0


def test_payment_by_peer_id(mesh3):
    sim, a, b, c = mesh3
    a.initiate_payment("C", 5)
    sim.run()
    assert c.balance == 105


def test_unknown_receiver(sim):
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    d = sim.add_peer("D", 100)
    sim.connect(a, b, 10, 10)

    with pytest.raises(UnknownReceiverError) as exc:
        a.initiate_payment(d, 10)

    assert exc.value.receiver == "D"
    assert a.balance == 100
    assert sim.in_flight_amount() == 0


def test_rejected_amount_leaves_balance_untouched(mesh3):
    sim, a, b, c = mesh3

    with pytest.raises(ValidationError):
        a.initiate_payment(b, 2.5)

    assert a.balance == 100
    assert _sent(a) == 0
    assert sim.total_balance() + sim.in_flight_amount() == 300


def test_rejected_epoch_id_emits_nothing(mesh3):
    sim, a, b, c = mesh3
    started = []
    sim.events.subscribe(SNAPSHOT_INITIATED, lambda **kw: started.append(kw["epoch_id"]))

    with pytest.raises(ValidationError):
        a.initiate_snapshot("not-an-epoch")

    assert started == []
    assert a.snapshot_tasks == {}
    assert _sent(a) == 0


def test_balance_may_go_negative(mesh3):
    sim, a, b, c = mesh3
    a.initiate_payment(b, 150)
    sim.run()
    assert a.balance == -50
    assert b.balance == 250


def test_transfer_without_sender_rejected(mesh3):
    sim, a, b, c = mesh3
    with pytest.raises(ProtocolError):
        a.handle_message(ResourceTransfer(amount=5))


def test_unknown_message_variant_rejected(mesh3):
    sim, a, b, c = mesh3
    with pytest.raises(ProtocolError):
        a.handle_message(object(), b)


# ═══════════════════════════════════════════════════════════════════
# MARKERS
# ═══════════════════════════════════════════════════════════════════

def test_origination_forwards_on_every_channel_and_closes_nothing(mesh3):
    sim, a, b, c = mesh3

    a.initiate_snapshot(4)

    task = a.snapshot_tasks[4]
    assert task.vector == (0, 0, 100)
    assert task.closed == [False, False]
    assert [ch.in_flight for ch in a.channels] == [(SnapshotMarker(epoch_id=4),)] * 2


def test_first_marker_from_peer_closes_that_channel(mesh3):
    sim, a, b, c = mesh3

    b.handle_message(SnapshotMarker(epoch_id=2), a)

    task = b.snapshot_tasks[2]
    assert task.closed == [True, False]     # B's channels: [A, C]
    assert task.captured_balance == 100
    assert _sent(b) == 2                    # forwarded to A and C


def test_duplicate_marker_is_idempotent(mesh3):
    sim, a, b, c = mesh3
    discarded = []
    sim.events.subscribe(MARKER_DISCARDED, lambda **kw: discarded.append(kw["epoch_id"]))

    b.handle_message(SnapshotMarker(epoch_id=2), a)
    state = (list(b.snapshot_tasks[2].closed), b.snapshot_tasks[2].vector, b.balance)
    sent = _sent(b)
    pending = sim.scheduler.pending

    b.handle_message(SnapshotMarker(epoch_id=2), a)

    assert (list(b.snapshot_tasks[2].closed), b.snapshot_tasks[2].vector, b.balance) == state
    assert _sent(b) == sent
    assert sim.scheduler.pending == pending
    assert discarded == [2]


def test_last_close_completes_without_forwarding(mesh3):
    sim, a, b, c = mesh3
    reports = []
    sim.events.subscribe(SNAPSHOT_COMPLETED, lambda report: reports.append(report))

    b.handle_message(SnapshotMarker(epoch_id=2), a)
    sent = _sent(b)
    b.handle_message(SnapshotMarker(epoch_id=2), c)

    assert _sent(b) == sent
    assert b.snapshot_tasks[2].is_complete
    assert [r.peer_id for r in reports] == ["B"]
    assert reports[0].vector == (0, 0, 100)
    assert reports[0].channels == ("A", "C")


def test_markers_after_completion_are_ignored(mesh3):
    sim, a, b, c = mesh3
    b.handle_message(SnapshotMarker(epoch_id=2), a)
    b.handle_message(SnapshotMarker(epoch_id=2), c)
    report = b.reports[2]

    b.handle_message(SnapshotMarker(epoch_id=2), a)
    b.handle_message(SnapshotMarker(epoch_id=2), c)

    assert b.reports[2] is report
    assert sim.collector.get(2).reports == {"B": report}


def test_transfer_attributed_only_to_open_channels(mesh3):
    sim, a, b, c = mesh3
    b.handle_message(SnapshotMarker(epoch_id=1), a)     # closes A-channel

    b.handle_message(ResourceTransfer(amount=8), a)
    b.handle_message(ResourceTransfer(amount=3), c)

    assert b.balance == 111
    assert b.snapshot_tasks[1].vector == (0, 3, 100)


def test_overlapping_epochs_keep_independent_state(mesh3):
    sim, a, b, c = mesh3
    b.handle_message(SnapshotMarker(epoch_id=1), a)
    b.handle_message(ResourceTransfer(amount=5), c)
    b.handle_message(SnapshotMarker(epoch_id=2), c)
    b.handle_message(ResourceTransfer(amount=7), a)

    t1, t2 = b.snapshot_tasks[1], b.snapshot_tasks[2]
    assert t1.vector == (0, 5, 100)
    assert t2.vector == (7, 0, 105)
    assert t1.closed == [True, False]
    assert t2.closed == [False, True]


def test_lone_peer_completes_on_origination(sim):
    solo = sim.add_peer("solo", 42)
    solo.initiate_snapshot(1)

    assert solo.reports[1].vector == (42,)
    assert sim.is_snapshot_complete(1)


def test_reoriginating_joined_epoch_forwards_again(mesh3):
    sim, a, b, c = mesh3
    a.handle_message(SnapshotMarker(epoch_id=3), b)
    sent = _sent(a)

    a.initiate_snapshot(3)

    assert _sent(a) == sent + 2
    assert a.snapshot_tasks[3].closed == [True, False]


# ═══════════════════════════════════════════════════════════════════
# FORWARDING POLICIES
# ═══════════════════════════════════════════════════════════════════

def _line(sim):
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    c = sim.add_peer("C", 100)
    sim.connect(a, b, 10, 10)
    sim.connect(b, c, 10, 10)
    return a, b, c


def test_every_close_stalls_behind_a_leaf():
    sim = Simulation(get_config("default"))
    a, b, c = _line(sim)

    a.initiate_snapshot(1)
    sim.run()

    # C completes on its only channel and never answers B
    assert 1 in a.reports
    assert 1 in c.reports
    assert 1 not in b.reports
    assert b.snapshot_tasks[1].closed == [True, False]
    assert not sim.is_snapshot_complete(1)


def test_first_receipt_completes_line_topology(textbook_sim):
    sim = textbook_sim
    a, b, c = _line(sim)

    a.initiate_snapshot(1)
    sim.run()

    assert sim.is_snapshot_complete(1)
    assert b.reports[1].vector == (0, 0, 100)
    assert sim.global_snapshot(1).total == 300


def test_first_receipt_forwards_once(textbook_sim):
    sim = textbook_sim
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    c = sim.add_peer("C", 100)
    sim.connect(a, b, 10, 10)
    sim.connect(a, c, 10, 10)
    sim.connect(b, c, 10, 10)

    b.handle_message(SnapshotMarker(epoch_id=5), a)
    assert _sent(b) == 2
    b.handle_message(SnapshotMarker(epoch_id=5), c)
    assert _sent(b) == 2
    assert b.snapshot_tasks[5].is_complete


# ═══════════════════════════════════════════════════════════════════
# TOPOLOGY
# ═══════════════════════════════════════════════════════════════════

def test_connect_after_traffic_rejected(mesh3):
    sim, a, b, c = mesh3
    d = sim.add_peer("D", 100)
    a.initiate_payment(b, 1)

    with pytest.raises(SetupOrderError):
        sim.connect(a, d, 10, 10)
    with pytest.raises(SetupOrderError):
        sim.add_peer("E", 100)


def test_invalid_links_rejected(sim):
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    other = Simulation(get_config("default")).add_peer("X", 100)

    with pytest.raises(TopologyError):
        sim.connect(a, a, 1, 1)
    with pytest.raises(TopologyError):
        sim.connect(a, b, -1, 1)
    with pytest.raises(TopologyError):
        sim.connect(a, other, 1, 1)

    sim.connect(a, b, 1, 1)
    with pytest.raises(TopologyError):
        sim.connect(b, a, 1, 1)


def test_duplicate_peer_and_unknown_lookup(sim):
    sim.add_peer("A")
    assert sim.peer("A").balance == 100     # config.initial_balance
    with pytest.raises(TopologyError):
        sim.add_peer("A")
    with pytest.raises(TopologyError):
        sim.peer("Z")


def test_message_from_unconnected_sender_rejected(sim):
    a = sim.add_peer("A", 100)
    b = sim.add_peer("B", 100)
    with pytest.raises(TopologyError):
        a.handle_message(SnapshotMarker(epoch_id=1), b)
    assert a.snapshot_tasks == {}
