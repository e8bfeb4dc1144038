# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics

Counters and gauges describing simulation traffic.

Metrics:
- Messages sent / delivered per kind
- Duplicate markers discarded
- Snapshot epochs initiated / completed (per peer)
- Payments initiated
- Simulated clock and pending deliveries
"""

from prometheus_client import Counter, Gauge, CollectorRegistry

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# TRAFFIC METRICS
# ═══════════════════════════════════════════════════════════════════

messages_sent_total = Counter(
    'snapnet_messages_sent_total',
    'Messages handed to a channel',
    ['kind'],
    registry=metrics_registry
)

messages_delivered_total = Counter(
    'snapnet_messages_delivered_total',
    'Messages delivered to the remote peer',
    ['kind'],
    registry=metrics_registry
)

payments_total = Counter(
    'snapnet_payments_total',
    'Resource transfers initiated by drivers',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# SNAPSHOT METRICS
# ═══════════════════════════════════════════════════════════════════

snapshots_initiated_total = Counter(
    'snapnet_snapshots_initiated_total',
    'Snapshot epochs originated by drivers',
    registry=metrics_registry
)

snapshots_completed_total = Counter(
    'snapnet_snapshots_completed_total',
    'Per-peer snapshot epochs completed',
    ['peer'],
    registry=metrics_registry
)

markers_discarded_total = Counter(
    'snapnet_markers_discarded_total',
    'Markers received on an already closed channel',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# SCHEDULER METRICS
# ═══════════════════════════════════════════════════════════════════

simulated_time = Gauge(
    'snapnet_simulated_time',
    'Current simulated clock',
    registry=metrics_registry
)

pending_deliveries = Gauge(
    'snapnet_pending_deliveries',
    'Callbacks waiting in the scheduler queue',
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def update_message_sent(message):
    messages_sent_total.labels(kind=message.kind).inc()


def update_message_delivered(message):
    messages_delivered_total.labels(kind=message.kind).inc()


def update_snapshot_completed(peer_id: str):
    snapshots_completed_total.labels(peer=peer_id).inc()


def update_scheduler_metrics(scheduler):
    """
    Sync gauges from the scheduler. Called after each run().

    Args:
        scheduler: EventScheduler instance
    """
    simulated_time.set(scheduler.now)
    pending_deliveries.set(scheduler.pending)
