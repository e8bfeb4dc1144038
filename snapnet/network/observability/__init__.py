# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides Prometheus metrics for simulation traffic and snapshot progress.
"""

from .metrics import metrics_registry, update_scheduler_metrics

__all__ = ['metrics_registry', 'update_scheduler_metrics']
