# MIT License
# Copyright (c) 2025 Hashborn

"""
snapnet: discrete-event simulation of Chandy-Lamport global snapshots.
"""

__version__ = "0.1.0"
