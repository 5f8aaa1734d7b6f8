"""Serving layer: freshness decisions on the read path."""

from .freshness import FreshnessController, FreshnessState, ServedSnapshot, classify
from .revalidation import RevalidationScheduler

__all__ = [
    "FreshnessController",
    "FreshnessState",
    "RevalidationScheduler",
    "ServedSnapshot",
    "classify",
]
