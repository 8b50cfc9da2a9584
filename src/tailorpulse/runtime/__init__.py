"""Background runtime components."""

from tailorpulse.runtime.collector import PeriodicCollector

__all__ = ["PeriodicCollector"]
