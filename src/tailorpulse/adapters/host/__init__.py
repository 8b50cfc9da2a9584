"""Host metric sources implementing HostMetricsPort."""

from tailorpulse.adapters.host.psutil_source import PsutilHostMetrics

__all__ = ["PsutilHostMetrics"]
