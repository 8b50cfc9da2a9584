"""Test doubles and builders shared across test modules."""

from tailorpulse.core.models import RequestSample

START = 1_700_000_000.0


class FakeClock:
    """Settable clock returning Unix seconds."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubHost:
    """HostMetricsPort with fixed, settable readings."""

    def __init__(
        self,
        cpu: float = 20.0,
        memory: float = 30.0,
        total: int = 16 * 1024**3,
        available: int = 8 * 1024**3,
        cores: int = 8,
        uptime: float = 3600.0,
    ) -> None:
        self.cpu = cpu
        self.memory_percent = memory
        self.total = total
        self.available = available
        self.cores = cores
        self.uptime_seconds = uptime

    def cpu_percent(self) -> float:
        return self.cpu

    def memory(self) -> tuple[float, int, int]:
        return self.memory_percent, self.total, self.available

    def disk_percent(self) -> float | None:
        return 40.0

    def cpu_count(self) -> int:
        return self.cores

    def uptime(self) -> float:
        return self.uptime_seconds


def make_request(
    timestamp: float = START,
    path: str = "/orders",
    method: str = "GET",
    status_code: int = 200,
    response_time_ms: float = 100.0,
) -> RequestSample:
    """Build a RequestSample with sensible defaults."""
    return RequestSample(
        path=path,
        method=method,
        status_code=status_code,
        response_time_ms=response_time_ms,
        timestamp=timestamp,
    )

