"""Host resource readings via psutil."""

import time

import psutil


class PsutilHostMetrics:
    """psutil implementation of HostMetricsPort.

    CPU usage is read non-blocking (``interval=None``), so the first call
    after process start reports 0.0 and later calls report usage since the
    previous call.
    """

    def __init__(self, disk_path: str = "/") -> None:
        self._disk_path = disk_path

    def cpu_percent(self) -> float:
        return float(psutil.cpu_percent(interval=None))

    def memory(self) -> tuple[float, int, int]:
        mem = psutil.virtual_memory()
        return float(mem.percent), int(mem.total), int(mem.available)

    def disk_percent(self) -> float | None:
        try:
            return float(psutil.disk_usage(self._disk_path).percent)
        except OSError:
            return None

    def cpu_count(self) -> int:
        return psutil.cpu_count() or 1

    def uptime(self) -> float:
        return max(0.0, time.time() - psutil.boot_time())
