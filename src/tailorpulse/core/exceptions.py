"""Exceptions raised by the monitoring core."""


class TailorPulseError(Exception):
    """Base class for all tailorpulse errors."""


class InvalidTimeRangeError(TailorPulseError, ValueError):
    """A caller-supplied time range is malformed or out of order."""


class AlertNotFoundError(TailorPulseError, LookupError):
    """No active alert exists with the requested id."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"No active alert with id {alert_id!r}")
        self.alert_id = alert_id
