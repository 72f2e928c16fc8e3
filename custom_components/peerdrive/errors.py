"""
Error taxonomy for the proximity core.

None of these escape the core boundary: ProximityEngine catches them, logs the
dropped input and keeps the previous state.
"""


class PeerDriveError(Exception):
    """Base class for every PeerDrive error."""


class InvalidFix(PeerDriveError):
    """Position fix with non-finite or out-of-range values."""


class StaleFix(PeerDriveError):
    """Position fix older than the latest processed one."""

    def __init__(self, timestamp_ms: float, latest_ms: float) -> None:
        self.timestamp_ms = timestamp_ms
        self.latest_ms = latest_ms
        super().__init__(f"Fix at {timestamp_ms} is older than last processed fix at {latest_ms}")


class UnreliableSpeedSample(PeerDriveError):
    """Fix spacing outside the window a speed can be derived from."""

    def __init__(self, interval_s: float) -> None:
        self.interval_s = interval_s
        super().__init__(f"Sample interval {interval_s:.3f}s is outside the usable window")


class MalformedPeerReport(PeerDriveError):
    """Peer report with a missing or wrongly typed field."""

    def __init__(self, field: str, raw) -> None:
        self.field = field
        self.raw = raw
        super().__init__(f"Malformed peer report ({field}): {raw!r}")
