# =============================================================================
# File: tests/fakes/fixed_clock.py
# Description: Settable clock for deterministic send timestamps
# =============================================================================

from datetime import datetime, timezone

T1 = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime = T1):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
