"""UTC timezone enforcement.

This module sets the TZ environment variable to UTC to ensure
consistent datetime behavior across all environments, and provides
the naive-UTC clock used for every persisted timestamp.
"""

import os
from datetime import UTC, datetime

# Set UTC timezone for the entire application
os.environ["TZ"] = "UTC"


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def start_of_day(moment: datetime | None = None) -> datetime:
    """Midnight (naive UTC) of the day containing ``moment``."""
    moment = moment or utc_now()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)
