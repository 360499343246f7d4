# walksense/timeutils.py
from datetime import datetime, timezone


def utcnow():
    """Naive UTC now, matching how timestamps are stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
