"""Shared helpers for model timestamps."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def utc_now() -> datetime:
    """Timezone-aware current instant in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Every stored instant goes through this so comparisons never mix
# naive and aware values.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
