from datetime import (
    datetime as _datetime,
    timedelta as _timedelta,
    timezone as _timezone,
)
from functools import lru_cache

UTC = _timezone.utc

# Average lengths of the calendar units, in seconds.
# A year is 365.2425 days (the Gregorian average), a month 1/12 of that.
SECS_PER_YEAR = 31_556_952
SECS_PER_MONTH = 2_629_746
SECS_PER_WEEK = 604_800
SECS_PER_DAY = 86_400
SECS_PER_HOUR = 3_600
SECS_PER_MINUTE = 60


# We cache fixed-offset tzinfo objects to avoid creating multiple identical ones.
# It's very common to only have whole-hour offsets, so this helps a lot.
@lru_cache
def mk_fixed_tzinfo(secs: int, /) -> _timezone:
    return UTC if secs == 0 else _timezone(_timedelta(seconds=secs))


def check_utc_bounds(dt: _datetime) -> _datetime:
    try:
        dt.astimezone(UTC)
    except (OverflowError, ValueError):
        raise ValueError("Instant out of range")
    return dt
