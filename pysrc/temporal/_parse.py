import re
from datetime import datetime as _datetime
from typing import NoReturn

from ._common import check_utc_bounds, mk_fixed_tzinfo

# The ISO 8601 duration grammar. A duration is either a number of weeks,
# or any combination of years, months, days, hours, minutes, and seconds.
# The two forms can't be mixed in one literal.
DURATION_PREFIX = "P"
DURATION_TIME_PREFIX = "T"
_NUMBER = r"[0-9]+(?:[.,][0-9]{1,3})?"
_WEEK_PART = rf"(?:({_NUMBER})W)"
_DATE_PART = rf"(?:({_NUMBER})Y)?(?:({_NUMBER})M)?(?:({_NUMBER})D)?"
_TIME_PART = rf"(?:({_NUMBER})H)?(?:({_NUMBER})M)?(?:({_NUMBER})S)?"
DURATION_RE = rf"(-)?P(?:{_WEEK_PART}|{_DATE_PART}(?:T{_TIME_PART})?)"

_match_duration = re.compile(DURATION_RE, re.ASCII).fullmatch


def _parse_err(s: str) -> NoReturn:
    raise ValueError(f"Invalid format: {s!r}") from None


def _truncate(raw: str | None) -> int:
    # Fractions are accepted by the grammar, but only the integer part is kept
    if not raw:
        return 0
    return int(re.split("[.,]", raw, maxsplit=1)[0])


def duration_from_iso(
    s: str,
) -> tuple[int, int, tuple[int, int, int, int, int, int]]:
    """Parse an ISO 8601 duration into (sign, weeks, date/time fields).

    The date/time fields are years, months, days, hours, minutes, seconds.
    Raises ValueError if the string doesn't match the grammar.
    """
    if (match := _match_duration(s)) is None:
        _parse_err(s)
    sign = -1 if match[1] else 1
    weeks = _truncate(match[2])
    fields = (
        _truncate(match[3]),
        _truncate(match[4]),
        _truncate(match[5]),
        _truncate(match[6]),
        _truncate(match[7]),
        _truncate(match[8]),
    )
    if weeks and any(fields):
        _parse_err(s)
    return sign, weeks, fields


# The offset separator must match the format: ``+02:00`` in the extended
# format, ``+0200`` in the basic format. Both allow ``Z`` and ``+02``.
_OFFSET_EXTENDED_RE = r"(?:[Zz]|([+-])([0-2]\d)(?::([0-5]\d))?)"
_OFFSET_BASIC_RE = r"(?:[Zz]|([+-])([0-2]\d)([0-5]\d)?)"
_match_datetime_extended = re.compile(
    r"(\d{4})-([0-1]\d)-([0-3]\d)T([0-2]\d):([0-5]\d):([0-5]\d)"
    + _OFFSET_EXTENDED_RE,
    re.ASCII,
).fullmatch
_match_datetime_basic = re.compile(
    r"(\d{4})([0-1]\d)([0-3]\d)T([0-2]\d)([0-5]\d)([0-5]\d)"
    + _OFFSET_BASIC_RE,
    re.ASCII,
).fullmatch


def _datetime_from_match(s: str, match: re.Match[str] | None) -> _datetime:
    if match is None:
        _parse_err(s)

    try:
        offset_secs = 0
        if match[7]:
            offset_secs = int(match[8]) * 3_600 + int(match[9] or 0) * 60
            if match[7] == "-":
                offset_secs = -offset_secs
        return check_utc_bounds(
            _datetime(
                int(match[1]),
                int(match[2]),
                int(match[3]),
                int(match[4]),
                int(match[5]),
                int(match[6]),
                tzinfo=mk_fixed_tzinfo(offset_secs),
            )
        )
    except ValueError:
        _parse_err(s)


def datetime_from_iso_extended(s: str) -> _datetime:
    """Parse ``YYYY-MM-DDTHH:MM:SS±HH:MM`` into an aware datetime"""
    return _datetime_from_match(s, _match_datetime_extended(s))


def datetime_from_iso_basic(s: str) -> _datetime:
    """Parse ``YYYYMMDDTHHMMSS±HHMM`` into an aware datetime"""
    return _datetime_from_match(s, _match_datetime_basic(s))
