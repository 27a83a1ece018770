# The MIT License (MIT)
#
# Copyright (c) Arie Bovenberg
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - Why are the core classes in one file?
#   - Duration, DateTime, and the functions applying one to the other
#     'know' about each other, so this prevents circular imports
#   - Parsing and calendar math live in _parse.py and _math.py,
#     they don't depend on the classes here
# - Durations keep their fields in a fixed-order tuple. Operations that
#   apply to every field iterate over it instead of naming each attribute.
from __future__ import annotations

__version__ = "0.1.0"

from datetime import (
    datetime as _datetime,
    timedelta as _timedelta,
    tzinfo as _tzinfo,
)
from time import time_ns
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Literal,
    Mapping,
    no_type_check,
    overload,
)
from zoneinfo import ZoneInfo

from ._common import (
    SECS_PER_DAY,
    SECS_PER_HOUR,
    SECS_PER_MINUTE,
    SECS_PER_MONTH,
    SECS_PER_WEEK,
    SECS_PER_YEAR,
    UTC,
    check_utc_bounds,
)
from ._math import (
    add_months_clamped,
    add_months_overflowing,
    days_in_month,
    shift_month,
)
from ._parse import (
    DURATION_PREFIX,
    DURATION_TIME_PREFIX,
    datetime_from_iso_basic,
    datetime_from_iso_extended,
    duration_from_iso,
)

__all__ = [
    # Core types
    "Duration",
    "DateTime",
    # Calendar arithmetic and comparison
    "apply_duration",
    "compare",
    "Precision",
    "Direction",
    # Duration units
    "years",
    "months",
    "weeks",
    "days",
    "hours",
    "minutes",
    "seconds",
    # Exceptions
    "InvalidDurationFormat",
    "InvalidDurationComponent",
    "IllegalDurationOperation",
    "CalendarOverflow",
    "InvalidDateTimeFormat",
]

# Helpers that pre-compute/lookup as much as possible
_object_new = object.__new__
_fromtimestamp = _datetime.fromtimestamp
_UNIX_EPOCH = _datetime(1970, 1, 1, tzinfo=UTC)
_default_tz: _tzinfo = UTC


class _ImmutableBase:
    __slots__ = ()

    # Immutable classes don't need to be copied
    @no_type_check
    def __copy__(self):
        return self

    @no_type_check
    def __deepcopy__(self, _):
        return self


if TYPE_CHECKING:
    from typing import final
else:

    def final(cls):

        def init_subclass_not_allowed(cls, **kwargs):  # pragma: no cover
            raise TypeError("Subclassing not allowed")

        cls.__init_subclass__ = init_subclass_not_allowed
        return cls


# Indices into the fields of a duration
_YEARS, _MONTHS, _WEEKS, _DAYS, _HOURS, _MINUTES, _SECONDS = range(7)
_DATE_FIELDS = (_YEARS, _MONTHS, _WEEKS, _DAYS)
_TIME_FIELDS = (_HOURS, _MINUTES, _SECONDS)
_SUFFIXES = "YMWDHMS"
_AVERAGE_SECS = (
    SECS_PER_YEAR,
    SECS_PER_MONTH,
    SECS_PER_WEEK,
    SECS_PER_DAY,
    SECS_PER_HOUR,
    SECS_PER_MINUTE,
    1,
)
_Fields = tuple[int, int, int, int, int, int, int]


@final
class Duration(_ImmutableBase):
    """An ISO 8601 duration of calendar and clock units.

    All components are non-negative. The sign applies to the duration
    as a whole. A duration is expressed either in weeks, or in any
    combination of years, months, days, hours, minutes, and seconds.
    Use :meth:`from_weeks` to create a duration in weeks.

    Example
    -------
    >>> d = Duration(years=1, months=2, hours=4)
    Duration(P1Y2MT4H)
    >>> Duration(days=3, sign=-1)
    Duration(-P3D)
    >>> Duration.from_weeks(2)
    Duration(P2W)
    """

    __slots__ = ("_fields", "_sign")

    ZERO: ClassVar[Duration]
    """A duration of zero"""

    def __init__(
        self,
        *,
        years: int = 0,
        months: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        sign: int = 1,
    ) -> None:
        self._fields = _check_fields(
            (years, months, 0, days, hours, minutes, seconds)
        )
        self._sign = _check_sign(sign)

    @classmethod
    def from_weeks(cls, weeks: int, /, *, sign: int = 1) -> Duration:
        """Create a duration of a number of weeks

        Example
        -------
        >>> Duration.from_weeks(3, sign=-1)
        Duration(-P3W)
        """
        return cls._from_fields_unchecked(
            _check_fields((0, 0, weeks, 0, 0, 0, 0)), _check_sign(sign)
        )

    @property
    def years(self) -> int:
        return self._fields[_YEARS]

    @property
    def months(self) -> int:
        return self._fields[_MONTHS]

    @property
    def weeks(self) -> int:
        return self._fields[_WEEKS]

    @property
    def days(self) -> int:
        return self._fields[_DAYS]

    @property
    def hours(self) -> int:
        return self._fields[_HOURS]

    @property
    def minutes(self) -> int:
        return self._fields[_MINUTES]

    @property
    def seconds(self) -> int:
        return self._fields[_SECONDS]

    @property
    def sign(self) -> int:
        """The sign of all components: either ``1`` or ``-1``"""
        return self._sign

    def is_positive(self) -> bool:
        return self._sign == 1

    def is_negative(self) -> bool:
        return self._sign == -1

    def has_weeks(self) -> bool:
        return self._fields[_WEEKS] != 0

    def has_date(self) -> bool:
        """Whether any of years, months, or days is non-zero"""
        fields = self._fields
        return bool(fields[_YEARS] or fields[_MONTHS] or fields[_DAYS])

    def has_time(self) -> bool:
        """Whether any of hours, minutes, or seconds is non-zero"""
        fields = self._fields
        return bool(fields[_HOURS] or fields[_MINUTES] or fields[_SECONDS])

    def has_date_time(self) -> bool:
        return self.has_date() or self.has_time()

    def is_empty(self) -> bool:
        """Whether all components are zero. The sign is not taken into account.

        Example
        -------
        >>> Duration().is_empty()
        True
        >>> Duration(sign=-1).is_empty()
        True
        >>> Duration(minutes=1).is_empty()
        False
        """
        return not any(self._fields)

    def _is_months_only(self) -> bool:
        fields = self._fields
        return bool(fields[_MONTHS]) and not any(
            v for i, v in enumerate(fields) if i != _MONTHS
        )

    def format_iso(self) -> str:
        """Format as an ISO 8601 duration.

        Components that are zero are omitted. The empty duration is
        formatted as ``PT0S``, regardless of its sign.

        Inverse of :meth:`parse_iso`.

        Example
        -------
        >>> Duration(years=1, months=2, days=3, hours=4).format_iso()
        'P1Y2M3DT4H'
        >>> Duration.from_weeks(2, sign=-1).format_iso()
        '-P2W'
        >>> Duration().format_iso()
        'PT0S'
        """
        if self.is_empty():
            return DURATION_PREFIX + DURATION_TIME_PREFIX + "0S"

        fields = self._fields
        date = "".join(
            f"{fields[i]}{_SUFFIXES[i]}" for i in _DATE_FIELDS if fields[i]
        )
        time = "".join(
            f"{fields[i]}{_SUFFIXES[i]}" for i in _TIME_FIELDS if fields[i]
        )
        return (
            "-" * (self._sign == -1)
            + DURATION_PREFIX
            + date
            + (DURATION_TIME_PREFIX + time) * bool(time)
        )

    __str__ = format_iso

    @classmethod
    def parse_iso(cls, s: str, /) -> Duration:
        """Parse an ISO 8601 duration, such as ``P1Y2M3DT4H5M6S`` or ``-P2W``.

        Inverse of :meth:`format_iso`

        Example
        -------
        >>> Duration.parse_iso("P1Y2M3DT4H5M6S")
        Duration(P1Y2M3DT4H5M6S)
        >>> Duration.parse_iso("-P2W")
        Duration(-P2W)

        Note
        ----
        Components may have a fraction of up to three digits
        (e.g. ``PT1.5S`` or ``PT1,5S``). Only the integer part is kept.

        Note
        ----
        Weeks can't be combined with other components.
        ``P1W1D`` is not a valid duration.
        """
        try:
            sign, weeks, fields = duration_from_iso(s)
        except ValueError:
            raise InvalidDurationFormat(f"Invalid format: {s!r}") from None

        if weeks:
            return cls.from_weeks(weeks, sign=sign)
        years, months, days, hours, minutes, seconds = fields
        return cls(
            years=years,
            months=months,
            days=days,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            sign=sign,
        )

    def in_average_seconds(self) -> float:
        """Convert to a number of seconds, using the average length
        of each calendar unit.

        A year counts as 365.2425 days, a month as 1/12 of that.
        This is an approximation: use :meth:`DateTime.add`
        if you need the exact span relative to a particular date.

        Example
        -------
        >>> Duration(days=1, hours=2).in_average_seconds()
        93600.0
        >>> Duration(years=1, sign=-1).in_average_seconds()
        -31556952.0
        """
        return float(
            self._sign
            * sum(v * secs for v, secs in zip(self._fields, _AVERAGE_SECS))
        )

    def in_average_years(self) -> float:
        return self.in_average_seconds() / SECS_PER_YEAR

    def in_average_months(self) -> float:
        return self.in_average_seconds() / SECS_PER_MONTH

    def in_average_weeks(self) -> float:
        return self.in_average_seconds() / SECS_PER_WEEK

    def in_average_days(self) -> float:
        return self.in_average_seconds() / SECS_PER_DAY

    def in_average_hours(self) -> float:
        return self.in_average_seconds() / SECS_PER_HOUR

    def in_average_minutes(self) -> float:
        return self.in_average_seconds() / SECS_PER_MINUTE

    def plus(self, other: Duration, /, *, signed: bool = False) -> Duration:
        """Add the components of another duration to this one.

        By default, only the magnitudes are added: the result has the sign
        of this duration, and the sign of ``other`` is ignored.
        Invert the result or the operands yourself if you need subtraction.
        With ``signed=True``, the components of ``other`` are subtracted
        if its sign differs.

        Raises
        ------
        IllegalDurationOperation
            If one duration is in weeks, and the other has other components.
            Or, with ``signed=True``, if the result would have mixed signs.

        Example
        -------
        >>> Duration(years=1, days=2).plus(Duration(days=3, hours=4))
        Duration(P1Y5DT4H)
        >>> Duration(days=5).plus(Duration(days=2, sign=-1), signed=True)
        Duration(P3D)
        """
        if not isinstance(other, Duration):
            raise TypeError(f"Expected Duration, got {type(other)!r}")
        elif (self.has_weeks() and other.has_date_time()) or (
            self.has_date_time() and other.has_weeks()
        ):
            raise IllegalDurationOperation(
                "Cannot combine a duration in weeks "
                "with a duration in other units"
            )

        if not signed or other._sign == self._sign:
            return self._from_fields_unchecked(
                tuple(a + b for a, b in zip(self._fields, other._fields)),  # type: ignore[arg-type]
                self._sign,
            )

        diffs = [a - b for a, b in zip(self._fields, other._fields)]
        if all(v >= 0 for v in diffs):
            sign = self._sign
        elif all(v <= 0 for v in diffs):
            sign = -self._sign
            diffs = [-v for v in diffs]
        else:
            raise IllegalDurationOperation("Mixed sign in duration")
        return self._from_fields_unchecked(tuple(diffs), sign)  # type: ignore[arg-type]

    def __add__(self, other: Duration) -> Duration:
        """Add the magnitudes of another duration.
        Behaves the same as :meth:`plus`
        """
        if isinstance(other, Duration):
            return self.plus(other)
        return NotImplemented

    def multiplied_by(self, factor: int, /) -> Duration:
        """Multiply all components by a non-negative whole number.

        Example
        -------
        >>> Duration(months=2, hours=3).multiplied_by(4)
        Duration(P8MT12H)
        >>> Duration(days=3).multiplied_by(0)
        Duration(PT0S)
        """
        if not isinstance(factor, int):
            raise TypeError(f"Expected int, got {type(factor)!r}")
        elif factor < 0:
            raise IllegalDurationOperation(
                f"Cannot multiply a duration by a negative factor: {factor}"
            )
        return self._from_fields_unchecked(
            tuple(v * factor for v in self._fields),  # type: ignore[arg-type]
            self._sign,
        )

    def __mul__(self, other: int) -> Duration:
        if isinstance(other, int):
            return self.multiplied_by(other)
        return NotImplemented

    def __rmul__(self, other: int) -> Duration:
        if isinstance(other, int):
            return self.multiplied_by(other)
        return NotImplemented

    def invert(self) -> Duration:
        """Invert the sign of the duration

        Example
        -------
        >>> Duration(days=2).invert()
        Duration(-P2D)
        """
        return self._from_fields_unchecked(self._fields, -self._sign)

    __neg__ = invert

    def __pos__(self) -> Duration:
        return self

    def __bool__(self) -> bool:
        """True if any component is non-zero"""
        return any(self._fields)

    def __eq__(self, other: object) -> bool:
        """Compare for equality of all components and the sign.

        Example
        -------
        >>> Duration(days=7) == Duration(days=7)
        True
        >>> Duration(days=7) == Duration.from_weeks(1)
        False  # components are not normalized
        """
        if not isinstance(other, Duration):
            return NotImplemented
        return self._fields == other._fields and self._sign == other._sign

    def __hash__(self) -> int:
        return hash((self._fields, self._sign))

    def __repr__(self) -> str:
        return f"Duration({self})"

    @classmethod
    def _from_fields_unchecked(cls, fields: _Fields, sign: int) -> Duration:
        self = _object_new(cls)
        self._fields = fields
        self._sign = sign
        return self

    @no_type_check
    def __reduce__(self):
        return (_unpkl_duration, (self._fields, self._sign))


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
def _unpkl_duration(fields: _Fields, sign: int) -> Duration:
    return Duration._from_fields_unchecked(
        _check_fields(fields), _check_sign(sign)
    )


def _check_fields(fields: _Fields) -> _Fields:
    for value in fields:
        if not isinstance(value, int):
            raise TypeError(
                f"Duration components must be int, got {type(value)!r}"
            )
        elif value < 0:
            raise InvalidDurationComponent(
                f"Duration components cannot be negative, got {value}. "
                "Use the sign argument instead."
            )
    return fields


def _check_sign(sign: int) -> int:
    if sign not in (1, -1):
        raise InvalidDurationComponent(f"Sign must be 1 or -1, got {sign!r}")
    return sign


Duration.ZERO = Duration()


Precision = Literal[
    "millennium",
    "century",
    "decade",
    "year",
    "month",
    "day",
    "hour",
    "minute",
    "exact",
]
# The number of leading characters of the basic ISO 8601 format
# (YYYYMMDDTHHMMSS±HHMM) that matter at each precision
_PRECISION_TO_LENGTH: Mapping[str, int] = {
    "millennium": 1,
    "century": 2,
    "decade": 3,
    "year": 4,
    "month": 6,
    "day": 8,
    "hour": 11,
    "minute": 13,
    "exact": 15,
}

Direction = Literal["add", "subtract"]


@final
class DateTime(_ImmutableBase):
    """A date and time in a timezone.

    Without an explicit ``tz``, the default timezone is used.
    See :func:`~temporal.reset_default_tz`.

    Example
    -------
    >>> DateTime(2021, 1, 31, hour=10, tz="Europe/Amsterdam")
    DateTime(2021-01-31 10:00:00+01:00[Europe/Amsterdam])

    Note
    ----
    Times skipped by a DST transition are moved forward by the length
    of the gap. Repeated times resolve to the earlier of the two offsets.
    """

    __slots__ = ("_py_dt",)

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        *,
        tz: str | None = None,
    ) -> None:
        self._py_dt = _resolve_local(
            _datetime(year, month, day, hour, minute, second), _load_tz(tz)
        )

    @classmethod
    def now(cls, tz: str | None = None) -> DateTime:
        """The current time in the given timezone.

        Affected by :func:`~temporal.patch_current_time`.
        """
        return cls._from_py_unchecked(_now_in(_load_tz(tz)))

    today = now

    @classmethod
    def yesterday(cls, tz: str | None = None) -> DateTime:
        """The current time of day, one day ago"""
        return cls.now(tz).subtract(days=1)

    @classmethod
    def tomorrow(cls, tz: str | None = None) -> DateTime:
        """The current time of day, one day from now"""
        return cls.now(tz).add(days=1)

    @classmethod
    def from_unix_seconds(
        cls, secs: int | float, /, tz: str | None = None
    ) -> DateTime:
        """Create from a UNIX timestamp in seconds

        Example
        -------
        >>> DateTime.from_unix_seconds(0, tz="Asia/Tokyo")
        DateTime(1970-01-01 09:00:00+09:00[Asia/Tokyo])
        """
        whole, fract = divmod(secs, 1)
        return cls._from_py_unchecked(
            (
                _fromtimestamp(whole, UTC)
                + _timedelta(microseconds=round(fract * 1_000_000))
            ).astimezone(_load_tz(tz))
        )

    @classmethod
    def from_unix_millis(cls, millis: int, /, tz: str | None = None) -> DateTime:
        secs, millis = divmod(millis, 1_000)
        return cls._from_py_unchecked(
            _fromtimestamp(secs, UTC)
            .replace(microsecond=millis * 1_000)
            .astimezone(_load_tz(tz))
        )

    def to_unix_seconds(self) -> int:
        """The UNIX timestamp in whole seconds, rounded down"""
        return (self._py_dt - _UNIX_EPOCH) // _timedelta(seconds=1)

    def to_unix_millis(self) -> int:
        return round((self._py_dt - _UNIX_EPOCH) / _timedelta(milliseconds=1))

    @classmethod
    def from_py_datetime(cls, d: _datetime, /) -> DateTime:
        """Create from an aware :class:`~datetime.datetime`.

        The timezone of the datetime is kept.
        """
        if not isinstance(d, _datetime):
            raise TypeError(f"Expected datetime, got {type(d)!r}")
        elif d.tzinfo is None or d.utcoffset() is None:
            raise ValueError("Datetime must be aware")
        return cls._from_py_unchecked(check_utc_bounds(_strip_subclasses(d)))

    def py_datetime(self) -> _datetime:
        """Convert to a standard library :class:`~datetime.datetime`"""
        return self._py_dt

    @classmethod
    def parse_iso_extended(cls, s: str, /, tz: str | None = None) -> DateTime:
        """Parse the extended ISO 8601 format ``YYYY-MM-DDTHH:MM:SS±HH:MM``.

        The result is converted to the given timezone
        (or the default timezone).

        Example
        -------
        >>> DateTime.parse_iso_extended("2021-06-15T10:00:00+02:00", tz="UTC")
        DateTime(2021-06-15 08:00:00+00:00[UTC])
        """
        try:
            parsed = datetime_from_iso_extended(s)
        except ValueError:
            raise InvalidDateTimeFormat(f"Invalid format: {s!r}") from None
        return cls._from_py_unchecked(parsed.astimezone(_load_tz(tz)))

    @classmethod
    def parse_iso_basic(cls, s: str, /, tz: str | None = None) -> DateTime:
        """Parse the basic ISO 8601 format ``YYYYMMDDTHHMMSS±HHMM``.

        The result is converted to the given timezone
        (or the default timezone).
        """
        try:
            parsed = datetime_from_iso_basic(s)
        except ValueError:
            raise InvalidDateTimeFormat(f"Invalid format: {s!r}") from None
        return cls._from_py_unchecked(parsed.astimezone(_load_tz(tz)))

    def format_iso_extended(self) -> str:
        """Format as ``YYYY-MM-DDTHH:MM:SS±HH:MM``

        Example
        -------
        >>> DateTime(2021, 1, 31, hour=10, tz="UTC").format_iso_extended()
        '2021-01-31T10:00:00+00:00'

        Note
        ----
        Seconds of the UTC offset (e.g. in historical local mean time)
        are not part of the format, and are truncated.
        """
        dt = self._py_dt
        return (
            f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
            f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
            + _format_offset(dt.utcoffset(), ":")  # type: ignore[arg-type]
        )

    __str__ = format_iso_extended

    def format_iso_basic(self) -> str:
        """Format as ``YYYYMMDDTHHMMSS±HHMM``.
        All fields have a fixed width.

        Example
        -------
        >>> DateTime(2021, 1, 31, hour=10, tz="UTC").format_iso_basic()
        '20210131T100000+0000'
        """
        dt = self._py_dt
        return (
            f"{dt.year:04d}{dt.month:02d}{dt.day:02d}"
            f"T{dt.hour:02d}{dt.minute:02d}{dt.second:02d}"
            + _format_offset(dt.utcoffset(), "")  # type: ignore[arg-type]
        )

    @property
    def year(self) -> int:
        return self._py_dt.year

    @property
    def month(self) -> int:
        return self._py_dt.month

    @property
    def day(self) -> int:
        return self._py_dt.day

    @property
    def hour(self) -> int:
        return self._py_dt.hour

    @property
    def minute(self) -> int:
        return self._py_dt.minute

    @property
    def second(self) -> int:
        return self._py_dt.second

    @property
    def tz(self) -> str | None:
        """The timezone ID, or ``None`` if the datetime has a fixed offset"""
        return getattr(self._py_dt.tzinfo, "key", None)

    def with_tz(self, tz: str | None = None, /) -> DateTime:
        """Convert to another timezone (the default timezone if omitted)

        Example
        -------
        >>> d = DateTime(2021, 6, 15, hour=10, tz="UTC")
        >>> d.with_tz("America/New_York")
        DateTime(2021-06-15 06:00:00-04:00[America/New_York])
        """
        return self._from_py_unchecked(self._py_dt.astimezone(_load_tz(tz)))

    def add(
        self,
        duration: Duration | str | None = None,
        /,
        *,
        years: int = 0,
        months: int = 0,
        weeks: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
    ) -> DateTime:
        """Add a duration, given as :class:`Duration`, ISO 8601 string,
        or as keyword arguments.

        See :func:`apply_duration` for how calendar units are added.

        Example
        -------
        >>> d = DateTime(2021, 1, 31, hour=10, tz="UTC")
        >>> d.add(months=1)
        DateTime(2021-02-28 10:00:00+00:00[UTC])
        >>> d.add("P1M1D")
        DateTime(2021-03-04 10:00:00+00:00[UTC])
        >>> d.add(Duration(hours=2))
        DateTime(2021-01-31 12:00:00+00:00[UTC])
        """
        return apply_duration(
            self,
            _as_duration(
                duration, years, months, weeks, days, hours, minutes, seconds
            ),
            "add",
        )

    def subtract(
        self,
        duration: Duration | str | None = None,
        /,
        *,
        years: int = 0,
        months: int = 0,
        weeks: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
    ) -> DateTime:
        """Subtract a duration. The inverse of :meth:`add`.

        Example
        -------
        >>> d = DateTime(2021, 3, 31, hour=10, tz="UTC")
        >>> d.subtract(months=1)
        DateTime(2021-02-28 10:00:00+00:00[UTC])
        """
        return apply_duration(
            self,
            _as_duration(
                duration, years, months, weeks, days, hours, minutes, seconds
            ),
            "subtract",
        )

    def __add__(self, delta: Duration) -> DateTime:
        """Add a duration. Behaves the same as :meth:`add`"""
        if isinstance(delta, Duration):
            return apply_duration(self, delta, "add")
        return NotImplemented

    @overload
    def __sub__(self, other: Duration) -> DateTime: ...

    @overload
    def __sub__(self, other: DateTime) -> Duration: ...

    def __sub__(self, other: Duration | DateTime) -> DateTime | Duration:
        """Subtract a duration, or calculate the duration between two datetimes

        Example
        -------
        >>> d = DateTime(2021, 3, 31, tz="UTC")
        >>> d - Duration(days=1)
        DateTime(2021-03-30 00:00:00+00:00[UTC])
        >>> d - DateTime(2021, 1, 30, hour=12, tz="UTC")
        Duration(P2MT12H)
        """
        if isinstance(other, Duration):
            return apply_duration(self, other, "subtract")
        elif isinstance(other, DateTime):
            return other.duration_until(self)
        return NotImplemented

    def _add_overflowing(self, sign: int, fields: _Fields) -> DateTime:
        # Calendar units are added to the local date, without clamping
        # days that don't exist in the target month. Clock units are then
        # added as exact time, so DST transitions are accounted for.
        years, months, weeks, days, hours, minutes, seconds = fields
        dt = self._py_dt
        tz = dt.tzinfo
        assert tz is not None
        if years or months or weeks or days:
            new_date = add_months_overflowing(
                dt.date(), sign * (years * 12 + months)
            ) + _timedelta(days=sign * (weeks * 7 + days))
            dt = _resolve_local(_datetime.combine(new_date, dt.time()), tz)
        if hours or minutes or seconds:
            dt = (
                dt.astimezone(UTC)
                + sign
                * _timedelta(hours=hours, minutes=minutes, seconds=seconds)
            ).astimezone(tz)
        return self._from_py_unchecked(dt)

    def _last_day_of_shifted_month(self, months: int) -> DateTime:
        year, month = shift_month(self.year, self.month, months)
        dt = self._py_dt
        assert dt.tzinfo is not None
        return self._from_py_unchecked(
            _resolve_local(
                dt.replace(
                    tzinfo=None,
                    year=year,
                    month=month,
                    day=days_in_month(year, month),
                ),
                dt.tzinfo,
            )
        )

    def compare(self, other: DateTime, /, precision: Precision = "exact") -> int:
        """Compare to another datetime at the given precision.
        Returns -1, 0, or 1. See :func:`compare`."""
        return compare(self, other, precision)

    def is_same(self, other: DateTime, /, precision: Precision = "exact") -> bool:
        """Whether both have the same local date and time, up to the given
        precision.

        Example
        -------
        >>> a = DateTime(2021, 6, 15, hour=10, tz="UTC")
        >>> a.is_same(DateTime(2021, 6, 20, hour=9, tz="UTC"), "month")
        True
        >>> a.is_same(DateTime(2021, 6, 20, hour=9, tz="UTC"), "day")
        False
        """
        return compare(self, other, precision) == 0

    def is_before(
        self, other: DateTime, /, precision: Precision = "exact"
    ) -> bool:
        return compare(self, other, precision) < 0

    def is_after(self, other: DateTime, /, precision: Precision = "exact") -> bool:
        return compare(self, other, precision) > 0

    def is_before_or_same(
        self, other: DateTime, /, precision: Precision = "exact"
    ) -> bool:
        return compare(self, other, precision) <= 0

    def is_after_or_same(
        self, other: DateTime, /, precision: Precision = "exact"
    ) -> bool:
        return compare(self, other, precision) >= 0

    def is_past(
        self, precision: Precision = "exact", /, *, now: DateTime | None = None
    ) -> bool:
        """Whether this datetime is before the current time at the given precision.

        The current time is taken in the timezone of this datetime,
        unless ``now`` is given explicitly.

        Example
        -------
        >>> now = DateTime(2021, 6, 15, hour=10, tz="UTC")
        >>> DateTime(2021, 6, 15, hour=8, tz="UTC").is_past(now=now)
        True
        >>> DateTime(2021, 6, 15, hour=8, tz="UTC").is_past("day", now=now)
        False
        """
        return self.is_before(self._now_or(now), precision)

    def is_future(
        self, precision: Precision = "exact", /, *, now: DateTime | None = None
    ) -> bool:
        """Whether this datetime is after the current time at the given precision.
        See :meth:`is_past`."""
        return self.is_after(self._now_or(now), precision)

    def is_current(
        self, precision: Precision, /, *, now: DateTime | None = None
    ) -> bool:
        """Whether this datetime is in the current minute, day, year, etc.

        Example
        -------
        >>> now = DateTime(2021, 6, 15, hour=10, tz="UTC")
        >>> DateTime(2021, 2, 1, tz="UTC").is_current("year", now=now)
        True
        """
        return self.is_same(self._now_or(now), precision)

    def is_today(self, *, now: DateTime | None = None) -> bool:
        return self.is_same(self._now_or(now), "day")

    def is_yesterday(self, *, now: DateTime | None = None) -> bool:
        return self.is_same(self._now_or(now).subtract(days=1), "day")

    def is_tomorrow(self, *, now: DateTime | None = None) -> bool:
        return self.is_same(self._now_or(now).add(days=1), "day")

    def _now_or(self, now: DateTime | None) -> DateTime:
        if now is None:
            assert self._py_dt.tzinfo is not None
            return self._from_py_unchecked(_now_in(self._py_dt.tzinfo))
        elif not isinstance(now, DateTime):
            raise TypeError(f"Expected DateTime, got {type(now)!r}")
        return now

    def duration_until(self, other: DateTime, /) -> Duration:
        """The duration from this datetime to another,
        in years, months, days, hours, minutes, and seconds.

        The other datetime is first converted to the timezone of this one.
        Whole months and days are counted on the local date, the rest
        is the exact time elapsed, in the same way :meth:`add` applies them.
        If the day of the month doesn't exist in an intermediate month,
        the last day of that month is used.
        The result is negative if the other datetime is earlier.

        Example
        -------
        >>> a = DateTime(2021, 1, 31, tz="UTC")
        >>> a.duration_until(DateTime(2021, 3, 1, hour=2, tz="UTC"))
        Duration(P1M1DT2H)
        >>> a.duration_until(DateTime(2020, 12, 30, tz="UTC"))
        Duration(-P1D)
        """
        if not isinstance(other, DateTime):
            raise TypeError(f"Expected DateTime, got {type(other)!r}")
        tz = self._py_dt.tzinfo
        assert tz is not None
        start_utc = self._utc()
        end_utc = other._utc()
        sign = -1 if end_utc < start_utc else 1
        start = self._py_dt.replace(tzinfo=None)
        end = end_utc.astimezone(tz).replace(tzinfo=None)

        def overshoots(local: _datetime) -> bool:
            moment = _resolve_local(local, tz).astimezone(UTC)
            return moment < end_utc if sign == -1 else moment > end_utc

        months = (end.year - start.year) * 12 + end.month - start.month
        if months * sign < 0:
            months = 0
        while months and overshoots(add_months_clamped(start, months)):
            months -= sign
        shifted = add_months_clamped(start, months)

        days = (end.date() - shifted.date()).days
        if days * sign < 0:
            days = 0
        while days and overshoots(shifted + _timedelta(days=days)):
            days -= sign

        if months or days:
            moment = _resolve_local(
                shifted + _timedelta(days=days), tz
            ).astimezone(UTC)
        else:
            moment = start_utc
        minutes, seconds = divmod(
            sign * (end_utc - moment) // _timedelta(seconds=1), 60
        )
        hours, minutes = divmod(minutes, 60)
        years, months = divmod(sign * months, 12)
        return Duration(
            years=years,
            months=months,
            days=sign * days,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            sign=sign,
        )

    def seconds_until(self, other: DateTime, /) -> float:
        """The exact number of seconds elapsed until the other datetime"""
        return (other._py_dt - self._py_dt).total_seconds()

    def millis_until(self, other: DateTime, /) -> float:
        return self.seconds_until(other) * 1_000

    def minutes_until(self, other: DateTime, /) -> float:
        return self.seconds_until(other) / 60

    def __eq__(self, other: object) -> bool:
        """Check if two datetimes represent the same moment in time

        Example
        -------
        >>> DateTime(2021, 6, 15, hour=10, tz="UTC") == DateTime(
        ...     2021, 6, 15, hour=12, tz="Europe/Paris"
        ... )
        True
        """
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() == other._utc()

    def __hash__(self) -> int:
        return hash(self._utc())

    def __lt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() < other._utc()

    def __le__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() <= other._utc()

    def __gt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() > other._utc()

    def __ge__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() >= other._utc()

    def _utc(self) -> _datetime:
        # Comparisons within the same ZoneInfo ignore the fold,
        # so we compare in UTC instead
        return self._py_dt.astimezone(UTC)

    def _timestamp_nanos(self) -> int:
        return (self._py_dt - _UNIX_EPOCH) // _timedelta(microseconds=1) * 1_000

    def __repr__(self) -> str:
        tz = self.tz
        return f"DateTime({self._py_dt.isoformat(' ')}" + (
            f"[{tz}])" if tz else ")"
        )

    @classmethod
    def _from_py_unchecked(cls, d: _datetime, /) -> DateTime:
        self = _object_new(cls)
        self._py_dt = d
        return self

    @no_type_check
    def __reduce__(self):
        return (_unpkl_datetime, (self._py_dt,))


def _unpkl_datetime(d: _datetime) -> DateTime:
    return DateTime._from_py_unchecked(d)


def apply_duration(
    base: DateTime, duration: Duration, direction: Direction = "add"
) -> DateTime:
    """Add a duration to (or subtract it from) a datetime.

    Years and months are added to the local year and month, keeping the
    day of the month. If that day doesn't exist in the resulting month,
    it overflows into the next month. Weeks and days are then added to the
    local date, and hours, minutes, and seconds as exact elapsed time.

    Durations consisting of months only are the exception: if the day
    of the month would change, the result is the last day of the intended
    month instead.

    Raises
    ------
    CalendarOverflow
        If the result is out of the supported range

    Example
    -------
    >>> d = DateTime(2021, 1, 31, hour=10, tz="UTC")
    >>> apply_duration(d, Duration(months=1))
    DateTime(2021-02-28 10:00:00+00:00[UTC])
    >>> apply_duration(d, Duration(months=1, days=1))
    DateTime(2021-03-04 10:00:00+00:00[UTC])
    >>> apply_duration(d, Duration(days=1), "subtract")
    DateTime(2021-01-30 10:00:00+00:00[UTC])
    """
    if not isinstance(base, DateTime):
        raise TypeError(f"Expected DateTime, got {type(base)!r}")
    elif not isinstance(duration, Duration):
        raise TypeError(f"Expected Duration, got {type(duration)!r}")

    if direction == "add":
        sign = duration._sign
    elif direction == "subtract":
        sign = -duration._sign
    else:
        raise ValueError(f"Invalid direction: {direction!r}")

    try:
        result = base._add_overflowing(sign, duration._fields)
        if duration._is_months_only() and result.day != base.day:
            result = base._last_day_of_shifted_month(sign * duration.months)
    except (OverflowError, ValueError) as e:
        raise CalendarOverflow(
            f"Result of {direction} {duration} to {base} is out of range"
        ) from e
    return result


def compare(a: DateTime, b: DateTime, /, precision: Precision = "exact") -> int:
    """Compare two datetimes at the given precision.

    Both are formatted in the basic ISO 8601 format
    (``YYYYMMDDTHHMMSS±HHMM``), and only the leading characters relevant
    to the precision are compared. This means the comparison is of the
    local date and time: the UTC offset is not taken into account.

    Returns -1 if ``a`` comes first, 1 if ``b`` comes first, 0 otherwise.

    Example
    -------
    >>> a = DateTime(2021, 6, 15, hour=10, tz="UTC")
    >>> b = DateTime(2021, 6, 20, hour=9, tz="UTC")
    >>> compare(a, b, "month")
    0
    >>> compare(a, b, "day")
    -1
    """
    try:
        length = _PRECISION_TO_LENGTH[precision]
    except KeyError:
        raise ValueError(f"Invalid precision: {precision!r}") from None
    if not (isinstance(a, DateTime) and isinstance(b, DateTime)):
        raise TypeError("Can only compare DateTime instances")

    x = a.format_iso_basic()[:length].casefold()
    y = b.format_iso_basic()[:length].casefold()
    return (x > y) - (x < y)


def _as_duration(
    duration: Duration | str | None,
    years: int,
    months: int,
    weeks: int,
    days: int,
    hours: int,
    minutes: int,
    seconds: int,
) -> Duration:
    fields = Duration(
        years=years,
        months=months,
        days=days,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
    )
    if duration is None:
        return Duration.from_weeks(weeks).plus(fields) if weeks else fields
    elif weeks or fields:
        raise TypeError("Cannot mix positional and keyword arguments")
    elif isinstance(duration, Duration):
        return duration
    elif isinstance(duration, str):
        return Duration.parse_iso(duration)
    raise TypeError(f"Expected Duration or str, got {type(duration)!r}")


def _load_tz(tz: str | None) -> _tzinfo:
    return _default_tz if tz is None else ZoneInfo(tz)


def _set_default_tz(key: str) -> None:
    global _default_tz
    _default_tz = ZoneInfo(key)


def _now_in(tz: _tzinfo) -> _datetime:
    secs, nanos = divmod(time_ns(), 1_000_000_000)
    return _fromtimestamp(secs, tz).replace(microsecond=nanos // 1_000)


def _resolve_local(local: _datetime, tz: _tzinfo) -> _datetime:
    # With fold=0, a repeated time gets the earlier offset, and a skipped
    # time gets the offset from before the gap. The round trip through UTC
    # then moves a skipped time forward by the length of the gap.
    return (
        check_utc_bounds(local.replace(tzinfo=tz, fold=0))
        .astimezone(UTC)
        .astimezone(tz)
    )


def _format_offset(offset: _timedelta, sep: str) -> str:
    secs = offset // _timedelta(seconds=1)
    sign = "-" if secs < 0 else "+"
    hrs, mins = divmod(abs(secs) // 60, 60)
    return f"{sign}{hrs:02d}{sep}{mins:02d}"


# Use this to strip any incoming datetime classes down to instances
# of the datetime.datetime class exactly.
def _strip_subclasses(dt: _datetime) -> _datetime:
    if type(dt) is _datetime:
        return dt
    else:
        return _datetime(
            dt.year,
            dt.month,
            dt.day,
            dt.hour,
            dt.minute,
            dt.second,
            dt.microsecond,
            dt.tzinfo,
            fold=dt.fold,
        )


def _signed(i: int) -> tuple[int, int]:
    return abs(i), -1 if i < 0 else 1


def years(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of years.
    ``years(-2) == Duration(years=2, sign=-1)``
    """
    magnitude, sign = _signed(i)
    return Duration(years=magnitude, sign=sign)


def months(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of months.
    ``months(1) == Duration(months=1)``
    """
    magnitude, sign = _signed(i)
    return Duration(months=magnitude, sign=sign)


def weeks(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of weeks.
    ``weeks(1) == Duration.from_weeks(1)``
    """
    magnitude, sign = _signed(i)
    return Duration.from_weeks(magnitude, sign=sign)


def days(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of days.
    ``days(1) == Duration(days=1)``
    """
    magnitude, sign = _signed(i)
    return Duration(days=magnitude, sign=sign)


def hours(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of hours.
    ``hours(1) == Duration(hours=1)``
    """
    magnitude, sign = _signed(i)
    return Duration(hours=magnitude, sign=sign)


def minutes(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of minutes.
    ``minutes(1) == Duration(minutes=1)``
    """
    magnitude, sign = _signed(i)
    return Duration(minutes=magnitude, sign=sign)


def seconds(i: int, /) -> Duration:
    """Create a :class:`Duration` with the given number of seconds.
    ``seconds(1) == Duration(seconds=1)``
    """
    magnitude, sign = _signed(i)
    return Duration(seconds=magnitude, sign=sign)


class InvalidDurationFormat(ValueError):
    """A string is not a valid ISO 8601 duration"""


class InvalidDurationComponent(ValueError):
    """A duration component (or sign) is out of range, e.g. negative"""


class IllegalDurationOperation(ValueError):
    """Durations can't be combined this way, e.g. weeks with days"""


class CalendarOverflow(ValueError):
    """The result of calendar arithmetic is out of the supported range"""


class InvalidDateTimeFormat(ValueError):
    """A string is not a valid ISO 8601 date and time"""



def _patch_time_frozen(inst: DateTime) -> None:
    global time_ns

    def time_ns() -> int:
        return inst._timestamp_nanos()


def _patch_time_keep_ticking(inst: DateTime) -> None:
    global time_ns

    _patched_at = time_ns()
    _time_ns = time_ns

    def time_ns() -> int:
        return inst._timestamp_nanos() + _time_ns() - _patched_at


def _unpatch_time() -> None:
    global time_ns

    from time import time_ns


# We expose the public members in the root of the module.
# For clarity, we remove the "_pytemporal" part from the names,
# since this is an implementation detail.
for name in __all__:
    member = locals()[name]
    if getattr(member, "__module__", None) == __name__:  # pragma: no branch
        member.__module__ = "temporal"

# clear up loop variables so they don't leak into the namespace
del name
del member

for _unpkl in (_unpkl_duration, _unpkl_datetime):
    _unpkl.__module__ = "temporal"


# disable further subclassing
final(_ImmutableBase)
