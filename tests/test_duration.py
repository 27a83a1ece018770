import pickle
import re
from copy import copy, deepcopy

import pytest
from hypothesis import assume, given
from hypothesis.strategies import builds, integers, one_of, sampled_from, text

from temporal import (
    Duration,
    IllegalDurationOperation,
    InvalidDurationComponent,
    InvalidDurationFormat,
    days,
    hours,
    minutes,
    months,
    seconds,
    weeks,
    years,
)

from .common import AlwaysEqual, NeverEqual

_amounts = integers(0, 10_000)
_signs = sampled_from([1, -1])
durations = one_of(
    builds(
        Duration,
        years=_amounts,
        months=_amounts,
        days=_amounts,
        hours=_amounts,
        minutes=_amounts,
        seconds=_amounts,
        sign=_signs,
    ),
    builds(Duration.from_weeks, _amounts, sign=_signs),
)


class TestInit:

    def test_defaults(self):
        d = Duration()
        assert d.years == 0
        assert d.months == 0
        assert d.weeks == 0
        assert d.days == 0
        assert d.hours == 0
        assert d.minutes == 0
        assert d.seconds == 0
        assert d.sign == 1
        assert d.is_empty()

    def test_all_fields(self):
        d = Duration(
            years=1, months=2, days=3, hours=4, minutes=5, seconds=6, sign=-1
        )
        assert d.years == 1
        assert d.months == 2
        assert d.weeks == 0
        assert d.days == 3
        assert d.hours == 4
        assert d.minutes == 5
        assert d.seconds == 6
        assert d.sign == -1

    def test_from_weeks(self):
        d = Duration.from_weeks(3, sign=-1)
        assert d.weeks == 3
        assert d.sign == -1
        assert d.has_weeks()
        assert not d.has_date_time()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"years": -1},
            {"months": -1},
            {"days": -3},
            {"hours": -1},
            {"minutes": -100},
            {"seconds": -1},
        ],
    )
    def test_negative_components(self, kwargs):
        with pytest.raises(InvalidDurationComponent, match="negative"):
            Duration(**kwargs)

    def test_negative_weeks(self):
        with pytest.raises(InvalidDurationComponent):
            Duration.from_weeks(-1)

    @pytest.mark.parametrize("sign", [0, 2, -2, "-"])
    def test_invalid_sign(self, sign):
        with pytest.raises(InvalidDurationComponent, match="Sign"):
            Duration(days=1, sign=sign)

    @pytest.mark.parametrize("value", [1.5, "1", None])
    def test_invalid_type(self, value):
        with pytest.raises(TypeError):
            Duration(days=value)  # type: ignore[arg-type]

    def test_no_weeks_keyword(self):
        with pytest.raises(TypeError):
            Duration(weeks=1)  # type: ignore[call-arg]


class TestParseIso:

    @pytest.mark.parametrize(
        "s, expect",
        [
            (
                "P1Y2M3DT4H5M6S",
                Duration(
                    years=1, months=2, days=3, hours=4, minutes=5, seconds=6
                ),
            ),
            ("P1Y", Duration(years=1)),
            ("P1M", Duration(months=1)),
            ("PT1M", Duration(minutes=1)),
            ("P1DT1M", Duration(days=1, minutes=1)),
            ("PT36H", Duration(hours=36)),
            ("P0D", Duration()),
            ("-P3D", Duration(days=3, sign=-1)),
            ("P2W", Duration.from_weeks(2)),
            ("-P2W", Duration.from_weeks(2, sign=-1)),
            ("P0W", Duration()),
            ("P100000Y", Duration(years=100_000)),
            # fractions are truncated
            ("PT1.5S", Duration(seconds=1)),
            ("PT1,999S", Duration(seconds=1)),
            ("P1.9Y0.5M", Duration(years=1)),
            ("P2.5W", Duration.from_weeks(2)),
            # empty forms allowed by the grammar
            ("P", Duration()),
            ("PT", Duration()),
            ("-PT0S", Duration(sign=-1)),
        ],
    )
    def test_valid(self, s, expect):
        assert Duration.parse_iso(s) == expect

    @pytest.mark.parametrize(
        "s",
        [
            "",
            "-",
            "1Y",
            "P1M1Y",  # wrong order
            "PT1S1M",
            "P1W1D",  # weeks mixed with other units
            "P1WT1H",
            "P1Y1W",
            "p1y",
            "P1y",
            "+P1Y",
            "--P1Y",
            "P-1Y",
            "P1.1234S",
            "PT1.5",
            "P1H",
            "PT1D",
            " P1Y",
            "P1Y ",
            "P1Y\n",
            "P1.S",
            "P.5S",
            "P１Y",  # non-ASCII digit
        ],
    )
    def test_invalid(self, s):
        with pytest.raises(InvalidDurationFormat, match=re.escape(repr(s))):
            Duration.parse_iso(s)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            Duration.parse_iso("P1W1D")

    def test_not_a_string(self):
        with pytest.raises(TypeError):
            Duration.parse_iso(1)  # type: ignore[arg-type]

    @given(text())
    def test_fuzzing(self, s: str):
        assume(not s.startswith(("P", "-P")))
        with pytest.raises(InvalidDurationFormat, match=re.escape(repr(s))):
            Duration.parse_iso(s)


class TestFormatIso:

    @pytest.mark.parametrize(
        "d, expect",
        [
            (
                Duration(
                    years=1, months=2, days=3, hours=4, minutes=5, seconds=6
                ),
                "P1Y2M3DT4H5M6S",
            ),
            (Duration(years=1, seconds=1), "P1YT1S"),
            (Duration(months=14), "P14M"),
            (Duration(minutes=3), "PT3M"),
            (Duration(days=2, sign=-1), "-P2D"),
            (Duration.from_weeks(2), "P2W"),
            (Duration.from_weeks(2, sign=-1), "-P2W"),
            (Duration(), "PT0S"),
            (Duration(sign=-1), "PT0S"),
        ],
    )
    def test_format(self, d, expect):
        assert d.format_iso() == expect
        assert str(d) == expect

    def test_repr(self):
        assert repr(Duration(days=1, hours=2)) == "Duration(P1DT2H)"
        assert repr(Duration.from_weeks(1, sign=-1)) == "Duration(-P1W)"

    @given(durations)
    def test_roundtrip(self, d):
        # an empty duration always formats without its sign
        assume(d or d.sign == 1)
        assert Duration.parse_iso(d.format_iso()) == d


def test_scenario_parse_and_average():
    d = Duration.parse_iso("P1Y2M3DT4H5M6S")
    assert (d.years, d.months, d.days) == (1, 2, 3)
    assert (d.hours, d.minutes, d.seconds) == (4, 5, 6)
    assert d.sign == 1
    assert d.in_average_seconds() == (
        31_556_952 + 2 * 2_629_746 + 3 * 86_400 + 4 * 3_600 + 5 * 60 + 6
    )


def test_scenario_weeks_roundtrip():
    d = Duration.parse_iso("-P2W")
    assert d.weeks == 2
    assert d.sign == -1
    assert d.format_iso() == "-P2W"


class TestQueries:

    def test_has_weeks(self):
        assert Duration.from_weeks(1).has_weeks()
        assert not Duration(days=7).has_weeks()
        assert not Duration.from_weeks(0).has_weeks()

    @pytest.mark.parametrize(
        "d, has_date, has_time",
        [
            (Duration(), False, False),
            (Duration(years=1), True, False),
            (Duration(months=1), True, False),
            (Duration(days=1), True, False),
            (Duration(hours=1), False, True),
            (Duration(minutes=1), False, True),
            (Duration(seconds=1), False, True),
            (Duration(days=1, seconds=1), True, True),
            (Duration.from_weeks(1), False, False),
        ],
    )
    def test_date_and_time(self, d, has_date, has_time):
        assert d.has_date() is has_date
        assert d.has_time() is has_time
        assert d.has_date_time() is (has_date or has_time)

    def test_empty(self):
        assert Duration().is_empty()
        assert Duration(sign=-1).is_empty()
        assert Duration.ZERO.is_empty()
        assert not Duration(seconds=1).is_empty()
        assert not Duration.from_weeks(1).is_empty()

    def test_bool(self):
        assert not Duration()
        assert not Duration(sign=-1)
        assert Duration(hours=1)
        assert Duration.from_weeks(1)

    def test_sign(self):
        assert Duration(days=1).is_positive()
        assert not Duration(days=1).is_negative()
        assert Duration(days=1, sign=-1).is_negative()
        assert not Duration(days=1, sign=-1).is_positive()
        # the sign is kept even for empty durations
        assert Duration(sign=-1).is_negative()


class TestAverages:

    def test_seconds(self):
        assert Duration(days=1, hours=2).in_average_seconds() == 93_600.0
        assert Duration.from_weeks(1).in_average_seconds() == 604_800.0
        assert Duration(years=1, sign=-1).in_average_seconds() == -31_556_952
        assert Duration().in_average_seconds() == 0.0
        assert isinstance(Duration(seconds=1).in_average_seconds(), float)

    def test_units(self):
        assert Duration(years=2).in_average_years() == 2.0
        assert Duration(years=1).in_average_months() == 12.0
        assert Duration(days=14).in_average_weeks() == 2.0
        assert Duration.from_weeks(1).in_average_days() == 7.0
        assert Duration(days=1, sign=-1).in_average_hours() == -24.0
        assert Duration(hours=2).in_average_minutes() == 120.0
        assert Duration(months=1).in_average_days() == pytest.approx(
            30.436875
        )


class TestPlus:

    def test_adds_magnitudes(self):
        a = Duration(years=1, days=2, seconds=3)
        b = Duration(months=4, days=5, hours=6)
        assert a.plus(b) == Duration(
            years=1, months=4, days=7, hours=6, seconds=3
        )
        assert a + b == a.plus(b)

    def test_keeps_own_sign(self):
        a = Duration(days=2, sign=-1)
        b = Duration(days=3)
        assert a.plus(b) == Duration(days=5, sign=-1)
        assert b.plus(a) == Duration(days=5)

    def test_weeks(self):
        assert Duration.from_weeks(1).plus(
            Duration.from_weeks(2)
        ) == Duration.from_weeks(3)
        # an empty duration can be combined with either form
        assert Duration.from_weeks(1).plus(Duration()) == Duration.from_weeks(
            1
        )
        assert Duration().plus(Duration.from_weeks(1)) == Duration.from_weeks(
            1
        )

    @pytest.mark.parametrize(
        "a, b",
        [
            (Duration.from_weeks(1), Duration(days=1)),
            (Duration(seconds=1), Duration.from_weeks(1)),
        ],
    )
    def test_weeks_with_date_time(self, a, b):
        with pytest.raises(IllegalDurationOperation, match="weeks"):
            a.plus(b)
        with pytest.raises(IllegalDurationOperation, match="weeks"):
            a + b

    def test_signed(self):
        a = Duration(days=5, hours=3)
        assert a.plus(
            Duration(days=2, sign=-1), signed=True
        ) == Duration(days=3, hours=3)
        assert a.plus(Duration(days=2), signed=True) == Duration(
            days=7, hours=3
        )
        # all components flip
        assert Duration(days=1).plus(
            Duration(days=3, hours=1, sign=-1), signed=True
        ) == Duration(days=2, hours=1, sign=-1)
        # cancelling out
        assert Duration(days=1).plus(
            Duration(days=1, sign=-1), signed=True
        ).is_empty()

    def test_signed_mixed(self):
        with pytest.raises(IllegalDurationOperation, match="Mixed sign"):
            Duration(days=5).plus(
                Duration(days=1, hours=1, sign=-1), signed=True
            )

    def test_invalid_type(self):
        with pytest.raises(TypeError):
            Duration().plus(3)  # type: ignore[arg-type]
        with pytest.raises(TypeError, match="unsupported operand"):
            Duration() + 3  # type: ignore[operator]


class TestMultipliedBy:

    def test_multiply(self):
        d = Duration(months=2, hours=3, sign=-1)
        assert d.multiplied_by(4) == Duration(months=8, hours=12, sign=-1)
        assert d * 4 == d.multiplied_by(4)
        assert 4 * d == d.multiplied_by(4)
        assert Duration.from_weeks(2) * 3 == Duration.from_weeks(6)

    def test_zero(self):
        assert Duration(days=3).multiplied_by(0).is_empty()
        assert Duration(days=3).multiplied_by(1) == Duration(days=3)

    @given(durations)
    def test_zero_and_one_any_duration(self, d):
        zero = d.multiplied_by(0)
        assert zero.is_empty()
        assert zero.sign == d.sign
        assert zero.weeks == 0
        assert d.multiplied_by(1) == d

    def test_negative(self):
        with pytest.raises(IllegalDurationOperation, match="negative"):
            Duration(days=1).multiplied_by(-1)

    def test_not_int(self):
        with pytest.raises(TypeError):
            Duration(days=1).multiplied_by(1.5)  # type: ignore[arg-type]
        with pytest.raises(TypeError, match="unsupported operand"):
            Duration(days=1) * 1.5  # type: ignore[operator]


def test_invert():
    d = Duration(days=2, hours=1)
    assert d.invert() == Duration(days=2, hours=1, sign=-1)
    assert -d == d.invert()
    assert d.invert().invert() == d
    assert +d is d


def test_equality():
    d = Duration(years=1, days=2)
    same = Duration(years=1, days=2)
    different = Duration(years=1, days=3)
    negative = Duration(years=1, days=2, sign=-1)
    assert d == same
    assert d != different
    assert d != negative
    assert not d == different
    assert hash(d) == hash(same)
    assert hash(d) != hash(negative)

    # not normalized
    assert Duration(days=7) != Duration.from_weeks(1)
    assert Duration(hours=24) != Duration(days=1)

    assert d == AlwaysEqual()
    assert d != NeverEqual()
    assert not d == NeverEqual()
    assert not d != AlwaysEqual()
    assert d != 1  # type: ignore[comparison-overlap]


@pytest.mark.parametrize(
    "factory, expect",
    [
        (years, Duration(years=2)),
        (months, Duration(months=2)),
        (weeks, Duration.from_weeks(2)),
        (days, Duration(days=2)),
        (hours, Duration(hours=2)),
        (minutes, Duration(minutes=2)),
        (seconds, Duration(seconds=2)),
    ],
)
def test_factories(factory, expect):
    assert factory(2) == expect
    assert factory(-2) == expect.invert()
    assert factory(0).is_empty()


def test_copy():
    d = Duration(days=1, sign=-1)
    assert copy(d) is d
    assert deepcopy(d) is d


def test_pickle():
    d = Duration(years=1, months=2, days=3, hours=4, minutes=5, seconds=6)
    assert pickle.loads(pickle.dumps(d)) == d
    w = Duration.from_weeks(3, sign=-1)
    assert pickle.loads(pickle.dumps(w)) == w


def test_cannot_subclass():
    with pytest.raises(TypeError):

        class SubclassDuration(Duration):  # type: ignore[misc]
            pass
