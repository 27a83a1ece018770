from __future__ import annotations

from ._pytemporal import *
from ._pytemporal import (  # for the docs
    __all__,
    _patch_time_frozen,
    _patch_time_keep_ticking,
    _set_default_tz,
    _unpatch_time,
    _unpkl_datetime,
    _unpkl_duration,
)

import os as _os
from contextlib import contextmanager as _contextmanager
from dataclasses import dataclass as _dataclass
from typing import Iterator as _Iterator

from ._pytemporal import __version__


@_dataclass
class _TimePatch:
    _pin: DateTime
    _keep_ticking: bool

    def shift(self, *args, **kwargs):
        if self._keep_ticking:
            self._pin = new = self._pin._now_or(None).add(*args, **kwargs)
            _patch_time_keep_ticking(new)
        else:
            self._pin = new = self._pin.add(*args, **kwargs)
            _patch_time_frozen(new)


@_contextmanager
def patch_current_time(
    dt: DateTime, /, *, keep_ticking: bool
) -> _Iterator[_TimePatch]:
    """Patch the current time to a fixed value (for testing purposes).
    Behaves as a context manager or decorator, with similar semantics to
    ``unittest.mock.patch``.

    Important
    ---------

    * This function should be used only for testing purposes. It is not
      thread-safe.
    * It only affects the ``now``-based functions of this library, such as
      :meth:`DateTime.now` and :meth:`DateTime.is_today`.
      Use the ``time_machine`` package if you also want to patch other libraries.

    Example
    -------

    >>> from temporal import DateTime, patch_current_time
    >>> d = DateTime(1980, 3, 2, hour=2, tz="UTC")
    >>> with patch_current_time(d, keep_ticking=False) as p:
    ...     assert DateTime.now("UTC") == d
    ...     p.shift(hours=4)
    ...     assert DateTime.now("UTC") == d.add(hours=4)
    ...
    >>> assert DateTime.now("UTC") != d
    """
    if keep_ticking:
        _patch_time_keep_ticking(dt)
    else:
        _patch_time_frozen(dt)

    try:
        yield _TimePatch(dt, keep_ticking)
    finally:
        _unpatch_time()


DEFAULT_TZ: str = "UTC"
"""The timezone ID used when no timezone is given explicitly.

Set it with :func:`temporal.reset_default_tz`.
"""


def reset_default_tz(tz: str | None = None, /) -> None:
    """Set the default timezone, used by :class:`DateTime` when no
    timezone is given explicitly.

    If no argument is given, the ``TEMPORAL_DEFAULT_TZ`` environment variable
    is used. If it isn't set, the default timezone is ``UTC``.

    Raises
    ------
    zoneinfo.ZoneInfoNotFoundError
        If the timezone ID is not known
    """
    global DEFAULT_TZ
    if tz is None:
        tz = _os.environ.get("TEMPORAL_DEFAULT_TZ") or "UTC"
    _set_default_tz(tz)
    DEFAULT_TZ = tz


reset_default_tz()  # read the environment once at startup
