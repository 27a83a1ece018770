import os
from contextlib import contextmanager
from unittest.mock import patch

from temporal import reset_default_tz


class AlwaysEqual:
    def __eq__(self, _):
        return True


class NeverEqual:
    def __eq__(self, _):
        return False


class AlwaysLarger:
    def __lt__(self, _):
        return False

    def __le__(self, _):
        return False

    def __gt__(self, _):
        return True

    def __ge__(self, _):
        return True


class AlwaysSmaller:
    def __lt__(self, _):
        return True

    def __le__(self, _):
        return True

    def __gt__(self, _):
        return False

    def __ge__(self, _):
        return False


@contextmanager
def default_tz(name):
    try:
        with patch.dict(os.environ, {"TEMPORAL_DEFAULT_TZ": name}):
            reset_default_tz()
            yield
    finally:
        reset_default_tz()  # don't forget to reset the timezone after the patch!
