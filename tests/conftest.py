import pytest

from prdkit.reporting import SilentReporter, set_verbosity, use_reporter


@pytest.fixture(autouse=True)
def _quiet_reporter():
    set_verbosity(0)
    with use_reporter(SilentReporter()):
        yield
    set_verbosity(0)
