import pytest
from hypothesis import HealthCheck, settings

from pre_tilt import PreTilt
from ring_core import PrecisionConfig, ZModRing
from valued_integers import PadicIntegers, PerfectoidIntegers

settings.register_profile(
    "perfectoid",
    max_examples=40,
    deadline=None,
    suppress_health_check=[
        HealthCheck.too_slow,
        HealthCheck.filter_too_much,
        HealthCheck.function_scoped_fixture,
    ],
)
settings.load_profile("perfectoid")


@pytest.fixture
def config():
    return PrecisionConfig(check_depth=6, search_depth=16)


@pytest.fixture
def f3():
    return ZModRing(3)


@pytest.fixture
def tower3():
    return PerfectoidIntegers(3, 4)


@pytest.fixture
def pre_tilt3(tower3, config):
    return PreTilt(tower3, 3, config)


@pytest.fixture
def z5():
    return PadicIntegers(5, 4)
