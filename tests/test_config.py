import pytest
from pydantic import ValidationError

from sensor_relay.config import ReconnectPolicy


def test_exponential_backoff_is_capped():
    policy = ReconnectPolicy(initial_delay=1.0, max_delay=5.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_bounded_attempts():
    policy = ReconnectPolicy(initial_delay=0.5, max_delay=10.0, max_attempts=3)
    assert list(policy.delays()) == [0.5, 1.0, 2.0]
    assert not policy.exhausted(3)
    assert policy.exhausted(4)


def test_unbounded_by_default():
    policy = ReconnectPolicy()
    assert policy.max_attempts is None
    assert not policy.exhausted(10_000)


def test_delay_stays_capped_after_many_attempts():
    # a producer retrying forever must never overflow
    policy = ReconnectPolicy()
    assert policy.delay_for(10_000) == policy.max_delay
    assert ReconnectPolicy(multiplier=10.0, max_delay=1e6).delay_for(5_000) == 1e6
    assert ReconnectPolicy(multiplier=1.0).delay_for(5_000) == 1.0


@pytest.mark.parametrize("kwargs", [
    {"initial_delay": 0},
    {"initial_delay": 5.0, "max_delay": 1.0},
    {"max_attempts": 0},
    {"multiplier": 0.5},
])
def test_invalid_policies_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        ReconnectPolicy(**kwargs)


def test_attempts_start_at_one():
    with pytest.raises(ValueError):
        ReconnectPolicy().delay_for(0)
