"""Tests for the random source."""
import secrets

import pytest

from rng_service import random_source
from rng_service.errors import EntropyError


def test_unit_float_in_range():
    values = [random_source.next_unit_float() for _ in range(2000)]
    assert all(0.0 <= v < 1.0 for v in values)
    # 2000 draws should not collapse onto a handful of values
    assert len(set(values)) > 1990


def test_unit_float_scaling(monkeypatch):
    """The 53-bit draw is divided by 2**53."""
    monkeypatch.setattr(secrets, "randbits", lambda k: 0)
    assert random_source.next_unit_float() == 0.0

    monkeypatch.setattr(secrets, "randbits", lambda k: 1 << 52)
    assert random_source.next_unit_float() == 0.5

    monkeypatch.setattr(secrets, "randbits", lambda k: (1 << 53) - 1)
    assert random_source.next_unit_float() < 1.0


def test_unit_float_requests_53_bits(monkeypatch):
    requested = []

    def fake_randbits(k):
        requested.append(k)
        return 0

    monkeypatch.setattr(secrets, "randbits", fake_randbits)
    random_source.next_unit_float()
    assert requested == [53]


def test_entropy_failure_raises(monkeypatch):
    def broken(_):
        raise OSError("entropy source unavailable")

    monkeypatch.setattr(secrets, "randbits", broken)
    with pytest.raises(EntropyError):
        random_source.next_unit_float()

    monkeypatch.setattr(secrets, "randbelow", broken)
    with pytest.raises(EntropyError):
        random_source.debug_suffix()


def test_debug_suffix_range():
    suffixes = {random_source.debug_suffix() for _ in range(500)}
    assert suffixes <= set(range(9))
    assert 9 not in suffixes
