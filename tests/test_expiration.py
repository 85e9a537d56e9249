"""Tests for the expiration policy."""

from datetime import datetime, timedelta, timezone

import pytest

from vaultutil.expiration import is_expired


@pytest.fixture
def created():
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_fresh_credentials_not_expired(created):
    assert is_expired(created, 100, 30, now=created) is False


def test_expired_after_duration_minus_buffer(created):
    assert is_expired(created, 100, 30, now=created + timedelta(seconds=70)) is False
    assert is_expired(created, 100, 30, now=created + timedelta(seconds=71)) is True


def test_long_past_credentials_expired(created):
    assert is_expired(created, 100, 30, now=created + timedelta(seconds=200)) is True


@pytest.mark.parametrize("duration,buffer", [(100, 0), (3600, 120), (900, 899)])
def test_boundary_for_buffer_below_duration(created, duration, buffer):
    limit = duration - buffer
    assert is_expired(created, duration, buffer, now=created + timedelta(seconds=limit)) is False
    assert (
        is_expired(created, duration, buffer, now=created + timedelta(seconds=limit, milliseconds=1))
        is True
    )


def test_buffer_larger_than_duration_expires_immediately(created):
    assert is_expired(created, 30, 120, now=created + timedelta(milliseconds=1)) is True
    assert is_expired(created, 30, 30, now=created + timedelta(milliseconds=1)) is True


@pytest.mark.parametrize("duration", [0, -5])
def test_non_positive_duration_is_expired(created, duration):
    assert is_expired(created, duration, 0, now=created) is True


def test_defaults_to_current_time():
    now = datetime.now(timezone.utc)
    assert is_expired(now, 100, 30) is False
    assert is_expired(now - timedelta(seconds=200), 100, 30) is True


@pytest.mark.parametrize("duration,buffer", [(10**18, 0), (10**30, 30), (2**63 - 1, -(2**63))])
def test_huge_windows_do_not_overflow(created, duration, buffer):
    assert is_expired(created, duration, buffer, now=created) is False
    assert is_expired(created, duration, buffer, now=created + timedelta(days=365 * 1000)) is False


def test_huge_buffer_expires(created):
    assert is_expired(created, 100, 10**30, now=created + timedelta(microseconds=1)) is True
