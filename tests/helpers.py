"""Deterministic hostname and clock stand-ins for handler tests."""

from datetime import datetime

FIXED_HOSTNAME = "test-host"
FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5)


def fixed_hostname() -> str:
    return FIXED_HOSTNAME


def fixed_clock() -> datetime:
    return FIXED_TIME
