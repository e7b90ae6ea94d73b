"""Shared test fixtures for adsb-store.

Provides:
- A fixed reference time so CPR slots never pair with their zero defaults
- Stores with default and short timeouts
- Isolated config directory
"""

import pytest

from adsb_store.tracker import AircraftStore


# Arbitrary reception time in ms, far from 0
REF_TIME = 4815162342


@pytest.fixture
def ref_time():
    return REF_TIME


@pytest.fixture
def store():
    """Store with the default 2-minute timeout."""
    return AircraftStore()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the config module at a temporary directory."""
    monkeypatch.setattr("adsb_store.config.CONFIG_DIR", tmp_path)
    monkeypatch.setattr("adsb_store.config.CONFIG_FILE", tmp_path / "config.yaml")
    return tmp_path
