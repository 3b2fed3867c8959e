"""
Shared fixtures for the CP-OFDM simulator tests.

Run with:  pytest tests/ -v          (add -m "not slow" to skip the
                                       statistical Monte-Carlo checks)
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# Path setup: ensure the project root is on sys.path
# ---------------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

from link_config import OFDMLinkConfig  # noqa: E402


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def uncoded_cfg():
    return OFDMLinkConfig(n_subcarriers=64, n_taps=8, code_rate=1,
                          n_realizations=10, snr_dB=(0.0, 10.0))


@pytest.fixture
def interleaved_cfg():
    return OFDMLinkConfig(n_subcarriers=64, n_taps=8, code_rate='1/4',
                          interleaving=True, n_realizations=10,
                          snr_dB=(0.0, 10.0))


@pytest.fixture
def adjacent_cfg():
    return OFDMLinkConfig(n_subcarriers=64, n_taps=8, code_rate='1/4',
                          interleaving=False, n_realizations=10,
                          snr_dB=(0.0, 10.0))
