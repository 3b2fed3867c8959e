"""Tests for link_config.py: validation, derived quantities, code-rate parsing."""

import dataclasses
from fractions import Fraction

import numpy as np
import pytest

from link_config import ConfigurationError, OFDMLinkConfig, parse_code_rate


class TestDefaults:

    def test_default_construction(self):
        cfg = OFDMLinkConfig()
        assert cfg.n_subcarriers == 128
        assert cfg.n_taps == 10
        assert cfg.decay_factor == 2.0
        assert cfg.code_rate == 0.25
        assert cfg.interleaving is False
        assert cfg.n_realizations == 10000
        assert cfg.snr_dB == tuple(float(s) for s in range(0, 21, 2))

    def test_derived_quantities(self):
        cfg = OFDMLinkConfig(n_subcarriers=128, n_taps=10, code_rate=0.25)
        assert cfg.repeat_count == 4
        assert cfg.n_info_bits == 32
        assert cfg.cp_length == 9
        assert cfg.symbol_length == 137

    def test_noise_variance_is_inverse_snr(self):
        cfg = OFDMLinkConfig(snr_dB=(0.0, 10.0, 20.0))
        np.testing.assert_allclose(cfg.noise_variances, [1.0, 0.1, 0.01])

    def test_uncoded_has_one_bit_per_carrier(self):
        cfg = OFDMLinkConfig(n_subcarriers=32, n_taps=4, code_rate=1)
        assert cfg.repeat_count == 1
        assert cfg.n_info_bits == 32

    def test_immutable(self):
        cfg = OFDMLinkConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.n_taps = 3

    def test_replace_revalidates(self):
        cfg = OFDMLinkConfig()
        with pytest.raises(ConfigurationError):
            dataclasses.replace(cfg, n_subcarriers=100)

    def test_snr_grid_stored_as_tuple(self):
        cfg = OFDMLinkConfig(snr_dB=np.array([1, 2, 3]))
        assert cfg.snr_dB == (1.0, 2.0, 3.0)

    def test_single_snr_value_accepted(self):
        cfg = OFDMLinkConfig(snr_dB=5.0)
        assert cfg.snr_dB == (5.0,)


class TestValidation:

    @pytest.mark.parametrize("n", [0, 3, 100, 129, -8, float('nan'),
                                   float('inf'), None, "64", 64.5])
    def test_non_power_of_two_subcarriers(self, n):
        with pytest.raises(ConfigurationError, match="n_subcarriers"):
            OFDMLinkConfig(n_subcarriers=n)

    @pytest.mark.parametrize("rate", [0.3, 1 / 3, 0.0, 1.5, -0.25, "2/3", "abc",
                                      float("inf"), float("nan"), None])
    def test_invalid_code_rate(self, rate):
        with pytest.raises(ConfigurationError, match="code_rate"):
            OFDMLinkConfig(code_rate=rate)

    def test_code_rate_below_one_bit_per_symbol(self):
        with pytest.raises(ConfigurationError, match="code_rate"):
            OFDMLinkConfig(n_subcarriers=8, n_taps=2, code_rate=Fraction(1, 16))

    def test_taps_exceeding_subcarriers(self):
        with pytest.raises(ConfigurationError, match="n_taps"):
            OFDMLinkConfig(n_subcarriers=16, n_taps=17)

    @pytest.mark.parametrize("taps", [0, -1, 2.5, float('inf'), float('nan'), None])
    def test_non_positive_taps(self, taps):
        with pytest.raises(ConfigurationError, match="n_taps"):
            OFDMLinkConfig(n_taps=taps)

    @pytest.mark.parametrize("c", [0.0, -1.0, float('inf'), float('nan'), None, "fast"])
    def test_bad_decay_factor(self, c):
        with pytest.raises(ConfigurationError, match="decay_factor"):
            OFDMLinkConfig(decay_factor=c)

    @pytest.mark.parametrize("n", [0, -5, float('inf'), 10.5, None])
    def test_bad_realizations(self, n):
        with pytest.raises(ConfigurationError, match="n_realizations"):
            OFDMLinkConfig(n_realizations=n)

    def test_integral_float_counts_accepted(self):
        cfg = OFDMLinkConfig(n_subcarriers=64.0, n_taps=np.int64(4),
                             n_realizations=100.0)
        assert (cfg.n_subcarriers, cfg.n_taps, cfg.n_realizations) == (64, 4, 100)
        assert isinstance(cfg.n_realizations, int)

    def test_empty_snr_grid(self):
        with pytest.raises(ConfigurationError, match="snr_dB"):
            OFDMLinkConfig(snr_dB=())

    def test_non_finite_snr(self):
        with pytest.raises(ConfigurationError, match="snr_dB"):
            OFDMLinkConfig(snr_dB=(0.0, float('nan')))

    @pytest.mark.parametrize("grid", [("abc",), (0.0, None), [[0.0, 1.0], [2.0]]])
    def test_non_numeric_snr(self, grid):
        with pytest.raises(ConfigurationError, match="snr_dB"):
            OFDMLinkConfig(snr_dB=grid)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            OFDMLinkConfig(n_subcarriers=12)

    def test_interleaving_without_repetition_warns(self):
        with pytest.warns(UserWarning, match="interleaving"):
            cfg = OFDMLinkConfig(code_rate=1, interleaving=True)
        assert cfg.repeat_count == 1


class TestParseCodeRate:

    @pytest.mark.parametrize("value,expected", [
        (1, Fraction(1)),
        (1.0, Fraction(1)),
        (0.5, Fraction(1, 2)),
        (0.125, Fraction(1, 8)),
        ("1/4", Fraction(1, 4)),
        (" 1/16 ", Fraction(1, 16)),
        (Fraction(1, 32), Fraction(1, 32)),
    ])
    def test_valid(self, value, expected):
        assert parse_code_rate(value) == expected

    def test_float_rounding_tolerated(self):
        assert parse_code_rate(1 / 64) == Fraction(1, 64)

    def test_describe_mentions_rate(self):
        cfg = OFDMLinkConfig(code_rate='1/8', interleaving=True)
        text = cfg.describe()
        assert "R=1/8" in text
        assert "intlv=on" in text
