"""
CP-OFDM Link Configuration
==========================
Validated, immutable parameter set for the CP-OFDM / BPSK / repetition-code
BER simulation.

Parameters
  n_subcarriers  : number of carriers = FFT size (must be 2^n)
  n_taps         : channel impulse-response length L (CP length is L - 1)
  decay_factor   : exponential power profile, E{|h_l|^2}/E{|h_0|^2} = exp(-l/c)
  code_rate      : repetition code rate R, 1 or 1/2^n
  interleaving   : maximum-distance interleaving of the repeated symbols
  n_realizations : channel realizations per SNR point
  snr_dB         : simulated SNR grid, SNR = 1/sigma_n^2
"""

import math
import warnings
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Tuple

import numpy as np


class ConfigurationError(ValueError):
    """Raised when a link configuration violates one of its invariants."""


def _is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


def _as_int(name: str, value) -> int:
    """Integer value of `value`, or ConfigurationError naming the parameter."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}")
    try:
        n = int(value)
        integral = n == value
    except (TypeError, ValueError, OverflowError):
        integral = False
    if not integral:
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}")
    return n


def parse_code_rate(value) -> Fraction:
    """
    Convert a code rate given as float, int, Fraction or string ("1/4")
    into an exact Fraction of the form 1/2^n.
    """
    try:
        if isinstance(value, str):
            rate = Fraction(value.strip())
        elif isinstance(value, float):
            rate = Fraction(value).limit_denominator(1 << 20)
        else:
            rate = Fraction(value)
    except (ValueError, TypeError, OverflowError, ZeroDivisionError) as exc:
        raise ConfigurationError(
            f"code_rate: cannot interpret {value!r} as a rate ({exc})") from None
    if rate <= 0 or rate > 1:
        raise ConfigurationError(
            f"code_rate: must lie in (0, 1], got {value!r}")
    if rate.numerator != 1 or not _is_power_of_two(rate.denominator):
        raise ConfigurationError(
            f"code_rate: must be 1 or 1/2^n, got {value!r}")
    return rate


@dataclass(frozen=True)
class OFDMLinkConfig:
    """Simulation parameters; validated on construction, immutable afterwards."""
    n_subcarriers: int = 128
    n_taps: int = 10
    decay_factor: float = 2.0
    code_rate: float = 0.25
    interleaving: bool = False
    n_realizations: int = 10000
    snr_dB: Tuple[float, ...] = field(
        default_factory=lambda: tuple(float(s) for s in range(0, 21, 2)))

    def __post_init__(self):
        n_sub = _as_int('n_subcarriers', self.n_subcarriers)
        if not _is_power_of_two(n_sub):
            raise ConfigurationError(
                f"n_subcarriers: must be a power of two, got {self.n_subcarriers!r}")
        object.__setattr__(self, 'n_subcarriers', n_sub)

        rate = parse_code_rate(self.code_rate)
        if rate.denominator > self.n_subcarriers:
            raise ConfigurationError(
                f"code_rate: 1/{rate.denominator} leaves fewer than one "
                f"information bit on {self.n_subcarriers} subcarriers")
        object.__setattr__(self, 'code_rate', float(rate))

        n_taps = _as_int('n_taps', self.n_taps)
        if n_taps < 1:
            raise ConfigurationError(
                f"n_taps: must be a positive integer, got {self.n_taps!r}")
        if n_taps > self.n_subcarriers:
            raise ConfigurationError(
                f"n_taps: {n_taps} exceeds n_subcarriers "
                f"({self.n_subcarriers})")
        object.__setattr__(self, 'n_taps', n_taps)

        try:
            decay = float(self.decay_factor)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ConfigurationError(
                f"decay_factor: expected a number, got {self.decay_factor!r} ({exc})") from None
        if not (math.isfinite(decay) and decay > 0):
            raise ConfigurationError(
                f"decay_factor: must be positive and finite, got {self.decay_factor!r}")
        object.__setattr__(self, 'decay_factor', decay)

        n_real = _as_int('n_realizations', self.n_realizations)
        if n_real < 1:
            raise ConfigurationError(
                f"n_realizations: must be >= 1, got {self.n_realizations!r}")
        object.__setattr__(self, 'n_realizations', n_real)

        try:
            snr = np.atleast_1d(np.asarray(self.snr_dB, dtype=float))
        except (TypeError, ValueError, OverflowError) as exc:
            raise ConfigurationError(
                f"snr_dB: expected a sequence of numbers ({exc})") from None
        if snr.ndim != 1 or snr.size == 0:
            raise ConfigurationError("snr_dB: SNR grid must be a non-empty sequence")
        if not np.all(np.isfinite(snr)):
            raise ConfigurationError("snr_dB: SNR grid contains non-finite values")
        object.__setattr__(self, 'snr_dB', tuple(float(s) for s in snr))

        object.__setattr__(self, 'interleaving', bool(self.interleaving))
        if self.interleaving and self.repeat_count == 1:
            warnings.warn("interleaving has no effect without a repetition code "
                          "(code_rate == 1)", UserWarning, stacklevel=3)

    @property
    def repeat_count(self) -> int:
        """Copies of each information symbol, 1/R."""
        return int(round(1.0 / self.code_rate))

    @property
    def n_info_bits(self) -> int:
        """Information bits per OFDM symbol, N_c * R."""
        return self.n_subcarriers // self.repeat_count

    @property
    def cp_length(self) -> int:
        return self.n_taps - 1

    @property
    def symbol_length(self) -> int:
        """Transmitted samples per OFDM symbol including the cyclic prefix."""
        return self.n_subcarriers + self.cp_length

    @property
    def snr_linear(self) -> np.ndarray:
        return 10.0 ** (np.asarray(self.snr_dB) / 10.0)

    @property
    def noise_variances(self) -> np.ndarray:
        """AWGN variance sigma_n^2 = 1/SNR for each grid point."""
        return 1.0 / self.snr_linear

    def describe(self) -> str:
        rate = Fraction(self.code_rate).limit_denominator(self.n_subcarriers)
        return (f"N_c={self.n_subcarriers}, L={self.n_taps}, "
                f"c_att={self.decay_factor:g}, R={rate}, "
                f"intlv={'on' if self.interleaving else 'off'}, "
                f"Nreal={self.n_realizations}")
