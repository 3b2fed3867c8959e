"""
Frequency-Selective Rayleigh Fading Channel
===========================================
Channel model and channel transport for the CP-OFDM link.

This module implements:
- exponentially decaying power-delay profile, normalised to unit energy
- i.i.d. complex-Gaussian (Rayleigh) tap realizations
- frequency response of the zero-padded impulse response
- linear convolution + AWGN + tail truncation (single isolated OFDM symbol)
"""

from dataclasses import dataclass

import numpy as np

from link_config import OFDMLinkConfig


def tap_variances(n_taps: int, decay_factor: float) -> np.ndarray:
    """
    Exponential power-delay profile  E{|h_l|^2} ~ exp(-l/c),  l = 0..L-1,
    normalised so that the overall average channel power is one.
    """
    var = np.exp(-np.arange(n_taps) / decay_factor)
    return var / np.sum(var)


# ============================================================================
#  Channel realization
# ============================================================================

@dataclass(frozen=True)
class ChannelRealization:
    """One channel snapshot: impulse response and its N_c-point DFT."""
    taps: np.ndarray
    frequency_response: np.ndarray

    @classmethod
    def from_taps(cls, taps, n_subcarriers: int) -> "ChannelRealization":
        taps = np.asarray(taps, dtype=complex).ravel()
        if taps.size > n_subcarriers:
            raise ValueError(f"{taps.size} taps do not fit into "
                             f"{n_subcarriers} subcarriers")
        # fft(h, n) zero-pads h to length n
        H = np.fft.fft(taps, n_subcarriers)
        return cls(taps=taps, frequency_response=H)

    @property
    def n_taps(self) -> int:
        return self.taps.size

    @property
    def magnitude_response(self) -> np.ndarray:
        return np.abs(self.frequency_response)

    @property
    def energy(self) -> float:
        return float(np.sum(np.abs(self.taps) ** 2))


class RayleighChannel:
    """Draw independent channel realizations for a given link configuration."""

    def __init__(self, cfg: OFDMLinkConfig):
        self.n_subcarriers = cfg.n_subcarriers
        self.n_taps = cfg.n_taps
        self.variances = tap_variances(cfg.n_taps, cfg.decay_factor)

    def realize(self, rng: np.random.Generator = None) -> ChannelRealization:
        """
        h_l = sqrt(var_l / 2) * (N(0,1) + j N(0,1)),  l = 0..L-1.

        Parameters
        ----------
        rng : random generator (a fresh default generator when omitted)
        """
        if rng is None:
            rng = np.random.default_rng()
        L = self.n_taps
        h = np.sqrt(0.5) * (rng.standard_normal(L) + 1j * rng.standard_normal(L))
        h *= np.sqrt(self.variances)
        return ChannelRealization.from_taps(h, self.n_subcarriers)


# ============================================================================
#  Channel transport
# ============================================================================

def transmit_through_channel(x: np.ndarray, realization: ChannelRealization,
                             noise_var: float,
                             rng: np.random.Generator = None) -> np.ndarray:
    """
    Received sequence of one isolated OFDM symbol.

    y = conv(x, h) + n,  n ~ CN(0, noise_var); the last L-1 samples of the
    convolution tail are discarded so that len(y) == len(x).

    Parameters
    ----------
    x           : transmitted time-domain samples (cyclic prefix included)
    realization : channel snapshot
    noise_var   : sigma_n^2, split evenly over real and imaginary part
    rng         : random generator
    """
    if noise_var < 0:
        raise ValueError(f"noise variance must be non-negative, got {noise_var}")
    if rng is None:
        rng = np.random.default_rng()
    x = np.asarray(x, dtype=complex)
    y = np.convolve(x, realization.taps)

    n = np.sqrt(0.5 * noise_var) * (rng.standard_normal(y.size)
                                    + 1j * rng.standard_normal(y.size))
    y = y + n

    tail = realization.n_taps - 1
    return y[:y.size - tail]
