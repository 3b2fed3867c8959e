"""
Analytical BPSK Bit Error Rates
===============================
Closed-form reference curves for the simulated CP-OFDM link.

Provides:
  - Gaussian Q-function
  - BPSK over AWGN
  - BPSK over Rayleigh fading with L-fold maximum-ratio combining and equal
    average branch SNRs (Proakis, Digital Communications, Eq. 14.4-15)

All SNRs are per-branch values 1/sigma_n^2 for unit-energy symbols, the same
definition the simulation uses after the receiver FFT.
"""

import numpy as np
from scipy.special import comb, erfc


def q_function(x) -> np.ndarray:
    """Gaussian Q-function: Q(x) = 0.5 * erfc(x / sqrt(2))."""
    x = np.asarray(x, dtype=float)
    return 0.5 * erfc(x / np.sqrt(2.0))


def ber_bpsk_awgn(snr_dB) -> np.ndarray:
    """P_b = Q(sqrt(2*gamma)) for coherent BPSK."""
    gamma = 10.0 ** (np.asarray(snr_dB, dtype=float) / 10.0)
    return q_function(np.sqrt(2.0 * gamma))


def ber_rayleigh_diversity(snr_dB, diversity_order: int = 1) -> np.ndarray:
    """
    BPSK bit error probability in Rayleigh fading with L-branch MRC.

        mu  = sqrt(gamma / (1 + gamma))
        P_b = ((1-mu)/2)^L * sum_{k=0}^{L-1} C(L-1+k, k) ((1+mu)/2)^k

    Args:
        snr_dB: average SNR per diversity branch [dB], scalar or array
        diversity_order: number of independently faded branches L >= 1

    Returns:
        Bit error probability, same shape as snr_dB.
    """
    L = int(diversity_order)
    if L < 1 or L != diversity_order:
        raise ValueError(f"diversity order must be a positive integer, got {diversity_order}")
    gamma = 10.0 ** (np.asarray(snr_dB, dtype=float) / 10.0)
    mu = np.sqrt(gamma / (1.0 + gamma))
    acc = np.zeros_like(mu)
    for k in range(L):
        acc = acc + comb(L - 1 + k, k, exact=True) * ((1.0 + mu) / 2.0) ** k
    return ((1.0 - mu) / 2.0) ** L * acc
