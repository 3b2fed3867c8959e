"""
CP-OFDM Transmitter and Receiver (BPSK, repetition code)
========================================================
Transmitter: BPSK symbols -> repetition encoding -> interleaving ->
             unitary IFFT -> cyclic prefix.
Receiver:    CP removal -> unitary FFT -> derotation/weighting with H* ->
             deinterleaving + maximum-ratio combining -> hard decision.

Both transforms carry a sqrt(N_c) normalisation so that they are unitary,
which makes SNR = 1/sigma_n^2 the per-carrier SNR after the receiver FFT.
"""

import numpy as np

from link_config import OFDMLinkConfig
from interleaver import InterleaverMap


# ============================================================================
#  Unitary DFT pair
# ============================================================================

def unitary_ifft(X: np.ndarray) -> np.ndarray:
    return np.fft.ifft(X) * np.sqrt(X.shape[-1])


def unitary_fft(x: np.ndarray) -> np.ndarray:
    return np.fft.fft(x) / np.sqrt(x.shape[-1])


# ============================================================================
#  Transmitter
# ============================================================================

class OFDMModulator:
    """Maps N_c*R BPSK symbols onto one CP-OFDM symbol."""

    def __init__(self, cfg: OFDMLinkConfig, interleaver: InterleaverMap = None):
        self.cfg = cfg
        self.interleaver = interleaver or InterleaverMap.from_config(cfg)

    def repetition_encode(self, bits: np.ndarray) -> np.ndarray:
        """[+1 -1 ...] -> [+1 +1 -1 -1 ...] for R = 1/2."""
        bits = np.asarray(bits)
        if bits.shape != (self.cfg.n_info_bits,):
            raise ValueError(f"expected {self.cfg.n_info_bits} BPSK symbols, "
                             f"got shape {bits.shape}")
        return np.repeat(bits, self.cfg.repeat_count)

    def map_to_subcarriers(self, bits: np.ndarray) -> np.ndarray:
        """Frequency-domain OFDM symbol X (length N_c)."""
        X = self.repetition_encode(bits).astype(complex)
        return self.interleaver.scatter(X)

    def add_cyclic_prefix(self, x: np.ndarray) -> np.ndarray:
        cp = self.cfg.cp_length
        return np.concatenate([x[x.size - cp:], x])

    def modulate(self, bits: np.ndarray) -> np.ndarray:
        """
        Parameters
        ----------
        bits : (N_c*R,) array with elements in {-1, +1}

        Returns
        -------
        x : (N_c + L - 1,) complex time-domain samples, cyclic prefix first
        """
        X = self.map_to_subcarriers(bits)
        return self.add_cyclic_prefix(unitary_ifft(X))


# ============================================================================
#  Receiver
# ============================================================================

class OFDMDemodulator:
    """Coherent receiver with perfect channel knowledge."""

    def __init__(self, cfg: OFDMLinkConfig, interleaver: InterleaverMap = None):
        self.cfg = cfg
        self.interleaver = interleaver or InterleaverMap.from_config(cfg)

    def remove_cyclic_prefix(self, y: np.ndarray) -> np.ndarray:
        y = np.asarray(y)
        if y.shape != (self.cfg.symbol_length,):
            raise ValueError(f"expected {self.cfg.symbol_length} received "
                             f"samples, got shape {y.shape}")
        return y[self.cfg.cp_length:]

    @staticmethod
    def matched_filter(Y: np.ndarray, H: np.ndarray) -> np.ndarray:
        """Derotation and weighting Z = H* . Y"""
        return np.conj(H) * Y

    def combine(self, Z: np.ndarray) -> np.ndarray:
        """Deinterleave and sum the copies of every information symbol (MRC)."""
        if self.cfg.repeat_count == 1:
            return Z
        return self.interleaver.gather(Z).sum(axis=1)

    @staticmethod
    def decide(z: np.ndarray) -> np.ndarray:
        # sign(Re z); an exact zero is decided as +1
        return np.where(np.real(z) >= 0, 1, -1)

    def soft_output(self, y: np.ndarray, H: np.ndarray) -> np.ndarray:
        """Combined decision variables before the hard decision."""
        Y = unitary_fft(self.remove_cyclic_prefix(y))
        return self.combine(self.matched_filter(Y, H))

    def demodulate(self, y: np.ndarray, H: np.ndarray) -> np.ndarray:
        """
        Parameters
        ----------
        y : (N_c + L - 1,) received samples
        H : (N_c,) channel frequency response

        Returns
        -------
        u_hat : (N_c*R,) detected symbols in {-1, +1}
        """
        return self.decide(self.soft_output(y, H))
