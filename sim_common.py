"""
Shared infrastructure for the CP-OFDM BER simulations.
======================================================
Single-trial transmit/receive chain, bit-error bookkeeping, the Monte-Carlo
driver over channel realizations and SNR values, and IEEE-style plotting
helpers.
"""

import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from link_config import OFDMLinkConfig
from interleaver import InterleaverMap
from channel import ChannelRealization, RayleighChannel, transmit_through_channel
from ofdm import OFDMDemodulator, OFDMModulator

# Trials per independently seeded work unit. Results depend on this value
# and the seed, not on the number of worker processes.
DEFAULT_CHUNK = 250


# ============================================================================
#  IEEE-style figure formatting
# ============================================================================

# Single-column IEEE figure style for the BER plots. Each plot passes its
# own figsize and grid settings, so those are not fixed here.
IEEE_STYLE = {
    'font.family': 'serif',
    'font.serif': ['Times New Roman', 'Times', 'DejaVu Serif'],
    'mathtext.fontset': 'stix',
    'font.size': 8,
    'axes.labelsize': 8,
    'axes.titlesize': 8,
    'xtick.labelsize': 7,
    'ytick.labelsize': 7,
    'legend.fontsize': 6,
    'legend.edgecolor': '0.8',
    'lines.markersize': 4,
    'savefig.dpi': 300,
    'savefig.bbox': 'tight',
    'savefig.pad_inches': 0.02,
}


def ieee_setup():
    """Apply IEEE_STYLE to matplotlib."""
    plt.rcParams.update(IEEE_STYLE)


def save_figure(fig, basename, formats=('png', 'eps')) -> List[str]:
    """Save figure in each of `formats` and close it."""
    paths = []
    for fmt in formats:
        path = f'{basename}.{fmt}'
        fig.savefig(path, format=fmt, dpi=300, bbox_inches='tight', pad_inches=0.02)
        paths.append(path)
    plt.close(fig)
    print(f"Saved: {', '.join(paths)}")
    return paths


# ============================================================================
#  Bit-error bookkeeping
# ============================================================================

class BitErrorAccumulator:
    """
    Running bit-error and trial counts per SNR index.

    Partial accumulators (e.g. one per worker) are combined with merge(),
    which is associative and commutative.
    """

    def __init__(self, n_snr: int):
        self.err_count = np.zeros(n_snr, dtype=np.int64)
        self.n_trials = np.zeros(n_snr, dtype=np.int64)

    def __len__(self):
        return self.err_count.size

    def add(self, snr_index: int, n_errors: int, n_trials: int = 1):
        self.err_count[snr_index] += int(n_errors)
        self.n_trials[snr_index] += int(n_trials)

    def merge(self, other: "BitErrorAccumulator") -> "BitErrorAccumulator":
        if len(other) != len(self):
            raise ValueError("cannot merge accumulators over different SNR grids")
        out = BitErrorAccumulator(len(self))
        out.err_count = self.err_count + other.err_count
        out.n_trials = self.n_trials + other.n_trials
        return out

    def ber(self, bits_per_trial: int) -> np.ndarray:
        """errors / (bits_per_trial * trials); NaN where nothing ran yet."""
        n_bits = self.n_trials * bits_per_trial
        with np.errstate(invalid='ignore', divide='ignore'):
            return np.where(n_bits > 0, self.err_count / np.maximum(n_bits, 1), np.nan)


# ============================================================================
#  Single Monte-Carlo trial
# ============================================================================

def random_bpsk(n: int, rng: np.random.Generator) -> np.ndarray:
    """n equiprobable BPSK symbols in {-1, +1}."""
    return 2 * rng.integers(0, 2, size=n) - 1


def count_bit_errors(u_hat: np.ndarray, u: np.ndarray) -> int:
    # every mismatch of two +/-1 symbols contributes |u_hat - u| = 2
    return int(np.sum(np.abs(u_hat - u)) // 2)


def run_trial(cfg: OFDMLinkConfig, interleaver: InterleaverMap,
              channel: RayleighChannel, noise_var: float,
              rng: np.random.Generator,
              modulator: OFDMModulator = None,
              demodulator: OFDMDemodulator = None
              ) -> Tuple[int, ChannelRealization]:
    """
    One transmit -> channel -> receive pass.

    Random draws happen in the order: data bits, channel taps, noise.

    Returns: (number of bit errors, channel realization used)
    """
    if modulator is None:
        modulator = OFDMModulator(cfg, interleaver)
    if demodulator is None:
        demodulator = OFDMDemodulator(cfg, interleaver)

    u = random_bpsk(cfg.n_info_bits, rng)
    realization = channel.realize(rng)

    x = modulator.modulate(u)
    y = transmit_through_channel(x, realization, noise_var, rng)
    u_hat = demodulator.demodulate(y, realization.frequency_response)

    return count_bit_errors(u_hat, u), realization


def _run_chunk(cfg: OFDMLinkConfig, interleaver: InterleaverMap,
               noise_var: float, n_trials: int,
               seed_seq: np.random.SeedSequence):
    """Run n_trials independent trials from their own seed; sum the errors."""
    rng = np.random.default_rng(seed_seq)
    channel = RayleighChannel(cfg)
    modulator = OFDMModulator(cfg, interleaver)
    demodulator = OFDMDemodulator(cfg, interleaver)
    errors = 0
    realization = None
    for _ in range(n_trials):
        e, realization = run_trial(cfg, interleaver, channel, noise_var, rng,
                                   modulator, demodulator)
        errors += e
    return errors, n_trials, realization


# ============================================================================
#  Monte-Carlo experiment over the SNR grid
# ============================================================================

@dataclass
class ExperimentResult:
    """Finalised BER curve of one configuration."""
    config: OFDMLinkConfig
    snr_dB: np.ndarray
    ber: np.ndarray
    err_count: np.ndarray
    n_trials: np.ndarray
    n_bits: np.ndarray
    last_realization: Optional[ChannelRealization] = None

    @property
    def magnitude_response(self) -> Optional[np.ndarray]:
        """|H| of the final simulated channel, for diagnostic plots."""
        if self.last_realization is None:
            return None
        return self.last_realization.magnitude_response

    def as_dict(self) -> dict:
        return {
            'snr_dB': self.snr_dB,
            'ber': self.ber,
            'err_count': self.err_count,
            'n_bits': self.n_bits,
            'H_abs': self.magnitude_response,
        }


def _chunk_sizes(n_total: int, chunk_size: int) -> List[int]:
    n_chunks = math.ceil(n_total / chunk_size)
    sizes = [chunk_size] * n_chunks
    sizes[-1] = n_total - chunk_size * (n_chunks - 1)
    return sizes


def run_experiment(cfg: OFDMLinkConfig, seed=None, n_jobs: int = 1,
                   chunk_size: int = DEFAULT_CHUNK, verbose: bool = True,
                   accumulator: BitErrorAccumulator = None) -> ExperimentResult:
    """
    Estimate the BER for every SNR of cfg.snr_dB over cfg.n_realizations
    channel realizations.

    Args:
        cfg: validated link configuration
        seed: root seed (int, None or SeedSequence); every (SNR, chunk)
            pair gets its own child stream
        n_jobs: worker processes (1 runs everything in this process)
        chunk_size: trials per independently seeded work unit
        verbose: print one progress line per SNR point
        accumulator: optional accumulator to add into; it only ever holds
            whole chunks, so it stays consistent if the run is interrupted

    Returns: ExperimentResult
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")

    n_snr = len(cfg.snr_dB)
    if accumulator is None:
        accumulator = BitErrorAccumulator(n_snr)
    elif len(accumulator) != n_snr:
        raise ValueError("accumulator does not match the SNR grid")

    interleaver = InterleaverMap.from_config(cfg)
    sizes = _chunk_sizes(cfg.n_realizations, chunk_size)
    if not isinstance(seed, np.random.SeedSequence):
        seed = np.random.SeedSequence(seed)
    snr_seeds = seed.spawn(n_snr)
    noise_vars = cfg.noise_variances
    bits_per_trial = cfg.n_info_bits

    if verbose:
        print(f"CP-OFDM BER simulation: {cfg.describe()}")
        print(f"  {len(sizes)} chunk(s) per SNR, n_jobs={n_jobs}")

    executor = ProcessPoolExecutor(max_workers=n_jobs) if n_jobs > 1 else None
    last_realization = None
    try:
        for ii, snr_dB in enumerate(cfg.snr_dB):
            chunk_seeds = snr_seeds[ii].spawn(len(sizes))
            args = [(cfg, interleaver, float(noise_vars[ii]), n, s)
                    for n, s in zip(sizes, chunk_seeds)]
            if executor is None:
                outcomes = (_run_chunk(*a) for a in args)
            else:
                outcomes = executor.map(_run_chunk, *zip(*args))
            # reduction in chunk order
            for errors, n_trials, realization in outcomes:
                accumulator.add(ii, errors, n_trials)
                last_realization = realization

            if verbose:
                n_bits = accumulator.n_trials[ii] * bits_per_trial
                print(f"  SNR={snr_dB:5.1f} dB: BER={accumulator.err_count[ii] / n_bits:.3e} "
                      f"({accumulator.err_count[ii]} errors / {n_bits} bits)")
    finally:
        if executor is not None:
            executor.shutdown(cancel_futures=True)

    return ExperimentResult(
        config=cfg,
        snr_dB=np.asarray(cfg.snr_dB),
        ber=accumulator.ber(bits_per_trial),
        err_count=accumulator.err_count.copy(),
        n_trials=accumulator.n_trials.copy(),
        n_bits=accumulator.n_trials * bits_per_trial,
        last_realization=last_realization,
    )
