"""
BER vs SNR: CP-OFDM with BPSK, repetition code and interleaving.

Monte-Carlo BER of one link configuration over a frequency-selective
Rayleigh channel with exponential power-delay profile, compared against the
analytical Rayleigh-fading BER for diversity orders L = 1, 2, 4.

Usage:
    python sim_ber_vs_snr.py --rate 1/4 --interleave --realizations 10000
"""
import argparse
import csv
import sys

import numpy as np
import matplotlib.pyplot as plt

from link_config import ConfigurationError, OFDMLinkConfig
from interleaver import InterleaverMap
from ber_analysis import ber_rayleigh_diversity
from sim_common import ieee_setup, save_figure, run_experiment

DIVERSITY_ORDERS = (1, 2, 4)


def simulate(cfg: OFDMLinkConfig = None, seed=2008, n_jobs=1, verbose=True):
    if cfg is None:
        cfg = OFDMLinkConfig()
    result = run_experiment(cfg, seed=seed, n_jobs=n_jobs, verbose=verbose)

    results = result.as_dict()
    results['config'] = cfg
    for L in DIVERSITY_ORDERS:
        results[f'rayleigh_L{L}'] = ber_rayleigh_diversity(result.snr_dB, L)
    return results


def plot(results, basename='ber_vs_snr'):
    ieee_setup()
    fig, ax = plt.subplots(figsize=(3.5, 2.8))
    snr = results['snr_dB']

    ax.semilogy(snr, np.maximum(results['ber'], 1e-8),
                'o--', color='k', lw=1.0, ms=4, label='Simulation')
    styles = {1: ('x-', '#d62728'), 2: ('+-', '#e377c2'), 4: ('*-', '#1f77b4')}
    for L in DIVERSITY_ORDERS:
        marker, color = styles[L]
        ax.semilogy(snr, results[f'rayleigh_L{L}'], marker, color=color,
                    lw=1.0, ms=4, label=f'Rayleigh fading (L={L}, theory)')

    ax.set_xlabel(r'$1/\sigma_n^2$ (dB)')
    ax.set_ylabel('BER')
    if len(snr) > 1:
        ax.set_xlim(snr[0], snr[-1])
    ax.set_ylim(1e-4, 1)
    ax.legend(fontsize=6, loc='lower left', framealpha=0.9)
    ax.grid(True, which='both', ls='--', alpha=0.3)

    return save_figure(fig, basename)


def plot_channel_response(results, basename='channel_response'):
    """|H| of the last simulated channel; stems mark the copies of symbol 0."""
    H_abs = results['H_abs']
    cfg = results['config']
    carriers = np.arange(H_abs.size)

    ieee_setup()
    fig, ax = plt.subplots(figsize=(3.5, 2.8))
    ax.plot(carriers, H_abs, 'b-', lw=1.0)
    if cfg.repeat_count > 1:
        pos = InterleaverMap.from_config(cfg).copy_positions(0)
        ax.stem(pos, H_abs[pos], linefmt='r-', markerfmt='ro', basefmt=' ')

    ax.set_xlabel('Carrier No.')
    ax.set_ylabel('Channel frequency response (magnitude)')
    ax.set_xlim(0, max(H_abs.size - 1, 1))
    ax.set_ylim(0, 1.1 * np.max(H_abs))
    ax.grid(True, ls='--', alpha=0.3)

    return save_figure(fig, basename)


def save_csv(results, path='ber_vs_snr.csv'):
    keys = [f'rayleigh_L{L}' for L in DIVERSITY_ORDERS]
    with open(path, 'w', newline='') as f:
        w = csv.writer(f)
        w.writerow(['snr_dB', 'ber', 'err_count', 'n_bits'] + keys)
        for i in range(len(results['snr_dB'])):
            row = [f"{results['snr_dB'][i]:.2f}",
                   f"{results['ber'][i]:.6e}",
                   int(results['err_count'][i]),
                   int(results['n_bits'][i])]
            for k in keys:
                row.append(f"{results[k][i]:.6e}")
            w.writerow(row)
    print(f"Saved: {path}")
    return path


# ============================================================================
#  Command line
# ============================================================================

def build_parser():
    defaults = OFDMLinkConfig()
    p = argparse.ArgumentParser(
        description="Monte-Carlo BER of CP-OFDM/BPSK over Rayleigh fading")
    p.add_argument('--snr-db', type=float, nargs='+', default=list(defaults.snr_dB),
                   help='SNR grid 1/sigma_n^2 in dB (default: 0 2 ... 20)')
    p.add_argument('--subcarriers', type=int, default=defaults.n_subcarriers,
                   help='number of carriers / FFT size, power of two')
    p.add_argument('--taps', type=int, default=defaults.n_taps,
                   help='channel impulse response length')
    p.add_argument('--decay', type=float, default=defaults.decay_factor,
                   help='exponential power-profile factor c_att')
    p.add_argument('--rate', default='1/4',
                   help='repetition code rate, 1 or 1/2^n (e.g. 1/4)')
    p.add_argument('--interleave', action='store_true',
                   help='maximum-distance interleaving of repeated symbols')
    p.add_argument('--realizations', type=int, default=defaults.n_realizations,
                   help='channel realizations per SNR point')
    p.add_argument('--seed', type=int, default=2008)
    p.add_argument('--jobs', type=int, default=1,
                   help='worker processes')
    p.add_argument('--output', default='ber_vs_snr',
                   help='basename for the CSV and figure files')
    p.add_argument('--no-plot', action='store_true',
                   help='skip the figures, write only the CSV')
    return p


def config_from_args(args) -> OFDMLinkConfig:
    return OFDMLinkConfig(
        n_subcarriers=args.subcarriers,
        n_taps=args.taps,
        decay_factor=args.decay,
        code_rate=args.rate,
        interleaving=args.interleave,
        n_realizations=args.realizations,
        snr_dB=tuple(args.snr_db),
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.jobs < 1:
        parser.error(f"--jobs must be >= 1, got {args.jobs}")
    try:
        cfg = config_from_args(args)
    except ConfigurationError as exc:
        parser.error(f"invalid configuration: {exc}")

    results = simulate(cfg, seed=args.seed, n_jobs=args.jobs)
    save_csv(results, f'{args.output}.csv')
    if not args.no_plot:
        plot(results, args.output)
        plot_channel_response(results, f'{args.output}_channel')
    return results


if __name__ == "__main__":
    main(sys.argv[1:])
