"""Tests for the sweep scripts: results, CSV export, figures, command line."""

import csv
import os
import warnings

import numpy as np
import matplotlib.pyplot as plt
import pytest

from link_config import OFDMLinkConfig
from ber_analysis import ber_bpsk_awgn
import sim_ber_vs_snr
import sim_coding_gain
from sim_common import IEEE_STYLE, ieee_setup


@pytest.fixture
def small_results():
    cfg = OFDMLinkConfig(n_subcarriers=16, n_taps=3, code_rate=0.25,
                         interleaving=True, n_realizations=20,
                         snr_dB=(0.0, 5.0, 10.0))
    return sim_ber_vs_snr.simulate(cfg, seed=1, verbose=False)


class TestBerVsSnr:

    def test_simulate_keys(self, small_results):
        for key in ('snr_dB', 'ber', 'err_count', 'n_bits', 'H_abs', 'config',
                    'rayleigh_L1', 'rayleigh_L2', 'rayleigh_L4'):
            assert key in small_results
        assert small_results['H_abs'].shape == (16,)
        assert small_results['ber'].shape == (3,)

    def test_save_csv_round_trip(self, small_results, tmp_path):
        path = sim_ber_vs_snr.save_csv(small_results, str(tmp_path / 'ber.csv'))
        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0][:4] == ['snr_dB', 'ber', 'err_count', 'n_bits']
        assert len(rows) == 4
        ber = np.array([float(r[1]) for r in rows[1:]])
        np.testing.assert_allclose(ber, small_results['ber'], rtol=1e-6)
        assert [int(r[2]) for r in rows[1:]] == small_results['err_count'].tolist()

    def test_figures_written(self, small_results, tmp_path):
        paths = sim_ber_vs_snr.plot(small_results, str(tmp_path / 'ber'))
        paths += sim_ber_vs_snr.plot_channel_response(
            small_results, str(tmp_path / 'chan'))
        for p in paths:
            assert os.path.getsize(p) > 0

    def test_channel_figure_uncoded(self, tmp_path):
        cfg = OFDMLinkConfig(n_subcarriers=16, n_taps=3, code_rate=1,
                             n_realizations=2, snr_dB=(0.0,))
        results = sim_ber_vs_snr.simulate(cfg, seed=2, verbose=False)
        paths = sim_ber_vs_snr.plot_channel_response(results, str(tmp_path / 'chan'))
        assert all(os.path.exists(p) for p in paths)

    def test_single_snr_point_plot(self, tmp_path):
        cfg = OFDMLinkConfig(n_subcarriers=16, n_taps=3, code_rate=0.5,
                             n_realizations=4, snr_dB=(10.0,))
        results = sim_ber_vs_snr.simulate(cfg, seed=4, verbose=False)
        with warnings.catch_warnings():
            warnings.filterwarnings('error', message='Attempting to set identical')
            paths = sim_ber_vs_snr.plot(results, str(tmp_path / 'one'))
        assert all(os.path.exists(p) for p in paths)

    def test_ieee_style_applied(self):
        ieee_setup()
        for key in ('font.size', 'legend.fontsize', 'savefig.dpi'):
            assert plt.rcParams[key] == IEEE_STYLE[key]


class TestCommandLine:

    def test_defaults_build_default_like_config(self):
        args = sim_ber_vs_snr.build_parser().parse_args([])
        cfg = sim_ber_vs_snr.config_from_args(args)
        assert cfg == OFDMLinkConfig(code_rate='1/4')

    def test_options_map_to_config(self):
        args = sim_ber_vs_snr.build_parser().parse_args([
            '--snr-db', '0', '5', '10', '--subcarriers', '64', '--taps', '4',
            '--decay', '1.5', '--rate', '1/8', '--interleave',
            '--realizations', '50'])
        cfg = sim_ber_vs_snr.config_from_args(args)
        assert cfg.snr_dB == (0.0, 5.0, 10.0)
        assert cfg.n_subcarriers == 64
        assert cfg.n_taps == 4
        assert cfg.decay_factor == 1.5
        assert cfg.repeat_count == 8
        assert cfg.interleaving is True
        assert cfg.n_realizations == 50

    def test_invalid_configuration_exits_before_simulating(self, capsys):
        with pytest.raises(SystemExit) as exc:
            sim_ber_vs_snr.main(['--subcarriers', '100', '--no-plot'])
        assert exc.value.code == 2
        assert 'n_subcarriers' in capsys.readouterr().err

    def test_invalid_jobs(self):
        with pytest.raises(SystemExit):
            sim_ber_vs_snr.main(['--jobs', '0'])

    def test_main_writes_csv(self, tmp_path):
        out = str(tmp_path / 'run')
        results = sim_ber_vs_snr.main([
            '--snr-db', '0', '10', '--subcarriers', '16', '--taps', '3',
            '--rate', '1/2', '--realizations', '5', '--output', out, '--no-plot'])
        assert os.path.exists(out + '.csv')
        assert not os.path.exists(out + '.png')
        assert results['ber'].shape == (2,)


class TestCodingGain:

    def test_simulate_and_export(self, tmp_path):
        base = OFDMLinkConfig(n_subcarriers=16, n_taps=3, snr_dB=(0.0, 10.0))
        results = sim_coding_gain.simulate(base, n_mc=10, seed=3)
        for key in sim_coding_gain.CURVES:
            assert results[key].shape == (2,)
        path = sim_coding_gain.save_csv(results, str(tmp_path / 'gain.csv'))
        with open(path, newline='') as f:
            header = next(csv.reader(f))
        assert header[0] == 'snr_dB'
        assert set(sim_coding_gain.CURVES) <= set(header)
        assert 'awgn' in header
        np.testing.assert_allclose(results['awgn'], ber_bpsk_awgn([0.0, 10.0]))
        # flat Rayleigh fading is always worse than AWGN at the same SNR
        assert np.all(results['rayleigh_L1'] > results['awgn'])
        paths = sim_coding_gain.plot(results, str(tmp_path / 'gain'))
        assert all(os.path.exists(p) for p in paths)
