"""
Run all simulations sequentially.

Each simulation can also be run independently:
    python sim_ber_vs_snr.py [options]
    python sim_coding_gain.py
"""

from link_config import OFDMLinkConfig
import sim_ber_vs_snr
import sim_coding_gain


def main():
    print("=" * 70)
    print("Running all simulations")
    print("=" * 70)

    # 1. BER vs SNR, repetition code R=1/4 with interleaving
    print("\n" + "-" * 60)
    cfg = OFDMLinkConfig(code_rate=0.25, interleaving=True, n_realizations=10000)
    results_ber = sim_ber_vs_snr.simulate(cfg)
    sim_ber_vs_snr.plot(results_ber)
    sim_ber_vs_snr.plot_channel_response(results_ber)
    sim_ber_vs_snr.save_csv(results_ber)

    # 2. Uncoded vs repetition vs repetition + interleaving
    print("\n" + "-" * 60)
    results_gain = sim_coding_gain.simulate(n_mc=2000)
    sim_coding_gain.plot(results_gain)
    sim_coding_gain.save_csv(results_gain)

    print("\n" + "=" * 70)
    print("All simulations complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
