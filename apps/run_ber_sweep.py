#!/usr/bin/env python3
"""
DSSS BER Sweep Runner

Spreads random data with the two-LFSR PN sequence, passes every packet
through the satellite channel at each SNR, and reports BER per SNR point
next to the theoretical DSSS curve.

Parameters come from the defaults, an optional JSON file (--config), then
command-line overrides, in that order.
"""

import argparse
import json
import logging
import os
import sys

import numpy as np

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from lorasat.errors import LoraSatError
from lorasat.sim.sweep import BERSweep, SimulationConfig

logger = logging.getLogger("DSSS")


def build_config(args):
    values = {}
    if args.config:
        with open(args.config) as f:
            values.update(json.load(f))
    for key in ('bit_rate', 'chip_rate', 'packet_size', 'num_packets', 'path_loss_db',
                'doppler_max_hz', 'target_ber', 'workers'):
        val = getattr(args, key)
        if val is not None:
            values[key] = val
    if args.snr:
        values['snr_db'] = args.snr
    return SimulationConfig.from_dict(values)


def plot_result(result, path):
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 5))
    # Zero-error points cannot be drawn on a log axis
    measured = np.where(result.ber > 0, result.ber, np.nan)
    ax.semilogy(result.snr_db, measured, 'o-', label='Simulated')
    ax.semilogy(result.snr_db, result.theoretical_ber(), 'k--', alpha=0.6, label='Theory (BPSK, PG)')
    ax.axhline(result.target_ber, color='r', alpha=0.4, linestyle=':', label=f'Target {result.target_ber:.0e}')
    if result.crossing_snr_db is not None:
        ax.axvline(result.crossing_snr_db, color='g', alpha=0.4, linestyle=':')
    ax.set_xlabel("Chip SNR (dB)")
    ax.set_ylabel("BER")
    ax.set_title(f"DSSS over satellite channel (PG={result.processing_gain})")
    ax.grid(True, which='both', alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path)
    print(f"Saved plot to {path}")


def main():
    parser = argparse.ArgumentParser(description="DSSS satellite link BER sweep")
    parser.add_argument('--config', help="JSON file with SimulationConfig fields")
    parser.add_argument('--bit-rate', dest='bit_rate', type=float)
    parser.add_argument('--chip-rate', dest='chip_rate', type=float)
    parser.add_argument('--packet-size', dest='packet_size', type=int)
    parser.add_argument('--packets', dest='num_packets', type=int)
    parser.add_argument('--snr', type=float, nargs='+', help="SNR sweep in dB, ascending")
    parser.add_argument('--path-loss', dest='path_loss_db', type=float)
    parser.add_argument('--doppler', dest='doppler_max_hz', type=float)
    parser.add_argument('--target-ber', dest='target_ber', type=float)
    parser.add_argument('--workers', type=int)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--plot', help="Save BER curve to this PNG file")
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(message)s')

    try:
        config = build_config(args)
        result = BERSweep(config, rng=args.seed).run()
    except LoraSatError as exc:
        logger.error(f"Sweep failed: {exc}")
        sys.exit(1)

    print("\n--- DSSS BER SWEEP ---")
    print(f"Processing gain: {result.processing_gain}")
    print(f"{'SNR (dB)':<10} {'Errors':<10} {'Bits':<10} {'BER':<12} {'Theory':<12}")
    print("-" * 56)
    for snr, err, tot, ber, th in zip(result.snr_db, result.errors, result.total_bits,
                                      result.ber, result.theoretical_ber()):
        print(f"{snr:<10.1f} {err:<10d} {tot:<10d} {ber:<12.3e} {th:<12.3e}")
    print("-" * 56)
    if result.crossing_snr_db is not None:
        print(f"BER = {result.target_ber:.0e} at {result.crossing_snr_db:.2f} dB")
    else:
        print(f"BER never crosses {result.target_ber:.0e} in this sweep")

    lb = result.link_budget
    print(f"Link budget: FSPL {lb.fspl_db:.2f} dB over {lb.distance_m / 1e3:.0f} km, "
          f"received {lb.rx_power_dbm:.2f} dBm")

    if args.plot:
        plot_result(result, args.plot)


if __name__ == "__main__":
    main()
