import os

import numpy as np
import matplotlib.pyplot as plt

from lorasat.channel.atmosphere import total_atmospheric_attenuation
from lorasat.utils.link_budget import calculate_link_budget
from lorasat.utils.lora import SENSITIVITY_DBM, sensitivity_dbm, time_on_air

FREQUENCY_HZ = 923e6
ALTITUDE_M = 600e3
TX_POWER_DBM = 23.0
TX_GAIN_DB = 3.0
RX_GAIN_DB = 10.0
PAYLOAD_BYTES = 20


def print_link_budget(elevation_deg=None, rain_rate_mm_h=0.0):
    """
    Prints the downlink budget and the per-SF margin against LoRa sensitivity.
    """
    extra = 0.0
    if elevation_deg is not None:
        extra = float(total_atmospheric_attenuation(elevation_deg, rain_rate_mm_h=rain_rate_mm_h))

    lb = calculate_link_budget(FREQUENCY_HZ, ALTITUDE_M, TX_POWER_DBM, TX_GAIN_DB, RX_GAIN_DB,
                               elevation_deg=elevation_deg, extra_loss_db=extra)

    where = "zenith" if elevation_deg is None else f"{elevation_deg:.0f} deg elevation"
    print(f"--- LORA SATELLITE LINK BUDGET ({where}) ---")
    print(f"Frequency: {FREQUENCY_HZ / 1e6:.1f} MHz (lambda {lb.wavelength_m:.3f} m)")
    print(f"Distance: {lb.distance_m / 1e3:.1f} km")
    print(f"FSPL: {lb.fspl_db:.2f} dB")
    print(f"Atmospheric Loss: {extra:.2f} dB")
    print(f"Received Power: {lb.rx_power_dbm:.2f} dBm")
    print(f"Recommended Sensitivity: {lb.recommended_sensitivity_dbm:.2f} dBm")
    print("-" * 40)
    print(f"{'SF':<4} {'Sens (dBm)':<12} {'Margin (dB)':<12} {'ToA (ms)':<10}")
    for sf in sorted(SENSITIVITY_DBM):
        sens = sensitivity_dbm(sf)
        toa = time_on_air(sf, PAYLOAD_BYTES) * 1000
        print(f"{sf:<4} {sens:<12.2f} {lb.rx_power_dbm - sens:<12.2f} {toa:<10.1f}")
    print("-" * 40)
    return lb


def plot_attenuation(path='data/link_attenuation.png'):
    elevations = np.linspace(10, 90, 81)
    fig, ax = plt.subplots(figsize=(8, 5))
    for rain in (0.0, 10.0, 50.0):
        ax.plot(elevations, total_atmospheric_attenuation(elevations, rain_rate_mm_h=rain),
                label=f"Rain {rain:.0f} mm/h")
    ax.set_xlabel("Elevation (deg)")
    ax.set_ylabel("Atmospheric attenuation (dB)")
    ax.set_title(f"Slant-path attenuation at {FREQUENCY_HZ / 1e6:.0f} MHz")
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path)
    print(f"Saved plot to {path}")


if __name__ == "__main__":
    os.makedirs('data', exist_ok=True)
    print_link_budget()
    print_link_budget(elevation_deg=30.0, rain_rate_mm_h=10.0)
    plot_attenuation()
