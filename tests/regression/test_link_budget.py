import math
import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from lorasat.channel.atmosphere import (RainCoefficients, cloud_attenuation, gas_attenuation, rain_attenuation,
                                        scintillation_fade, slant_range, total_atmospheric_attenuation)
from lorasat.errors import InvalidInputError
from lorasat.utils.link_budget import calculate_link_budget, free_space_path_loss
from lorasat.utils.lora import sensitivity_dbm, time_on_air

C = 299792458.0


def test_zenith_budget_matches_closed_form():
    lb = calculate_link_budget(923e6, 600e3, 23.0, tx_gain_db=3.0, rx_gain_db=10.0)

    wavelength = C / 923e6
    fspl = 20 * math.log10(4 * math.pi * 600e3 / wavelength)
    assert lb.distance_m == 600e3
    assert lb.wavelength_m == pytest.approx(wavelength)
    assert lb.fspl_db == pytest.approx(fspl, abs=1e-9)
    assert lb.rx_power_dbm == pytest.approx(23.0 + 3.0 + 10.0 - fspl, abs=1e-9)
    assert lb.fspl_db == pytest.approx(147.3, abs=0.1)
    assert lb.recommended_sensitivity_dbm == pytest.approx(lb.rx_power_dbm - 10.0)
    assert lb.link_margin_db is None


def test_margin_against_sensitivity():
    lb = calculate_link_budget(923e6, 600e3, 23.0, 3.0, 10.0, sensitivity_dbm=-137.0, extra_loss_db=2.0)
    assert lb.link_margin_db == pytest.approx(lb.rx_power_dbm + 137.0)
    zenith = calculate_link_budget(923e6, 600e3, 23.0, 3.0, 10.0)
    assert lb.rx_power_dbm == pytest.approx(zenith.rx_power_dbm - 2.0)


def test_slant_range_geometry():
    assert slant_range(600e3, 90.0) == pytest.approx(600e3, rel=1e-9)
    assert slant_range(600e3, 30.0) > slant_range(600e3, 60.0) > 600e3
    low = calculate_link_budget(923e6, 600e3, 23.0, elevation_deg=20.0)
    high = calculate_link_budget(923e6, 600e3, 23.0, elevation_deg=80.0)
    assert low.fspl_db > high.fspl_db


def test_fspl_vectorised():
    d = np.array([1e3, 1e4])
    loss = free_space_path_loss(d, 923e6)
    assert loss[1] - loss[0] == pytest.approx(20.0)
    with pytest.raises(InvalidInputError):
        free_space_path_loss(0.0, 923e6)


def test_attenuation_terms():
    assert rain_attenuation(0.0, 45.0) == 0.0
    assert rain_attenuation(50.0, 20.0) > rain_attenuation(50.0, 60.0) > rain_attenuation(10.0, 60.0)
    # Coefficients are injected, not baked in
    doubled = RainCoefficients(k=2 * 0.0000387, alpha=0.912)
    assert rain_attenuation(25.0, 40.0, doubled) == pytest.approx(2 * rain_attenuation(25.0, 40.0))
    assert cloud_attenuation(1.0, 90.0) == pytest.approx(0.0008)
    assert gas_attenuation(30.0) == pytest.approx(2 * gas_attenuation(90.0))
    assert scintillation_fade(10.0) > scintillation_fade(90.0)

    el = 30.0
    expected = gas_attenuation(el) + math.sqrt((rain_attenuation(20.0, el) + cloud_attenuation(0.5, el)) ** 2
                                               + scintillation_fade(el) ** 2)
    assert total_atmospheric_attenuation(el, 20.0, 0.5) == pytest.approx(expected)

    with pytest.raises(InvalidInputError):
        gas_attenuation(0.0)
    with pytest.raises(InvalidInputError):
        rain_attenuation(10.0, 95.0)


def test_lora_airtime_and_sensitivity():
    # SF7, 20 bytes, 125 kHz, CR 4/5, explicit header, CRC: 43 payload symbols
    assert time_on_air(7, 20) == pytest.approx(0.056576, abs=1e-9)
    assert time_on_air(12, 20) > time_on_air(9, 20) > time_on_air(7, 20)
    assert time_on_air(7, 20, bw_hz=250e3) == pytest.approx(time_on_air(7, 20) / 2)
    assert sensitivity_dbm(7) == -126.5
    assert sensitivity_dbm(10, 500) == -128.75
    with pytest.raises(InvalidInputError):
        sensitivity_dbm(6)
    with pytest.raises(InvalidInputError):
        time_on_air(13, 20)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
