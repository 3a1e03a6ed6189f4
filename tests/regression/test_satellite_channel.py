import numpy as np
import os
import sys

import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from lorasat.channel.simulator import SatelliteChannelSimulator
from lorasat.errors import ComputationError, ConfigurationError, InvalidInputError


def test_path_loss_is_linear_scaling():
    chips = np.array([1.0, -1.0, 1.0, 1.0])
    assert np.array_equal(SatelliteChannelSimulator(path_loss_db=0.0).apply_path_loss(chips), chips)
    assert np.allclose(SatelliteChannelSimulator(path_loss_db=10.0).apply_path_loss(chips), chips * 0.1)
    assert np.allclose(SatelliteChannelSimulator(path_loss_db=3.0).apply_path_loss(chips), chips * 10 ** -0.3)


def test_zero_doppler_is_identity():
    chips = np.sign(np.random.default_rng(0).normal(size=1000))
    assert np.allclose(SatelliteChannelSimulator(doppler_max_hz=0.0).apply_doppler(chips), chips)


def test_doppler_matches_cosine_of_accumulated_phase():
    chip_rate, fmax = 1000.0, 40.0
    chips = np.ones(5000)
    out = SatelliteChannelSimulator(chip_rate=chip_rate, doppler_max_hz=fmax).apply_doppler(chips)

    t = np.arange(chips.size) / chip_rate
    phase = np.cumsum(fmax * np.sin(2 * np.pi * 0.01 * t))
    assert np.allclose(out, np.cos(2 * np.pi * phase / chip_rate))
    # Real part only: amplitude swings, including sign flips
    assert out.min() < 0 < out.max()


def test_awgn_variance_tracks_snr():
    channel = SatelliteChannelSimulator(rng=1)
    signal = np.ones(200000)
    for snr_db in (-10.0, 0.0, 10.0):
        noise = channel.add_awgn(signal, snr_db) - signal
        assert abs(np.mean(noise)) < 0.02 * np.sqrt(10 ** (-snr_db / 10)) + 0.01
        assert np.var(noise) == pytest.approx(10 ** (-snr_db / 10), rel=0.03)


def test_noise_calibrated_after_path_loss():
    channel = SatelliteChannelSimulator(path_loss_db=20.0)
    assert channel.noise_power(np.full(10, 0.01), 0.0) == pytest.approx(1e-4)


def test_seeded_channel_is_reproducible():
    chips = np.sign(np.random.default_rng(5).normal(size=640))
    a = SatelliteChannelSimulator(doppler_max_hz=5.0, rng=42).simulate_satellite_channel(chips, -5.0)
    b = SatelliteChannelSimulator(doppler_max_hz=5.0, rng=42).simulate_satellite_channel(chips, -5.0)
    c = SatelliteChannelSimulator(doppler_max_hz=5.0, rng=43).simulate_satellite_channel(chips, -5.0)
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)


def test_input_not_modified():
    chips = np.ones(100)
    out = SatelliteChannelSimulator(path_loss_db=6.0, rng=0).simulate_satellite_channel(chips, 0.0)
    assert np.all(chips == 1.0)
    assert out.shape == chips.shape


def test_degenerate_inputs():
    with pytest.raises(ConfigurationError):
        SatelliteChannelSimulator(path_loss_db=-1.0)
    with pytest.raises(ConfigurationError):
        SatelliteChannelSimulator(chip_rate=0)
    with pytest.raises(ConfigurationError):
        SatelliteChannelSimulator(doppler_max_hz=-5.0)
    with pytest.raises(InvalidInputError):
        SatelliteChannelSimulator().simulate_satellite_channel(np.array([]), 0.0)
    # Attenuation underflows to zero power: no noise level can be derived
    with pytest.raises(ComputationError):
        SatelliteChannelSimulator(path_loss_db=1e4).simulate_satellite_channel(np.ones(64), 0.0)
    with pytest.raises(ComputationError):
        SatelliteChannelSimulator().add_awgn(np.zeros(64), 10.0)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
