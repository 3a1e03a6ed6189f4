import logging

import numpy as np

from lorasat.errors import ComputationError, ConfigurationError, InvalidInputError

CHIP_RATE = 10000  # chips/s
DOPPLER_SWEEP_HZ = 0.01  # rate of the sinusoidal Doppler sweep

logger = logging.getLogger("Channel")


class SatelliteChannelSimulator:
    """
    Simplified satellite channel for a real-valued chip stream:
    - Path loss (flat linear attenuation, not a propagation model)
    - Doppler: slow sinusoidal frequency sweep standing in for satellite motion
    - AWGN calibrated to a target SNR against the attenuated signal

    The Doppler stage keeps only the real part of exp(j*phase), so it acts as
    a cosine amplitude modulation rather than a phase rotation of a complex
    baseband signal. Output compatibility depends on this.

    All randomness comes from `rng` (a numpy Generator or a seed).
    """

    def __init__(self, chip_rate=CHIP_RATE, path_loss_db=0.0, doppler_max_hz=0.0,
                 doppler_sweep_hz=DOPPLER_SWEEP_HZ, rng=None):
        if chip_rate <= 0:
            raise ConfigurationError(f"Chip rate must be positive, got {chip_rate}")
        if path_loss_db < 0:
            raise ConfigurationError(f"Path loss must be non-negative, got {path_loss_db} dB")
        if doppler_max_hz < 0:
            raise ConfigurationError(f"Doppler maximum must be non-negative, got {doppler_max_hz} Hz")
        self.chip_rate = chip_rate
        self.path_loss_db = path_loss_db
        self.doppler_max_hz = doppler_max_hz
        self.doppler_sweep_hz = doppler_sweep_hz
        self.rng = np.random.default_rng(rng)

    def apply_path_loss(self, chips):
        """Multiply every chip by 10^(-PathLossDB/10)"""
        chips = np.asarray(chips, dtype=float)
        if chips.size == 0:
            raise InvalidInputError("Cannot transmit an empty chip block")
        return chips * 10 ** (-self.path_loss_db / 10)

    def doppler_profile(self, num_chips):
        """
        Doppler frequency f(t) = DopplerMax * sin(2*pi*0.01*t) and its
        running sum, on a time axis of one point per chip.
        """
        t = np.arange(num_chips) / self.chip_rate
        f_doppler = self.doppler_max_hz * np.sin(2 * np.pi * self.doppler_sweep_hz * t)
        return f_doppler, np.cumsum(f_doppler)

    def apply_doppler(self, chips):
        """Scale chips by Re{exp(j*2*pi*cumsum(f)/ChipRate)}"""
        chips = np.asarray(chips, dtype=float)
        _, phase = self.doppler_profile(chips.size)
        rotation = np.exp(1j * 2 * np.pi * phase / self.chip_rate)
        return chips * np.real(rotation)

    def noise_power(self, signal, snr_db):
        """Noise variance giving `snr_db` against the mean power of `signal`."""
        signal_power = np.mean(np.abs(signal) ** 2)
        if not np.isfinite(signal_power) or signal_power <= 0:
            raise ComputationError(
                f"Mean signal power is {signal_power}; cannot calibrate noise "
                f"(path loss {self.path_loss_db} dB)")

        # Work in dBm so the figures match a link budget printout
        signal_power_dbm = 10 * np.log10(signal_power / 1e-3)
        noise_power_dbm = signal_power_dbm - snr_db
        noise_power = 10 ** (noise_power_dbm / 10) * 1e-3
        if not np.isfinite(noise_power):
            raise ComputationError(f"Noise power overflow at SNR {snr_db} dB")
        return noise_power

    def add_awgn(self, signal, snr_db):
        """Add zero-mean Gaussian noise, drawn independently per chip, at the specified SNR"""
        signal = np.asarray(signal, dtype=float)
        noise_power = self.noise_power(signal, snr_db)
        logger.debug(f"AWGN: {signal.size} chips, SNR {snr_db} dB, noise variance {noise_power:.3e}")
        return signal + self.rng.normal(0, np.sqrt(noise_power), signal.size)

    def simulate_satellite_channel(self, tx_chips, snr_db):
        """
        Pass one packet through the channel: path loss -> Doppler -> AWGN.
        Returns a new array of the same length; the input is not modified.
        """
        attenuated = self.apply_path_loss(tx_chips)
        rotated = self.apply_doppler(attenuated)
        return self.add_awgn(rotated, snr_db)
