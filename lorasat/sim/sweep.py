"""
BER sweep driver for the DSSS satellite link.

One data record and one PN sequence are generated per sweep. For every SNR
point each packet is spread, sent through the channel, despread and compared
with the ground truth. Packets are mapped to (errors, total) pairs and
reduced per SNR point.
"""
import logging
import numbers
from collections import abc
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from lorasat.channel.simulator import DOPPLER_SWEEP_HZ, SatelliteChannelSimulator
from lorasat.core.modem import DSSSModem
from lorasat.core.physics import theoretical_dsss_ber
from lorasat.core.pn import GoldSequenceGenerator
from lorasat.errors import ComputationError, ConfigurationError, SweepStateError
from lorasat.utils.link_budget import LinkBudget, calculate_link_budget

logger = logging.getLogger("DSSS")


# ============================================================================
# Configuration
# ============================================================================
_INT_FIELDS = ('packet_size', 'num_packets', 'workers')


def _is_real(value):
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))


def _is_int(value):
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


@dataclass
class SimulationConfig:
    bit_rate: float = 100.0              # data bits/s
    chip_rate: float = 10000.0           # chips/s
    packet_size: int = 64                # bits per packet
    num_packets: int = 10
    snr_db: Sequence[float] = (-15.0, -5.0, 5.0)
    path_loss_db: float = 0.0
    doppler_max_hz: float = 0.0
    doppler_sweep_hz: float = DOPPLER_SWEEP_HZ
    target_ber: float = 1e-3
    workers: int = 1                     # SNR points evaluated concurrently

    # Link budget, reported once per sweep; does not touch the waveform
    carrier_freq_hz: float = 923e6
    altitude_m: float = 600e3
    tx_power_dbm: float = 23.0
    tx_gain_db: float = 3.0
    rx_gain_db: float = 10.0
    elevation_deg: Optional[float] = None   # None: satellite at zenith

    @classmethod
    def from_dict(cls, values):
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        values = dict(values)
        try:
            if 'snr_db' in values:
                if isinstance(values['snr_db'], (str, bytes)) or not isinstance(values['snr_db'], abc.Iterable):
                    raise ConfigurationError(f"SNR sweep must be a sequence of values, got {values['snr_db']!r}")
                values['snr_db'] = tuple(float(s) for s in values['snr_db'])
            for key, val in values.items():
                if isinstance(val, bool):
                    raise ConfigurationError(f"{key} must be numeric, got {val!r}")
                if key in _INT_FIELDS:
                    if not _is_int(val):
                        raise ConfigurationError(f"{key} must be an integer, got {val!r}")
                elif key != 'snr_db' and not (key == 'elevation_deg' and val is None):
                    values[key] = float(val)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from None
        return cls(**values)

    @property
    def processing_gain(self) -> int:
        for name in ('bit_rate', 'chip_rate'):
            value = getattr(self, name)
            if not _is_real(value) or not np.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive finite number, got {value!r}")
        ratio = self.chip_rate / self.bit_rate
        if ratio < 1 or not float(ratio).is_integer():
            raise ConfigurationError(
                f"chip_rate/bit_rate = {ratio} is not a positive integer processing gain")
        return int(ratio)

    @property
    def total_bits(self) -> int:
        return self.packet_size * self.num_packets

    def _finite(self, name):
        value = getattr(self, name)
        if not _is_real(value) or not np.isfinite(value):
            raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
        return value

    def validate(self):
        """Raise ConfigurationError on the first invalid parameter."""
        _ = self.processing_gain
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if not _is_int(value) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.snr_db, (str, bytes)) or not isinstance(self.snr_db, (abc.Sequence, np.ndarray)):
            raise ConfigurationError(f"SNR sweep must be a sequence of values, got {self.snr_db!r}")
        try:
            snrs = np.asarray(self.snr_db, dtype=float)
        except (TypeError, ValueError):
            raise ConfigurationError(f"SNR sweep must be numeric: {self.snr_db!r}") from None
        if snrs.ndim != 1:
            raise ConfigurationError(f"SNR sweep must be one-dimensional, got shape {snrs.shape}")
        if snrs.size == 0:
            raise ConfigurationError("SNR sweep is empty")
        if not np.all(np.isfinite(snrs)):
            raise ConfigurationError(f"SNR sweep contains non-finite values: {list(self.snr_db)}")
        if np.any(np.diff(snrs) <= 0):
            raise ConfigurationError(f"SNR sweep must be strictly ascending: {list(self.snr_db)}")
        if self._finite('path_loss_db') < 0:
            raise ConfigurationError(f"Path loss must be non-negative, got {self.path_loss_db} dB")
        if self._finite('doppler_max_hz') < 0:
            raise ConfigurationError(f"Doppler maximum must be non-negative, got {self.doppler_max_hz} Hz")
        if self._finite('doppler_sweep_hz') < 0:
            raise ConfigurationError(f"Doppler sweep rate must be non-negative, got {self.doppler_sweep_hz} Hz")
        if not 0 < self._finite('target_ber') < 0.5:
            raise ConfigurationError(f"Target BER must lie in (0, 0.5), got {self.target_ber}")
        if self._finite('carrier_freq_hz') <= 0:
            raise ConfigurationError(f"Carrier frequency must be positive, got {self.carrier_freq_hz} Hz")
        if self._finite('altitude_m') <= 0:
            raise ConfigurationError(f"Altitude must be positive, got {self.altitude_m} m")
        for name in ('tx_power_dbm', 'tx_gain_db', 'rx_gain_db'):
            self._finite(name)
        if self.elevation_deg is not None and not 0 < self._finite('elevation_deg') <= 90:
            raise ConfigurationError(f"Elevation must lie in (0, 90] degrees, got {self.elevation_deg}")
        return self


# ============================================================================
# Per-SNR accumulator
# ============================================================================
class PointState(Enum):
    PENDING = 0
    RUNNING = 1
    FINALIZED = 2


@dataclass
class SweepPoint:
    snr_db: float
    state: PointState = PointState.PENDING
    errors: int = 0
    total_bits: int = 0
    ber: Optional[float] = None

    def start(self):
        if self.state is not PointState.PENDING:
            raise SweepStateError(f"SNR {self.snr_db} dB: cannot start from {self.state.name}")
        self.errors = 0
        self.total_bits = 0
        self.state = PointState.RUNNING

    def accumulate(self, errors, total):
        if self.state is not PointState.RUNNING:
            raise SweepStateError(f"SNR {self.snr_db} dB: cannot accumulate while {self.state.name}")
        self.errors += int(errors)
        self.total_bits += int(total)

    def finalize(self):
        if self.state is not PointState.RUNNING:
            raise SweepStateError(f"SNR {self.snr_db} dB: cannot finalize from {self.state.name}")
        if self.total_bits == 0:
            raise ComputationError(f"SNR {self.snr_db} dB: no bits accumulated")
        self.ber = self.errors / self.total_bits
        self.state = PointState.FINALIZED
        return self.ber


# ============================================================================
# Target-BER crossing
# ============================================================================
def snr_at_ber(snr_db, ber, target=1e-3, floor=None):
    """
    SNR at which the BER curve first falls through `target`.

    Linear interpolation of log10(BER) between the two sweep points that
    bracket the crossing (ber[i] > target >= ber[i+1]). Zero BER values are
    raised to `floor` first (they have no logarithm); with no floor they
    cannot bracket a crossing. Returns None when the curve never crosses.
    """
    snr_db = np.asarray(snr_db, dtype=float)
    ber = np.asarray(ber, dtype=float)
    if floor is not None:
        ber = np.maximum(ber, floor)
    for i in range(len(ber) - 1):
        b0, b1 = ber[i], ber[i + 1]
        if b0 > target >= b1 and b1 > 0:
            frac = (np.log10(target) - np.log10(b0)) / (np.log10(b1) - np.log10(b0))
            return float(snr_db[i] + frac * (snr_db[i + 1] - snr_db[i]))
    return None


@dataclass
class SweepResult:
    snr_db: np.ndarray
    ber: np.ndarray
    errors: np.ndarray
    total_bits: np.ndarray
    processing_gain: int
    target_ber: float
    crossing_snr_db: Optional[float] = None
    link_budget: Optional[LinkBudget] = None
    points: List[SweepPoint] = field(default_factory=list)

    def theoretical_ber(self):
        return theoretical_dsss_ber(self.snr_db, self.processing_gain)


# ============================================================================
# Driver
# ============================================================================
class BERSweep:
    """
    Runs the spread -> channel -> despread chain over the SNR sweep.

    The data bits, PN sequence and spread waveform are built once here and
    are read-only afterwards. `rng` (Generator or seed) is the only source of
    randomness: it draws the data, then one child seed per SNR point, so a
    given seed yields the same BER array for any worker count.
    """

    def __init__(self, config: SimulationConfig, rng=None, pn_generator: GoldSequenceGenerator = None):
        self.config = config.validate()
        self.processing_gain = config.processing_gain
        self.rng = np.random.default_rng(rng)
        self.modem = DSSSModem(self.processing_gain)
        self.pn_generator = pn_generator if pn_generator is not None else GoldSequenceGenerator()

        self.data_bits = self.rng.integers(0, 2, config.total_bits, dtype=np.uint8)
        self.pn_sequence = self.pn_generator.generate(self.processing_gain * config.total_bits)
        self.tx_chips = self.modem.spread(self.data_bits, self.pn_sequence)
        for arr in (self.data_bits, self.pn_sequence, self.tx_chips):
            arr.setflags(write=False)

        # Child seeds drawn in SNR order, independent of scheduling
        self._point_seeds = [np.random.SeedSequence(self.rng.integers(0, 2**32, size=4))
                             for _ in config.snr_db]

    def packet_bounds(self, packet_index) -> Tuple[slice, slice]:
        """(bit slice, chip slice) of packet `packet_index` in the global record."""
        ps, pg = self.config.packet_size, self.processing_gain
        bits = slice(packet_index * ps, (packet_index + 1) * ps)
        chips = slice(bits.start * pg, bits.stop * pg)
        return bits, chips

    def make_channel(self, rng):
        return SatelliteChannelSimulator(chip_rate=self.config.chip_rate,
                                         path_loss_db=self.config.path_loss_db,
                                         doppler_max_hz=self.config.doppler_max_hz,
                                         doppler_sweep_hz=self.config.doppler_sweep_hz,
                                         rng=rng)

    def packet_errors(self, packet_index, snr_db, channel) -> Tuple[int, int]:
        """Map step: one packet at one SNR -> (bit errors, bits sent)."""
        bits, chips = self.packet_bounds(packet_index)
        rx = channel.simulate_satellite_channel(self.tx_chips[chips], snr_db)
        decided = self.modem.despread(rx, self.pn_sequence[chips])
        sent = self.data_bits[bits]
        return int(np.count_nonzero(decided != sent)), sent.size

    def run_point(self, index) -> SweepPoint:
        """Evaluate SNR point `index` over every packet."""
        snr = float(self.config.snr_db[index])
        point = SweepPoint(snr)
        channel = self.make_channel(np.random.default_rng(self._point_seeds[index]))

        point.start()
        for k in range(self.config.num_packets):
            point.accumulate(*self.packet_errors(k, snr, channel))
        point.finalize()

        logger.info(f"SNR {snr:6.1f} dB | errors {point.errors:6d} / {point.total_bits:6d} | BER {point.ber:.3e}")
        return point

    def run(self) -> SweepResult:
        cfg = self.config
        logger.info(f"BER sweep: PG={self.processing_gain}, {cfg.num_packets} packets x {cfg.packet_size} bits, "
                    f"{len(cfg.snr_db)} SNR points, {cfg.workers} worker(s)")

        indices = range(len(cfg.snr_db))
        if cfg.workers > 1:
            with ThreadPoolExecutor(max_workers=cfg.workers) as pool:
                points = list(pool.map(self.run_point, indices))
        else:
            points = [self.run_point(i) for i in indices]

        ber = np.array([p.ber for p in points])
        if not np.all(np.isfinite(ber)):
            raise ComputationError(f"Non-finite BER in sweep: {ber}")

        # Zero-error points are floored at half a bit error
        floor = 0.5 / cfg.total_bits
        crossing = snr_at_ber(cfg.snr_db, ber, cfg.target_ber, floor=floor)
        if crossing is not None:
            logger.info(f"BER crosses {cfg.target_ber:.0e} at {crossing:.2f} dB")
        else:
            logger.info(f"BER does not cross {cfg.target_ber:.0e} inside the sweep")

        link_budget = calculate_link_budget(cfg.carrier_freq_hz, cfg.altitude_m, cfg.tx_power_dbm,
                                            cfg.tx_gain_db, cfg.rx_gain_db, elevation_deg=cfg.elevation_deg)
        logger.info(f"Link budget at {cfg.carrier_freq_hz / 1e6:.1f} MHz: FSPL {link_budget.fspl_db:.2f} dB, "
                    f"received {link_budget.rx_power_dbm:.2f} dBm")

        return SweepResult(snr_db=np.asarray(cfg.snr_db, dtype=float),
                           ber=ber,
                           errors=np.array([p.errors for p in points]),
                           total_bits=np.array([p.total_bits for p in points]),
                           processing_gain=self.processing_gain,
                           target_ber=cfg.target_ber,
                           crossing_snr_db=crossing,
                           link_budget=link_budget,
                           points=points)
