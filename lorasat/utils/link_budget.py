from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import constants

from lorasat.channel.atmosphere import EARTH_RADIUS_M, slant_range
from lorasat.errors import InvalidInputError

FADE_MARGIN_DB = 10.0  # margin kept between received power and recommended sensitivity


@dataclass
class LinkBudget:
    frequency_hz: float
    distance_m: float
    wavelength_m: float
    fspl_db: float
    rx_power_dbm: float
    recommended_sensitivity_dbm: float
    link_margin_db: Optional[float] = None  # only when a receiver sensitivity is given


def free_space_path_loss(distance_m, frequency_hz):
    """
    FSPL = 20*log10(4*pi*d / lambda)
    """
    distance_m = np.asarray(distance_m, dtype=float)
    if np.any(distance_m <= 0) or frequency_hz <= 0:
        raise InvalidInputError(f"Distance and frequency must be positive (d={distance_m}, f={frequency_hz})")
    wavelength = constants.c / frequency_hz
    return 20 * np.log10(4 * np.pi * distance_m / wavelength)


def calculate_link_budget(frequency_hz, altitude_m, tx_power_dbm, tx_gain_db=0.0, rx_gain_db=0.0,
                          elevation_deg=None, extra_loss_db=0.0, sensitivity_dbm=None,
                          fade_margin_db=FADE_MARGIN_DB, earth_radius_m=EARTH_RADIUS_M):
    """
    Downlink budget for a satellite at `altitude_m`.

    With no elevation the satellite is at zenith and the distance is the
    altitude; otherwise the slant range is used. `extra_loss_db` carries
    atmospheric losses from lorasat.channel.atmosphere.

    Received power = Ptx + Gtx + Grx - FSPL - extra losses.
    Recommended sensitivity = received power - fade margin.
    """
    if altitude_m <= 0:
        raise InvalidInputError(f"Altitude must be positive, got {altitude_m} m")
    if elevation_deg is None:
        distance = float(altitude_m)
    else:
        distance = float(slant_range(altitude_m, elevation_deg, earth_radius_m))

    fspl = float(free_space_path_loss(distance, frequency_hz))
    rx_power = tx_power_dbm + tx_gain_db + rx_gain_db - fspl - extra_loss_db
    margin = None if sensitivity_dbm is None else rx_power - sensitivity_dbm

    return LinkBudget(frequency_hz=frequency_hz,
                      distance_m=distance,
                      wavelength_m=constants.c / frequency_hz,
                      fspl_db=fspl,
                      rx_power_dbm=rx_power,
                      recommended_sensitivity_dbm=rx_power - fade_margin_db,
                      link_margin_db=margin)
