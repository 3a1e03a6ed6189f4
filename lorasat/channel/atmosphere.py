"""
Closed-form attenuation terms for an Earth-space link.

These are simplified slant-path approximations with fixed coefficients, not
the ITU-R procedures. Every coefficient is an argument so frequency-specific
values can be swapped without touching the formulas.
"""
from dataclasses import dataclass

import numpy as np

from lorasat.errors import InvalidInputError

EARTH_RADIUS_M = 6371e3
RAIN_HEIGHT_KM = 3.0
CLOUD_COEFF_DB_PER_KG_M2 = 0.0008   # specific cloud attenuation near 1 GHz
GAS_ZENITH_DB = 0.04                 # oxygen + water vapour at zenith, sub-GHz
SCINTILLATION_SIGMA_DB = 0.2


@dataclass(frozen=True)
class RainCoefficients:
    """Power-law specific attenuation gamma = k * R^alpha (dB/km)"""
    k: float
    alpha: float


RAIN_COEFFS_1GHZ = RainCoefficients(k=0.0000387, alpha=0.912)


def _elevation_rad(elevation_deg):
    el = np.asarray(elevation_deg, dtype=float)
    if np.any(el <= 0) or np.any(el > 90):
        raise InvalidInputError(f"Elevation must lie in (0, 90] degrees, got {elevation_deg}")
    return np.radians(el)


def slant_range(altitude_m, elevation_deg, earth_radius_m=EARTH_RADIUS_M):
    """Ground-to-satellite distance for a spherical Earth."""
    el = _elevation_rad(elevation_deg)
    r = earth_radius_m + altitude_m
    return np.sqrt(r ** 2 - (earth_radius_m * np.cos(el)) ** 2) - earth_radius_m * np.sin(el)


def rain_attenuation(rain_rate_mm_h, elevation_deg, coeffs=RAIN_COEFFS_1GHZ, rain_height_km=RAIN_HEIGHT_KM):
    el = _elevation_rad(elevation_deg)
    gamma = coeffs.k * np.asarray(rain_rate_mm_h, dtype=float) ** coeffs.alpha
    return gamma * rain_height_km / np.sin(el)


def cloud_attenuation(liquid_water_kg_m2, elevation_deg, coeff=CLOUD_COEFF_DB_PER_KG_M2):
    el = _elevation_rad(elevation_deg)
    return coeff * np.asarray(liquid_water_kg_m2, dtype=float) / np.sin(el)


def gas_attenuation(elevation_deg, zenith_db=GAS_ZENITH_DB):
    return zenith_db / np.sin(_elevation_rad(elevation_deg))


def scintillation_fade(elevation_deg, sigma_db=SCINTILLATION_SIGMA_DB):
    # Grows as sin(el)^-1.2 toward the horizon
    return sigma_db / np.sin(_elevation_rad(elevation_deg)) ** 1.2


def total_atmospheric_attenuation(elevation_deg, rain_rate_mm_h=0.0, liquid_water_kg_m2=0.0,
                                  rain_coeffs=RAIN_COEFFS_1GHZ):
    """
    A = A_gas + sqrt((A_rain + A_cloud)^2 + A_scint^2)
    """
    a_rain = rain_attenuation(rain_rate_mm_h, elevation_deg, rain_coeffs)
    a_cloud = cloud_attenuation(liquid_water_kg_m2, elevation_deg)
    a_gas = gas_attenuation(elevation_deg)
    a_scint = scintillation_fade(elevation_deg)
    return a_gas + np.sqrt((a_rain + a_cloud) ** 2 + a_scint ** 2)
