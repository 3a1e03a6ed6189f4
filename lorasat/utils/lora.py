import math

from lorasat.errors import InvalidInputError

# Measured SX1272 sensitivity (dBm) per SF at BW 125 / 250 / 500 kHz
# Bor et al., "Do LoRa low-power wide-area networks scale?", MSWiM 2016, Table 1
SENSITIVITY_DBM = {
    7: {125: -126.5, 250: -124.25, 500: -120.75},
    8: {125: -127.25, 250: -126.75, 500: -124.0},
    9: {125: -131.25, 250: -128.25, 500: -127.5},
    10: {125: -132.75, 250: -130.25, 500: -128.75},
    11: {125: -134.5, 250: -132.75, 500: -128.75},
    12: {125: -133.25, 250: -132.25, 500: -132.25},
}


def sensitivity_dbm(sf, bw_khz=125):
    try:
        return SENSITIVITY_DBM[sf][bw_khz]
    except KeyError:
        raise InvalidInputError(f"No sensitivity figure for SF{sf} at {bw_khz} kHz") from None


def time_on_air(sf, payload_bytes, bw_hz=125e3, cr=1, preamble_symbols=8, explicit_header=True,
                crc=True, low_dr_optimize=None):
    """
    LoRa packet airtime in seconds (Semtech SX127x datasheet formula).

    cr is the coding-rate index 1..4 (4/5..4/8). Low data rate optimisation
    defaults on for SF11/SF12 at 125 kHz.
    """
    if sf not in SENSITIVITY_DBM:
        raise InvalidInputError(f"Spreading factor must be 7..12, got {sf}")
    if not 1 <= cr <= 4:
        raise InvalidInputError(f"Coding rate index must be 1..4, got {cr}")
    if payload_bytes < 0:
        raise InvalidInputError(f"Payload must be non-negative, got {payload_bytes}")
    if low_dr_optimize is None:
        low_dr_optimize = bw_hz == 125e3 and sf >= 11

    t_sym = 2.0 ** sf / bw_hz
    t_preamble = (preamble_symbols + 4.25) * t_sym

    h = 0 if explicit_header else 1
    de = 1 if low_dr_optimize else 0
    num = 8 * payload_bytes - 4 * sf + 28 + (16 if crc else 0) - 20 * h
    payload_symbols = 8 + max(math.ceil(num / (4.0 * (sf - 2 * de))) * (cr + 4), 0)
    return t_preamble + payload_symbols * t_sym
