import numpy as np

from lorasat.errors import InvalidInputError


def _as_bits(bits, name="bits"):
    arr = np.asarray(bits)
    if arr.ndim != 1:
        raise InvalidInputError(f"{name} must be a 1-D sequence, got shape {arr.shape}")
    if arr.size and not np.all((arr == 0) | (arr == 1)):
        raise InvalidInputError(f"{name} must contain only 0 and 1")
    return arr.astype(np.uint8)


def bits_to_symbols(bits: np.ndarray) -> np.ndarray:
    """Antipodal BPSK mapping: 0 -> -1.0, 1 -> +1.0"""
    return 2.0 * _as_bits(bits).astype(float) - 1.0


def spread(bits: np.ndarray, pn_chips: np.ndarray, processing_gain: int) -> np.ndarray:
    """
    Spread BPSK symbols with the PN sequence.
    Bit i is multiplied by the antipodal chips pn_chips[i*PG:(i+1)*PG].
    Returns float array of length PG * len(bits).
    """
    symbols = bits_to_symbols(bits)
    chips = bits_to_symbols(_as_bits(pn_chips, "pn_chips"))
    if chips.size != symbols.size * processing_gain:
        raise InvalidInputError(
            f"Need {symbols.size * processing_gain} PN chips for {symbols.size} bits "
            f"at gain {processing_gain}, got {chips.size}")
    return np.repeat(symbols, processing_gain) * chips


def correlate(rx_chips: np.ndarray, pn_chips: np.ndarray, processing_gain: int) -> np.ndarray:
    """
    Normalized correlation of each PG-chip block against the matching PN block.
    Returns one value per bit: dot(block, pn_block) / PG.
    """
    rx = np.asarray(rx_chips, dtype=float)
    ref = bits_to_symbols(_as_bits(pn_chips, "pn_chips"))
    if rx.size == 0:
        raise InvalidInputError("Received chip block is empty")
    if rx.size != ref.size:
        raise InvalidInputError(f"PN slice length {ref.size} does not match received length {rx.size}")
    if rx.size % processing_gain:
        raise InvalidInputError(f"{rx.size} chips do not divide into blocks of {processing_gain}")
    blocks = (rx * ref).reshape(-1, processing_gain)
    return blocks.sum(axis=1) / processing_gain


def despread(rx_chips: np.ndarray, pn_chips: np.ndarray, processing_gain: int) -> np.ndarray:
    """Correlate and decide: bit = 1 iff correlation > 0 (strictly)."""
    return (correlate(rx_chips, pn_chips, processing_gain) > 0).astype(np.uint8)


class DSSSModem:
    """BPSK direct-sequence spreader/despreader for a fixed processing gain."""

    def __init__(self, processing_gain):
        if int(processing_gain) != processing_gain or processing_gain < 1:
            raise InvalidInputError(f"Processing gain must be a positive integer, got {processing_gain}")
        self.processing_gain = int(processing_gain)

    def spread(self, bits, pn_chips):
        return spread(bits, pn_chips, self.processing_gain)

    def despread(self, rx_chips, pn_chips):
        """
        Demodulate one packet. `pn_chips` must be the exact slice that spread
        this packet; any offset drives the error rate to ~50%.
        """
        return despread(rx_chips, pn_chips, self.processing_gain)
