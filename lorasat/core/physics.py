import numpy as np
from scipy import special


def bpsk_ber(ebn0_db):
    """
    Theoretical BPSK bit error rate over AWGN.
    Pb = 0.5 * erfc(sqrt(Eb/N0))
    """
    ebn0 = 10 ** (np.asarray(ebn0_db, dtype=float) / 10)
    return 0.5 * special.erfc(np.sqrt(ebn0))


def chip_snr_to_ebn0(snr_db, processing_gain):
    """
    Per-chip SNR to per-bit Eb/N0 for the real-valued chip stream.

    Despreading sums PG chips coherently (Eb = PG * P_chip). The channel adds
    real noise of variance sigma^2 = P_chip / SNR, which is N0/2, so
    Eb/N0 = PG * SNR / 2.
    """
    return np.asarray(snr_db, dtype=float) + 10 * np.log10(processing_gain / 2.0)


def theoretical_dsss_ber(snr_db, processing_gain):
    """Expected BER of the despread link with no Doppler."""
    return bpsk_ber(chip_snr_to_ebn0(snr_db, processing_gain))
