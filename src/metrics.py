from typing import Sequence, Tuple

import numpy as np
from scipy.stats import binomtest


def bit_error_rate(
    tx_bits: Sequence[int],
    rx_bits: Sequence[int]
) -> float:
    """
    Compute the Bit Error Rate (BER) between original and decoded bit sequences.

    Parameters
    ----------
    tx_bits
        Original bit sequence (0/1).
    rx_bits
        Decoded bit sequence (0/1), same length as tx_bits.

    Returns
    -------
    ber : float
        Ratio of bit errors to total bits.

    Raises
    ------
    ValueError
        If tx_bits and rx_bits lengths differ.
    """
    if len(tx_bits) != len(rx_bits):
        raise ValueError("tx_bits and rx_bits must have the same length")
    errors = np.count_nonzero(np.asarray(tx_bits) != np.asarray(rx_bits))
    return errors / len(tx_bits)


def success_rate(successes: int, trials: int) -> float:
    if trials < 1:
        raise ValueError("trials must be >= 1")
    if not 0 <= successes <= trials:
        raise ValueError("successes must lie in [0, trials]")
    return successes / trials


def success_interval(
    successes: int,
    trials: int,
    confidence: float = 0.95
) -> Tuple[float, float]:
    """
    Exact (Clopper-Pearson) confidence interval of a success rate.

    Parameters
    ----------
    successes
        Number of decoded messages equal to the original.
    trials
        Number of trials run.
    confidence
        Two-sided confidence level.

    Returns
    -------
    (low, high) : tuple of float
    """
    success_rate(successes, trials)
    ci = binomtest(successes, trials).proportion_ci(confidence_level=confidence, method="exact")
    return float(ci.low), float(ci.high)


def expansion_ratio(codeword_bits: int, message_bits: int) -> float:
    """Ciphertext expansion N/K."""
    if codeword_bits < 1 or message_bits < 1:
        raise ValueError("bit counts must be >= 1")
    return codeword_bits / message_bits
