from typing import Iterable, Tuple

import numpy as np

from gf2 import as_vector
from utils import DEFAULT_ERROR_PROBABILITY, check_probability, split_blocks


def apply_errors(codeword, error_pattern) -> np.ndarray:
    """
    XOR an error pattern onto a codeword.

    Raises
    ------
    ValueError
        If the two vectors differ in length.
    """
    codeword = as_vector(codeword)
    error_pattern = as_vector(error_pattern)
    if codeword.shape != error_pattern.shape:
        raise ValueError("codeword and error pattern must have the same length")
    return codeword ^ error_pattern


def inject_block_errors(
    codeword,
    block_len: int,
    rng: np.random.Generator,
    p: float = DEFAULT_ERROR_PROBABILITY
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Flip one uniformly chosen bit in each block independently with probability p.

    Parameters
    ----------
    codeword
        N-bit vector, N a multiple of block_len.
    block_len
        Code length n.
    rng
        Numpy random Generator.
    p
        Per-block error probability.

    Returns
    -------
    noisy : np.ndarray
        codeword ^ error_pattern
    error_pattern : np.ndarray
        At most one set bit per block.
    """
    p = check_probability(p)
    blocks = split_blocks(as_vector(codeword), block_len).shape[0]
    hit = rng.random(blocks) < p
    offsets = rng.integers(0, block_len, size=blocks)

    error = np.zeros(blocks * block_len, dtype=np.uint8)
    positions = np.flatnonzero(hit) * block_len + offsets[hit]
    error[positions] = 1
    return apply_errors(codeword, error), error


def inject_exact_block_errors(
    codeword,
    block_len: int,
    weight: int,
    rng: np.random.Generator
) -> Tuple[np.ndarray, np.ndarray]:
    """Flip exactly `weight` distinct bits inside every block."""
    if not 0 <= weight <= block_len:
        raise ValueError(f"weight must lie in [0, {block_len}], got {weight}")
    blocks = split_blocks(as_vector(codeword), block_len).shape[0]
    error = np.zeros((blocks, block_len), dtype=np.uint8)
    for b in range(blocks):
        error[b, rng.choice(block_len, size=weight, replace=False)] = 1
    error = error.ravel()
    return apply_errors(codeword, error), error


def inject_errors_at(codeword, positions: Iterable[int]) -> np.ndarray:
    """Flip the listed coordinates (a repeated position flips twice)."""
    noisy = as_vector(codeword)
    for pos in positions:
        if not 0 <= pos < noisy.size:
            raise ValueError(f"error position {pos} outside codeword of length {noisy.size}")
        noisy[pos] ^= 1
    return noisy
