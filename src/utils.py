from typing import Sequence

import numpy as np

# ----------------------------------------------------------------------------
# Simulation defaults
# ----------------------------------------------------------------------------
DEFAULT_ERROR_PROBABILITY = 0.5   # chance that a block receives one bit flip
DEFAULT_TRIALS = 1000
DEFAULT_BLOCKS = (10, 20)
DEFAULT_FAMILIES = ("hamming", "bch")
DEFAULT_CHUNK_SIZE = 250          # trials per independently seeded work unit
MAX_KEYGEN_ATTEMPTS = 500


def as_rng(rng=None) -> np.random.Generator:
    """
    Normalise a seed, SeedSequence or Generator into a numpy Generator.
    A Generator is returned unchanged so callers can share one stream.
    """
    return np.random.default_rng(rng)


def random_bits(size: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform random 0/1 vector of the given length."""
    if size < 1:
        raise ValueError("bit vector length must be >= 1")
    return rng.integers(0, 2, size=size, dtype=np.uint8)


def check_probability(p: float) -> float:
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"error probability must lie in [0, 1], got {p}")
    return float(p)


def split_blocks(vec: np.ndarray, block_len: int) -> np.ndarray:
    """
    View a flat vector as rows of `block_len` coordinates.

    Raises
    ------
    ValueError
        If the vector length is not a multiple of block_len.
    """
    vec = np.asarray(vec, dtype=np.uint8)
    if block_len < 1 or vec.ndim != 1 or vec.size % block_len:
        raise ValueError(f"vector of length {vec.size} cannot be split into blocks of {block_len}")
    return vec.reshape(-1, block_len)


def bits_to_str(bits: Sequence[int]) -> str:
    return " ".join(str(int(b)) for b in bits)


def as_seed_sequence(seed=None) -> np.random.SeedSequence:
    """Wrap an int/None seed in a SeedSequence; SeedSequences pass through."""
    if isinstance(seed, np.random.SeedSequence):
        return seed
    return np.random.SeedSequence(seed)
