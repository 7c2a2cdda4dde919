import logging
from typing import NamedTuple, Tuple

import numpy as np

from codes import LinearBlockCode, block_diagonal
from gf2 import SingularMatrixError, identity, invert, multiply, transpose
from utils import MAX_KEYGEN_ATTEMPTS, as_rng

log = logging.getLogger(__name__)

SCRAMBLERS = ("row_ops", "dense")


class KeyGenerationError(RuntimeError):
    """Raised when no invertible scrambler was found within the retry budget."""


class KeyPair(NamedTuple):
    code: LinearBlockCode
    blocks: int
    S: np.ndarray
    S_inv: np.ndarray
    perm: np.ndarray
    P: np.ndarray
    P_inv: np.ndarray
    G_pub: np.ndarray

    @property
    def K(self) -> int:
        return self.blocks * self.code.k

    @property
    def N(self) -> int:
        return self.blocks * self.code.n

    @property
    def expansion(self) -> float:
        return self.N / self.K


# ----------------------------------------------------------------------------
# Scrambling matrix S
# ----------------------------------------------------------------------------

def random_invertible(
    size: int,
    rng=None,
    max_attempts: int = MAX_KEYGEN_ATTEMPTS,
    row_ops: int = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Random invertible GF(2) matrix built from row additions on the identity.

    Parameters
    ----------
    size
        Matrix dimension K.
    rng
        Seed or numpy Generator.
    max_attempts
        Candidates to try before giving up.
    row_ops
        Row additions per candidate, 2*size when omitted.

    Returns
    -------
    (S, S_inv)

    Raises
    ------
    KeyGenerationError
        If every candidate was singular.
    """
    if size < 1:
        raise ValueError("matrix size must be >= 1")
    rng = as_rng(rng)
    ops = 2 * size if row_ops is None else row_ops

    for attempt in range(1, max_attempts + 1):
        S = identity(size)
        if size > 1:
            for _ in range(ops):
                dst = int(rng.integers(0, size))
                src = (dst + int(rng.integers(1, size))) % size
                S[dst] ^= S[src]
        try:
            return S, invert(S)
        except SingularMatrixError:
            log.debug(f"row-op scrambler attempt {attempt} singular, retrying")
    raise KeyGenerationError(f"no invertible {size}x{size} matrix after {max_attempts} attempts")


def random_dense_invertible(
    size: int,
    rng=None,
    max_attempts: int = MAX_KEYGEN_ATTEMPTS
) -> Tuple[np.ndarray, np.ndarray]:
    """Uniformly random 0/1 matrix, redrawn until invertible. Returns (S, S_inv)."""
    if size < 1:
        raise ValueError("matrix size must be >= 1")
    rng = as_rng(rng)
    for attempt in range(1, max_attempts + 1):
        S = rng.integers(0, 2, size=(size, size), dtype=np.uint8)
        try:
            return S, invert(S)
        except SingularMatrixError:
            log.debug(f"dense scrambler attempt {attempt} singular, retrying")
    raise KeyGenerationError(f"no invertible {size}x{size} matrix after {max_attempts} attempts")


# ----------------------------------------------------------------------------
# Permutation P
# ----------------------------------------------------------------------------

def random_permutation(size: int, rng=None) -> np.ndarray:
    """Fisher-Yates shuffle of 0..size-1."""
    if size < 1:
        raise ValueError("permutation size must be >= 1")
    rng = as_rng(rng)
    perm = np.arange(size)
    for i in range(size - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        perm[i], perm[j] = perm[j], perm[i]
    return perm


def permutation_matrix(perm) -> np.ndarray:
    """Row i holds a single 1 in column perm[i]."""
    perm = np.asarray(perm, dtype=np.int64)
    size = perm.size
    if size == 0 or not np.array_equal(np.sort(perm), np.arange(size)):
        raise ValueError("perm must be a permutation of 0..size-1")
    P = np.zeros((size, size), dtype=np.uint8)
    P[np.arange(size), perm] = 1
    return P


# ----------------------------------------------------------------------------
# Public key
# ----------------------------------------------------------------------------

def compose_public_key(S, G_blockdiag, P) -> np.ndarray:
    """G_pub = S * G * P."""
    return multiply(multiply(S, G_blockdiag), P)


def generate_keys(
    code: LinearBlockCode,
    blocks: int,
    rng=None,
    permute: bool = True,
    scrambler: str = "row_ops",
    max_attempts: int = MAX_KEYGEN_ATTEMPTS
) -> KeyPair:
    """
    Build key material for `blocks` copies of `code`.

    With permute=False the permutation is the identity, so every block's
    errors stay inside that block.
    """
    if blocks < 1:
        raise ValueError("number of blocks must be >= 1")
    if scrambler not in SCRAMBLERS:
        raise ValueError(f"Unknown scrambler: {scrambler!r} (expected one of {SCRAMBLERS})")
    rng = as_rng(rng)
    K = blocks * code.k
    N = blocks * code.n

    if scrambler == "dense":
        S, S_inv = random_dense_invertible(K, rng, max_attempts)
    else:
        S, S_inv = random_invertible(K, rng, max_attempts)

    perm = random_permutation(N, rng) if permute else np.arange(N)
    P = permutation_matrix(perm)
    G_pub = compose_public_key(S, block_diagonal(code.generator_matrix, blocks), P)

    log.info(f"Keys for {code.name}({code.n},{code.k}) x{blocks}: K={K}, N={N}, "
             f"scrambler={scrambler}, permute={permute}")
    return KeyPair(code, blocks, S, S_inv, perm, P, transpose(P), G_pub)
