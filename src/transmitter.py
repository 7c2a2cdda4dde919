import numpy as np

from channel import inject_block_errors
from gf2 import as_vector, vec_mul
from keygen import KeyPair
from utils import DEFAULT_ERROR_PROBABILITY, random_bits


def generate_message(keys: KeyPair, rng: np.random.Generator) -> np.ndarray:
    """Random K-bit plaintext for the given key material."""
    return random_bits(keys.K, rng)


def encode(message, keys: KeyPair) -> np.ndarray:
    """
    Map a K-bit message to an N-bit codeword through the public generator.

    Raises
    ------
    ValueError
        If the message length differs from K.
    """
    message = as_vector(message)
    if message.shape[0] != keys.K:
        raise ValueError(f"message must have {keys.K} bits, got {message.shape[0]}")
    return vec_mul(message, keys.G_pub)


def encrypt(
    message,
    keys: KeyPair,
    rng: np.random.Generator,
    p: float = DEFAULT_ERROR_PROBABILITY
) -> np.ndarray:
    """Encode, then flip at most one bit per n-bit block with probability p."""
    noisy, _ = inject_block_errors(encode(message, keys), keys.code.n, rng, p)
    return noisy
