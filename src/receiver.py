import numpy as np

from codes import LinearBlockCode
from gf2 import as_vector, vec_mul
from keygen import KeyPair
from utils import split_blocks


def undo_permutation(ciphertext, keys: KeyPair) -> np.ndarray:
    """c' = c * P^T."""
    ciphertext = as_vector(ciphertext)
    if ciphertext.shape[0] != keys.N:
        raise ValueError(f"ciphertext must have {keys.N} bits, got {ciphertext.shape[0]}")
    return vec_mul(ciphertext, keys.P_inv)


def decode_blocks(codeword, code: LinearBlockCode) -> np.ndarray:
    """
    Correct each n-bit block independently and concatenate the k message bits.
    Blocks beyond the correction radius come back as the decoder's best guess.
    """
    parts = [code.extract_message(code.decode_block(block))
             for block in split_blocks(codeword, code.n)]
    return np.concatenate(parts)


def decode(ciphertext, keys: KeyPair) -> np.ndarray:
    """Recover the message estimate: undo P, bounded-distance decode, undo S."""
    scrambled = decode_blocks(undo_permutation(ciphertext, keys), keys.code)
    return vec_mul(scrambled, keys.S_inv)
