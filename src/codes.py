import logging
from functools import lru_cache
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from numba import njit
from sympy import Poly
from sympy.abc import x
from sympy.polys.domains import GF

from gf2 import as_vector, identity, multiply, transpose, vec_mul, zeros
from gfield import GF16, GaloisField

log = logging.getLogger(__name__)

# g(x) coefficients, highest degree first: x^8 + x^7 + x^6 + x^4 + 1 = m1(x)*m3(x)
# for alpha a root of x^4 + x + 1 (read lowest-first: 1 + x + x^2 + x^4 + x^8).
BCH_15_7_GENERATOR = (1, 1, 1, 0, 1, 0, 0, 0, 1)


class CodeParameters(NamedTuple):
    n: int
    k: int
    t: int
    m: Optional[int] = None


HAMMING_15_11 = CodeParameters(n=15, k=11, t=1)
BCH_15_7 = CodeParameters(n=15, k=7, t=2, m=4)


# ----------------------------------------------------------------------------
# Shared construction helpers
# ----------------------------------------------------------------------------

def block_diagonal(M, L: int) -> np.ndarray:
    """
    Embed L copies of M along the diagonal of an otherwise zero matrix.

    Parameters
    ----------
    M
        r x c matrix for a single block.
    L
        Number of blocks, >= 1.

    Returns
    -------
    np.ndarray
        (L*r) x (L*c) matrix with no cross-block entries.
    """
    if L < 1:
        raise ValueError("number of blocks must be >= 1")
    small = np.asarray(M, dtype=np.uint8)
    r, c = small.shape
    big = zeros(r * L, c * L)
    for b in range(L):
        big[b * r:(b + 1) * r, b * c:(b + 1) * c] = small
    return big


def systematic_pair(parity: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """From the k x (n-k) parity block P return G = [I_k | P] and H = [P^T | I_{n-k}]."""
    k, r = parity.shape
    G = np.hstack([identity(k), parity]).astype(np.uint8)
    H = np.hstack([transpose(parity), identity(r)]).astype(np.uint8)
    return np.ascontiguousarray(G), np.ascontiguousarray(H)


def _freeze(M: np.ndarray) -> np.ndarray:
    M = np.ascontiguousarray(M, dtype=np.uint8)
    M.flags.writeable = False
    return M


# ----------------------------------------------------------------------------
# Linear block code interface
# ----------------------------------------------------------------------------

class LinearBlockCode:
    """
    Binary (n, k) linear block code with a systematic generator [I_k | P].

    Subclasses supply the matrices and a bounded-distance `decode_block`.
    """

    name = "linear"

    def __init__(self, params: CodeParameters, G: np.ndarray, H: np.ndarray):
        G = _freeze(G)
        H = _freeze(H)
        if G.shape != (params.k, params.n) or H.shape != (params.n - params.k, params.n):
            raise ValueError(f"matrix shapes G{G.shape}, H{H.shape} do not match {params}")
        if multiply(G, transpose(H)).any():
            raise ValueError("G * H^T is not zero; matrices do not describe the same code")

        self.params = params
        self.n, self.k, self.t = params.n, params.k, params.t
        self._G = G
        self._H = H
        log.info(f"{self.name}({self.n},{self.k}) ready, t={self.t}")

    @property
    def generator_matrix(self) -> np.ndarray:
        return self._G

    @property
    def parity_check_matrix(self) -> np.ndarray:
        return self._H

    @property
    def redundancy(self) -> int:
        return self.n - self.k

    @property
    def rate(self) -> float:
        return self.k / self.n

    @property
    def expansion(self) -> float:
        return self.n / self.k

    def syndrome(self, block) -> np.ndarray:
        return vec_mul(self._check_block(block), transpose(self._H))

    def encode_block(self, msg) -> np.ndarray:
        msg = as_vector(msg)
        if msg.shape[0] != self.k:
            raise ValueError(f"message block must have {self.k} bits, got {msg.shape[0]}")
        return vec_mul(msg, self._G)

    def decode_block(self, block) -> np.ndarray:
        """Return the corrected n-bit block (best effort beyond t errors)."""
        raise NotImplementedError

    def extract_message(self, block) -> np.ndarray:
        return as_vector(block)[:self.k]

    def _check_block(self, block) -> np.ndarray:
        block = as_vector(block)
        if block.shape[0] != self.n:
            raise ValueError(f"code block must have {self.n} bits, got {block.shape[0]}")
        return block

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n={self.n}, k={self.k}, t={self.t})"


# ----------------------------------------------------------------------------
# Hamming
# ----------------------------------------------------------------------------

def hamming_raw_parity_check(r: int) -> np.ndarray:
    """r x (2^r - 1) matrix whose column j is j+1 in binary, row i = bit i."""
    n = (1 << r) - 1
    H = zeros(r, n)
    for j in range(n):
        for i in range(r):
            H[i, j] = ((j + 1) >> i) & 1
    return H


def hamming_systematic_matrices(r: int = 4) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reduce the canonical Hamming parity-check matrix to [A | I_r].

    Columns n-r..n-1 are used as pivots; when a pivot column has no usable 1
    a message column is swapped in. Returns (G, H) with G = [I_k | A^T].
    """
    H = hamming_raw_parity_check(r)
    m, n = H.shape
    k = n - m

    for i in range(m):
        pivot_col = k + i
        pivot_row = -1
        for row in range(i, m):
            if H[row, pivot_col]:
                pivot_row = row
                break
        if pivot_row == -1:
            for c in range(k):
                rows = np.flatnonzero(H[i:, c])
                if rows.size:
                    H[:, [c, pivot_col]] = H[:, [pivot_col, c]]
                    pivot_row = i + int(rows[0])
                    break
        if pivot_row == -1:
            raise ValueError("parity-check matrix is rank deficient")
        if pivot_row != i:
            H[[i, pivot_row]] = H[[pivot_row, i]]
        for row in range(m):
            if row != i and H[row, pivot_col]:
                H[row] ^= H[i]

    G, H_sys = systematic_pair(transpose(H[:, :k]))
    return G, H_sys


@njit
def _hamming_correct_nb(block: np.ndarray, H: np.ndarray) -> np.ndarray:
    m, n = H.shape
    s = np.zeros(m, dtype=np.uint8)
    nonzero = False
    for i in range(m):
        acc = 0
        for j in range(n):
            if H[i, j] and block[j]:
                acc ^= 1
        s[i] = acc
        if acc:
            nonzero = True

    out = block.copy()
    if not nonzero:
        return out
    for j in range(n):
        match = True
        for i in range(m):
            if H[i, j] != s[i]:
                match = False
                break
        if match:
            out[j] ^= 1
            break
    return out


class HammingCode(LinearBlockCode):
    """
    Systematic Hamming(2^r - 1, 2^r - 1 - r) code, single-error correcting.

    A nonzero syndrome that matches no column of H leaves the block untouched.
    """

    name = "Hamming"

    def __init__(self, r: int = 4):
        if r < 2:
            raise ValueError("Hamming code needs at least 2 parity bits")
        n = (1 << r) - 1
        G, H = hamming_systematic_matrices(r)
        super().__init__(CodeParameters(n=n, k=n - r, t=1), G, H)

    def decode_block(self, block) -> np.ndarray:
        return _hamming_correct_nb(self._check_block(block), self._H)


# ----------------------------------------------------------------------------
# BCH
# ----------------------------------------------------------------------------

def bch_parity_bits(msg_bits: Sequence[int], g_poly: Poly, n: int, k: int) -> List[int]:
    """
    Parity of x^(n-k) * m(x) mod g(x), highest degree first, padded to n-k bits.

    Bit i of the message is the coefficient of x^(k-1-i).
    """
    shifted = Poly(list(msg_bits), x, domain=GF(2)) * Poly(x ** (n - k), x, domain=GF(2))
    remainder = shifted.rem(g_poly)
    coeffs = [int(c) % 2 for c in remainder.all_coeffs()]
    return [0] * (n - k - len(coeffs)) + coeffs


class BchCode(LinearBlockCode):
    """
    Double-error-correcting binary BCH(15,7) code.

    Position i of a block is the coefficient of x^(n-1-i). Decoding
    computes S1 = r(alpha), S3 = r(alpha^3) and solves the degree-2
    error-locator directly.
    """

    name = "BCH"

    def __init__(self, generator: Sequence[int] = BCH_15_7_GENERATOR,
                 params: CodeParameters = BCH_15_7, field: GaloisField = GF16):
        if params.n != field.order:
            raise ValueError(f"BCH length {params.n} must equal 2^m - 1 = {field.order}")
        if len(generator) - 1 != params.n - params.k:
            raise ValueError("generator degree must equal n - k")
        if params.t != 2:
            raise ValueError("only double-error-correcting BCH decoding is supported")

        self.field = field
        self.g_poly = Poly(list(generator), x, domain=GF(2))

        k, n = params.k, params.n
        parity = zeros(k, n - k)
        for i in range(k):
            unit = [0] * k
            unit[i] = 1
            parity[i] = bch_parity_bits(unit, self.g_poly, n, k)
        G, H = systematic_pair(parity)
        super().__init__(params, G, H)
        log.debug(f"BCH generator poly g(x): {self.g_poly.as_expr()}")

    def syndromes(self, block) -> Tuple[int, int]:
        """Field syndromes (S1, S3) of a received block."""
        r = self._check_block(block)
        gf = self.field
        s1 = s3 = 0
        for i in np.flatnonzero(r):
            e = self.n - 1 - int(i)
            s1 ^= gf.power(gf.alpha, e)
            s3 ^= gf.power(gf.alpha, 3 * e)
        return s1, s3

    def error_locations(self, s1: int, s3: int) -> List[int]:
        gf = self.field
        if s1 == 0:
            # s3 != 0 alone is beyond the decoder
            return []
        delta = s3 ^ gf.power(s1, 3)
        if delta == 0:
            return [self.n - 1 - int(gf.log[s1])]

        sigma1 = s1
        sigma2 = gf.divide(delta, s1)
        locations = []
        for j in range(gf.order):
            inv_x = int(gf.exp[(gf.order - j) % gf.order])
            value = 1 ^ gf.multiply(sigma1, inv_x) ^ gf.multiply(sigma2, gf.power(inv_x, 2))
            if value == 0:
                locations.append(self.n - 1 - j)
                if len(locations) == self.t:
                    break
        return locations

    def decode_block(self, block) -> np.ndarray:
        r = self._check_block(block)
        s1, s3 = self.syndromes(r)
        corrected = r.copy()
        if s1 == 0 and s3 == 0:
            return corrected
        for pos in self.error_locations(s1, s3):
            if 0 <= pos < self.n:
                corrected[pos] ^= 1
        return corrected


# ----------------------------------------------------------------------------
# Factory
# ----------------------------------------------------------------------------

CODE_FAMILIES = ("hamming", "bch")


@lru_cache(maxsize=None)
def _build_code(family: str) -> LinearBlockCode:
    if family == "hamming":
        return HammingCode()
    return BchCode()


def make_code(family: str) -> LinearBlockCode:
    """Return the shared Hamming(15,11) or BCH(15,7,2) code for `family`."""
    key = str(family).strip().lower()
    if key not in CODE_FAMILIES:
        raise ValueError(f"Unknown code family: {family!r} (expected one of {CODE_FAMILIES})")
    return _build_code(key)
