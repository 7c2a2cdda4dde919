import logging

import numpy as np

log = logging.getLogger(__name__)

# x^4 + x + 1 = 10011b
PRIMITIVE_POLY_GF16 = 19


class GaloisField:
    """
    GF(2^m) arithmetic over log/antilog tables built from a primitive polynomial.

    Elements are ints in [0, 2^m). The primitive element alpha is 2 (the
    polynomial x). `exp` holds 2*(2^m - 1) entries so that sums of two logs
    index it directly; `log[0]` is the sentinel -1. Both tables are read-only
    once the instance exists.
    """

    def __init__(self, m: int = 4, primitive_poly: int = PRIMITIVE_POLY_GF16):
        if m < 2:
            raise ValueError("field degree m must be >= 2")
        if primitive_poly >> m != 1:
            raise ValueError(f"primitive polynomial {primitive_poly} does not have degree {m}")

        self.m = m
        self.size = 1 << m
        self.order = self.size - 1
        self.primitive_poly = primitive_poly

        exp = np.zeros(2 * self.order, dtype=np.int64)
        logt = np.full(self.size, -1, dtype=np.int64)
        x = 1
        for i in range(self.order):
            if logt[x] != -1:
                raise ValueError(f"polynomial {primitive_poly} is not primitive for m={m}")
            exp[i] = x
            logt[x] = i
            x <<= 1
            if x & self.size:
                x ^= primitive_poly
        exp[self.order:] = exp[:self.order]

        exp.flags.writeable = False
        logt.flags.writeable = False
        self.exp = exp
        self.log = logt
        log.debug(f"Built GF(2^{m}) tables from primitive poly {primitive_poly}")

    @property
    def alpha(self) -> int:
        return int(self.exp[1])

    @staticmethod
    def add(a: int, b: int) -> int:
        return a ^ b

    def multiply(self, a: int, b: int) -> int:
        if a == 0 or b == 0:
            return 0
        return int(self.exp[(self.log[a] + self.log[b]) % self.order])

    def divide(self, a: int, b: int) -> int:
        if b == 0:
            raise ZeroDivisionError("division by zero in GF(2^m)")
        if a == 0:
            return 0
        return int(self.exp[(self.log[a] - self.log[b]) % self.order])

    def inverse(self, a: int) -> int:
        return self.divide(1, a)

    def power(self, a: int, n: int) -> int:
        """a**n; negative exponents are reduced into [0, 2^m - 2]."""
        if n == 0:
            return 1
        if a == 0:
            if n < 0:
                raise ZeroDivisionError("zero has no negative powers")
            return 0
        return int(self.exp[(self.log[a] * n) % self.order])

    def __repr__(self) -> str:
        return f"GaloisField(m={self.m}, primitive_poly={self.primitive_poly})"


# Shared GF(16) used by the BCH(15,7) decoder; built once at import.
GF16 = GaloisField(4, PRIMITIVE_POLY_GF16)
