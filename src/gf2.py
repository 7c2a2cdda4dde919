import numpy as np
from numba import njit


class SingularMatrixError(ValueError):
    """Raised when Gauss-Jordan elimination finds no pivot in some column."""


# ----------------------------------------------------------------------------
# numba kernels (operate on contiguous uint8 arrays)
# ----------------------------------------------------------------------------

@njit
def _matmul_nb(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    rows, inner = A.shape
    cols = B.shape[1]
    out = np.zeros((rows, cols), dtype=np.uint8)
    for i in range(rows):
        for k in range(inner):
            if A[i, k]:
                for j in range(cols):
                    out[i, j] ^= B[k, j]
    return out


@njit
def _vecmul_nb(v: np.ndarray, M: np.ndarray) -> np.ndarray:
    rows, cols = M.shape
    out = np.zeros(cols, dtype=np.uint8)
    for i in range(rows):
        if v[i]:
            for j in range(cols):
                out[j] ^= M[i, j]
    return out


@njit
def _invert_nb(A: np.ndarray):
    n = A.shape[0]
    M = A.copy()
    inv = np.zeros((n, n), dtype=np.uint8)
    for i in range(n):
        inv[i, i] = 1

    for col in range(n):
        pivot = -1
        for r in range(col, n):
            if M[r, col]:
                pivot = r
                break
        if pivot == -1:
            return False, inv
        if pivot != col:
            for j in range(n):
                tmp = M[col, j]
                M[col, j] = M[pivot, j]
                M[pivot, j] = tmp
                tmp = inv[col, j]
                inv[col, j] = inv[pivot, j]
                inv[pivot, j] = tmp
        for r in range(n):
            if r != col and M[r, col]:
                for j in range(n):
                    M[r, j] ^= M[col, j]
                    inv[r, j] ^= inv[col, j]
    return True, inv


# ----------------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------------

def as_matrix(M) -> np.ndarray:
    """Copy any 2-D 0/1 array-like into a contiguous uint8 matrix."""
    arr = np.array(M, dtype=np.uint8, copy=True)
    if arr.ndim != 2:
        raise ValueError(f"expected a 2-D matrix, got shape {arr.shape}")
    return np.ascontiguousarray(arr)


def as_vector(v) -> np.ndarray:
    """Copy any 1-D 0/1 array-like into a contiguous uint8 vector."""
    arr = np.array(v, dtype=np.uint8, copy=True)
    if arr.ndim != 1:
        raise ValueError(f"expected a 1-D vector, got shape {arr.shape}")
    return np.ascontiguousarray(arr)


def identity(n: int) -> np.ndarray:
    if n < 1:
        raise ValueError("identity size must be >= 1")
    return np.eye(n, dtype=np.uint8)


def zeros(rows: int, cols: int) -> np.ndarray:
    return np.zeros((rows, cols), dtype=np.uint8)


def transpose(M) -> np.ndarray:
    return np.ascontiguousarray(as_matrix(M).T)


def multiply(A, B) -> np.ndarray:
    """
    GF(2) matrix product A·B (AND then XOR-reduce).

    Raises
    ------
    ValueError
        If A.cols != B.rows.
    """
    A = as_matrix(A)
    B = as_matrix(B)
    if A.shape[1] != B.shape[0]:
        raise ValueError(f"cannot multiply {A.shape} by {B.shape} over GF(2)")
    return _matmul_nb(A, B)


def vec_mul(v, M) -> np.ndarray:
    """
    Row vector times matrix over GF(2): returns v·M.

    Raises
    ------
    ValueError
        If len(v) != M.rows.
    """
    v = as_vector(v)
    M = as_matrix(M)
    if v.shape[0] != M.shape[0]:
        raise ValueError(f"vector of length {v.shape[0]} does not match matrix {M.shape}")
    return _vecmul_nb(v, M)


def invert(A) -> np.ndarray:
    """
    Invert a square GF(2) matrix by Gauss-Jordan elimination against the identity.

    Raises
    ------
    ValueError
        If A is not square.
    SingularMatrixError
        If some column has no pivot. No partial result is returned.
    """
    A = as_matrix(A)
    if A.shape[0] != A.shape[1]:
        raise ValueError(f"only square matrices are invertible, got {A.shape}")
    ok, inv = _invert_nb(A)
    if not ok:
        raise SingularMatrixError(f"{A.shape[0]}x{A.shape[0]} matrix is not invertible over GF(2)")
    return inv


def is_invertible(A) -> bool:
    try:
        invert(A)
    except SingularMatrixError:
        return False
    return True
