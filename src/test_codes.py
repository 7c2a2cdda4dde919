import itertools

import galois
import numpy as np
import pytest

from codes import (
    BCH_15_7,
    HAMMING_15_11,
    BchCode,
    HammingCode,
    block_diagonal,
    hamming_raw_parity_check,
    make_code,
)
from gf2 import identity, multiply, transpose
from gfield import GF16, GaloisField

GF16_REF = galois.GF(2**4, irreducible_poly=19)


# -------------------------------------------------------------------------
# GF(2^4) tables
# -------------------------------------------------------------------------

def test_exp_log_are_inverse():
    for x in range(1, 16):
        assert GF16.exp[GF16.log[x]] == x
    for i in range(2 * GF16.order):
        assert GF16.log[GF16.exp[i]] == i % 15
    assert GF16.log[0] == -1
    assert len(GF16.exp) >= 2 * (GF16.size - 1)


def test_nonzero_elements_cycle():
    assert sorted(GF16.exp[:15].tolist()) == list(range(1, 16))
    assert GF16.alpha == int(GF16_REF.primitive_element) == 2


def test_field_ops_match_galois():
    for a, b in itertools.product(range(16), repeat=2):
        assert GF16.multiply(a, b) == int(GF16_REF(a) * GF16_REF(b))
        assert GF16.add(a, b) == int(GF16_REF(a) + GF16_REF(b))
        if b:
            assert GF16.divide(a, b) == int(GF16_REF(a) / GF16_REF(b))


def test_power():
    for a in range(1, 16):
        for n in range(0, 40):
            assert GF16.power(a, n) == int(GF16_REF(a) ** n)
        for n in range(1, 20):
            assert GF16.power(a, -n) == GF16.inverse(GF16.power(a, n))
    assert GF16.power(0, 0) == 1
    assert GF16.power(0, 5) == 0
    with pytest.raises(ZeroDivisionError):
        GF16.power(0, -1)


def test_divide_edge_cases():
    assert GF16.divide(0, 7) == 0
    with pytest.raises(ZeroDivisionError):
        GF16.divide(3, 0)
    with pytest.raises(ZeroDivisionError):
        GF16.inverse(0)


def test_tables_are_read_only():
    with pytest.raises(ValueError):
        GF16.exp[0] = 5
    with pytest.raises(ValueError):
        GF16.log[1] = 3


def test_invalid_field_params():
    # x^4+x^3+x^2+x+1 is irreducible but x has order 5
    with pytest.raises(ValueError):
        GaloisField(4, 31)
    with pytest.raises(ValueError):
        GaloisField(4, 7)
    with pytest.raises(ValueError):
        GaloisField(1, 3)


# -------------------------------------------------------------------------
# Block replication
# -------------------------------------------------------------------------

def test_block_diagonal():
    M = np.array([[1, 0, 1], [0, 1, 1]], dtype=np.uint8)
    big = block_diagonal(M, 3)
    assert big.shape == (6, 9)
    for b in range(3):
        assert np.array_equal(big[2*b:2*b+2, 3*b:3*b+3], M)
    mask = block_diagonal(np.ones_like(M), 3).astype(bool)
    assert not big[~mask].any()
    with pytest.raises(ValueError):
        block_diagonal(M, 0)


# -------------------------------------------------------------------------
# Hamming(15,11)
# -------------------------------------------------------------------------

def test_hamming_raw_columns():
    H = hamming_raw_parity_check(4)
    for j in range(15):
        value = sum(int(H[i, j]) << i for i in range(4))
        assert value == j + 1


def test_hamming_systematic_form():
    code = HammingCode()
    G, H = code.generator_matrix, code.parity_check_matrix
    assert code.params == HAMMING_15_11
    assert G.shape == (11, 15) and H.shape == (4, 15)
    assert np.array_equal(G[:, :11], identity(11))
    assert np.array_equal(H[:, 11:], identity(4))
    assert np.array_equal(G[:, 11:], transpose(H[:, :11]))
    assert not multiply(G, transpose(H)).any()
    columns = {tuple(H[:, j]) for j in range(15)}
    assert len(columns) == 15 and (0, 0, 0, 0) not in columns


def test_hamming_construction_is_idempotent():
    a, b = HammingCode(), HammingCode()
    assert np.array_equal(a.generator_matrix, b.generator_matrix)
    assert np.array_equal(a.parity_check_matrix, b.parity_check_matrix)


def test_hamming_corrects_every_single_error():
    code = make_code("hamming")
    rng = np.random.default_rng(11)
    for _ in range(20):
        msg = rng.integers(0, 2, size=code.k, dtype=np.uint8)
        cw = code.encode_block(msg)
        assert np.array_equal(code.decode_block(cw), cw)
        for pos in range(code.n):
            errored = cw.copy()
            errored[pos] ^= 1
            out = code.decode_block(errored)
            assert np.array_equal(out, cw)
            assert np.array_equal(code.extract_message(out), msg)


def test_hamming_double_error_is_silently_miscorrected():
    code = make_code("hamming")
    cw = code.encode_block(np.ones(code.k, dtype=np.uint8))
    for i, j in itertools.combinations(range(code.n), 2):
        errored = cw.copy()
        errored[[i, j]] ^= 1
        out = code.decode_block(errored)
        assert out.shape == (code.n,)
        assert not np.array_equal(out, cw)
        assert not code.syndrome(out).any()


def test_hamming_block_length_checks():
    code = make_code("hamming")
    with pytest.raises(ValueError):
        code.encode_block(np.zeros(10, dtype=np.uint8))
    with pytest.raises(ValueError):
        code.decode_block(np.zeros(14, dtype=np.uint8))


# -------------------------------------------------------------------------
# BCH(15,7,2)
# -------------------------------------------------------------------------

def test_bch_first_generator_row():
    code = make_code("bch")
    expected = [1, 0, 0, 0, 0, 0, 0, 1, 1, 1, 0, 1, 0, 0, 0]
    assert code.generator_matrix[0].tolist() == expected


def test_bch_systematic_form():
    code = BchCode()
    G, H = code.generator_matrix, code.parity_check_matrix
    assert code.params == BCH_15_7
    assert G.shape == (7, 15) and H.shape == (8, 15)
    assert np.array_equal(G[:, :7], identity(7))
    assert np.array_equal(H[:, 7:], identity(8))
    assert not multiply(G, transpose(H)).any()
    assert np.array_equal(BchCode().generator_matrix, G)


def test_bch_codewords_have_zero_syndromes():
    code = make_code("bch")
    for bits in itertools.product([0, 1], repeat=code.k):
        cw = code.encode_block(bits)
        assert code.syndromes(cw) == (0, 0)
        assert not code.syndrome(cw).any()


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_bch_corrects_up_to_two_errors(seed):
    code = make_code("bch")
    rng = np.random.default_rng(seed)
    msg = rng.integers(0, 2, size=code.k, dtype=np.uint8)
    cw = code.encode_block(msg)
    for weight in range(1, code.t + 1):
        for errs in itertools.combinations(range(code.n), weight):
            errored = cw.copy()
            errored[list(errs)] ^= 1
            out = code.decode_block(errored)
            assert np.array_equal(out, cw), f"failed to correct errors at {errs}"
            assert np.array_equal(code.extract_message(out), msg)


def test_bch_single_error_location():
    code = make_code("bch")
    cw = code.encode_block(np.zeros(code.k, dtype=np.uint8))
    for pos in range(code.n):
        errored = cw.copy()
        errored[pos] ^= 1
        s1, s3 = code.syndromes(errored)
        assert code.error_locations(s1, s3) == [pos]


def test_bch_s3_only_syndrome_is_left_alone():
    code = make_code("bch")
    assert code.error_locations(0, 5) == []


def test_bch_invalid_generator():
    with pytest.raises(ValueError):
        BchCode(generator=(1, 0, 1))


# -------------------------------------------------------------------------
# Factory
# -------------------------------------------------------------------------

def test_make_code():
    assert make_code("BCH") is make_code("bch")
    assert isinstance(make_code(" Hamming "), HammingCode)
    assert make_code("hamming").expansion == 15 / 11
    assert make_code("bch").expansion == 15 / 7
    with pytest.raises(ValueError):
        make_code("golay")


if __name__ == "__main__":
    import pytest
    raise SystemExit(pytest.main([__file__]))
