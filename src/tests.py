import numpy as np
import pandas as pd
import pytest

from gf2 import (
    SingularMatrixError,
    identity,
    invert,
    is_invertible,
    multiply,
    transpose,
    vec_mul,
)
from codes import block_diagonal, make_code
from keygen import (
    KeyGenerationError,
    compose_public_key,
    generate_keys,
    permutation_matrix,
    random_dense_invertible,
    random_invertible,
    random_permutation,
)
from channel import (
    apply_errors,
    inject_block_errors,
    inject_errors_at,
    inject_exact_block_errors,
)
from transmitter import encode, encrypt, generate_message
from receiver import decode, decode_blocks, undo_permutation
from metrics import bit_error_rate, expansion_ratio, success_interval, success_rate
from pipeline import run_configuration, run_trials, single_trial, sweep
from utils import split_blocks


# -------------------------------------------------------------------------
# GF(2) matrix algebra
# -------------------------------------------------------------------------

def test_multiply_small():
    A = np.array([[1, 1, 0], [0, 1, 1]])
    B = np.array([[1, 0], [1, 1], [0, 1]])
    assert multiply(A, B).tolist() == [[0, 1], [1, 0]]
    assert vec_mul([1, 1, 0], B).tolist() == [0, 1]
    assert multiply(A, B).dtype == np.uint8


def test_multiply_shape_mismatch():
    with pytest.raises(ValueError):
        multiply(np.ones((2, 3)), np.ones((2, 3)))
    with pytest.raises(ValueError):
        vec_mul(np.ones(4), np.ones((3, 3)))
    with pytest.raises(ValueError):
        multiply(np.ones(3), np.ones((3, 3)))


def test_transpose():
    M = np.array([[1, 0, 1], [0, 0, 1]])
    assert transpose(M).tolist() == [[1, 0], [0, 0], [1, 1]]


def test_invert_requires_row_swap():
    A = np.array([[0, 1], [1, 0]])
    assert invert(A).tolist() == [[0, 1], [1, 0]]
    A = np.array([[0, 1, 1], [1, 1, 0], [1, 0, 0]])
    assert np.array_equal(multiply(A, invert(A)), identity(3))


def test_invert_singular():
    with pytest.raises(SingularMatrixError):
        invert(np.array([[1, 1], [1, 1]]))
    with pytest.raises(SingularMatrixError):
        invert(np.zeros((4, 4)))
    assert not is_invertible(np.array([[1, 0, 1], [0, 1, 1], [1, 1, 0]]))
    with pytest.raises(ValueError):
        invert(np.ones((2, 3)))


def test_operations_do_not_mutate_inputs():
    A = np.array([[0, 1], [1, 1]], dtype=np.uint8)
    before = A.copy()
    invert(A)
    multiply(A, A)
    transpose(A)
    assert np.array_equal(A, before)


# -------------------------------------------------------------------------
# Key generation
# -------------------------------------------------------------------------

@pytest.mark.parametrize("size", [1, 7, 77, 110])
def test_random_invertible(size):
    rng = np.random.default_rng(size)
    S, S_inv = random_invertible(size, rng)
    assert np.array_equal(multiply(S, S_inv), identity(size))
    assert np.array_equal(multiply(S_inv, S), identity(size))
    assert np.array_equal(invert(S), S_inv)


def test_random_dense_invertible():
    S, S_inv = random_dense_invertible(30, np.random.default_rng(5))
    assert np.array_equal(multiply(S, S_inv), identity(30))


def test_keygen_exhaustion_is_fatal():
    with pytest.raises(KeyGenerationError):
        random_invertible(5, np.random.default_rng(0), max_attempts=0)
    with pytest.raises(KeyGenerationError):
        random_dense_invertible(5, np.random.default_rng(0), max_attempts=0)


def test_random_permutation():
    perm = random_permutation(150, np.random.default_rng(9))
    assert sorted(perm.tolist()) == list(range(150))
    assert np.array_equal(perm, random_permutation(150, np.random.default_rng(9)))
    assert not np.array_equal(perm, np.arange(150))


def test_permutation_matrix_is_orthogonal():
    P = permutation_matrix(random_permutation(45, np.random.default_rng(1)))
    assert np.all(P.sum(axis=0) == 1)
    assert np.all(P.sum(axis=1) == 1)
    assert np.array_equal(multiply(P, transpose(P)), identity(45))
    with pytest.raises(ValueError):
        permutation_matrix([0, 0, 1])


def test_generate_keys():
    code = make_code("hamming")
    keys = generate_keys(code, 4, np.random.default_rng(3))
    assert keys.K == 44 and keys.N == 60
    assert keys.G_pub.shape == (44, 60)
    assert np.array_equal(keys.G_pub,
                          compose_public_key(keys.S, block_diagonal(code.generator_matrix, 4), keys.P))
    assert np.array_equal(multiply(keys.S, keys.S_inv), identity(44))
    assert np.array_equal(multiply(keys.P, keys.P_inv), identity(60))
    assert keys.expansion == 15 / 11


def test_generate_keys_without_permutation():
    keys = generate_keys(make_code("bch"), 2, np.random.default_rng(3), permute=False)
    assert np.array_equal(keys.P, identity(30))
    assert np.array_equal(keys.perm, np.arange(30))


def test_generate_keys_rejects_bad_config():
    with pytest.raises(ValueError):
        generate_keys(make_code("bch"), 0)
    with pytest.raises(ValueError):
        generate_keys(make_code("bch"), 1, scrambler="random")


# -------------------------------------------------------------------------
# Channel
# -------------------------------------------------------------------------

def test_inject_block_errors_extremes():
    rng = np.random.default_rng(4)
    cw = np.zeros(150, dtype=np.uint8)
    noisy, error = inject_block_errors(cw, 15, rng, p=0.0)
    assert not noisy.any() and not error.any()
    noisy, error = inject_block_errors(cw, 15, rng, p=1.0)
    assert np.all(split_blocks(error, 15).sum(axis=1) == 1)
    assert np.array_equal(noisy, error)


def test_inject_block_errors_at_most_one_per_block():
    rng = np.random.default_rng(8)
    cw = rng.integers(0, 2, size=300, dtype=np.uint8)
    hits = 0
    for _ in range(200):
        noisy, error = inject_block_errors(cw, 15, rng, p=0.5)
        per_block = split_blocks(error, 15).sum(axis=1)
        assert per_block.max() <= 1
        assert np.array_equal(noisy ^ error, cw)
        hits += int(per_block.sum())
    # 200 * 20 blocks at p=0.5
    assert abs(hits / 4000 - 0.5) < 0.05


def test_inject_block_errors_bad_input():
    rng = np.random.default_rng(0)
    with pytest.raises(ValueError):
        inject_block_errors(np.zeros(30), 15, rng, p=1.5)
    with pytest.raises(ValueError):
        inject_block_errors(np.zeros(31), 15, rng)


def test_inject_exact_and_positional_errors():
    rng = np.random.default_rng(2)
    noisy, error = inject_exact_block_errors(np.zeros(45, dtype=np.uint8), 15, 2, rng)
    assert np.all(split_blocks(error, 15).sum(axis=1) == 2)
    assert inject_errors_at(np.zeros(5), [1, 3]).tolist() == [0, 1, 0, 1, 0]
    with pytest.raises(ValueError):
        inject_errors_at(np.zeros(5), [5])
    with pytest.raises(ValueError):
        apply_errors(np.zeros(5), np.zeros(4))


# -------------------------------------------------------------------------
# Encode / decode
# -------------------------------------------------------------------------

@pytest.mark.parametrize("family", ["hamming", "bch"])
def test_roundtrip_without_errors(family):
    rng = np.random.default_rng(21)
    keys = generate_keys(make_code(family), 3, rng)
    for _ in range(50):
        m = generate_message(keys, rng)
        assert np.array_equal(decode(encode(m, keys), keys), m)


def test_hamming_one_error_per_block_without_permutation():
    rng = np.random.default_rng(22)
    keys = generate_keys(make_code("hamming"), 10, rng, permute=False)
    for _ in range(100):
        m = generate_message(keys, rng)
        assert np.array_equal(decode(encrypt(m, keys, rng, p=1.0), keys), m)


def test_bch_two_errors_per_block_without_permutation():
    rng = np.random.default_rng(23)
    keys = generate_keys(make_code("bch"), 5, rng, permute=False)
    for _ in range(100):
        m = generate_message(keys, rng)
        noisy, _ = inject_exact_block_errors(encode(m, keys), 15, 2, rng)
        assert np.array_equal(decode(noisy, keys), m)


def test_bch_single_block_single_error():
    rng = np.random.default_rng(24)
    keys = generate_keys(make_code("bch"), 1, rng, permute=False)
    for _ in range(200):
        m = generate_message(keys, rng)
        noisy, _ = inject_exact_block_errors(encode(m, keys), 15, 1, rng)
        assert np.array_equal(decode(noisy, keys), m)


def test_decode_steps():
    rng = np.random.default_rng(25)
    code = make_code("hamming")
    keys = generate_keys(code, 2, rng)
    m = generate_message(keys, rng)
    c = encode(m, keys)
    scrambled = decode_blocks(undo_permutation(c, keys), code)
    assert np.array_equal(scrambled, vec_mul(m, keys.S))


def test_length_checks():
    keys = generate_keys(make_code("hamming"), 2, np.random.default_rng(0))
    with pytest.raises(ValueError):
        encode(np.zeros(21), keys)
    with pytest.raises(ValueError):
        undo_permutation(np.zeros(29), keys)


# -------------------------------------------------------------------------
# Metrics
# -------------------------------------------------------------------------

def test_metrics():
    assert bit_error_rate([0, 1, 1, 0], [0, 1, 0, 1]) == 0.5
    with pytest.raises(ValueError):
        bit_error_rate([0, 1], [0])
    assert success_rate(3, 4) == 0.75
    with pytest.raises(ValueError):
        success_rate(5, 4)
    low, high = success_interval(30, 100)
    assert low < 0.3 < high
    assert success_interval(0, 50)[0] == 0.0
    assert success_interval(50, 50)[1] == 1.0
    assert expansion_ratio(150, 110) == 15 / 11


# -------------------------------------------------------------------------
# Simulation harness
# -------------------------------------------------------------------------

def test_single_trial():
    rng = np.random.default_rng(30)
    keys = generate_keys(make_code("hamming"), 1, rng)
    ok, wrong, enc_s, dec_s = single_trial(keys, rng, p=0.0)
    assert ok and wrong == 0
    assert enc_s >= 0 and dec_s >= 0


def test_scenario_hamming_single_block_no_errors():
    summary = run_configuration("hamming", 1, trials=1000, p=0.0, seed=31)
    assert summary.successes == 1000
    assert summary.success_rate == 1.0
    assert summary.bit_error_rate == 0.0


def test_scenario_bch_single_block_one_error_identity_permutation():
    summary = run_configuration("bch", 1, trials=300, p=1.0, seed=32, permute=False)
    assert summary.success_rate == 1.0


@pytest.mark.parametrize("family", ["hamming", "bch"])
def test_scenario_ten_blocks_global_permutation(family):
    rates = []
    for seed in (33, 34):
        summary = run_configuration(family, 10, trials=400, p=0.5, seed=seed)
        assert 0.0 < summary.success_rate < 1.0
        assert summary.ci_low <= summary.success_rate <= summary.ci_high
        rates.append(summary.success_rate)
    assert abs(rates[0] - rates[1]) < 0.15


@pytest.mark.parametrize("family,ratio", [("hamming", 15 / 11), ("bch", 15 / 7)])
def test_expansion_independent_of_blocks(family, ratio):
    for blocks in (1, 2, 5):
        summary = run_configuration(family, blocks, trials=5, seed=blocks)
        assert summary.expansion == ratio


def test_run_trials_is_reproducible():
    keys = generate_keys(make_code("hamming"), 5, np.random.default_rng(40))
    a = run_trials(keys, 300, seed=41)
    b = run_trials(keys, 300, seed=41)
    assert (a.successes, a.bit_error_rate) == (b.successes, b.bit_error_rate)
    c = run_trials(keys, 300, seed=41, n_jobs=2, prefer="threads")
    assert c.successes == a.successes


def test_run_trials_bad_input():
    keys = generate_keys(make_code("hamming"), 1, np.random.default_rng(0))
    with pytest.raises(ValueError):
        run_trials(keys, 0)
    with pytest.raises(ValueError):
        run_trials(keys, 10, p=-0.1)


def test_sweep():
    df = sweep(["hamming", "bch"], [1, 2], trials=20, seed=50)
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 4
    assert {'family', 'blocks', 'success_rate', 'expansion',
            'avg_encode_ms', 'avg_decode_ms'} <= set(df.columns)
    assert df.loc[df['family'] == 'bch', 'expansion'].eq(15 / 7).all()
    assert (df['K'] == df['blocks'] * df['k']).all()


if __name__ == "__main__":
    import pytest
    raise SystemExit(pytest.main([__file__]))
