import logging
import time
from itertools import product
from typing import NamedTuple, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from codes import make_code
from keygen import KeyPair, generate_keys
from metrics import expansion_ratio, success_interval, success_rate
from receiver import decode
from transmitter import encrypt, generate_message
from utils import (
    DEFAULT_BLOCKS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ERROR_PROBABILITY,
    DEFAULT_FAMILIES,
    DEFAULT_TRIALS,
    as_seed_sequence,
    check_probability,
)

log = logging.getLogger(__name__)


class TrialSummary(NamedTuple):
    trials: int
    successes: int
    success_rate: float
    ci_low: float
    ci_high: float
    avg_encode_ms: float
    avg_decode_ms: float
    expansion: float
    bit_error_rate: float


def single_trial(
    keys: KeyPair,
    rng: np.random.Generator,
    p: float = DEFAULT_ERROR_PROBABILITY
) -> Tuple[bool, int, float, float]:
    """
    One random message through encrypt and decode.

    Returns (success, wrong_bits, encode_seconds, decode_seconds).
    """
    message = generate_message(keys, rng)

    start = time.perf_counter()
    ciphertext = encrypt(message, keys, rng, p)
    encode_s = time.perf_counter() - start

    start = time.perf_counter()
    estimate = decode(ciphertext, keys)
    decode_s = time.perf_counter() - start

    wrong = int(np.count_nonzero(estimate != message))
    return wrong == 0, wrong, encode_s, decode_s


def _run_chunk(keys: KeyPair, trials: int, seed: np.random.SeedSequence, p: float) -> np.ndarray:
    rng = np.random.default_rng(seed)
    out = np.zeros((trials, 4), dtype=np.float64)
    for i in range(trials):
        out[i] = single_trial(keys, rng, p)
    log.debug(f"chunk of {trials} trials done, {int(out[:, 0].sum())} successes")
    return out


def run_trials(
    keys: KeyPair,
    trials: int = DEFAULT_TRIALS,
    seed=None,
    p: float = DEFAULT_ERROR_PROBABILITY,
    n_jobs: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    prefer: str = None
) -> TrialSummary:
    """
    Monte Carlo success rate for a fixed key pair.

    Trials are split into chunks of `chunk_size`, each with its own child of
    SeedSequence(seed), so the result for a given seed does not depend on
    n_jobs. Key material is only read.

    Parameters
    ----------
    keys
        Key material shared by every trial.
    trials
        Number of random messages, >= 1.
    seed
        int, SeedSequence or None.
    p
        Per-block error probability.
    n_jobs
        joblib worker count; 1 runs inline.
    chunk_size
        Trials per seeded work unit.
    prefer
        joblib backend hint ("processes" or "threads").

    Returns
    -------
    TrialSummary
    """
    if trials < 1:
        raise ValueError("trials must be >= 1")
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    p = check_probability(p)

    ss = as_seed_sequence(seed)
    sizes = [min(chunk_size, trials - start) for start in range(0, trials, chunk_size)]
    children = ss.spawn(len(sizes))

    chunks = Parallel(n_jobs=n_jobs, prefer=prefer)(
        delayed(_run_chunk)(keys, size, child, p)
        for size, child in zip(sizes, children)
    )
    results = np.vstack(chunks)

    successes = int(results[:, 0].sum())
    low, high = success_interval(successes, trials)
    return TrialSummary(
        trials=trials,
        successes=successes,
        success_rate=success_rate(successes, trials),
        ci_low=low,
        ci_high=high,
        avg_encode_ms=float(results[:, 2].mean() * 1e3),
        avg_decode_ms=float(results[:, 3].mean() * 1e3),
        expansion=expansion_ratio(keys.N, keys.K),
        bit_error_rate=float(results[:, 1].sum() / (trials * keys.K)),
    )


def run_configuration(
    family: str,
    blocks: int,
    trials: int = DEFAULT_TRIALS,
    p: float = DEFAULT_ERROR_PROBABILITY,
    seed=None,
    n_jobs: int = 1,
    permute: bool = True,
    scrambler: str = "row_ops",
    prefer: str = None
) -> TrialSummary:
    """Generate keys for one (family, L) configuration and run its trials."""
    key_seed, trial_seed = as_seed_sequence(seed).spawn(2)
    keys = generate_keys(make_code(family), blocks, np.random.default_rng(key_seed),
                         permute=permute, scrambler=scrambler)
    return run_trials(keys, trials, trial_seed, p, n_jobs=n_jobs, prefer=prefer)


def sweep(
    families: Sequence[str] = DEFAULT_FAMILIES,
    blocks_list: Sequence[int] = DEFAULT_BLOCKS,
    trials: int = DEFAULT_TRIALS,
    p: float = DEFAULT_ERROR_PROBABILITY,
    seed=None,
    n_jobs: int = 1,
    permute: bool = True,
    scrambler: str = "row_ops"
) -> pd.DataFrame:
    """
    Run every (family, L) pair and collect one row per configuration.
    """
    configs = list(product(families, blocks_list))
    seeds = as_seed_sequence(seed).spawn(len(configs))

    rows = []
    for (family, blocks), config_seed in zip(configs, seeds):
        code = make_code(family)
        summary = run_configuration(family, blocks, trials, p, config_seed, n_jobs,
                                    permute=permute, scrambler=scrambler)
        log.info(f"{code.name}({code.n},{code.k}) L={blocks}: "
                 f"{summary.successes}/{summary.trials} decoded "
                 f"({summary.success_rate:.2%}), expansion {summary.expansion:.2f}x")
        rows.append({
            'family': family,
            'n': code.n,
            'k': code.k,
            't': code.t,
            'blocks': blocks,
            'K': blocks * code.k,
            'N': blocks * code.n,
            'p': p,
            **summary._asdict(),
        })
    return pd.DataFrame(rows)
