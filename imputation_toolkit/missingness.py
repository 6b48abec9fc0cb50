"""
Missingness Simulation Module for Proteomics Imputation Toolkit

Synthesizes additional missing values in an intensity matrix under three
mechanisms:

- MCAR: uniform sampling of present cells.
- MNAR: every cell below the p-th quantile of present values goes missing.
- MAR: present cells are drawn without replacement with probability
  proportional to 1 / (row mean + epsilon), so low-abundance proteins lose
  more values.

None of the functions touch global random state. Pass a
``numpy.random.Generator`` (or an integer seed) to get reproducible output.
"""

import warnings
from collections import OrderedDict
from enum import Enum
from typing import Dict, Iterable, Optional, Union

import numpy as np
import pandas as pd

from .validation import ConfigurationError, InvariantViolationError, MissingnessWarning

MAR_EPSILON = 1e-6

RandomSource = Union[None, int, np.random.Generator]


class MissingnessMechanism(str, Enum):
    """Closed set of supported missingness mechanisms."""

    MCAR = "MCAR"
    MNAR = "MNAR"
    MAR = "MAR"

    @classmethod
    def parse(cls, value) -> "MissingnessMechanism":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ConfigurationError(
                f"Unknown missingness mechanism: {value}. "
                f"Options: {', '.join(m.value for m in cls)}"
            )


def _as_generator(rng: RandomSource) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def _check_proportion(proportion: float) -> float:
    proportion = float(proportion)
    if not 0.0 <= proportion <= 1.0:
        raise ConfigurationError(f"Missing proportion must be in [0, 1], got {proportion}")
    return proportion


def _to_values(matrix) -> np.ndarray:
    if isinstance(matrix, pd.DataFrame):
        return matrix.to_numpy(dtype=float, copy=True)
    return np.array(matrix, dtype=float, copy=True)


def _rebuild(matrix, values: np.ndarray):
    if isinstance(matrix, pd.DataFrame):
        return pd.DataFrame(values, index=matrix.index, columns=matrix.columns)
    return values


def variant_name(mechanism, proportion: float) -> str:
    """Dataset name for a (mechanism, proportion) pair, e.g. ``missing_MAR_20``."""
    mechanism = MissingnessMechanism.parse(mechanism)
    return f"missing_{mechanism.value}_{int(round(proportion * 100))}"


def weighted_sample_without_replacement(
    weights: np.ndarray, k: int, rng: RandomSource = None
) -> np.ndarray:
    """
    Draw ``k`` distinct indices with probability proportional to ``weights``.

    Efraimidis-Spirakis exponential keys: each candidate gets
    ``log(u) / w`` with ``u ~ U(0, 1]`` and the ``k`` largest keys win. The
    result has the same distribution as ``k`` sequential draws where each draw
    picks among the remaining candidates proportionally to weight. Ties are
    broken by candidate order (stable sort), so a fixed seed always yields
    the same indices.

    Returns:
    --------
    np.ndarray of selected indices, in selection-key order
    """
    weights = np.asarray(weights, dtype=float)
    if k < 0 or k > weights.size:
        raise ValueError(f"Cannot draw {k} items from {weights.size} candidates")
    if np.any(~np.isfinite(weights)) or np.any(weights <= 0):
        raise ValueError("Sampling weights must be finite and strictly positive")

    rng = _as_generator(rng)
    u = 1.0 - rng.random(weights.size)
    keys = np.log(u) / weights
    order = np.argsort(-keys, kind="stable")
    return order[:k]


def simulate_mcar(matrix, proportion: float, rng: RandomSource = None):
    """
    Missing Completely At Random.

    ``round(n_present * proportion)`` present cells are chosen uniformly
    without replacement from the whole matrix and set to NaN.

    Parameters:
    -----------
    matrix : pd.DataFrame or np.ndarray
        Numeric intensity matrix (NaN = absent)
    proportion : float
        Fraction of present cells to remove, in [0, 1]
    rng : np.random.Generator or int, optional
        Random source

    Returns:
    --------
    Matrix of the same type and shape with additional NaN cells
    """
    proportion = _check_proportion(proportion)
    values = _to_values(matrix)

    present = np.flatnonzero(~np.isnan(values))
    n_to_remove = int(round(present.size * proportion))

    if n_to_remove == 0:
        if proportion > 0:
            warnings.warn(
                f"MCAR: {present.size} present cells at proportion {proportion} "
                f"round to zero cells; data returned unchanged",
                MissingnessWarning,
            )
        return _rebuild(matrix, values)

    chosen = _as_generator(rng).choice(present, size=n_to_remove, replace=False)
    values.flat[chosen] = np.nan

    print(f"MCAR: removed {n_to_remove} of {present.size} present values")
    return _rebuild(matrix, values)


def simulate_mnar(matrix, proportion: float):
    """
    Missing Not At Random (low-intensity cutoff).

    Every cell strictly below the ``proportion`` quantile (linear
    interpolation) of the present values is set to NaN. The resulting missing
    fraction follows the value distribution and need not equal the nominal
    proportion.
    """
    proportion = _check_proportion(proportion)
    values = _to_values(matrix)

    observed = values[~np.isnan(values)]
    if observed.size == 0:
        warnings.warn(
            "MNAR: no present values to compute a quantile threshold; data returned unchanged",
            MissingnessWarning,
        )
        return _rebuild(matrix, values)

    threshold = np.quantile(observed, proportion, method="linear")
    if not np.isfinite(threshold):
        warnings.warn(
            f"MNAR: quantile threshold is undefined ({threshold}); data returned unchanged",
            MissingnessWarning,
        )
        return _rebuild(matrix, values)

    below = values < threshold
    values[below] = np.nan

    print(f"MNAR: threshold {threshold:.4f}, removed {int(below.sum())} of {observed.size} present values")
    return _rebuild(matrix, values)


def mar_row_weights(values: np.ndarray, epsilon: float = MAR_EPSILON) -> np.ndarray:
    """
    Per-row sampling weights ``1 / (row_mean + epsilon)``.

    Row means use present cells only. Rows with no present values, a
    non-positive mean, or a non-finite or non-positive weight get weight 0.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        row_means = np.nanmean(values, axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        weights = 1.0 / (row_means + epsilon)

    invalid = ~np.isfinite(weights) | (weights <= 0) | ~(row_means > 0)
    weights[invalid] = 0.0
    return weights


def simulate_mar(matrix, proportion: float, rng: RandomSource = None,
                 epsilon: float = MAR_EPSILON):
    """
    Missing At Random, conditional on the row mean.

    The target total of missing cells is ``round(n_observed * proportion)``;
    only the difference to the cells already missing is added, and existing
    missingness is never removed. Cells are drawn without replacement with
    their row's weight (see ``mar_row_weights``). If there are fewer valid
    candidates than needed, every valid candidate is removed and a warning is
    issued.

    Parameters:
    -----------
    matrix : pd.DataFrame or np.ndarray
        Numeric intensity matrix (NaN = absent)
    proportion : float
        Target overall missing fraction relative to present cells
    rng : np.random.Generator or int, optional
        Random source
    epsilon : float
        Offset added to row means before inversion

    Returns:
    --------
    Matrix of the same type and shape with additional NaN cells
    """
    proportion = _check_proportion(proportion)
    values = _to_values(matrix)

    is_missing = np.isnan(values)
    n_observed = int((~is_missing).sum())
    n_missing = int(is_missing.sum())
    n_to_add = int(round(n_observed * proportion)) - n_missing

    if n_to_add <= 0:
        if proportion > 0:
            warnings.warn(
                f"MAR: {n_missing} cells already missing meets the target for proportion "
                f"{proportion}; data returned unchanged",
                MissingnessWarning,
            )
        return _rebuild(matrix, values)

    row_weights = mar_row_weights(values, epsilon)

    cell_rows, cell_cols = np.nonzero(~is_missing)
    cell_weights = row_weights[cell_rows]
    if cell_weights.shape[0] != cell_rows.shape[0]:
        raise InvariantViolationError(
            f"MAR: {cell_weights.shape[0]} weights for {cell_rows.shape[0]} candidate cells"
        )

    valid = cell_weights > 0
    cand_rows, cand_cols, cand_weights = cell_rows[valid], cell_cols[valid], cell_weights[valid]

    if cand_weights.size < n_to_add:
        warnings.warn(
            f"MAR: only {cand_weights.size} valid candidate cells for {n_to_add} requested; "
            f"removing all valid candidates",
            MissingnessWarning,
        )
        n_to_add = cand_weights.size

    if n_to_add == 0:
        return _rebuild(matrix, values)

    chosen = weighted_sample_without_replacement(cand_weights, n_to_add, _as_generator(rng))
    values[cand_rows[chosen], cand_cols[chosen]] = np.nan

    print(f"MAR: removed {n_to_add} of {n_observed} present values")
    return _rebuild(matrix, values)


def simulate_missingness(matrix, mechanism, proportion: float, rng: RandomSource = None):
    """
    Apply one missingness mechanism to a matrix.

    Parameters:
    -----------
    matrix : pd.DataFrame or np.ndarray
        Numeric intensity matrix
    mechanism : MissingnessMechanism or str
        'MCAR', 'MNAR' or 'MAR'
    proportion : float
        Target proportion in [0, 1]
    rng : np.random.Generator or int, optional
        Random source (ignored by MNAR, which is deterministic)
    """
    mechanism = MissingnessMechanism.parse(mechanism)

    if mechanism is MissingnessMechanism.MCAR:
        return simulate_mcar(matrix, proportion, rng)
    if mechanism is MissingnessMechanism.MNAR:
        return simulate_mnar(matrix, proportion)
    if mechanism is MissingnessMechanism.MAR:
        return simulate_mar(matrix, proportion, rng)
    raise InvariantViolationError(f"Unhandled mechanism {mechanism}")


def generate_missingness_variants(
    complete: pd.DataFrame,
    proportions: Iterable[float] = (0.1, 0.2, 0.3),
    mechanisms: Iterable = ("MCAR", "MAR", "MNAR"),
    random_seed: Optional[int] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Build one missingness variant per (proportion, mechanism) pair.

    Each variant draws from its own child generator spawned from a single
    ``SeedSequence(random_seed)``, so variants are independent of each other
    and of the order they are built in.

    Returns:
    --------
    OrderedDict mapping variant name (e.g. ``missing_MCAR_10``) to matrix
    """
    print("=== SIMULATING MISSINGNESS VARIANTS ===\n")

    mechanisms = [MissingnessMechanism.parse(m) for m in mechanisms]
    combinations = [(float(p), m) for p in proportions for m in mechanisms]
    children = np.random.SeedSequence(random_seed).spawn(len(combinations))

    variants = OrderedDict()
    for (proportion, mechanism), child in zip(combinations, children):
        name = variant_name(mechanism, proportion)
        if name in variants:
            raise ConfigurationError(
                f"Missing proportion {proportion} maps to an existing variant name '{name}'"
            )
        variants[name] = simulate_missingness(
            complete, mechanism, proportion, np.random.default_rng(child)
        )
        summary = missingness_summary(variants[name])
        print(f"{name}: {summary['n_missing']}/{summary['n_total']} missing "
              f"({summary['missing_fraction'] * 100:.1f}%)")

    return variants


def missingness_summary(matrix) -> Dict[str, float]:
    """Count of absent cells, total cells and missing fraction."""
    values = _to_values(matrix)
    n_total = int(values.size)
    n_missing = int(np.isnan(values).sum())
    return {
        "n_missing": n_missing,
        "n_total": n_total,
        "missing_fraction": n_missing / n_total if n_total else 0.0,
    }
