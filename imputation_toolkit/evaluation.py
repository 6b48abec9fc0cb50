"""
Imputation Evaluation Module for Proteomics Imputation Toolkit

Accuracy of imputed values against the complete reference matrix, measured
only on the cells a missingness variant removed.
"""

import numpy as np
import pandas as pd
from scipy.stats import pearsonr
from typing import Dict


def _aligned(reference: pd.DataFrame, other: pd.DataFrame) -> np.ndarray:
    if isinstance(reference, pd.DataFrame) and isinstance(other, pd.DataFrame):
        return reference.loc[other.index, other.columns].to_numpy(dtype=float)
    return np.asarray(reference, dtype=float)


def evaluate_imputation(reference, with_missing, imputed) -> Dict[str, float]:
    """
    Compare imputed values with the true values they replaced.

    Parameters:
    -----------
    reference : pd.DataFrame
        Complete matrix the variant was derived from
    with_missing : pd.DataFrame
        Missingness variant (NaN = removed)
    imputed : pd.DataFrame
        Imputed version of the variant

    Returns:
    --------
    Dict with n_imputed, RMSE, MAE, NRMSE (RMSE / std of true values) and
    Pearson r. Metrics are NaN when nothing was removed.
    """
    truth = _aligned(reference, with_missing)
    missing = np.asarray(with_missing, dtype=float)
    estimate = np.asarray(imputed, dtype=float)

    mask = np.isnan(missing) & ~np.isnan(truth)
    n_imputed = int(mask.sum())

    metrics = {"n_imputed": n_imputed, "RMSE": np.nan, "MAE": np.nan,
               "NRMSE": np.nan, "Pearson_r": np.nan}
    if n_imputed == 0:
        return metrics

    true_values = truth[mask]
    predicted = estimate[mask]
    errors = predicted - true_values

    metrics["RMSE"] = float(np.sqrt(np.mean(errors ** 2)))
    metrics["MAE"] = float(np.mean(np.abs(errors)))

    true_sd = np.std(true_values)
    if true_sd > 0:
        metrics["NRMSE"] = metrics["RMSE"] / float(true_sd)
    if n_imputed >= 2 and true_sd > 0 and np.std(predicted) > 0:
        metrics["Pearson_r"] = float(pearsonr(true_values, predicted)[0])

    return metrics


def summarize_sweep(imputed: Dict[str, Dict[str, pd.DataFrame]],
                    reference: pd.DataFrame,
                    variants: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Tidy accuracy table for a whole sweep.

    Returns:
    --------
    pd.DataFrame with columns dataset, strategy, n_imputed, RMSE, MAE, NRMSE,
    Pearson_r, sorted by dataset then RMSE
    """
    rows = []
    for dataset_name, by_strategy in imputed.items():
        for strategy, imputed_matrix in by_strategy.items():
            metrics = evaluate_imputation(reference, variants[dataset_name], imputed_matrix)
            rows.append({"dataset": dataset_name, "strategy": strategy, **metrics})

    columns = ["dataset", "strategy", "n_imputed", "RMSE", "MAE", "NRMSE", "Pearson_r"]
    summary = pd.DataFrame(rows, columns=columns)
    if not summary.empty:
        summary = summary.sort_values(["dataset", "RMSE"], kind="stable").reset_index(drop=True)
    return summary
