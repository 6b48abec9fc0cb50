"""
Tests for imputation evaluation module
"""

import numpy as np
import pandas as pd
import pytest

from imputation_toolkit.evaluation import evaluate_imputation, summarize_sweep


@pytest.fixture
def reference():
    return pd.DataFrame({"S1": [1.0, 3.0, 5.0], "S2": [2.0, 4.0, 6.0]}, index=["a", "b", "c"])


class TestEvaluateImputation:
    """Test accuracy metrics on removed cells"""

    def test_known_errors(self, reference):
        with_missing = reference.copy()
        with_missing.loc["a", "S1"] = np.nan
        with_missing.loc["b", "S2"] = np.nan
        imputed = reference.copy()
        imputed.loc["a", "S1"] = 2.0
        imputed.loc["b", "S2"] = 3.0

        metrics = evaluate_imputation(reference, with_missing, imputed)

        assert metrics["n_imputed"] == 2
        assert metrics["RMSE"] == pytest.approx(1.0)
        assert metrics["MAE"] == pytest.approx(1.0)
        # true values 1 and 4 have std 1.5
        assert metrics["NRMSE"] == pytest.approx(1.0 / 1.5)

    def test_perfect_imputation(self, reference):
        with_missing = reference.copy()
        with_missing.iloc[:, 0] = np.nan

        metrics = evaluate_imputation(reference, with_missing, reference)

        assert metrics["RMSE"] == 0.0
        assert metrics["Pearson_r"] == pytest.approx(1.0)

    def test_nothing_removed(self, reference):
        metrics = evaluate_imputation(reference, reference, reference)

        assert metrics["n_imputed"] == 0
        assert np.isnan(metrics["RMSE"])
        assert np.isnan(metrics["Pearson_r"])

    def test_aligns_on_labels(self, reference):
        with_missing = reference.loc[["c", "a"]].copy()
        with_missing.loc["c", "S1"] = np.nan
        imputed = with_missing.fillna(5.0)

        metrics = evaluate_imputation(reference, with_missing, imputed)

        assert metrics["RMSE"] == 0.0


class TestSummarizeSweep:
    """Test the tidy sweep table"""

    def test_sorted_by_dataset_then_rmse(self, reference):
        variant = reference.copy()
        variant.loc["a", "S1"] = np.nan
        variants = {"missing_MCAR_10": variant}
        imputed = {
            "missing_MCAR_10": {
                "mean": variant.fillna(4.0),
                "knn": variant.fillna(1.5),
            }
        }

        summary = summarize_sweep(imputed, reference, variants)

        assert list(summary.columns) == [
            "dataset", "strategy", "n_imputed", "RMSE", "MAE", "NRMSE", "Pearson_r"
        ]
        assert summary["strategy"].tolist() == ["knn", "mean"]
        assert summary["RMSE"].tolist() == pytest.approx([0.5, 3.0])

    def test_empty(self, reference):
        summary = summarize_sweep({}, reference, {})

        assert summary.empty
        assert "RMSE" in summary.columns
