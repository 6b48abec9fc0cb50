"""
Tests for visualization functions
"""

import os
from unittest.mock import patch

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from imputation_toolkit.visualization import (
    plot_imputation_error,
    plot_intensity_distributions,
    plot_missingness_by_sample,
    plot_missingness_heatmap,
)


@pytest.fixture
def data_with_missing(complete_matrix):
    data = complete_matrix.copy()
    data.iloc[::4, 1] = np.nan
    data.iloc[3, :] = np.nan
    return data


class TestMissingnessHeatmap:
    """Test the missing-position heatmap"""

    def test_saves_png(self, data_with_missing, temp_dir):
        output_file = os.path.join(temp_dir, "heatmap.png")

        result = plot_missingness_heatmap(data_with_missing, "Test", output_file=output_file)

        assert result == output_file
        assert os.path.getsize(output_file) > 0

    def test_creates_parent_directory(self, data_with_missing, temp_dir):
        output_file = os.path.join(temp_dir, "plots", "heatmap.png")

        plot_missingness_heatmap(data_with_missing, output_file=output_file)

        assert os.path.exists(output_file)

    def test_complete_matrix(self, complete_matrix, temp_dir):
        output_file = os.path.join(temp_dir, "complete.png")

        plot_missingness_heatmap(complete_matrix, output_file=output_file)

        assert os.path.exists(output_file)

    def test_shown_without_output_file(self, data_with_missing):
        with patch("matplotlib.pyplot.show") as show:
            result = plot_missingness_heatmap(data_with_missing)
            plt.close("all")

        assert result is None
        show.assert_called_once()


class TestSummaryPlots:
    """Test per-sample and per-strategy summary plots"""

    def test_missingness_by_sample(self, complete_matrix, data_with_missing, temp_dir):
        output_file = os.path.join(temp_dir, "by_sample.png")

        plot_missingness_by_sample(
            {"complete": complete_matrix, "gappy": data_with_missing}, output_file=output_file
        )

        assert os.path.exists(output_file)

    def test_intensity_distributions(self, data_with_missing):
        with patch("matplotlib.pyplot.show"):
            plot_intensity_distributions(data_with_missing, title="QC")
            plt.close("all")

    def test_imputation_error(self, temp_dir):
        summary = pd.DataFrame({
            "dataset": ["missing_MCAR_10", "missing_MCAR_10", "missing_MNAR_10", "missing_MNAR_10"],
            "strategy": ["mean", "knn", "mean", "knn"],
            "RMSE": [1.2, 0.4, 2.5, 1.1],
        })
        output_file = os.path.join(temp_dir, "rmse.png")

        plot_imputation_error(summary, output_file=output_file)

        assert os.path.exists(output_file)

    def test_imputation_error_unknown_metric(self):
        summary = pd.DataFrame({"dataset": ["a"], "strategy": ["mean"], "RMSE": [1.0]})

        with pytest.raises(ValueError):
            plot_imputation_error(summary, metric="R2")
