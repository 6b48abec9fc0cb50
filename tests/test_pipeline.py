"""
End-to-end tests for the two pipeline stages
"""

import glob
import os

import numpy as np
import pandas as pd
import pytest

from imputation_toolkit.export import load_dataset
from imputation_toolkit.pipeline import (
    build_missingness_variants,
    prepare_complete_dataset,
    run_pipeline,
)
from imputation_toolkit.validation import AnnotationColumnError, ConfigurationError


class TestPrepareCompleteDataset:
    """Test stage (a) data preparation"""

    def test_complete_matrix(self, fast_config):
        complete, sample_metadata = prepare_complete_dataset(fast_config)

        # 3 flagged rows, 1 row over the missingness limit, 2 rows with a zero
        assert complete.shape == (34, 6)
        assert list(complete.columns) == ["S1", "S2", "S3", "S4", "S5", "S6"]
        assert not complete.isna().any().any()
        assert "P00000" not in complete.index
        assert "P00005" not in complete.index

    def test_median_normalized(self, fast_config):
        complete, _ = prepare_complete_dataset(fast_config)

        # Medians were zeroed before complete-case extraction
        assert complete.median().abs().max() < 1.0

    def test_sample_metadata_matched(self, fast_config):
        _, sample_metadata = prepare_complete_dataset(fast_config)

        assert sample_metadata["S4"]["Group"] == "Treatment"
        assert all(entry["matched"] for entry in sample_metadata.values())

    def test_without_metadata(self, fast_config):
        fast_config.metadata_file = None

        complete, sample_metadata = prepare_complete_dataset(fast_config)

        assert sample_metadata is None
        assert len(complete) == 34

    def test_without_filtering(self, fast_config):
        fast_config.filter_contaminants = False

        complete, _ = prepare_complete_dataset(fast_config)

        assert len(complete) == 37

    def test_missing_annotation_column(self, fast_config):
        fast_config.reverse_column = "Reverse hit"

        with pytest.raises(AnnotationColumnError):
            prepare_complete_dataset(fast_config)

    def test_anchored_intensity_pattern(self, fast_config):
        fast_config.intensity_pattern = "^LFQ intensity "

        complete, sample_metadata = prepare_complete_dataset(fast_config)

        assert list(complete.columns) == ["S1", "S2", "S3", "S4", "S5", "S6"]
        assert all(entry["matched"] for entry in sample_metadata.values())

    def test_no_intensity_columns(self, fast_config):
        fast_config.intensity_pattern = "iBAQ "

        with pytest.raises(ConfigurationError):
            prepare_complete_dataset(fast_config)


class TestBuildVariants:
    """Test variant generation and persistence"""

    def test_persisted(self, fast_config, complete_matrix, temp_dir):
        output_dir = os.path.join(temp_dir, "variants")

        variants = build_missingness_variants(complete_matrix, fast_config, output_dir)

        assert len(variants) == 6
        assert os.path.exists(os.path.join(output_dir, "complete_normalized.csv"))
        for name in variants:
            assert os.path.exists(os.path.join(output_dir, f"{name}.csv"))

    def test_reproducible(self, fast_config, complete_matrix):
        a = build_missingness_variants(complete_matrix, fast_config)
        b = build_missingness_variants(complete_matrix, fast_config)

        for name in a:
            pd.testing.assert_frame_equal(a[name], b[name])


class TestRunPipeline:
    """Test both stages end to end"""

    def test_outputs(self, fast_config):
        outputs = run_pipeline(fast_config)
        output_dir = fast_config.output_dir

        assert len(outputs["variants"]) == 6
        assert set(outputs["sweep"].imputed) == set(outputs["variants"])

        for name in outputs["variants"]:
            for strategy in fast_config.imputation_strategies:
                path = os.path.join(output_dir, f"{name}_{strategy}_imputed.csv")
                imputed = load_dataset(path)
                assert imputed.shape == outputs["complete"].shape
                assert not imputed.isna().any().any()

        assert os.path.exists(os.path.join(output_dir, "missing_value_counts.csv"))
        assert os.path.exists(outputs["config_file"])

    def test_evaluation_table(self, fast_config):
        outputs = run_pipeline(fast_config)
        evaluation = outputs["sweep"].evaluation

        assert len(evaluation) == 6 * len(fast_config.imputation_strategies)
        assert (evaluation["n_imputed"] > 0).all()
        assert np.isfinite(evaluation["RMSE"]).all()

        saved = pd.read_csv(os.path.join(fast_config.output_dir, "imputation_evaluation.csv"))
        assert len(saved) == len(evaluation)

    def test_heatmaps(self, fast_config):
        fast_config.imputation_strategies = ["mean"]
        fast_config.plot_heatmaps = True

        run_pipeline(fast_config)

        heatmaps = glob.glob(os.path.join(fast_config.output_dir, "*_mean_missingness.png"))
        assert len(heatmaps) == 6
        assert os.path.exists(os.path.join(fast_config.output_dir, "missingness_by_sample.png"))
        assert os.path.exists(os.path.join(fast_config.output_dir, "imputation_rmse.png"))

    def test_rerun_with_smaller_grid(self, fast_config):
        fast_config.imputation_strategies = ["mean"]
        run_pipeline(fast_config)

        fast_config.missing_proportions = [0.1]
        outputs = run_pipeline(fast_config)

        expected = {"missing_MCAR_10", "missing_MAR_10", "missing_MNAR_10"}
        assert set(outputs["variants"]) == expected
        assert set(outputs["sweep"].imputed) == expected
        assert len(outputs["sweep"].evaluation) == 3

    def test_rerun_with_different_reference(self, fast_config):
        fast_config.imputation_strategies = ["mean"]
        fast_config.filter_contaminants = False
        first = run_pipeline(fast_config)

        fast_config.filter_contaminants = True
        second = run_pipeline(fast_config)

        assert len(first["complete"]) == 37
        assert len(second["complete"]) == 34
        for imputed in second["sweep"].imputed.values():
            assert list(imputed["mean"].index) == list(second["complete"].index)
        assert np.isfinite(second["sweep"].evaluation["RMSE"]).all()

    def test_invalid_config_stops_before_work(self, fast_config):
        fast_config.missing_mechanisms = ["MCAR", "bogus"]

        with pytest.raises(ConfigurationError):
            run_pipeline(fast_config)

        assert not glob.glob(os.path.join(fast_config.output_dir, "*.csv"))
