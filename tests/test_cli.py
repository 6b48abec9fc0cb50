"""
Tests for the command line entry point
"""

import os

from imputation_toolkit.cli import build_parser, config_from_args, main
from imputation_toolkit.export import export_timestamped_config


class TestArgumentParsing:
    """Test option handling"""

    def test_overrides(self):
        args = build_parser().parse_args([
            "--raw-data", "pg.txt",
            "--proportions", "0.05", "0.15",
            "--mechanisms", "MNAR",
            "--strategies", "mean", "knn",
            "--knn-neighbors", "3",
            "--no-plots",
        ])

        config = config_from_args(args)

        assert config.raw_data_file == "pg.txt"
        assert config.missing_proportions == [0.05, 0.15]
        assert config.missing_mechanisms == ["MNAR"]
        assert config.imputation_strategies == ["mean", "knn"]
        assert config.knn_neighbors == 3
        assert config.plot_heatmaps is False
        # Untouched options keep their defaults
        assert config.filter_contaminants is True
        assert config.random_seed == 42

    def test_config_file_then_overrides(self, temp_dir):
        path = export_timestamped_config(
            {"raw_data_file": "from_file.txt", "knn_neighbors": 9, "random_seed": 1},
            output_prefix=os.path.join(temp_dir, "cli"),
        )

        args = build_parser().parse_args(["--config", path, "--seed", "7"])
        config = config_from_args(args)

        assert config.raw_data_file == "from_file.txt"
        assert config.knn_neighbors == 9
        assert config.random_seed == 7


class TestMain:
    """Test exit codes"""

    def test_configuration_error_exit_code(self, capsys):
        assert main(["--strategies", "mean"]) == 1

        assert "ERROR" in capsys.readouterr().err

    def test_missing_config_file(self, temp_dir, capsys):
        assert main(["--config", os.path.join(temp_dir, "nope.py")]) == 1

    def test_successful_run(self, maxquant_files, temp_dir):
        raw_file, _ = maxquant_files
        output_dir = os.path.join(temp_dir, "cli_results")

        exit_code = main([
            "--raw-data", raw_file,
            "--output-dir", output_dir,
            "--proportions", "0.1",
            "--mechanisms", "MCAR", "MNAR",
            "--strategies", "mean", "median",
            "--no-plots",
        ])

        assert exit_code == 0
        assert os.path.exists(os.path.join(output_dir, "missing_MCAR_10_median_imputed.csv"))
        assert os.path.exists(os.path.join(output_dir, "missing_MNAR_10_mean_imputed.csv"))
