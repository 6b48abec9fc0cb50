"""
Command line entry point.

    python -m imputation_toolkit --config my_config.py
    python -m imputation_toolkit --raw-data proteinGroups.txt --output-dir results \\
        --proportions 0.1 0.2 --mechanisms MCAR MNAR --strategies mean knn
"""

import argparse
import sys

from .config import PipelineConfig
from .pipeline import run_pipeline
from .validation import ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imputation_toolkit",
        description="Simulate missing values in proteomics intensity data and benchmark imputation",
    )
    parser.add_argument("--config", help="Python-syntax configuration file")
    parser.add_argument("--raw-data", dest="raw_data_file", help="Intensity table (CSV/TSV)")
    parser.add_argument("--output-dir", dest="output_dir", help="Output directory")
    parser.add_argument("--metadata", dest="metadata_file", help="Sample metadata table")
    parser.add_argument("--intensity-pattern", dest="intensity_pattern",
                        help="Pattern identifying intensity columns")
    parser.add_argument("--proportions", dest="missing_proportions", type=float, nargs="+",
                        help="Missing proportions, e.g. 0.1 0.2 0.3")
    parser.add_argument("--mechanisms", dest="missing_mechanisms", nargs="+",
                        help="Missingness mechanisms (MCAR, MAR, MNAR)")
    parser.add_argument("--strategies", dest="imputation_strategies", nargs="+",
                        help="Imputation strategies (mean, median, knn, bpca, missforest, dae)")
    parser.add_argument("--knn-neighbors", dest="knn_neighbors", type=int,
                        help="k for k-nearest-neighbors imputation")
    parser.add_argument("--seed", dest="random_seed", type=int, help="Random seed")
    parser.add_argument("--no-filter", dest="filter_contaminants", action="store_false",
                        default=None, help="Skip contaminant/reverse filtering")
    parser.add_argument("--no-plots", dest="plot_heatmaps", action="store_false",
                        default=None, help="Skip heatmaps and summary plots")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    """Configuration file first, then command line overrides."""
    config = PipelineConfig.from_file(args.config) if args.config else PipelineConfig()

    for key, value in vars(args).items():
        if key == "config" or value is None:
            continue
        setattr(config, key, value)

    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        run_pipeline(config)
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    return 0
