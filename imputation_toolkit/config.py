"""
Pipeline Configuration for Proteomics Imputation Toolkit

A plain attribute class holding every recognized option, with validation and
conversion to and from dictionaries and Python-syntax configuration files
(the format written by ``export.export_timestamped_config``).
"""

import os
import runpy
from typing import Any, Dict

from .validation import ConfigurationError


class PipelineConfig:
    """Configuration class for the simulation and imputation pipeline

    Stage (a) settings control loading, filtering, normalization and
    missingness simulation; stage (b) settings control the imputation sweep.
    ``test_size`` and ``random_seed`` are also used by downstream
    classification helpers.
    """

    def __init__(self):
        # Input files and paths
        self.raw_data_file = None
        self.output_dir = "results"
        self.metadata_file = None
        self.sample_column = None   # Metadata join column, auto-detected if None
        self.id_column = None       # Feature identifier column, first column if None
        self.intensity_pattern = "LFQ intensity "
        self.remove_common_prefix = True

        # Quality filtering
        self.filter_contaminants = True
        self.contaminant_column = "Potential contaminant"
        self.contaminant_marker = "+"
        self.reverse_column = "Reverse"
        self.reverse_marker = "+"
        self.site_column = None     # e.g. "Only identified by site"
        self.max_missing_fraction = 0.5

        # Transformation
        self.log_base = 2

        # Missingness simulation
        self.missing_proportions = [0.1, 0.2, 0.3]
        self.missing_mechanisms = ["MCAR", "MAR", "MNAR"]

        # Imputation sweep
        self.imputation_strategies = ["mean", "median", "knn", "bpca", "missforest"]
        self.knn_neighbors = 5
        self.bpca_components = None  # None for n_samples - 1
        self.bpca_max_iter = 100
        self.missforest_estimators = 100
        self.missforest_max_iter = 10
        self.dae_hidden_dim = 64
        self.dae_epochs = 200
        self.dae_corruption = 0.2
        self.dae_learning_rate = 1e-3

        # Reporting
        self.plot_heatmaps = True

        # Downstream ML and reproducibility
        self.test_size = 0.2
        self.random_seed = 42

    def validate(self):
        """Validate option values; raise ConfigurationError on the first problem"""
        # Local imports keep config importable without the simulation modules
        from .missingness import MissingnessMechanism
        from .imputation import ImputationStrategy

        if not self.raw_data_file:
            raise ConfigurationError("raw_data_file must be set")

        for proportion in self.missing_proportions:
            if not 0 <= float(proportion) <= 1:
                raise ConfigurationError(f"Missing proportions must be in [0, 1], got {proportion}")

        for mechanism in self.missing_mechanisms:
            MissingnessMechanism.parse(mechanism)

        if not self.imputation_strategies:
            raise ConfigurationError("At least one imputation strategy is required")
        for strategy in self.imputation_strategies:
            ImputationStrategy.parse(strategy)

        if int(self.knn_neighbors) < 1:
            raise ConfigurationError("knn_neighbors must be at least 1")

        if not 0 <= float(self.max_missing_fraction) <= 1:
            raise ConfigurationError("max_missing_fraction must be in [0, 1]")

        if not 0 < float(self.test_size) < 1:
            raise ConfigurationError("test_size must be between 0 and 1")

        if float(self.log_base) <= 1:
            raise ConfigurationError(f"Invalid log_base: {self.log_base}")

        return True

    def to_dict(self) -> Dict[str, Any]:
        return dict(vars(self))

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PipelineConfig":
        """Build a configuration from a dict; unknown keys are rejected"""
        config = cls()
        known = set(vars(config))
        unknown = sorted(k for k in values if k not in known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {unknown}")
        for key, value in values.items():
            setattr(config, key, value)
        return config

    @classmethod
    def from_file(cls, path: str) -> "PipelineConfig":
        """
        Read a Python-syntax configuration file.

        Module-level names matching configuration options are used; other
        names (imports, helper variables) are ignored.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found: {path}")

        namespace = runpy.run_path(path)
        known = set(vars(cls()))
        values = {k: v for k, v in namespace.items() if k in known}
        print(f"Loaded {len(values)} configuration options from {path}")
        return cls.from_dict(values)
