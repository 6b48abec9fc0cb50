"""
Proteomics Imputation Toolkit
=============================

A Python library for benchmarking missing-value imputation on label-free
proteomics intensity data (e.g. MaxQuant LFQ intensities). It prepares a
complete reference matrix, synthesizes missing values under MCAR, MAR and MNAR
mechanisms, and runs a set of imputation strategies over every variant.

QUICK START EXAMPLE:
-------------------
    import imputation_toolkit as itk

    # 1. Configure
    config = itk.PipelineConfig()
    config.raw_data_file = 'proteinGroups.txt'
    config.output_dir = 'results'

    # 2. Run both stages
    outputs = itk.run_pipeline(config)

    # Or step by step
    complete, _ = itk.prepare_complete_dataset(config)
    variants = itk.generate_missingness_variants(complete, [0.1, 0.2], ['MCAR', 'MAR'], random_seed=42)
    sweep = itk.run_imputation_sweep(variants, ['mean', 'knn'], config, reference=complete)
    print(sweep.evaluation)

MODULE OVERVIEW:
===============

data_import
    Purpose: Load intensity tables and metadata, find intensity columns
    Key functions: load_intensity_data(), identify_intensity_columns()

preprocessing
    Purpose: Contaminant/reverse filtering, missingness filtering, log transform
    Key functions: filter_contaminants(), filter_proteins_by_missingness(), log_transform()

normalization
    Purpose: Column-wise median normalization on the log scale
    Key functions: median_normalize()

missingness
    Purpose: Simulate MCAR / MAR / MNAR missing values
    Key functions: simulate_missingness(), generate_missingness_variants()

imputation
    Purpose: Imputation strategies and the dataset x strategy sweep
    Key functions: impute_dataframe(), run_imputation_sweep(), ImputationStrategy

evaluation
    Purpose: Accuracy of imputed values against the complete matrix
    Key functions: evaluate_imputation(), summarize_sweep()

visualization
    Purpose: Missingness heatmaps and QC plots
    Key functions: plot_missingness_heatmap(), plot_imputation_error()

export
    Purpose: CSV persistence of complete, variant and imputed matrices
    Key functions: export_missingness_variants(), load_missingness_variants()

validation
    Purpose: Error types and metadata consistency checks
    Key functions: validate_metadata_data_consistency()

ERROR HANDLING:
==============
- ConfigurationError (IntensityColumnError, AnnotationColumnError): fatal, the run stops
- MissingnessWarning: recoverable condition, processing continues
- InvariantViolationError: internal consistency check failed (a bug)
"""

from . import data_import
from . import preprocessing
from . import normalization
from . import missingness
from . import imputation
from . import evaluation
from . import visualization
from . import export
from . import validation
from . import config
from . import pipeline

__version__ = "1.0.0"

from .config import PipelineConfig

from .data_import import (
    load_intensity_data,
    identify_intensity_columns,
    set_feature_index,
    clean_sample_names,
    match_samples_to_metadata,
)

from .preprocessing import (
    filter_contaminants,
    filter_proteins_by_missingness,
    log_transform,
    extract_complete_cases,
    assess_data_completeness,
    train_test_split_samples,
)

from .normalization import median_normalize

from .missingness import (
    MissingnessMechanism,
    simulate_mcar,
    simulate_mnar,
    simulate_mar,
    simulate_missingness,
    generate_missingness_variants,
    missingness_summary,
)

from .imputation import (
    ImputationStrategy,
    BPCAImputer,
    DenoisingAutoencoderImputer,
    get_imputer,
    impute_dataframe,
    run_imputation_sweep,
    SweepResult,
)

from .evaluation import evaluate_imputation, summarize_sweep

from .export import (
    export_dataset,
    load_dataset,
    export_complete_dataset,
    export_missingness_variants,
    load_missingness_variants,
    export_imputed_dataset,
    export_missing_value_log,
    export_timestamped_config,
)

from .visualization import (
    plot_missingness_heatmap,
    plot_missingness_by_sample,
    plot_intensity_distributions,
    plot_imputation_error,
)

from .validation import (
    validate_metadata_data_consistency,
    ConfigurationError,
    IntensityColumnError,
    AnnotationColumnError,
    InvariantViolationError,
    MissingnessWarning,
)

from .pipeline import (
    prepare_complete_dataset,
    build_missingness_variants,
    run_pipeline,
)

__all__ = [
    # MODULES
    "data_import",
    "preprocessing",
    "normalization",
    "missingness",
    "imputation",
    "evaluation",
    "visualization",
    "export",
    "validation",
    "config",
    "pipeline",

    # CONFIGURATION
    "PipelineConfig",

    # DATA LOADING
    "load_intensity_data",
    "identify_intensity_columns",
    "set_feature_index",
    "clean_sample_names",
    "match_samples_to_metadata",

    # PREPROCESSING
    "filter_contaminants",
    "filter_proteins_by_missingness",
    "log_transform",
    "extract_complete_cases",
    "assess_data_completeness",
    "train_test_split_samples",

    # NORMALIZATION
    "median_normalize",

    # MISSINGNESS SIMULATION
    "MissingnessMechanism",
    "simulate_mcar",
    "simulate_mnar",
    "simulate_mar",
    "simulate_missingness",
    "generate_missingness_variants",
    "missingness_summary",

    # IMPUTATION
    "ImputationStrategy",
    "BPCAImputer",
    "DenoisingAutoencoderImputer",
    "get_imputer",
    "impute_dataframe",
    "run_imputation_sweep",
    "SweepResult",

    # EVALUATION
    "evaluate_imputation",
    "summarize_sweep",

    # EXPORT
    "export_dataset",
    "load_dataset",
    "export_complete_dataset",
    "export_missingness_variants",
    "load_missingness_variants",
    "export_imputed_dataset",
    "export_missing_value_log",
    "export_timestamped_config",

    # VISUALIZATION
    "plot_missingness_heatmap",
    "plot_missingness_by_sample",
    "plot_intensity_distributions",
    "plot_imputation_error",

    # VALIDATION
    "validate_metadata_data_consistency",
    "ConfigurationError",
    "IntensityColumnError",
    "AnnotationColumnError",
    "InvariantViolationError",
    "MissingnessWarning",

    # PIPELINE
    "prepare_complete_dataset",
    "build_missingness_variants",
    "run_pipeline",
]
