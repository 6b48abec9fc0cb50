"""
Pipeline Module for Proteomics Imputation Toolkit

Stage (a): load, filter, log-transform, normalize, extract the complete
matrix and simulate missingness variants.
Stage (b): run the imputation sweep over the persisted variants.
"""

import os
import re
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from .config import PipelineConfig
from .data_import import (
    clean_sample_names,
    identify_intensity_columns,
    load_intensity_data,
    match_samples_to_metadata,
    set_feature_index,
)
from .export import (
    export_complete_dataset,
    export_missingness_variants,
    export_timestamped_config,
    load_missingness_variants,
)
from .imputation import run_imputation_sweep
from .missingness import generate_missingness_variants
from .normalization import median_normalize
from .preprocessing import (
    extract_complete_cases,
    filter_contaminants,
    filter_proteins_by_missingness,
    log_transform,
)
from .validation import validate_metadata_data_consistency
from .visualization import plot_imputation_error, plot_missingness_by_sample


def prepare_complete_dataset(
    config: PipelineConfig,
) -> Tuple[pd.DataFrame, Optional[Dict[str, Dict[str, Any]]]]:
    """
    Build the complete normalized reference matrix.

    load -> intensity columns -> contaminant/reverse filter -> log transform
    -> missingness filter -> median normalization -> complete cases.

    Returns:
    --------
    complete : pd.DataFrame
        Proteins x samples matrix without missing values (cleaned sample names)
    sample_metadata : dict or None
        Sample metadata keyed by cleaned sample name, if a metadata file was given
    """
    raw_data, metadata = load_intensity_data(config.raw_data_file, config.metadata_file)
    raw_data = set_feature_index(raw_data, config.id_column)

    intensity_columns = identify_intensity_columns(raw_data, config.intensity_pattern)

    if config.filter_contaminants:
        raw_data = filter_contaminants(
            raw_data,
            contaminant_column=config.contaminant_column,
            reverse_column=config.reverse_column,
            contaminant_marker=config.contaminant_marker,
            reverse_marker=config.reverse_marker,
            site_column=config.site_column,
        )

    data = log_transform(raw_data, intensity_columns, base=config.log_base)
    data = filter_proteins_by_missingness(data, intensity_columns, config.max_missing_fraction)
    data = median_normalize(data, intensity_columns)

    complete = extract_complete_cases(data, intensity_columns)

    if config.remove_common_prefix:
        # The intensity pattern is a regex, so strip its first match
        stripped = {col: re.sub(config.intensity_pattern, "", col, count=1)
                    for col in intensity_columns}
        cleaned_names = clean_sample_names(list(stripped.values()), common_prefix="")
        renamed = {col: cleaned_names[stripped[col]] for col in intensity_columns}
    else:
        renamed = {col: col for col in intensity_columns}
    complete = complete.rename(columns=renamed)

    sample_metadata = None
    if metadata is not None:
        cleaned = {renamed[col]: renamed[col] for col in intensity_columns}
        sample_metadata = match_samples_to_metadata(cleaned, metadata, config.sample_column)
        validate_metadata_data_consistency(
            metadata, list(complete.columns), config.sample_column
        )

    return complete, sample_metadata


def build_missingness_variants(
    complete: pd.DataFrame, config: PipelineConfig, output_dir: Optional[str] = None
) -> Dict[str, pd.DataFrame]:
    """
    Simulate every (proportion, mechanism) variant and optionally persist it.
    """
    variants = generate_missingness_variants(
        complete,
        proportions=config.missing_proportions,
        mechanisms=config.missing_mechanisms,
        random_seed=config.random_seed,
    )

    if output_dir is not None:
        export_complete_dataset(complete, output_dir)
        export_missingness_variants(variants, output_dir)

    return variants


def run_pipeline(config: PipelineConfig) -> Dict[str, Any]:
    """
    Run both stages end to end.

    The imputation stage reads back the variants built in this run from the
    output directory, so it sees exactly what was persisted. Variant files
    left in the directory by earlier runs are not imputed.

    Returns:
    --------
    dict with 'complete', 'variants', 'sweep', 'sample_metadata' and 'config_file'
    """
    config.validate()
    output_dir = config.output_dir
    os.makedirs(output_dir, exist_ok=True)

    print("=" * 60)
    print("STAGE 1: DATA PREPARATION AND MISSINGNESS SIMULATION")
    print("=" * 60)

    complete, sample_metadata = prepare_complete_dataset(config)
    built = build_missingness_variants(complete, config, output_dir)

    print("=" * 60)
    print("STAGE 2: IMPUTATION")
    print("=" * 60)

    variants = load_missingness_variants(output_dir, names=list(built))
    sweep = run_imputation_sweep(
        variants,
        strategies=config.imputation_strategies,
        config=config,
        output_dir=output_dir,
        reference=complete,
    )

    if config.plot_heatmaps and variants:
        plot_missingness_by_sample(
            variants, output_file=os.path.join(output_dir, "missingness_by_sample.png")
        )
        if sweep.evaluation is not None and not sweep.evaluation.empty:
            plot_imputation_error(
                sweep.evaluation, output_file=os.path.join(output_dir, "imputation_rmse.png")
            )

    config_file = export_timestamped_config(
        config.to_dict(),
        output_prefix=os.path.join(output_dir, "imputation_analysis"),
        computed_values={
            "complete_proteins": len(complete),
            "samples": complete.shape[1],
            "variants": len(variants),
        },
    )

    return {
        "complete": complete,
        "variants": variants,
        "sweep": sweep,
        "sample_metadata": sample_metadata,
        "config_file": config_file,
    }
