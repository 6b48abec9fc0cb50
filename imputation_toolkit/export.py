"""
Export Module for Proteomics Imputation Toolkit

Writes and reloads the complete matrix, the missingness variants and the
imputed matrices as CSV, plus the missing-value count log and a timestamped
configuration record.
"""

import glob
import os
import re
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Any, Optional, List

import pandas as pd

from .missingness import variant_name

INDEX_LABEL = "Protein"
VARIANT_NAME_PATTERN = re.compile(r"^missing_(MCAR|MAR|MNAR)_\d+$")


def variant_file_name(mechanism, proportion: float) -> str:
    """File name of a missingness variant, e.g. ``missing_MNAR_30.csv``."""
    return f"{variant_name(mechanism, proportion)}.csv"


def imputed_file_name(dataset_name: str, strategy: str) -> str:
    """File name of an imputed matrix, e.g. ``missing_MCAR_10_knn_imputed.csv``."""
    return f"{dataset_name}_{strategy}_imputed.csv"


def export_dataset(data: pd.DataFrame, output_file: str) -> str:
    """
    Write a matrix as CSV with its row identifiers as the first column.

    Parameters:
    -----------
    data : pd.DataFrame
        Proteins x samples matrix
    output_file : str
        Destination path; the parent directory is created if needed

    Returns:
    --------
    str : Path written
    """
    directory = os.path.dirname(output_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    data.to_csv(output_file, index=True, index_label=data.index.name or INDEX_LABEL)
    return output_file


def load_dataset(path: str) -> pd.DataFrame:
    """Reload a matrix written by ``export_dataset``."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Dataset file not found: {path}")
    # Identifiers are read as text so accessions like "001" keep their zeros
    id_column = pd.read_csv(path, nrows=0).columns[0]
    data = pd.read_csv(path, dtype={id_column: str}).set_index(id_column)
    return data


def export_complete_dataset(complete: pd.DataFrame, output_dir: str,
                            file_name: str = "complete_normalized.csv") -> str:
    """Write the complete normalized reference matrix."""
    path = export_dataset(complete, os.path.join(output_dir, file_name))
    print(f"Complete normalized data exported to: {path}")
    return path


def export_missingness_variants(variants: Dict[str, pd.DataFrame],
                                output_dir: str) -> Dict[str, str]:
    """
    Write each missingness variant as ``<variant name>.csv``.

    Returns:
    --------
    dict
        Variant name -> file path
    """
    print("Exporting missingness variants...")

    exported_files = OrderedDict()
    for name, data in variants.items():
        exported_files[name] = export_dataset(data, os.path.join(output_dir, f"{name}.csv"))
        print(f"  {name} -> {exported_files[name]}")

    return exported_files


def load_missingness_variants(output_dir: str, pattern: str = "missing_*.csv",
                              names: Optional[List[str]] = None) -> Dict[str, pd.DataFrame]:
    """
    Reload persisted missingness variants.

    Only files named like ``missing_<MECHANISM>_<PERCENT>.csv`` are read, so
    imputed outputs and logs in the same directory are ignored.

    Parameters:
    -----------
    output_dir : str
        Directory holding the variant CSVs
    pattern : str
        Glob used to list candidate files when ``names`` is not given
    names : list of str, optional
        Exact variant names to read, in this order. Other variant files in
        the directory (e.g. from an earlier run) are left alone.

    Returns:
    --------
    OrderedDict of variant name -> matrix, sorted by file name unless
    ``names`` is given
    """
    if names is not None:
        paths = [os.path.join(output_dir, f"{name}.csv") for name in names]
    else:
        paths = sorted(glob.glob(os.path.join(output_dir, pattern)))

    variants = OrderedDict()
    for path in paths:
        name = os.path.splitext(os.path.basename(path))[0]
        if not VARIANT_NAME_PATTERN.match(name):
            continue
        variants[name] = load_dataset(path)

    print(f"Loaded {len(variants)} missingness variants from {output_dir}")
    return variants


def export_imputed_dataset(imputed: pd.DataFrame, output_dir: str,
                           dataset_name: str, strategy: str) -> str:
    """Write one imputed matrix as ``<dataset>_<strategy>_imputed.csv``."""
    return export_dataset(imputed, os.path.join(output_dir, imputed_file_name(dataset_name, strategy)))


def export_missing_value_log(counts: Dict[str, Dict[str, Any]], output_file: str) -> str:
    """
    Write the missing-value count log, one row per dataset.

    Parameters:
    -----------
    counts : dict
        Dataset name -> {'n_missing', 'n_total', 'missing_fraction'}
    output_file : str
        Destination CSV
    """
    log = pd.DataFrame.from_dict(counts, orient="index")
    log.index.name = "dataset"

    directory = os.path.dirname(output_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    log.to_csv(output_file)

    print(f"Missing value log exported to: {output_file}")
    return output_file


def export_timestamped_config(
    config_dict: Dict[str, Any],
    output_prefix: str = "imputation_analysis",
    analysis_description: str = "Missingness simulation and imputation",
    computed_values: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Export analysis configuration as a timestamped Python file.

    The file can be passed back to the command line with ``--config``.

    Parameters:
    -----------
    config_dict : dict
        Dictionary containing all configuration parameters
    output_prefix : str
        Prefix for the configuration filename (may include a directory)
    analysis_description : str
        Description of the analysis
    computed_values : dict, optional
        Additional computed values to include as comments

    Returns:
    --------
    str
        Path to the exported configuration file
    """

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    config_file = f"{output_prefix}_config_{timestamp}.py"

    directory = os.path.dirname(config_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    print(f"Exporting analysis configuration to: {config_file}")

    section_configs = [
        (
            1,
            "INPUT FILES AND PATHS",
            ["raw_data_file", "output_dir", "metadata_file", "sample_column",
             "id_column", "intensity_pattern", "remove_common_prefix"],
        ),
        (
            2,
            "QUALITY FILTERING",
            ["filter_contaminants", "contaminant_column", "contaminant_marker",
             "reverse_column", "reverse_marker", "site_column", "max_missing_fraction"],
        ),
        (3, "TRANSFORMATION", ["log_base"]),
        (4, "MISSINGNESS SIMULATION", ["missing_proportions", "missing_mechanisms"]),
        (
            5,
            "IMPUTATION STRATEGIES",
            ["imputation_strategies", "knn_neighbors", "bpca_components", "bpca_max_iter",
             "missforest_estimators", "missforest_max_iter", "dae_hidden_dim", "dae_epochs",
             "dae_corruption", "dae_learning_rate"],
        ),
        (6, "REPORTING", ["plot_heatmaps"]),
        (7, "DOWNSTREAM ML AND REPRODUCIBILITY", ["test_size", "random_seed"]),
    ]

    written = set()
    with open(config_file, "w", encoding="utf-8") as f:
        f.write(
            "# =============================================================================\n"
        )
        f.write("# PROTEOMICS IMPUTATION CONFIGURATION\n")
        f.write(f"# Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"# Analysis: {analysis_description}\n")
        f.write(
            "# =============================================================================\n\n"
        )

        for section_num, section_name, param_names in section_configs:
            _write_config_section(f, section_name, config_dict, param_names, section_num)
            written.update(param_names)

        extra = [k for k in config_dict if k not in written]
        if extra:
            _write_config_section(f, "OTHER SETTINGS", config_dict, extra,
                                  len(section_configs) + 1)

        if computed_values:
            f.write(
                "# =============================================================================\n"
            )
            f.write("# COMPUTED VALUES (for reference)\n")
            f.write(
                "# =============================================================================\n"
            )
            for key, value in computed_values.items():
                f.write(f"# {key}: {value}\n")

    return config_file


def _write_config_section(
    file_handle,
    section_name: str,
    config_dict: Dict[str, Any],
    param_names: List[str],
    section_number: int = 1,
) -> None:
    """Write a configuration section to file."""

    file_handle.write(
        "# =============================================================================\n"
    )
    file_handle.write(f"# {section_number}. {section_name}\n")
    file_handle.write(
        "# =============================================================================\n"
    )

    for param in param_names:
        if param in config_dict:
            value = config_dict[param]
            file_handle.write(f"{param} = {repr(value)}\n")

    file_handle.write("\n")
