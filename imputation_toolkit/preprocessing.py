"""
Data Preprocessing Module for Proteomics Imputation Toolkit

Functions for quality filtering (contaminants, reverse decoys, missingness),
log transformation, and completeness assessment.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional, Tuple, Any
from sklearn.model_selection import train_test_split

from .validation import AnnotationColumnError, ConfigurationError


def _marker_mask(column: pd.Series, marker: str) -> pd.Series:
    """True where the annotation equals the marker (whitespace ignored)."""
    return column.astype(str).str.strip() == str(marker).strip()


def filter_contaminants(
    data: pd.DataFrame,
    contaminant_column: str = "Potential contaminant",
    reverse_column: str = "Reverse",
    contaminant_marker: str = "+",
    reverse_marker: str = "+",
    site_column: Optional[str] = None,
    site_marker: str = "+",
) -> pd.DataFrame:
    """
    Remove contaminant and reverse-decoy rows.

    Parameters:
    -----------
    data : pd.DataFrame
        Intensity table with feature annotation columns
    contaminant_column : str
        Annotation column flagging potential contaminants
    reverse_column : str
        Annotation column flagging reverse-decoy matches
    contaminant_marker, reverse_marker : str
        Value marking a flagged row
    site_column : str, optional
        Additional "only identified by site" column (MaxQuant). Not filtered if None.
    site_marker : str
        Value marking a site-only identification

    Returns:
    --------
    pd.DataFrame : Filtered data

    Raises:
    -------
    AnnotationColumnError: If a requested annotation column is absent
    """

    print("=== FILTERING CONTAMINANTS AND REVERSE HITS ===\n")

    required = [contaminant_column, reverse_column]
    if site_column is not None:
        required.append(site_column)

    absent = [col for col in required if col not in data.columns]
    if absent:
        raise AnnotationColumnError(
            f"Annotation columns required for filtering are missing: {absent}"
        )

    is_contaminant = _marker_mask(data[contaminant_column], contaminant_marker)
    is_reverse = _marker_mask(data[reverse_column], reverse_marker)
    remove = is_contaminant | is_reverse

    if site_column is not None:
        is_site_only = _marker_mask(data[site_column], site_marker)
        remove = remove | is_site_only
        print(f"Only identified by site: {is_site_only.sum()}")

    filtered_data = data[~remove].copy()

    print(f"Original proteins: {len(data)}")
    print(f"Contaminants: {is_contaminant.sum()}")
    print(f"Reverse hits: {is_reverse.sum()}")
    print(f"Removed: {len(data) - len(filtered_data)} proteins")

    return filtered_data


def filter_proteins_by_missingness(
    data: pd.DataFrame, sample_columns: List[str], max_missing_fraction: float = 0.5
) -> pd.DataFrame:
    """
    Filter proteins whose fraction of missing sample values exceeds a threshold.

    Parameters:
    -----------
    data : pd.DataFrame
        Protein intensity data (missing values as NaN)
    sample_columns : List[str]
        List of sample column names
    max_missing_fraction : float
        Maximum tolerated fraction of missing samples per protein (default: 0.5)

    Returns:
    --------
    pd.DataFrame : Filtered data
    """

    print("=== FILTERING PROTEINS BY MISSINGNESS ===\n")

    if not 0 <= max_missing_fraction <= 1:
        raise ConfigurationError(
            f"max_missing_fraction must be in [0, 1], got {max_missing_fraction}"
        )

    if len(sample_columns) == 0:
        return data.copy()

    missing_fraction = data[sample_columns].isna().sum(axis=1) / len(sample_columns)

    keep_proteins = missing_fraction <= max_missing_fraction
    filtered_data = data[keep_proteins].copy()

    print(f"Original proteins: {len(data)}")
    print(
        f"Proteins with ≤{max_missing_fraction * 100:.0f}% missing values: {len(filtered_data)}"
    )
    print(f"Removed: {len(data) - len(filtered_data)} proteins")

    return filtered_data


def log_transform(
    data: pd.DataFrame, sample_columns: List[str], base: float = 2
) -> pd.DataFrame:
    """
    Log-transform intensity columns.

    Zero and negative intensities mean "not detected" and become NaN before
    the transform, so absence is never encoded as a number.

    Parameters:
    -----------
    data : pd.DataFrame
        Raw intensity data
    sample_columns : List[str]
        Columns to transform; other columns are left untouched
    base : float
        Logarithm base (2, 10 or e)

    Returns:
    --------
    pd.DataFrame : Log-transformed data
    """
    result = data.copy()
    values = result[sample_columns].apply(pd.to_numeric, errors="coerce").astype(float)

    n_zero = int((values <= 0).sum().sum())
    values = values.where(values > 0)

    if base == 2:
        result[sample_columns] = np.log2(values)
    elif base == 10:
        result[sample_columns] = np.log10(values)
    else:
        result[sample_columns] = np.log(values) / np.log(base)

    print(f"Applied log{base:g} transformation to {len(sample_columns)} samples "
          f"({n_zero} zero/negative values set to missing)")

    return result


def extract_complete_cases(data: pd.DataFrame, sample_columns: List[str]) -> pd.DataFrame:
    """
    Numeric matrix of the proteins quantified in every sample.

    This is the reference matrix missingness variants are derived from.
    """
    matrix = data[sample_columns].astype(float)
    complete = matrix.dropna(axis=0, how="any")

    print(f"Complete cases: {len(complete)}/{len(matrix)} proteins")
    return complete


def assess_data_completeness(
    data: pd.DataFrame, sample_columns: List[str]
) -> Dict[str, Any]:
    """
    Assess and report data completeness across samples.

    Parameters:
    -----------
    data : pd.DataFrame
        Protein quantitation data
    sample_columns : List[str]
        List of sample column names

    Returns:
    --------
    Dict[str, Any] : Overall and per-sample completeness
    """

    print("=== ASSESSING DATA COMPLETENESS ===\n")

    sample_data = data[sample_columns]

    total_values = sample_data.shape[0] * sample_data.shape[1]
    non_null_values = int(sample_data.notna().sum().sum())
    per_sample = sample_data.notna().mean(axis=0)
    proteins_per_sample = sample_data.notna().sum(axis=1)

    summary = {
        "total_values": total_values,
        "non_null_values": non_null_values,
        "completeness": non_null_values / total_values if total_values else 0.0,
        "per_sample_completeness": per_sample.to_dict(),
        "proteins_complete": int((proteins_per_sample == len(sample_columns)).sum()),
    }

    print("Data completeness summary:")
    print(f"Total possible values: {total_values:,}")
    print(f"Non-null values: {non_null_values:,} ({summary['completeness'] * 100:.1f}%)")
    print(f"Proteins detected in all samples: {summary['proteins_complete']}")
    print(
        f"Proteins detected in >50% samples: {(proteins_per_sample > 0.5 * len(sample_columns)).sum()}"
    )

    return summary


def train_test_split_samples(
    data: pd.DataFrame,
    sample_metadata: Dict[str, Dict],
    label_column: str = "Group",
    test_size: float = 0.2,
    random_seed: int = 42,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """
    Split samples into train/test sets for downstream classification.

    Samples become observations (the matrix is transposed). The split is
    stratified whenever every label occurs at least twice.

    Returns:
    --------
    X_train, X_test, y_train, y_test
    """
    samples = [s for s in data.columns if s in sample_metadata]
    if not samples:
        raise ConfigurationError("No intensity columns have sample metadata")

    labels = pd.Series(
        [sample_metadata[s].get(label_column, "Unknown") for s in samples],
        index=samples, name=label_column,
    )
    features = data[samples].T

    stratify = labels if labels.value_counts().min() >= 2 else None

    X_train, X_test, y_train, y_test = train_test_split(
        features, labels, test_size=test_size, random_state=random_seed, stratify=stratify
    )

    print(f"Train samples: {len(X_train)}, test samples: {len(X_test)}")
    return X_train, X_test, y_train, y_test
