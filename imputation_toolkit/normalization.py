"""
Data Normalization Module for Proteomics Imputation Toolkit

Column-wise normalization of log-scale intensity matrices.
"""

import pandas as pd
import numpy as np
from typing import Optional, List


def _numeric_sample_columns(data: pd.DataFrame, sample_columns: Optional[List[str]]) -> List[str]:
    if sample_columns is not None:
        return list(sample_columns)
    return list(data.select_dtypes(include=[np.number]).columns)


def median_normalize(
    data: pd.DataFrame, sample_columns: Optional[list] = None
) -> pd.DataFrame:
    """
    Median normalization on the log scale - subtract each sample's median.

    Every sample column ends up with median 0; missing values are ignored when
    computing the median and stay missing. Columns are independent of each
    other, and running the normalization twice changes nothing.

    Parameters:
    -----------
    data : pd.DataFrame
        Log-scale intensity data (can contain annotation columns)
    sample_columns : Optional[list]
        List of sample column names. If None, uses all numeric columns

    Returns:
    --------
    pd.DataFrame : Median normalized data with same structure as input
    """

    print("Applying median normalization...")

    sample_columns = _numeric_sample_columns(data, sample_columns)

    if not sample_columns:
        print("Warning: No numeric sample columns found for normalization")
        return data.copy()

    result = data.copy()
    sample_medians = result[sample_columns].median(axis=0, skipna=True)

    for col in sample_columns:
        if pd.notna(sample_medians[col]):
            result[col] = result[col] - sample_medians[col]

    print(f"Median normalization completed for {len(sample_columns)} samples")

    return result


def calculate_normalization_stats(
    data: pd.DataFrame, sample_columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Per-sample summary statistics used to check a normalization.

    Returns:
    --------
    pd.DataFrame indexed by sample with median, mean, std and missing count
    """
    sample_columns = _numeric_sample_columns(data, sample_columns)
    sample_data = data[sample_columns]

    return pd.DataFrame({
        "median": sample_data.median(axis=0),
        "mean": sample_data.mean(axis=0),
        "std": sample_data.std(axis=0),
        "n_missing": sample_data.isna().sum(axis=0),
    })
