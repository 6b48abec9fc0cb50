"""
Data Import Module for Proteomics Imputation Toolkit

Functions for loading label-free intensity tables (e.g. MaxQuant proteinGroups)
and sample metadata, and for isolating the intensity columns.
"""

import pandas as pd
import re
import os
from typing import Tuple, Dict, Any, Optional, List

from .validation import IntensityColumnError, ConfigurationError


def _detect_separator(file_path: str) -> str:
    """Tab for .tsv/.txt files, comma otherwise."""
    extension = os.path.splitext(file_path)[1].lower()
    return '\t' if extension in ('.tsv', '.txt', '.tab') else ','


def load_intensity_data(raw_file: str, metadata_file: Optional[str] = None,
                        sep: Optional[str] = None) -> Tuple[pd.DataFrame, Optional[pd.DataFrame]]:
    """
    Load an intensity table and optional sample metadata.

    Parameters:
    -----------
    raw_file : str
        Path to the delimited intensity table (first row = headers)
    metadata_file : str, optional
        Path to the delimited sample metadata table
    sep : str, optional
        Field delimiter. Detected from the file extension if None.

    Returns:
    --------
    intensity_data : pd.DataFrame
        Raw intensity table, annotation columns included
    metadata : pd.DataFrame or None
        Sample metadata if a file was given
    """

    print("=== LOADING INTENSITY DATA ===\n")

    if not os.path.exists(raw_file):
        raise FileNotFoundError(f"Intensity file not found: {raw_file}")
    if metadata_file and not os.path.exists(metadata_file):
        raise FileNotFoundError(f"Metadata file not found: {metadata_file}")

    try:
        intensity_data = pd.read_csv(raw_file, sep=sep or _detect_separator(raw_file),
                                     low_memory=False)
        print(f"✓ Loaded intensity data: {intensity_data.shape}")
    except Exception as e:
        raise ValueError(f"Error loading intensity file: {e}")

    metadata = None
    if metadata_file:
        try:
            metadata = pd.read_csv(metadata_file, sep=sep or _detect_separator(metadata_file))
            print(f"✓ Loaded metadata: {metadata.shape}")
        except Exception as e:
            raise ValueError(f"Error loading metadata file: {e}")

    print("\nData loading completed successfully!")
    return intensity_data, metadata


def identify_intensity_columns(data: pd.DataFrame, pattern: str = "LFQ intensity ") -> List[str]:
    """
    Identify intensity columns by name pattern.

    Parameters:
    -----------
    data : pd.DataFrame
        Raw intensity table
    pattern : str
        Regular expression searched in every column name

    Returns:
    --------
    List[str] : Matching column names, in table order

    Raises:
    -------
    IntensityColumnError: If no column matches
    """
    regex = re.compile(pattern)
    intensity_columns = [col for col in data.columns if regex.search(str(col))]

    if not intensity_columns:
        raise IntensityColumnError(
            f"No intensity columns match pattern '{pattern}'. "
            f"First columns in file: {list(data.columns[:10])}"
        )

    print(f"Identified {len(intensity_columns)} intensity columns")
    return intensity_columns


def set_feature_index(data: pd.DataFrame, id_column: Optional[str] = None) -> pd.DataFrame:
    """
    Use a feature identifier column as the row index.

    Duplicated identifiers get a numeric suffix (_2, _3, ...) so that every
    row keeps a unique identifier through export and reload.
    """
    if id_column is None:
        id_column = data.columns[0]
    elif id_column not in data.columns:
        raise ConfigurationError(f"Identifier column '{id_column}' not found in data")

    identifiers = data[id_column].astype(str)
    seen: Dict[str, int] = {}
    unique_ids = []
    for identifier in identifiers:
        seen[identifier] = seen.get(identifier, 0) + 1
        unique_ids.append(identifier if seen[identifier] == 1 else f"{identifier}_{seen[identifier]}")

    n_duplicated = sum(count - 1 for count in seen.values())
    if n_duplicated:
        print(f"Warning: {n_duplicated} duplicated identifiers in '{id_column}' were made unique")

    result = data.copy()
    result.index = pd.Index(unique_ids, name=id_column)
    return result


def clean_sample_names(sample_columns: List[str], common_prefix: Optional[str] = None,
                       common_suffix: Optional[str] = None) -> Dict[str, str]:
    """
    Clean sample names by removing common prefixes/suffixes.

    Parameters:
    -----------
    sample_columns : List[str]
        List of sample column names
    common_prefix : str, optional
        Common prefix to remove (e.g. "LFQ intensity "). Auto-detected if None.
    common_suffix : str, optional
        Common suffix to remove. Auto-detected if None.

    Returns:
    --------
    Dict[str, str] : Mapping from original to cleaned names
    """

    cleaned_names = {}

    if common_prefix is None:
        if len(sample_columns) > 1:
            prefix = os.path.commonprefix(sample_columns)
            # Only strip up to the last separator so "S10"/"S11" keep their digits
            match = re.match(r'^(.*[^a-zA-Z0-9])', prefix)
            common_prefix = match.group(1) if match else ""
        else:
            common_prefix = ""

    if common_suffix is None:
        if len(sample_columns) > 1:
            reversed_names = [name[::-1] for name in sample_columns]
            suffix = os.path.commonprefix(reversed_names)[::-1]
            match = re.match(r'^([^a-zA-Z0-9].*)$', suffix)
            common_suffix = match.group(1) if match else ""
        else:
            common_suffix = ""

    print(f"Removing common prefix: '{common_prefix}'")
    print(f"Removing common suffix: '{common_suffix}'")

    for original_name in sample_columns:
        cleaned_name = original_name

        if common_prefix and cleaned_name.startswith(common_prefix):
            cleaned_name = cleaned_name[len(common_prefix):]

        if common_suffix and cleaned_name.endswith(common_suffix):
            cleaned_name = cleaned_name[:-len(common_suffix)]

        cleaned_name = re.sub(r'^[^a-zA-Z0-9]+', '', cleaned_name)
        cleaned_name = re.sub(r'[^a-zA-Z0-9]+$', '', cleaned_name)

        cleaned_names[original_name] = cleaned_name

    return cleaned_names


def match_samples_to_metadata(cleaned_sample_names: Dict[str, str],
                              metadata: pd.DataFrame,
                              sample_column: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Match cleaned sample names to metadata entries.

    Parameters:
    -----------
    cleaned_sample_names : Dict[str, str]
        Mapping from original to cleaned sample names
    metadata : pd.DataFrame
        Sample metadata
    sample_column : str, optional
        Metadata join column. Auto-detected if None.

    Returns:
    --------
    Dict[str, Dict] : Sample metadata keyed by original column name
    """

    if sample_column is None:
        for col in ['Sample', 'Replicate', 'Sample_Name', 'SampleName', 'Sample_ID']:
            if col in metadata.columns:
                sample_column = col
                break
        else:
            sample_column = metadata.columns[0]

    lookup = {str(row[sample_column]): row.to_dict() for _, row in metadata.iterrows()}

    sample_metadata = {}
    matched_count = 0

    for original_name, cleaned_name in cleaned_sample_names.items():
        entry = lookup.get(cleaned_name, lookup.get(original_name))

        if entry is not None:
            matched_count += 1
            sample_metadata[original_name] = dict(entry, matched=True)
        else:
            sample_metadata[original_name] = {
                str(sample_column): cleaned_name,
                'Group': 'Unknown',
                'matched': False
            }

    print(f"Matched {matched_count}/{len(cleaned_sample_names)} samples to metadata")

    return sample_metadata
