"""
Data Validation Module for Proteomics Imputation Toolkit

Exception types for the three error classes the pipeline distinguishes, plus
metadata/data consistency checks with interpretable messages.
"""

import pandas as pd
from typing import Dict, List, Optional


class ConfigurationError(Exception):
    """Fatal configuration problem - the run cannot continue."""
    def __init__(self, message):
        super().__init__(message)


class IntensityColumnError(ConfigurationError):
    """No intensity columns match the configured name pattern."""


class AnnotationColumnError(ConfigurationError):
    """A feature annotation column required for filtering is absent."""


class InvariantViolationError(Exception):
    """Internal consistency check failed. Indicates a bug, not a data condition."""


class MissingnessWarning(UserWarning):
    """Recoverable per-dataset condition (nothing to do, partial result, skipped dataset)."""


def _find_sample_column(metadata: pd.DataFrame, sample_column: Optional[str] = None) -> str:
    if sample_column is not None:
        if sample_column not in metadata.columns:
            raise ConfigurationError(
                f"Sample column '{sample_column}' not found in metadata. "
                f"Available columns: {list(metadata.columns)}"
            )
        return sample_column

    for col in ['Sample', 'Replicate', 'Sample_Name', 'SampleName', 'Sample_ID']:
        if col in metadata.columns:
            return col
    return metadata.columns[0]


def validate_metadata_data_consistency(
    metadata: pd.DataFrame,
    intensity_columns: List[str],
    sample_column: Optional[str] = None,
    verbose: bool = True
) -> Dict:
    """
    Validate consistency between sample metadata and intensity columns.

    Only supervised downstream use needs the two to agree; simulation and
    imputation run without metadata.

    Parameters:
    -----------
    metadata : pd.DataFrame
        Sample metadata (one row per sample)
    intensity_columns : List[str]
        Intensity column names (after optional prefix cleaning)
    sample_column : str, optional
        Metadata column holding sample identifiers. Auto-detected if None.
    verbose : bool, default True
        Whether to print detailed validation results

    Returns:
    --------
    Dict containing validation results and diagnostic information
    """

    results = {
        'is_valid': True,
        'errors': [],
        'warnings': [],
        'diagnostics': {}
    }

    if verbose:
        print("METADATA/DATA CONSISTENCY VALIDATION")
        print("=" * 50)

    sample_column = _find_sample_column(metadata, sample_column)
    metadata_samples = [str(s) for s in metadata[sample_column]]

    found_samples = [s for s in metadata_samples if s in intensity_columns]
    missing_samples = [s for s in metadata_samples if s not in intensity_columns]
    unannotated_columns = [c for c in intensity_columns if c not in metadata_samples]

    if len(metadata_samples) != len(intensity_columns):
        results['errors'].append(
            f"Metadata has {len(metadata_samples)} samples but the intensity matrix "
            f"has {len(intensity_columns)} columns"
        )
        results['is_valid'] = False

    if missing_samples:
        results['errors'].append(
            f"Found {len(missing_samples)} samples in metadata that have no corresponding "
            f"intensity column: {missing_samples[:5]}{'...' if len(missing_samples) > 5 else ''}"
        )
        results['is_valid'] = False

    if unannotated_columns:
        results['warnings'].append(
            f"{len(unannotated_columns)} intensity columns have no metadata entry: "
            f"{unannotated_columns[:5]}{'...' if len(unannotated_columns) > 5 else ''}"
        )

    duplicated = metadata[sample_column][metadata[sample_column].duplicated()].astype(str).tolist()
    if duplicated:
        results['errors'].append(f"Duplicated sample identifiers in metadata: {duplicated}")
        results['is_valid'] = False

    results['diagnostics'] = {
        'sample_column': sample_column,
        'total_metadata_samples': len(metadata_samples),
        'total_intensity_columns': len(intensity_columns),
        'samples_found_in_data': len(found_samples),
        'samples_missing_from_data': len(missing_samples),
        'found_samples': found_samples,
        'missing_samples': missing_samples,
        'unannotated_columns': unannotated_columns,
    }

    if verbose:
        diag = results['diagnostics']
        print(f"Metadata samples: {diag['total_metadata_samples']}")
        print(f"Intensity columns: {diag['total_intensity_columns']}")
        print(f"  Found in intensity data: {diag['samples_found_in_data']}")
        print(f"  Missing from intensity data: {diag['samples_missing_from_data']}")

        for warning in results['warnings']:
            print(f"  WARNING: {warning}")

        if results['errors']:
            print("\nVALIDATION FAILED")
            for error in results['errors']:
                print(f"  ERROR: {error}")
        else:
            print("\n✓ VALIDATION PASSED")

    return results
