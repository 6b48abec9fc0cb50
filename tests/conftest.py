"""
Pytest configuration and fixtures for imputation_toolkit tests
"""

import os
import shutil
import tempfile

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from imputation_toolkit.config import PipelineConfig


@pytest.fixture
def sample_names():
    """Cleaned sample names used across fixtures"""
    return ["S1", "S2", "S3", "S4", "S5", "S6"]


@pytest.fixture
def complete_matrix(sample_names):
    """Complete log-scale matrix: 30 proteins x 6 samples, no missing values"""
    rng = np.random.default_rng(42)

    protein_names = [f"P{i:05d}" for i in range(30)]
    values = rng.normal(20, 2, (len(protein_names), len(sample_names)))

    df = pd.DataFrame(values, index=protein_names, columns=sample_names)
    df.index.name = "Protein"
    return df


@pytest.fixture
def correlated_matrix(sample_names):
    """Complete matrix with a strong protein effect shared by every sample"""
    rng = np.random.default_rng(7)

    n_proteins = 40
    protein_effect = rng.normal(0, 3, n_proteins)
    sample_effect = rng.normal(0, 0.5, len(sample_names))
    noise = rng.normal(0, 0.1, (n_proteins, len(sample_names)))
    values = 20 + protein_effect[:, None] + sample_effect[None, :] + noise

    df = pd.DataFrame(values, index=[f"P{i:05d}" for i in range(n_proteins)],
                      columns=sample_names)
    df.index.name = "Protein"
    return df


@pytest.fixture
def raw_maxquant_data(sample_names):
    """MaxQuant proteinGroups-like table with LFQ intensities and flag columns"""
    rng = np.random.default_rng(0)
    n_proteins = 40

    intensities = 2 ** rng.normal(25, 1.5, (n_proteins, len(sample_names)))
    # A few undetected values (MaxQuant writes 0)
    intensities[5, 0] = 0
    intensities[6, 1] = 0
    intensities[6, 2] = 0
    # Mostly undetected protein, removed by the missingness filter
    intensities[7, :4] = 0

    df = pd.DataFrame({
        "Protein IDs": [f"P{i:05d}" for i in range(n_proteins)],
        "Gene names": [f"GENE{i}" for i in range(n_proteins)],
    })
    for j, sample in enumerate(sample_names):
        df[f"LFQ intensity {sample}"] = intensities[:, j]

    contaminant = [""] * n_proteins
    reverse = [""] * n_proteins
    contaminant[0] = "+"
    contaminant[1] = "+"
    reverse[2] = "+"
    df["Potential contaminant"] = contaminant
    df["Reverse"] = reverse
    return df


@pytest.fixture
def metadata_df(sample_names):
    """Sample metadata with two groups"""
    return pd.DataFrame({
        "Sample": sample_names,
        "Group": ["Control"] * 3 + ["Treatment"] * 3,
        "Subject": [f"SUBJ{i}" for i in range(len(sample_names))],
    })


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test"""
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path)


@pytest.fixture
def maxquant_files(raw_maxquant_data, metadata_df, temp_dir):
    """Tab-separated proteinGroups and metadata files"""
    raw_file = os.path.join(temp_dir, "proteinGroups.txt")
    raw_maxquant_data.to_csv(raw_file, sep="\t", index=False)

    metadata_file = os.path.join(temp_dir, "metadata.txt")
    metadata_df.to_csv(metadata_file, sep="\t", index=False)

    return raw_file, metadata_file


@pytest.fixture
def fast_config(maxquant_files, temp_dir):
    """Pipeline configuration with quick strategies and a small grid"""
    raw_file, metadata_file = maxquant_files

    config = PipelineConfig()
    config.raw_data_file = raw_file
    config.metadata_file = metadata_file
    config.output_dir = os.path.join(temp_dir, "results")
    config.missing_proportions = [0.1, 0.2]
    config.missing_mechanisms = ["MCAR", "MAR", "MNAR"]
    config.imputation_strategies = ["mean", "median", "knn", "bpca"]
    config.knn_neighbors = 3
    config.plot_heatmaps = False
    config.random_seed = 42
    return config
