"""
Visualization Module for Proteomics Imputation Toolkit

Diagnostic plots for missingness patterns, intensity distributions and
imputation accuracy. Every function saves to ``output_file`` when one is
given (and closes the figure); otherwise the figure is shown.
"""

import os
import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.colors import ListedColormap
from typing import Dict, List, Optional, Tuple


def _finish_figure(fig, output_file: Optional[str], dpi: int = 150) -> Optional[str]:
    """Save and close, or show."""
    if output_file is None:
        plt.show()
        return None

    directory = os.path.dirname(output_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(output_file, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return output_file


def plot_missingness_heatmap(
    data: pd.DataFrame,
    title: str = "Missing Value Pattern",
    output_file: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 8),
) -> Optional[str]:
    """
    Heatmap of missing positions (proteins x samples).

    Parameters:
    -----------
    data : pd.DataFrame
        Matrix before imputation (NaN = missing)
    title : str
        Plot title
    output_file : str, optional
        PNG destination. Shown interactively if None.
    figsize : Tuple[int, int]
        Figure size (width, height)

    Returns:
    --------
    Path written, or None when shown
    """
    mask = data.isna()

    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(
        mask.astype(int),
        ax=ax,
        cmap=ListedColormap(["#d9d9d9", "#b2182b"]),
        vmin=0,
        vmax=1,
        cbar_kws={"ticks": [0.25, 0.75], "label": "Value"},
        yticklabels=False,
        xticklabels=True,
    )
    colorbar = ax.collections[0].colorbar
    colorbar.set_ticklabels(["present", "missing"])

    ax.set_xlabel("Sample", fontsize=12)
    ax.set_ylabel(f"Protein (n={len(data)})", fontsize=12)
    ax.set_title(
        f"{title}\n{int(mask.values.sum())} missing of {mask.size} "
        f"({mask.values.mean() * 100 if mask.size else 0:.1f}%)",
        fontsize=14, fontweight="bold",
    )
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right", fontsize=8)

    return _finish_figure(fig, output_file)


def plot_missingness_by_sample(
    datasets: Dict[str, pd.DataFrame],
    output_file: Optional[str] = None,
    figsize: Tuple[int, int] = (14, 6),
) -> Optional[str]:
    """
    Grouped bar chart of the per-sample missing fraction for each dataset.
    """
    fractions = pd.DataFrame({name: data.isna().mean(axis=0) for name, data in datasets.items()})

    fig, ax = plt.subplots(figsize=figsize)
    fractions.plot(kind="bar", ax=ax, width=0.8, colormap="tab20")

    ax.set_xlabel("Sample", fontsize=12)
    ax.set_ylabel("Missing fraction", fontsize=12)
    ax.set_title("Missing Values per Sample", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3, axis="y")
    ax.legend(title="Dataset", bbox_to_anchor=(1.02, 1), loc="upper left", fontsize=8)
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right", fontsize=8)
    plt.tight_layout()

    return _finish_figure(fig, output_file)


def plot_intensity_distributions(
    data: pd.DataFrame,
    sample_columns: Optional[List[str]] = None,
    title: str = "Intensity Distribution by Sample",
    output_file: Optional[str] = None,
    figsize: Tuple[int, int] = (16, 8),
) -> Optional[str]:
    """
    Box plot of intensities per sample (QC before/after normalization).
    """
    if sample_columns is None:
        sample_columns = list(data.select_dtypes(include=[np.number]).columns)

    box_data = [data[sample].dropna() for sample in sample_columns]

    fig, ax = plt.subplots(figsize=figsize)
    bp = ax.boxplot(
        box_data,
        patch_artist=True,
        widths=0.8,
        showfliers=True,
        flierprops={"marker": "o", "markersize": 2, "alpha": 0.5},
    )
    colors = plt.cm.tab10(np.linspace(0, 1, max(len(box_data), 1)))
    for patch, color in zip(bp["boxes"], colors):
        patch.set_facecolor(color)
        patch.set_alpha(0.7)

    ax.set_xlabel("Sample", fontsize=14)
    ax.set_ylabel("Log Intensity", fontsize=14)
    ax.set_title(title, fontsize=16, fontweight="bold")
    ax.set_xticks(range(1, len(sample_columns) + 1))
    ax.set_xticklabels(sample_columns, rotation=45, ha="right", fontsize=10)
    ax.grid(True, alpha=0.3, axis="y")
    plt.tight_layout()

    return _finish_figure(fig, output_file)


def plot_imputation_error(
    summary: pd.DataFrame,
    metric: str = "RMSE",
    output_file: Optional[str] = None,
    figsize: Tuple[int, int] = (14, 6),
) -> Optional[str]:
    """
    Grouped bar chart of an accuracy metric per dataset and strategy.

    Parameters:
    -----------
    summary : pd.DataFrame
        Output of ``evaluation.summarize_sweep``
    metric : str
        Column to plot (RMSE, MAE, NRMSE or Pearson_r)
    """
    if metric not in summary.columns:
        raise ValueError(f"Metric '{metric}' not in summary columns {list(summary.columns)}")

    fig, ax = plt.subplots(figsize=figsize)
    sns.barplot(data=summary, x="dataset", y=metric, hue="strategy", ax=ax)

    ax.set_xlabel("Dataset", fontsize=12)
    ax.set_ylabel(metric, fontsize=12)
    ax.set_title(f"Imputation {metric} by Dataset and Strategy", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3, axis="y")
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right", fontsize=9)
    plt.tight_layout()

    return _finish_figure(fig, output_file)
