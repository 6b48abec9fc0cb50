"""
Imputation Module for Proteomics Imputation Toolkit

A closed set of imputation strategies and the sweep that applies each of them
to every missingness variant.

Strategies work on a proteins x samples matrix:

- mean / median: each absent cell gets its sample column's statistic
- knn: distance-weighted average over the k most similar proteins
- bpca: variational Bayesian PCA (Oba et al. 2003)
- missforest: iterative random-forest regression
- dae: denoising autoencoder (needs the ``autoencoder`` extra, PyTorch)
"""

import os
import warnings
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd
from scipy import linalg
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.ensemble import RandomForestRegressor
from sklearn.experimental import enable_iterative_imputer  # noqa: F401
from sklearn.impute import IterativeImputer, KNNImputer, SimpleImputer

from .config import PipelineConfig
from .evaluation import summarize_sweep
from .export import export_imputed_dataset, export_missing_value_log
from .missingness import missingness_summary
from .validation import ConfigurationError, InvariantViolationError, MissingnessWarning
from .visualization import plot_missingness_heatmap


class ImputationStrategy(str, Enum):
    """Closed, ordered set of imputation strategies."""

    MEAN = "mean"
    MEDIAN = "median"
    KNN = "knn"
    BPCA = "bpca"
    MISSFOREST = "missforest"
    DAE = "dae"

    @classmethod
    def parse(cls, value) -> "ImputationStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid imputation strategy: {value}. "
                f"Options: {', '.join(s.value for s in cls)}"
            )


def _column_means(X: np.ndarray) -> np.ndarray:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        means = np.nanmean(X, axis=0)
    means[np.isnan(means)] = 0.0
    return means


class BPCAImputer(BaseEstimator, TransformerMixin):
    """
    Bayesian PCA missing value estimation.

    Rows are observations and columns are variables. The probabilistic PCA
    model is fitted by variational EM with an automatic relevance
    determination prior on the loadings, so superfluous components shrink
    towards zero. Missing cells are replaced by their posterior estimate;
    observed cells are returned unchanged.

    Parameters
    ----------
    n_components : int, optional
        Number of components, defaults to ``n_columns - 1``.
    max_iter : int
        Maximum number of EM steps.
    tol : float
        Convergence threshold on the change of log10(tau), checked every
        10 steps.
    """

    def __init__(self, n_components=None, max_iter=100, tol=1e-4):
        self.n_components = n_components
        self.max_iter = max_iter
        self.tol = tol

    def fit(self, X, y=None):
        self.fit_transform(X)
        return self

    def transform(self, X):
        return self.fit_transform(X)

    def fit_transform(self, X, y=None):
        X = np.asarray(X, dtype=np.float64)
        n, d = X.shape
        if n < 2 or d < 2:
            raise ValueError(f"BPCA needs at least 2 rows and 2 columns, got {X.shape}")

        missing = np.isnan(X)
        q = min(self.n_components or d - 1, d)

        mu = _column_means(X)
        Y = np.where(missing, mu, X)

        # Initial model from the mean-filled covariance
        covy = np.cov(Y, rowvar=False)
        U, S, _ = linalg.svd(covy)
        W = U[:, :q] * np.sqrt(S[:q])
        tau = 1.0 / max(np.trace(covy) - S[:q].sum(), 1e-10)
        tau = float(np.clip(tau, 1e-10, 1e10))

        galpha0, balpha0 = 1e-10, 1.0
        gmu0 = 0.001
        gtau0, btau0 = 1e-10, 1.0
        alpha = (2 * galpha0 + d) / (tau * np.diag(W.T @ W) + 2 * galpha0 / balpha0)
        SigW = np.eye(q)

        complete_rows = ~missing.any(axis=1)
        incomplete_rows = np.flatnonzero(~complete_rows)
        identity = np.eye(q)

        self.n_iter_ = 0
        for step in range(1, self.max_iter + 1):
            tau_old = tau

            Rx = identity + tau * W.T @ W + SigW
            Rxinv = linalg.inv(Rx)

            dy = Y[complete_rows] - mu
            x = tau * Rxinv @ W.T @ dy.T
            T = dy.T @ x.T
            trS = np.sum(dy * dy)

            for i in incomplete_rows:
                obs = ~missing[i]
                mis = missing[i]
                Wo, Wm = W[obs], W[mis]

                Rxinv_i = linalg.inv(Rx - tau * Wm.T @ Wm)
                xi = Rxinv_i @ (tau * Wo.T @ (X[i, obs] - mu[obs]))
                dym = Wm @ xi

                dyi = np.empty(d)
                dyi[obs] = X[i, obs] - mu[obs]
                dyi[mis] = dym
                Y[i, mis] = dym + mu[mis]

                T += np.outer(dyi, xi)
                T[mis] += Wm @ Rxinv_i
                trS += dyi @ dyi + mis.sum() / tau + np.trace(Wm @ Rxinv_i @ Wm.T)

            T /= n
            trS /= n

            Dw = Rxinv + tau * T.T @ W @ Rxinv + np.diag(alpha) / n
            Dwinv = linalg.inv(Dw)
            W = T @ Dwinv

            tau = (d + 2 * gtau0 / n) / (
                trS - np.trace(T.T @ W) + (mu @ mu * gmu0 + 2 * gtau0 / btau0) / n
            )
            tau = float(np.clip(tau, 1e-10, 1e10))
            SigW = Dwinv * (d / n)
            alpha = (2 * galpha0 + d) / (
                tau * np.diag(W.T @ W) + np.diag(SigW) + 2 * galpha0 / balpha0
            )

            self.n_iter_ = step
            if step % 10 == 0 and abs(np.log10(tau) - np.log10(tau_old)) < self.tol:
                break

        self.components_ = W
        self.mean_ = mu
        self.tau_ = tau
        return Y


class DenoisingAutoencoderImputer(BaseEstimator, TransformerMixin):
    """
    Denoising autoencoder imputation (PyTorch).

    Columns are standardized on their observed values and missing cells start
    at zero. During training a random fraction of the inputs is masked
    (``corruption``) and the network learns to reconstruct the observed
    cells; the loss ignores cells that were missing to begin with. Missing
    cells take the reconstruction, observed cells are returned unchanged.
    """

    def __init__(self, hidden_dim=64, epochs=200, corruption=0.2,
                 learning_rate=1e-3, random_state=None):
        self.hidden_dim = hidden_dim
        self.epochs = epochs
        self.corruption = corruption
        self.learning_rate = learning_rate
        self.random_state = random_state

    def fit(self, X, y=None):
        self.fit_transform(X)
        return self

    def transform(self, X):
        return self.fit_transform(X)

    def fit_transform(self, X, y=None):
        try:
            import torch
            from torch import nn
        except ImportError as e:
            raise ImportError(
                "The 'dae' imputation strategy needs PyTorch. "
                "Install it with: pip install 'proteomics-imputation-toolkit[autoencoder]'"
            ) from e

        X = np.asarray(X, dtype=np.float64)
        missing = np.isnan(X)
        d = X.shape[1]

        mu = _column_means(X)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            sd = np.nanstd(X, axis=0)
        sd[~np.isfinite(sd) | (sd == 0)] = 1.0

        Z = np.where(missing, 0.0, (X - mu) / sd)

        with torch.random.fork_rng(devices=[]):
            if self.random_state is not None:
                torch.manual_seed(self.random_state)

            data = torch.tensor(Z, dtype=torch.float32)
            observed = torch.tensor(~missing, dtype=torch.float32)

            model = nn.Sequential(
                nn.Linear(d, self.hidden_dim),
                nn.Tanh(),
                nn.Linear(self.hidden_dim, self.hidden_dim // 2 or 1),
                nn.Tanh(),
                nn.Linear(self.hidden_dim // 2 or 1, self.hidden_dim),
                nn.Tanh(),
                nn.Linear(self.hidden_dim, d),
            )
            optimizer = torch.optim.Adam(model.parameters(), lr=self.learning_rate)
            n_observed = observed.sum().clamp_min(1.0)

            model.train()
            for _ in range(int(self.epochs)):
                keep = (torch.rand(data.shape) >= self.corruption).float()
                recon = model(data * keep)
                loss = (((recon - data) ** 2) * observed).sum() / n_observed

                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

            model.eval()
            with torch.no_grad():
                recon = model(data).numpy().astype(np.float64)

        result = X.copy()
        estimate = recon * sd + mu
        result[missing] = estimate[missing]
        return result


def get_imputer(strategy, config: Optional[PipelineConfig] = None):
    """
    Build the imputer for one strategy.

    Every returned object provides ``fit_transform(array) -> array``.
    """
    strategy = ImputationStrategy.parse(strategy)
    config = config or PipelineConfig()

    if strategy is ImputationStrategy.MEAN:
        return SimpleImputer(strategy="mean", keep_empty_features=True)
    if strategy is ImputationStrategy.MEDIAN:
        return SimpleImputer(strategy="median", keep_empty_features=True)
    if strategy is ImputationStrategy.KNN:
        return KNNImputer(
            n_neighbors=int(config.knn_neighbors),
            weights="distance",
            keep_empty_features=True,
        )
    if strategy is ImputationStrategy.BPCA:
        return BPCAImputer(
            n_components=config.bpca_components,
            max_iter=config.bpca_max_iter,
        )
    if strategy is ImputationStrategy.MISSFOREST:
        return IterativeImputer(
            estimator=RandomForestRegressor(
                n_estimators=config.missforest_estimators,
                random_state=config.random_seed,
            ),
            max_iter=config.missforest_max_iter,
            initial_strategy="mean",
            random_state=config.random_seed,
            keep_empty_features=True,
        )
    if strategy is ImputationStrategy.DAE:
        return DenoisingAutoencoderImputer(
            hidden_dim=config.dae_hidden_dim,
            epochs=config.dae_epochs,
            corruption=config.dae_corruption,
            learning_rate=config.dae_learning_rate,
            random_state=config.random_seed,
        )
    raise InvariantViolationError(f"Unhandled imputation strategy {strategy}")


def impute_dataframe(data: pd.DataFrame, strategy,
                     config: Optional[PipelineConfig] = None) -> pd.DataFrame:
    """
    Impute one matrix with one strategy.

    Parameters:
    -----------
    data : pd.DataFrame
        Proteins x samples matrix with NaN for absent cells
    strategy : ImputationStrategy or str
        Strategy to apply
    config : PipelineConfig, optional
        Strategy parameters (k, components, seeds ...)

    Returns:
    --------
    pd.DataFrame with the same index and columns and no missing cells
    """
    strategy = ImputationStrategy.parse(strategy)
    imputer = get_imputer(strategy, config)

    values = imputer.fit_transform(data.to_numpy(dtype=float))
    imputed = pd.DataFrame(values, index=data.index, columns=data.columns)

    n_left = int(imputed.isna().sum().sum())
    if n_left:
        raise InvariantViolationError(
            f"{strategy.value} imputation left {n_left} missing values"
        )

    return imputed


@dataclass
class SweepResult:
    """Outputs of an imputation sweep."""

    imputed: Dict[str, Dict[str, pd.DataFrame]] = field(default_factory=OrderedDict)
    missing_counts: Dict[str, Dict[str, float]] = field(default_factory=OrderedDict)
    exported_files: Dict[str, str] = field(default_factory=OrderedDict)
    evaluation: Optional[pd.DataFrame] = None


def run_imputation_sweep(
    datasets: Dict[str, pd.DataFrame],
    strategies: Optional[Iterable] = None,
    config: Optional[PipelineConfig] = None,
    output_dir: Optional[str] = None,
    reference: Optional[pd.DataFrame] = None,
    plot: Optional[bool] = None,
) -> SweepResult:
    """
    Apply every strategy to every dataset.

    Datasets are processed independently and in order. Empty datasets are
    skipped with a MissingnessWarning. When ``output_dir`` is given, each
    (dataset, strategy) pair is written as ``<dataset>_<strategy>_imputed.csv``
    next to a heatmap of the missing positions before imputation, plus one
    missing-value count log for the whole sweep.

    Parameters:
    -----------
    datasets : Dict[str, pd.DataFrame]
        Missingness variants keyed by name
    strategies : iterable, optional
        Strategies to run, defaults to ``config.imputation_strategies``
    config : PipelineConfig, optional
        Strategy parameters
    output_dir : str, optional
        Directory for CSV, PNG and log outputs
    reference : pd.DataFrame, optional
        Complete matrix; enables the accuracy table
    plot : bool, optional
        Write heatmaps, defaults to ``config.plot_heatmaps``

    Returns:
    --------
    SweepResult
    """
    print("=== RUNNING IMPUTATION SWEEP ===\n")

    config = config or PipelineConfig()
    if strategies is None:
        strategies = config.imputation_strategies
    strategies = [ImputationStrategy.parse(s) for s in strategies]
    if plot is None:
        plot = config.plot_heatmaps

    result = SweepResult()

    for name, data in datasets.items():
        if data.shape[0] == 0:
            warnings.warn(f"Dataset '{name}' has no rows; skipping", MissingnessWarning)
            continue

        counts = missingness_summary(data)
        result.missing_counts[name] = counts
        print(f"{name}: {counts['n_missing']} missing values "
              f"({counts['missing_fraction'] * 100:.1f}%)")

        result.imputed[name] = OrderedDict()
        for strategy in strategies:
            print(f"  Imputing with {strategy.value}...")
            imputed = impute_dataframe(data, strategy, config)
            result.imputed[name][strategy.value] = imputed

            if output_dir is not None:
                key = f"{name}_{strategy.value}"
                result.exported_files[key] = export_imputed_dataset(
                    imputed, output_dir, name, strategy.value
                )
                if plot:
                    result.exported_files[f"{key}_heatmap"] = plot_missingness_heatmap(
                        data,
                        title=f"Missing values: {name} ({strategy.value})",
                        output_file=os.path.join(output_dir, f"{key}_missingness.png"),
                    )

    if output_dir is not None and result.missing_counts:
        result.exported_files["missing_value_log"] = export_missing_value_log(
            result.missing_counts, os.path.join(output_dir, "missing_value_counts.csv")
        )

    if reference is not None and result.imputed:
        result.evaluation = summarize_sweep(result.imputed, reference, datasets)
        if output_dir is not None:
            evaluation_file = os.path.join(output_dir, "imputation_evaluation.csv")
            result.evaluation.to_csv(evaluation_file, index=False)
            result.exported_files["evaluation"] = evaluation_file

    print(f"\nImputation sweep completed: {len(result.imputed)} datasets x "
          f"{len(strategies)} strategies")
    return result
