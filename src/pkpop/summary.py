# src/pkpop/summary.py
import math
from typing import Iterable, Optional, Sequence

import numpy as np

from .errors import ValidationError
from .types import (
    PARAMETER_NAMES, ConcentrationProfile, DistributionSummary, ExposureMetrics,
    PopulationSummary, SubjectResult,
)


def nearest_rank(sorted_values: np.ndarray, q: float, axis: int = 0):
    """
    value[floor(q*N)] of already-sorted data; no interpolation.
    For small N this is biased upward (e.g. N=10 gives the 6th value as median).
    """
    n = sorted_values.shape[axis]
    idx = min(int(math.floor(q * n)), n - 1)
    return np.take(sorted_values, idx, axis=axis)


def summarize_profiles(profiles: Sequence[ConcentrationProfile]) -> PopulationSummary:
    """
    Cross-subject bands at every shared time index: median, P5, P95, mean, min, max.
    Every profile must be on the same grid as the first one.
    """
    if not profiles:
        raise ValidationError("cannot summarise an empty population.")
    n_times = len(profiles[0])
    for i, p in enumerate(profiles):
        if len(p) != n_times:
            raise ValidationError(
                f"subject {i} has {len(p)} time points, subject 0 has {n_times}; "
                "all subjects must share one time grid."
            )

    C = np.sort(np.vstack([p.concentrations for p in profiles]), axis=0)
    return PopulationSummary(
        times=np.array(profiles[0].times),
        median=nearest_rank(C, 0.5),
        p5=nearest_rank(C, 0.05),
        p95=nearest_rank(C, 0.95),
        mean=C.sum(axis=0) / C.shape[0],
        min=C[0].copy(),
        max=C[-1].copy(),
    )


def summarize_values(values: Iterable[float]) -> Optional[DistributionSummary]:
    """Nearest-rank spread of one scalar; None if there is nothing to summarise."""
    x = np.sort(np.asarray([v for v in values if v is not None], dtype=float))
    if x.size == 0:
        return None
    mean = float(x.sum() / x.size)
    sd = float(np.sqrt(np.mean((x - mean) ** 2)))  # population SD
    return DistributionSummary(
        n=int(x.size),
        mean=mean,
        sd=sd,
        cv_percent=100.0 * sd / mean if mean != 0 else float("nan"),
        median=float(nearest_rank(x, 0.5)),
        p5=float(nearest_rank(x, 0.05)),
        p95=float(nearest_rank(x, 0.95)),
        min=float(x[0]),
        max=float(x[-1]),
    )


def summarize_metrics(metrics: Sequence[ExposureMetrics]) -> dict[str, DistributionSummary]:
    """One summary per metric; unavailable values are left out, all-unavailable metrics dropped."""
    if not metrics:
        return {}
    out: dict[str, DistributionSummary] = {}
    for name in metrics[0].scalars():
        s = summarize_values(m.scalars()[name] for m in metrics)
        if s is not None:
            out[name] = s
    return out


def summarize_parameters(subjects: Sequence[SubjectResult]) -> dict[str, DistributionSummary]:
    """Spread of each individual parameter the subjects carry, plus body weight."""
    out: dict[str, DistributionSummary] = {}
    for name in PARAMETER_NAMES:
        s = summarize_values(sub.parameters.get(name) for sub in subjects)
        if s is not None:
            out[name] = s
    weight = summarize_values(sub.covariates.weight_kg for sub in subjects)
    if weight is not None:
        out["weight_kg"] = weight
    return out


def female_percent(subjects: Sequence[SubjectResult]) -> float:
    if not subjects:
        raise ValidationError("cannot summarise an empty population.")
    return 100.0 * sum(1 for s in subjects if s.covariates.sex == "F") / len(subjects)
