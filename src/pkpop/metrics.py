# src/pkpop/metrics.py
import logging
import math
from typing import Optional, Tuple

import numpy as np

from .config import SimulationConfig
from .errors import NumericDomainError
from .models.base import CompartmentModel
from .types import ConcentrationProfile, ExposureMetrics, PKParameterSet, SteadyStateMetrics

logger = logging.getLogger(__name__)

# slack for "sample at or after time x" on a grid built by repeated float steps
TIME_TOL_H = 1e-9

# models whose terminal phase is the beta root of the 2-compartment quadratic
_BETA_MODELS = ("two_compartment", "two_compartment_oral")


def cmax(C: np.ndarray) -> float:
    """Global maximum concentration (mg/L)."""
    return float(np.max(C))

def tmax(t: np.ndarray, C: np.ndarray) -> float:
    """Time of maximum concentration (h), first occurrence on ties."""
    return float(t[int(np.argmax(C))])

def cmin(C: np.ndarray) -> float:
    """Global minimum concentration (mg/L)."""
    return float(np.min(C))

def auc_trapz(t: np.ndarray, C: np.ndarray) -> float:
    """Area Under the Curve (AUC) via trapezoidal rule (mg*h/L)."""
    return float(np.trapezoid(C, t))

def fluctuation_index(C: np.ndarray, cavg: float) -> float:
    """
    Fluctuation = (Cmax - Cmin) / Cavg, in percent.
    Cavg is passed in because at steady state it is AUCtau/tau, not the sample mean.
    """
    if cavg == 0.0:
        return float("inf")
    return 100.0 * (cmax(C) - cmin(C)) / cavg


def beta_two_compartment(params: PKParameterSet) -> float:
    """
    Terminal (beta) rate constant of a 2-compartment model (1/h).

      k10 = CL/V1, k12 = Q/V1, k21 = Q/V2
      a = k10 + k12 + k21, b = k10 * k21
      beta = 0.5 * (a - sqrt(a^2 - 4b))
    """
    k10 = params.CL / params.V1
    k12 = params.Q / params.V1
    k21 = params.Q / params.V2
    a = k10 + k12 + k21
    b = k10 * k21
    disc = a * a - 4.0 * b
    if disc < 0:
        raise NumericDomainError(
            f"negative discriminant {disc:.3g} in the 2-compartment beta formula "
            f"(CL={params.CL}, V1={params.V1}, V2={params.V2}, Q={params.Q})."
        )
    return 0.5 * (a - math.sqrt(disc))


def terminal_half_life(model: CompartmentModel, params: PKParameterSet) -> Optional[float]:
    """
    ln(2)/beta for the 2-compartment models; None for the others, where the
    2-compartment formula does not describe the terminal phase.
    """
    if model.name not in _BETA_MODELS:
        return None
    beta = beta_two_compartment(params)
    if beta <= 0:
        raise NumericDomainError(f"terminal rate constant must be > 0 (got {beta}).")
    return math.log(2.0) / beta


def first_index_at_or_after(t: np.ndarray, x: float) -> Optional[int]:
    hits = np.flatnonzero(t >= x - TIME_TOL_H)
    return int(hits[0]) if hits.size else None


def steady_state_window(t: np.ndarray, start_h: float, end_h: float) -> Optional[Tuple[int, int]]:
    """
    Inclusive sample indices bounding the window [start_h, end_h]: the first
    sample at or after each bound. None if either bound is past the last sample.
    """
    i0 = first_index_at_or_after(t, start_h)
    i1 = first_index_at_or_after(t, end_h)
    if i0 is None or i1 is None:
        return None
    return i0, i1


def steady_state_metrics(profile: ConcentrationProfile, n_doses: int,
                         tau_h: float) -> Optional[SteadyStateMetrics]:
    """
    Exposure over the last dosing interval [(n-1)*tau, n*tau], located by
    absolute time. None when the recorded grid does not cover the window.
    """
    start_h = (n_doses - 1) * tau_h
    window = steady_state_window(profile.times, start_h, start_h + tau_h)
    if window is None:
        return None
    i0, i1 = window
    t = profile.times[i0:i1 + 1]
    C = profile.concentrations[i0:i1 + 1]
    if t.size < 2:
        return None

    c_max = cmax(C)
    auc_tau = auc_trapz(t - start_h, C)
    cavg = auc_tau / tau_h
    return SteadyStateMetrics(
        cmax_ss=c_max,
        cmin_ss=cmin(C),
        tmax_ss=tmax(t, C) - start_h,
        auc_tau_ss=auc_tau,
        cavg_ss=cavg,
        fluctuation_pct=fluctuation_index(C, cavg),
    )


def first_interval_cmax(profile: ConcentrationProfile, tau_h: float) -> float:
    """Cmax over samples with t <= tau (the first dosing interval)."""
    mask = profile.times <= tau_h + TIME_TOL_H
    return cmax(profile.concentrations[mask])


def exposure_metrics(profile: ConcentrationProfile, model: CompartmentModel,
                     params: PKParameterSet, config: SimulationConfig) -> ExposureMetrics:
    """All NCA metrics of one subject's profile."""
    t, C = profile.times, profile.concentrations
    c_max = cmax(C)
    auc = auc_trapz(t, C)
    cl_f = params.CL / params.F if model.has_depot else params.CL

    steady = None
    accumulation = None
    if config.dosing == "multiple":
        steady = steady_state_metrics(profile, config.n_doses, config.tau_h)
        if steady is None:
            logger.debug("steady-state window [%g, %g] h not on the recorded grid (ends %g h)",
                         (config.n_doses - 1) * config.tau_h, config.n_doses * config.tau_h, t[-1])
        else:
            first = first_interval_cmax(profile, config.tau_h)
            accumulation = steady.cmax_ss / first if first > 0 else None

    return ExposureMetrics(
        cmax=c_max,
        tmax=tmax(t, C),
        auc=auc,
        cl_f=cl_f,
        cmax_per_dose=c_max / config.dose_mg,
        auc_per_dose=auc / config.dose_mg,
        half_life=terminal_half_life(model, params),
        steady_state=steady,
        accumulation_ratio=accumulation,
    )
