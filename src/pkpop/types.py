# src/pkpop/types.py
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Literal, Optional, Sequence

import numpy as np

# We keep *all* time in HOURS and all amounts in MG internally.
DosingKind = Literal["single", "multiple"]
Sex = Literal["F", "M"]

PARAMETER_NAMES = ("CL", "V", "V1", "V2", "V3", "Q", "Q2", "Q3", "Ka", "F")


@dataclass(frozen=True)
class PKParameterSet:
    """
    Resolved PK parameters of one subject (or the population-typical values).

    CL          : clearance (L/h)
    V           : volume of the single compartment (L), 1-compartment model only
    V1, V2, V3  : central / peripheral volumes (L)
    Q           : inter-compartmental clearance of the 2-compartment models (L/h)
    Q2, Q3      : inter-compartmental clearances of the 3-compartment model (L/h)
    Ka          : first-order absorption rate constant (1/h)
    F           : bioavailability, in (0, 1]

    Parameters a model does not use stay None.
    """
    CL: Optional[float] = None
    V: Optional[float] = None
    V1: Optional[float] = None
    V2: Optional[float] = None
    V3: Optional[float] = None
    Q: Optional[float] = None
    Q2: Optional[float] = None
    Q3: Optional[float] = None
    Ka: Optional[float] = None
    F: float = 1.0

    def get(self, name: str) -> Optional[float]:
        return getattr(self, name)

    def as_dict(self) -> dict[str, float]:
        """Only the parameters that are set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class Covariates:
    """
    weight_kg : body weight, drives allometric scaling
    sex       : "F" or "M", recorded only; None for the reference subject
    """
    weight_kg: float
    sex: Optional[Sex] = None


@dataclass(frozen=True)
class DoseEvent:
    """
    An instantaneous mass addition to one compartment of the state vector.

    time_h      : when the dose lands (hours from time 0)
    compartment : index into the model state (depot for oral models, central otherwise)
    amount_mg   : amount that reaches the compartment (already scaled by F where relevant)
    """
    time_h: float
    compartment: int
    amount_mg: float


@dataclass(frozen=True)
class Regimen:
    """
    The ordered dose events of one simulation plus the time it ends.
    """
    events: Sequence[DoseEvent]
    end_h: float

    @property
    def dose_times(self) -> tuple[float, ...]:
        return tuple(sorted({e.time_h for e in self.events}))


def _readonly(a) -> np.ndarray:
    arr = np.array(a, dtype=float)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class ConcentrationProfile:
    """
    Simulated trajectory of one subject.

    times          : strictly increasing sample times (h)
    concentrations : central amount / central volume at each time (mg/L)
    amounts        : full state (mg), one row per time point, one column per compartment

    Arrays are copied and frozen on construction.
    """
    times: np.ndarray
    concentrations: np.ndarray
    amounts: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "times", _readonly(self.times))
        object.__setattr__(self, "concentrations", _readonly(self.concentrations))
        object.__setattr__(self, "amounts", _readonly(self.amounts))

    def __len__(self) -> int:
        return len(self.times)


@dataclass(frozen=True)
class SteadyStateMetrics:
    """Exposure over the last dosing interval [(n-1)*tau, n*tau]."""
    cmax_ss: float
    cmin_ss: float
    tmax_ss: float  # relative to the start of the interval
    auc_tau_ss: float
    cavg_ss: float
    fluctuation_pct: float


@dataclass(frozen=True)
class ExposureMetrics:
    """
    NCA summary of one profile.

    half_life is None when the model has no closed-form terminal phase here.
    steady_state / accumulation_ratio are None for single dosing and whenever the
    steady-state window could not be located on the recorded grid.
    """
    cmax: float
    tmax: float
    auc: float
    cl_f: float
    cmax_per_dose: float
    auc_per_dose: float
    half_life: Optional[float] = None
    steady_state: Optional[SteadyStateMetrics] = None
    accumulation_ratio: Optional[float] = None

    @property
    def steady_state_available(self) -> bool:
        return self.steady_state is not None

    def scalars(self) -> dict[str, Optional[float]]:
        """Flat name -> value view, None marking an unavailable metric."""
        out: dict[str, Optional[float]] = {
            "cmax": self.cmax,
            "tmax": self.tmax,
            "auc": self.auc,
            "cl_f": self.cl_f,
            "cmax_per_dose": self.cmax_per_dose,
            "auc_per_dose": self.auc_per_dose,
            "half_life": self.half_life,
            "accumulation_ratio": self.accumulation_ratio,
        }
        for f in fields(SteadyStateMetrics):
            out[f.name] = getattr(self.steady_state, f.name) if self.steady_state is not None else None
        return out


@dataclass(frozen=True)
class PopulationSummary:
    """Per-time-point bands over every subject profile (mg/L)."""
    times: np.ndarray
    median: np.ndarray
    p5: np.ndarray
    p95: np.ndarray
    mean: np.ndarray
    min: np.ndarray
    max: np.ndarray


@dataclass(frozen=True)
class DistributionSummary:
    """Spread of one scalar across subjects (nearest-rank percentiles)."""
    n: int
    mean: float
    sd: float
    cv_percent: float
    median: float
    p5: float
    p95: float
    min: float
    max: float


@dataclass(frozen=True)
class SubjectResult:
    index: int
    covariates: Covariates
    parameters: PKParameterSet
    profile: ConcentrationProfile
    metrics: ExposureMetrics


@dataclass(frozen=True)
class PopulationResult:
    """
    Everything a presentation layer needs from one population run.

    subjects     : per-subject results, in subject order
    summary      : concentration bands over all subjects
    seed_entropy : entropy of the root SeedSequence; pass it back as `seed` to replay the run
    """
    subjects: Sequence[SubjectResult]
    summary: PopulationSummary
    seed_entropy: int

    @property
    def profiles(self) -> list[ConcentrationProfile]:
        return [s.profile for s in self.subjects]

    @property
    def parameters(self) -> list[PKParameterSet]:
        return [s.parameters for s in self.subjects]

    @property
    def covariates(self) -> list[Covariates]:
        return [s.covariates for s in self.subjects]

    @property
    def metrics(self) -> list[ExposureMetrics]:
        return [s.metrics for s in self.subjects]
