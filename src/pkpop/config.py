# src/pkpop/config.py
from __future__ import annotations

import json
import numbers
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from .errors import ValidationError
from .models.base import CompartmentModel
from .models.registry import get_model
from .types import DosingKind, PKParameterSet


@dataclass(frozen=True)
class CovariateDistribution:
    """
    Where subject covariates are drawn from.

    weight_mean_kg, weight_sd_kg : normal distribution of body weight (floored at 40 kg)
    female_fraction              : probability that a subject is female, in [0, 1]
    """
    weight_mean_kg: float = 70.0
    weight_sd_kg: float = 0.0
    female_fraction: float = 0.5


@dataclass(frozen=True)
class SimulationConfig:
    """
    One simulation run.

    dosing      : "single" or "multiple"
    dose_mg     : amount administered per dose
    tau_h       : dosing interval (multiple dosing only)
    n_doses     : number of doses (multiple dosing only)
    sim_time_h  : simulation horizon
    step_h      : fixed RK4 step
    model       : registry key of the compartment model
    population  : population-typical parameters (70 kg reference subject)
    cv_percent  : inter-individual variability per parameter name; missing = 0
    covariates  : covariate distribution
    n_subjects  : virtual population size
    """
    dose_mg: float
    sim_time_h: float
    model: str
    population: PKParameterSet
    dosing: DosingKind = "single"
    tau_h: float = 0.0
    n_doses: int = 1
    step_h: float = 0.1
    cv_percent: Mapping[str, float] = field(default_factory=dict)
    covariates: CovariateDistribution = field(default_factory=CovariateDistribution)
    n_subjects: int = 1

    @property
    def compartment_model(self) -> CompartmentModel:
        return get_model(self.model)

    def validate(self) -> SimulationConfig:
        """Raise ValidationError on the first problem found; return self otherwise."""
        model = self.compartment_model
        _validate_positive("dose_mg", self.dose_mg)
        _validate_positive("sim_time_h", self.sim_time_h)
        _validate_positive("step_h", self.step_h)
        _validate_positive_int("n_subjects", self.n_subjects)

        if self.dosing == "multiple":
            _validate_positive("tau_h", self.tau_h)
            _validate_positive_int("n_doses", self.n_doses)
        elif self.dosing != "single":
            raise ValidationError(f"dosing must be 'single' or 'multiple' (got {self.dosing!r}).")

        model.check_parameters(self.population)
        for name in model.parameter_names:
            _validate_positive(name, self.population.get(name))
        _validate_real("F", self.population.F)
        if not (0.0 < self.population.F <= 1.0):
            raise ValidationError(f"F must be in (0, 1] (got {self.population.F}).")

        for name, cv in self.cv_percent.items():
            if name not in model.parameter_names:
                raise ValidationError(f"CV given for '{name}', which model '{model.name}' does not use.")
            _validate_zero_or_positive(f"CV of {name}", cv)

        cov = self.covariates
        _validate_positive("weight_mean_kg", cov.weight_mean_kg)
        _validate_zero_or_positive("weight_sd_kg", cov.weight_sd_kg)
        _validate_real("female_fraction", cov.female_fraction)
        if not (0.0 <= cov.female_fraction <= 1.0):
            raise ValidationError(f"female_fraction must be in [0, 1] (got {cov.female_fraction}).")
        return self


def config_from_dict(data: Mapping[str, Any]) -> SimulationConfig:
    """
    Build and validate a config from plain data, e.g. parsed JSON:

      {"model": "two_compartment_oral", "dose_mg": 5, "sim_time_h": 60,
       "dosing": "multiple", "tau_h": 12, "n_doses": 5,
       "population": {"CL": 24, "V1": 90, "V2": 100, "Q": 20, "Ka": 1.5, "F": 0.4},
       "cv_percent": {"CL": 30, "V1": 25},
       "covariates": {"weight_mean_kg": 75, "weight_sd_kg": 12, "female_fraction": 0.5},
       "n_subjects": 200}
    """
    data = dict(data)
    known = {f.name for f in fields(SimulationConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValidationError(f"unknown config keys: {', '.join(sorted(unknown))}.")
    try:
        data["population"] = PKParameterSet(**data.get("population", {}))
        data["covariates"] = CovariateDistribution(**data.get("covariates", {}))
        data["cv_percent"] = {k: float(v) for k, v in data.get("cv_percent", {}).items()}
        cfg = SimulationConfig(**data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"malformed config: {e}") from e
    return cfg.validate()


def load_config(path: str | Path) -> SimulationConfig:
    """Read a JSON config file."""
    with open(path, encoding="utf-8") as f:
        return config_from_dict(json.load(f))


# --------------------------
# Small input validators
# --------------------------
def _validate_real(name: str, x) -> None:
    if not (isinstance(x, numbers.Real) and not isinstance(x, bool)):
        raise ValidationError(f"{name} must be a number (got {x!r}).")

def _validate_positive(name: str, x) -> None:
    _validate_real(name, x)
    if not (x > 0):
        raise ValidationError(f"{name} must be > 0 (got {x}).")

def _validate_zero_or_positive(name: str, x) -> None:
    _validate_real(name, x)
    if not (x >= 0):
        raise ValidationError(f"{name} must be >= 0 (got {x}).")

def _validate_positive_int(name: str, x) -> None:
    if not (isinstance(x, int) and not isinstance(x, bool) and x > 0):
        raise ValidationError(f"{name} must be a positive integer (got {x}).")
