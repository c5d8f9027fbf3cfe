# src/pkpop/population.py
import logging
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from typing import Mapping, Optional

import numpy as np

from .config import CovariateDistribution, SimulationConfig
from .dosing import build_regimen
from .metrics import exposure_metrics
from .models.base import CompartmentModel
from .random_variate import RandomVariate, root_sequence, spawn_streams
from .solvers import simulate_regimen
from .summary import summarize_profiles
from .types import Covariates, PKParameterSet, PopulationResult, SubjectResult

logger = logging.getLogger(__name__)

REFERENCE_WEIGHT_KG = 70.0
MIN_WEIGHT_KG = 40.0
CLEARANCE_EXPONENT = 0.75
VOLUME_EXPONENT = 1.0


def generate_covariates(rv: RandomVariate, distribution: CovariateDistribution) -> Covariates:
    """Weight ~ N(mean, sd) floored at 40 kg; sex ~ Bernoulli(female_fraction)."""
    weight = max(MIN_WEIGHT_KG, rv.normal(distribution.weight_mean_kg, distribution.weight_sd_kg))
    sex = "F" if rv.bernoulli(distribution.female_fraction) else "M"
    return Covariates(weight_kg=weight, sex=sex)


def allometric_factor(name: str, model: CompartmentModel, weight_kg: float) -> float:
    ratio = weight_kg / REFERENCE_WEIGHT_KG
    if name in model.clearance_names:
        return ratio ** CLEARANCE_EXPONENT
    if name in model.volume_names:
        return ratio ** VOLUME_EXPONENT
    return 1.0


def generate_individual_parameters(rv: RandomVariate, model: CompartmentModel,
                                   population: PKParameterSet, cv_percent: Mapping[str, float],
                                   covariates: Covariates) -> PKParameterSet:
    """
    One subject's parameters.

    Each parameter with a nonzero CV gets a log-normal draw around its typical
    value; CV 0 keeps the typical value. The result is then scaled to the
    subject's weight (clearances ^0.75, volumes ^1). F is clipped to 1.
    Draws happen in the model's parameter order, so a stream always maps to
    the same parameters.
    """
    values: dict[str, float] = {}
    for name in model.parameter_names:
        typical = population.get(name)
        cv = float(cv_percent.get(name, 0.0))
        value = rv.log_normal(typical, cv) if cv > 0 else typical
        if name == "F":
            value = min(1.0, value)
        values[name] = value * allometric_factor(name, model, covariates.weight_kg)
    return PKParameterSet(**values) if "F" in values else PKParameterSet(F=population.F, **values)


def simulate_subject(config: SimulationConfig, index: int,
                     stream: np.random.SeedSequence) -> SubjectResult:
    """Covariates -> parameters -> regimen -> profile -> metrics for subject `index`."""
    rv = RandomVariate(np.random.default_rng(stream))
    model = config.compartment_model
    covariates = generate_covariates(rv, config.covariates)
    params = generate_individual_parameters(rv, model, config.population, config.cv_percent, covariates)
    return evaluate_subject(config, model, index, covariates, params)


def evaluate_subject(config: SimulationConfig, model: CompartmentModel, index: int,
                     covariates: Covariates, params: PKParameterSet) -> SubjectResult:
    regimen = build_regimen(config, model, params.F)
    profile = simulate_regimen(model, params, regimen, config.step_h)
    metrics = exposure_metrics(profile, model, params, config)
    logger.debug("subject %d: wt=%.1f kg, Cmax=%.4g mg/L", index, covariates.weight_kg, metrics.cmax)
    return SubjectResult(index=index, covariates=covariates, parameters=params,
                         profile=profile, metrics=metrics)


def simulate_population(config: SimulationConfig, seed: Optional[int] = None,
                        n_workers: int = 1) -> PopulationResult:
    """
    Simulate config.n_subjects independent subjects and summarise them.

    seed      : root seed; None draws OS entropy (reported back on the result)
    n_workers : >1 spreads subjects over a process pool; results are identical
                to a sequential run because every subject owns its own stream
    """
    config.validate()
    root = root_sequence(seed)
    streams = spawn_streams(root, config.n_subjects)
    logger.info("simulating %d subjects, model=%s, dosing=%s, seed entropy=%d",
                config.n_subjects, config.model, config.dosing, root.entropy)

    run = partial(simulate_subject, config)
    indices = range(config.n_subjects)
    if n_workers > 1:
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            subjects = list(executor.map(run, indices, streams))
    else:
        subjects = [run(i, s) for i, s in zip(indices, streams)]

    if config.dosing == "multiple":
        missing = sum(1 for s in subjects if not s.metrics.steady_state_available)
        if missing:
            logger.warning("steady-state metrics unavailable for %d of %d subjects "
                           "(window [%g, %g] h not covered by a %g h horizon)",
                           missing, len(subjects), (config.n_doses - 1) * config.tau_h,
                           config.n_doses * config.tau_h, config.sim_time_h)

    summary = summarize_profiles([s.profile for s in subjects])
    logger.info("population simulation finished: %d subjects, %d time points",
                len(subjects), summary.times.size)
    return PopulationResult(subjects=tuple(subjects), summary=summary, seed_entropy=root.entropy)
