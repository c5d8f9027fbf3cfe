# src/pkpop/simulate.py
import logging
from typing import Optional

from .config import SimulationConfig
from .population import REFERENCE_WEIGHT_KG, evaluate_subject, simulate_population
from .types import Covariates, PopulationResult, SubjectResult

logger = logging.getLogger(__name__)


def run_single(config: SimulationConfig) -> SubjectResult:
    """
    High-level wrapper for simulating the population-typical subject:
    70 kg reference weight, no inter-individual variability.
    """
    config.validate()
    model = config.compartment_model
    logger.info("simulating typical subject, model=%s, dosing=%s", config.model, config.dosing)
    return evaluate_subject(config, model, 0, Covariates(weight_kg=REFERENCE_WEIGHT_KG),
                            config.population)


def run_population(config: SimulationConfig, seed: Optional[int] = None,
                   n_workers: int = 1) -> PopulationResult:
    """
    High-level wrapper for a virtual population run.
    The same seed always reproduces the same subjects, whatever n_workers is.
    """
    return simulate_population(config, seed=seed, n_workers=n_workers)
