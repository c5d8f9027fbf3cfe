import pytest

from pkpop.config import CovariateDistribution, SimulationConfig
from pkpop.types import PKParameterSet


def _make_config(**overrides) -> SimulationConfig:
    """An oral 2-compartment population with moderate variability."""
    base = dict(
        model="two_compartment_oral",
        dose_mg=5.0,
        sim_time_h=48.0,
        step_h=0.1,
        population=PKParameterSet(CL=24.0, V1=90.0, V2=100.0, Q=20.0, Ka=1.5, F=0.4),
        cv_percent={"CL": 30.0, "V1": 25.0, "Ka": 40.0, "F": 20.0},
        covariates=CovariateDistribution(weight_mean_kg=75.0, weight_sd_kg=12.0, female_fraction=0.5),
        n_subjects=20,
    )
    base.update(overrides)
    return SimulationConfig(**base)


@pytest.fixture
def make_config():
    return _make_config
