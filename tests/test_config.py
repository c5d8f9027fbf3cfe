import json
import pytest

from pkpop.config import SimulationConfig, config_from_dict, load_config
from pkpop.errors import ValidationError
from pkpop.types import PKParameterSet

GOOD = {
    "model": "two_compartment_oral",
    "dose_mg": 5.0,
    "sim_time_h": 60.0,
    "dosing": "multiple",
    "tau_h": 12.0,
    "n_doses": 5,
    "population": {"CL": 24.0, "V1": 90.0, "V2": 100.0, "Q": 20.0, "Ka": 1.5, "F": 0.4},
    "cv_percent": {"CL": 30, "V1": 25},
    "covariates": {"weight_mean_kg": 75.0, "weight_sd_kg": 12.0, "female_fraction": 0.5},
    "n_subjects": 50,
}


def test_config_from_dict_round_trip():
    cfg = config_from_dict(GOOD)
    assert cfg.population == PKParameterSet(**GOOD["population"])
    assert cfg.cv_percent == {"CL": 30.0, "V1": 25.0}
    assert cfg.covariates.weight_sd_kg == 12.0
    assert cfg.compartment_model.name == "two_compartment_oral"


def test_load_config_reads_json(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(GOOD))
    assert load_config(path).n_doses == 5


@pytest.mark.parametrize("patch", [
    {"dose_mg": 0.0},
    {"sim_time_h": -1.0},
    {"step_h": 0.0},
    {"n_subjects": 0},
    {"tau_h": 0.0},
    {"n_doses": 0},
    {"dosing": "weekly"},
    {"model": "five_compartment"},
    {"cv_percent": {"CL": -5.0}},
    {"cv_percent": {"V3": 10.0}},
    {"covariates": {"weight_sd_kg": -1.0}},
    {"covariates": {"female_fraction": 1.5}},
    {"population": {"CL": -24.0, "V1": 90.0, "V2": 100.0, "Q": 20.0, "Ka": 1.5, "F": 0.4}},
    {"population": {"CL": 24.0, "V1": 90.0, "V2": 100.0, "Q": 20.0, "Ka": 1.5, "F": 1.2}},
    {"population": {"CL": 24.0, "V1": 90.0, "Q": 20.0, "Ka": 1.5}},
    {"frequency": "bid"},
    {"dose_mg": "100"},
    {"tau_h": None},
    {"covariates": {"weight_sd_kg": "12"}},
    {"covariates": {"female_fraction": "half"}},
    {"cv_percent": {"CL": "thirty"}},
    {"population": {"CL": 24.0, "V1": 90.0, "V2": 100.0, "Q": "20", "Ka": 1.5, "F": 0.4}},
])
def test_invalid_configs_are_rejected(patch):
    with pytest.raises(ValidationError):
        config_from_dict({**GOOD, **patch})


def test_single_dosing_ignores_tau():
    cfg = SimulationConfig(dose_mg=100.0, sim_time_h=48.0, model="one_compartment",
                           population=PKParameterSet(CL=5.0, V=50.0))
    assert cfg.validate() is cfg
    assert cfg.dosing == "single"


def test_unknown_population_parameter_is_a_validation_error():
    with pytest.raises(ValidationError):
        config_from_dict({**GOOD, "population": {"CL": 1.0, "Vmax": 3.0}})


@pytest.mark.parametrize("f", [0.0, -0.5, 1.2, "0.5"])
def test_iv_model_bioavailability_must_be_in_unit_interval(f):
    with pytest.raises(ValidationError):
        config_from_dict({"model": "one_compartment", "dose_mg": 100.0, "sim_time_h": 24.0,
                          "population": {"CL": 5.0, "V": 50.0, "F": f}})
