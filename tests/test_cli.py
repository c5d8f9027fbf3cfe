import csv
import json

import pytest

from pkpop.cli import run_cli

CONFIG = {
    "model": "two_compartment_oral",
    "dose_mg": 5.0,
    "sim_time_h": 60.0,
    "dosing": "multiple",
    "tau_h": 12.0,
    "n_doses": 5,
    "population": {"CL": 24.0, "V1": 90.0, "V2": 100.0, "Q": 20.0, "Ka": 1.5, "F": 0.4},
    "cv_percent": {"CL": 30, "V1": 25, "Ka": 40, "F": 20},
    "covariates": {"weight_mean_kg": 75.0, "weight_sd_kg": 12.0, "female_fraction": 0.5},
    "n_subjects": 10,
}


def _write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_cli_population(tmp_path, capsys):
    summary_csv = tmp_path / "summary.csv"
    subjects_csv = tmp_path / "subjects.csv"
    rc = run_cli([_write_config(tmp_path, CONFIG), "--seed", "1",
                  "--summary-csv", str(summary_csv), "--subjects-csv", str(subjects_csv)])
    assert rc == 0

    with open(summary_csv, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["time_h", "median", "p5", "p95", "mean", "min", "max"]
    assert len(rows) == 1 + 601

    with open(subjects_csv, newline="") as f:
        subjects = list(csv.DictReader(f))
    assert len(subjects) == 10
    assert subjects[0]["cmax_ss"] != ""

    out = capsys.readouterr().out
    assert "cmax_ss" in out and "female %" in out


def test_cli_typical_subject(tmp_path):
    out_csv = tmp_path / "typical.csv"
    rc = run_cli([_write_config(tmp_path, CONFIG), "--typical", "--summary-csv", str(out_csv)])
    assert rc == 0
    with open(out_csv, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["time_h", "C_mg_per_L"]
    assert len(rows) > 2


def test_cli_bad_config_exit_code(tmp_path):
    rc = run_cli([_write_config(tmp_path, {**CONFIG, "dose_mg": -5.0}),
                  "--summary-csv", str(tmp_path / "s.csv")])
    assert rc == 2
    assert not (tmp_path / "s.csv").exists()


def test_cli_non_numeric_value_exit_code(tmp_path):
    rc = run_cli([_write_config(tmp_path, {**CONFIG, "dose_mg": "100"}),
                  "--summary-csv", str(tmp_path / "s.csv")])
    assert rc == 2
    assert not (tmp_path / "s.csv").exists()


def test_cli_rejects_unknown_log_level(tmp_path):
    with pytest.raises(SystemExit) as exc:
        run_cli([_write_config(tmp_path, CONFIG), "--log-level", "verbose"])
    assert exc.value.code == 2
