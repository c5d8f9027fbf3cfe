# src/pkpop/cli.py
import argparse
import csv
import logging
import sys
from typing import List, Optional

from .config import load_config
from .disposition import disposition_summary
from .errors import NumericDomainError, ValidationError
from .simulate import run_population, run_single
from .summary import female_percent, summarize_metrics, summarize_parameters
from .types import PopulationResult, SubjectResult

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="pkpop - population PK simulation")
    parser.add_argument("config", help="JSON simulation config")
    parser.add_argument("--seed", type=int, default=None, help="Root random seed (default: fresh entropy)")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes for the population run")
    parser.add_argument("--typical", action="store_true",
                        help="Simulate only the population-typical subject")
    parser.add_argument("--summary-csv", type=str, default="summary.csv",
                        help="Output CSV for concentration bands (or the typical profile)")
    parser.add_argument("--subjects-csv", type=str, default=None,
                        help="Optional output CSV with one row per subject")
    parser.add_argument("--log-level", default="INFO", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Logging level")
    return parser


def _fmt(s) -> str:
    return f"{s.median:.4g} ({s.p5:.4g}-{s.p95:.4g})"


def _write_profile(path: str, result: SubjectResult) -> None:
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["time_h", "C_mg_per_L"])
        for t, c in zip(result.profile.times, result.profile.concentrations):
            writer.writerow([t, c])


def _write_summary(path: str, result: PopulationResult) -> None:
    s = result.summary
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["time_h", "median", "p5", "p95", "mean", "min", "max"])
        for row in zip(s.times, s.median, s.p5, s.p95, s.mean, s.min, s.max):
            writer.writerow(row)


def _write_subjects(path: str, result: PopulationResult) -> None:
    param_names = list(result.subjects[0].parameters.as_dict())
    metric_names = list(result.subjects[0].metrics.scalars())
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["subject", "weight_kg", "sex"] + param_names + metric_names)
        for sub in result.subjects:
            params = sub.parameters.as_dict()
            metrics = sub.metrics.scalars()
            writer.writerow(
                [sub.index, sub.covariates.weight_kg, sub.covariates.sex]
                + [params[n] for n in param_names]
                # unavailable metrics stay empty cells
                + ["" if metrics[n] is None else metrics[n] for n in metric_names]
            )


def _print_population(result: PopulationResult) -> None:
    print("Parameters (median (P5-P95))")
    for name, s in summarize_parameters(result.subjects).items():
        print(f"  {name:<22s} {_fmt(s)}   CV {s.cv_percent:.1f}%")
    print(f"  {'female %':<22s} {female_percent(result.subjects):.0f}")
    print("Exposure metrics (median (P5-P95))")
    for name, s in summarize_metrics(result.metrics).items():
        print(f"  {name:<22s} {_fmt(s)}")


def run_cli(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        config = load_config(args.config)
        model = config.compartment_model
        for name, value in disposition_summary(model, config.population).items():
            logger.info("typical %s = %.4g", name, value)

        if args.typical:
            subject = run_single(config)
            _write_profile(args.summary_csv, subject)
            for name, value in subject.metrics.scalars().items():
                print(f"  {name:<22s} {'n/a' if value is None else f'{value:.4g}'}")
            return 0

        result = run_population(config, seed=args.seed, n_workers=args.workers)
        _write_summary(args.summary_csv, result)
        if args.subjects_csv:
            _write_subjects(args.subjects_csv, result)
        _print_population(result)
        logger.info("replay this run with --seed %d", result.seed_entropy)
    except (ValidationError, NumericDomainError, OSError, ValueError) as e:
        logger.error("%s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(run_cli())
