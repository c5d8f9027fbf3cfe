# src/pkpop/dosing.py
from __future__ import annotations

from .config import SimulationConfig
from .models.base import CompartmentModel
from .types import DoseEvent, Regimen


def single_dose(model: CompartmentModel, amount_mg: float, sim_time_h: float,
                bioavailability: float = 1.0) -> Regimen:
    """
    One dose at t=0, simulated to the full horizon.
    Depot models receive amount*F in the depot; IV models receive the full amount centrally.
    """
    return Regimen(events=(_dose_event(model, 0.0, amount_mg, bioavailability),),
                   end_h=float(sim_time_h))


def repeated_doses(model: CompartmentModel, amount_mg: float, tau_h: float, n_doses: int,
                   sim_time_h: float, bioavailability: float = 1.0) -> Regimen:
    """
    n_doses doses at 0, tau, 2*tau, ... The simulation stops at the end of the
    last dosing interval or at the horizon, whichever comes first, so doses
    scheduled at or past the horizon are dropped and the last interval may be
    shorter than tau.
    """
    end_h = min(n_doses * tau_h, float(sim_time_h))
    events = []
    for i in range(n_doses):
        t = i * tau_h
        if t >= sim_time_h:
            break
        events.append(_dose_event(model, t, amount_mg, bioavailability))
    return Regimen(events=tuple(events), end_h=end_h)


def build_regimen(config: SimulationConfig, model: CompartmentModel,
                  bioavailability: float = 1.0) -> Regimen:
    """Dose events for one subject of `config`, given that subject's F."""
    if config.dosing == "single":
        return single_dose(model, config.dose_mg, config.sim_time_h, bioavailability)
    return repeated_doses(model, config.dose_mg, config.tau_h, config.n_doses,
                          config.sim_time_h, bioavailability)


def _dose_event(model: CompartmentModel, time_h: float, amount_mg: float,
                bioavailability: float) -> DoseEvent:
    amount = amount_mg * bioavailability if model.has_depot else amount_mg
    return DoseEvent(time_h=float(time_h), compartment=model.dosing_index, amount_mg=float(amount))
