# src/pkpop/solvers.py
import logging
import math
from collections import defaultdict
from typing import Callable

import numpy as np

from .errors import ValidationError
from .models.base import CompartmentModel
from .types import ConcentrationProfile, PKParameterSet, Regimen

logger = logging.getLogger(__name__)


def rk4_integrate(f: Callable[[float, np.ndarray], np.ndarray], y0, t0: float, t1: float,
                  h: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Fixed-step classical Runge-Kutta over [t0, t1].

    Takes ceil((t1 - t0) / h) steps of exactly h, so the last sample can land
    slightly past t1; there is no shortened final step.

    Returns:
      times  : array of n+1 time points, times[i] = t0 + i*h (starts at t0)
      states : array of shape (n+1, len(y0)), states[0] = y0
    """
    if not (h > 0):
        raise ValidationError(f"step must be > 0 (got {h}).")
    if t1 < t0:
        raise ValidationError(f"integration end {t1} is before start {t0}.")

    # rounding the quotient keeps e.g. 12/0.1 from turning into 121 steps
    n = math.ceil(round((t1 - t0) / h, 9))
    y = np.array(y0, dtype=float)
    times = t0 + h * np.arange(n + 1, dtype=float)
    states = np.empty((n + 1, y.size), dtype=float)
    states[0] = y

    for i in range(n):
        t = times[i]
        k1 = h * np.asarray(f(t, y))
        k2 = h * np.asarray(f(t + h / 2.0, y + k1 / 2.0))
        k3 = h * np.asarray(f(t + h / 2.0, y + k2 / 2.0))
        k4 = h * np.asarray(f(t + h, y + k3))
        y = y + (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0
        states[i + 1] = y

    return times, states


def simulate_regimen(model: CompartmentModel, params: PKParameterSet, regimen: Regimen,
                     step_h: float = 0.1) -> ConcentrationProfile:
    """
    Run one subject through its dose events.

    The state starts empty at t=0. At every dose time the scheduled amounts are
    added to their compartments, then the state is integrated up to the next
    dose time (or the regimen end). Segments are joined with the first sample
    of each later segment dropped, since it repeats the previous segment's last
    time point.

    Returns a ConcentrationProfile holding times, central concentrations and
    the full amount matrix.
    """
    if not (regimen.end_h > 0):
        raise ValidationError(f"regimen end must be > 0 (got {regimen.end_h}).")

    by_time: dict[float, list] = defaultdict(list)
    for e in regimen.events:
        if e.time_h < 0:
            raise ValidationError(f"dose event at negative time {e.time_h}.")
        if not (0 <= e.compartment < model.n_states):
            raise ValidationError(f"dose compartment {e.compartment} outside model '{model.name}'.")
        if e.time_h < regimen.end_h:
            by_time[e.time_h].append(e)

    boundaries = sorted(set(by_time) | {0.0})
    rhs = model.derivative(params)
    state = model.initial_state()

    t_chunks: list[np.ndarray] = []
    y_chunks: list[np.ndarray] = []
    for idx, start in enumerate(boundaries):
        stop = boundaries[idx + 1] if idx + 1 < len(boundaries) else regimen.end_h
        for e in by_time.get(start, ()):
            state[e.compartment] += e.amount_mg

        t_seg, y_seg = rk4_integrate(rhs, state, start, stop, step_h)
        state = y_seg[-1].copy()
        if t_chunks:
            t_seg, y_seg = t_seg[1:], y_seg[1:]
        t_chunks.append(t_seg)
        y_chunks.append(y_seg)

    times = np.concatenate(t_chunks)
    amounts = np.concatenate(y_chunks)
    logger.debug("simulated %s over %.3g h: %d samples, %d dose events",
                 model.name, regimen.end_h, times.size, len(regimen.events))
    return ConcentrationProfile(times=times,
                                concentrations=model.concentrations(amounts, params),
                                amounts=amounts)
