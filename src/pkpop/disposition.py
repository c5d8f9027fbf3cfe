# src/pkpop/disposition.py
import math

import numpy as np
from scipy import linalg

from .metrics import beta_two_compartment
from .models.base import CompartmentModel
from .types import PKParameterSet

LN2 = math.log(2.0)


def disposition_rate_constants(model: CompartmentModel, params: PKParameterSet) -> np.ndarray:
    """
    Hybrid rate constants (1/h) of the disposition part of the model, fastest first.

    They are the negated eigenvalues of the rate matrix with the depot (if any)
    removed; for a linear mammillary model they are real and positive.
    """
    K = model.rate_matrix(params)
    if model.has_depot:
        K = np.delete(np.delete(K, model.dosing_index, axis=0), model.dosing_index, axis=1)
    rates = -linalg.eigvals(K).real
    return np.sort(rates)[::-1]


def disposition_summary(model: CompartmentModel, params: PKParameterSet) -> dict[str, float]:
    """
    Derived quantities a parameter table shows next to the raw parameters.

    one_compartment       : k10, half_life
    two_compartment(_oral): k10, k12, k21, alpha, beta, half_life_alpha, half_life_beta
                            (+ half_life_absorption for the oral model)
    three_compartment     : k10, pi, alpha, beta and their half-lives
    """
    out: dict[str, float] = {}
    if model.name == "one_compartment":
        out["k10"] = params.CL / params.V
        out["half_life"] = LN2 * params.V / params.CL
        return out

    out["k10"] = params.CL / params.V1
    if model.name in ("two_compartment", "two_compartment_oral"):
        out["k12"] = params.Q / params.V1
        out["k21"] = params.Q / params.V2
        beta = beta_two_compartment(params)
        # alpha*beta = k10*k21
        alpha = out["k10"] * out["k21"] / beta
        out.update(alpha=alpha, beta=beta,
                   half_life_alpha=LN2 / alpha, half_life_beta=LN2 / beta)
        if model.has_depot:
            out["half_life_absorption"] = LN2 / params.Ka
        return out

    pi_, alpha, beta = disposition_rate_constants(model, params)
    out.update(pi=float(pi_), alpha=float(alpha), beta=float(beta),
               half_life_pi=LN2 / pi_, half_life_alpha=LN2 / alpha, half_life_beta=LN2 / beta)
    return out
