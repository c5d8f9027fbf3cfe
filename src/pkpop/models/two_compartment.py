# src/pkpop/models/two_compartment.py
import numpy as np

from .base import CompartmentModel
from ..types import PKParameterSet


def _disposition_block(CL: float, V1: float, V2: float, Q: float) -> np.ndarray:
    k10, k12, k21 = CL / V1, Q / V1, Q / V2
    return np.array([
        [-k10 - k12, k21],
        [k12, -k21],
    ])


class TwoCompartmentIV(CompartmentModel):
    """
    Two-compartment model, IV bolus into the central compartment.
    Two states:
      y[0] = central amount A1 (mg)
      y[1] = peripheral amount A2 (mg)

      dA1/dt = -(CL/V1) A1 - (Q/V1) A1 + (Q/V2) A2
      dA2/dt =  (Q/V1) A1 - (Q/V2) A2
    """

    name = "two_compartment"
    n_states = 2
    dosing_index = 0
    central_index = 0
    parameter_names = ("CL", "V1", "V2", "Q")
    clearance_names = ("CL", "Q")
    volume_names = ("V1", "V2")

    def rate_matrix(self, params: PKParameterSet) -> np.ndarray:
        return _disposition_block(params.CL, params.V1, params.V2, params.Q)

    def central_volume(self, params: PKParameterSet) -> float:
        return float(params.V1)


class TwoCompartmentOral(CompartmentModel):
    """
    Two-compartment model with first-order absorption from a depot.
    Three states:
      y[0] = depot (gut) amount Ad (mg), never observed
      y[1] = central amount A1 (mg)
      y[2] = peripheral amount A2 (mg)

      dAd/dt = -Ka Ad
      dA1/dt =  Ka Ad - (CL/V1) A1 - (Q/V1) A1 + (Q/V2) A2
      dA2/dt =  (Q/V1) A1 - (Q/V2) A2
    """

    name = "two_compartment_oral"
    n_states = 3
    has_depot = True
    dosing_index = 0
    central_index = 1
    parameter_names = ("CL", "V1", "V2", "Q", "Ka", "F")
    clearance_names = ("CL", "Q")
    volume_names = ("V1", "V2")

    def rate_matrix(self, params: PKParameterSet) -> np.ndarray:
        K = np.zeros((3, 3))
        K[0, 0] = -params.Ka
        K[1, 0] = params.Ka
        K[1:, 1:] = _disposition_block(params.CL, params.V1, params.V2, params.Q)
        return K

    def central_volume(self, params: PKParameterSet) -> float:
        return float(params.V1)
