# src/pkpop/models/three_compartment.py
import numpy as np

from .base import CompartmentModel
from ..types import PKParameterSet


class ThreeCompartmentIV(CompartmentModel):
    """
    Three-compartment model: the central compartment exchanges independently
    with a shallow (Q2, V2) and a deep (Q3, V3) peripheral compartment.
    Three states:
      y[0] = central amount A1 (mg)
      y[1] = peripheral amount A2 (mg)
      y[2] = peripheral amount A3 (mg)

      dA1/dt = -(CL/V1) A1 - (Q2/V1) A1 + (Q2/V2) A2 - (Q3/V1) A1 + (Q3/V3) A3
      dA2/dt =  (Q2/V1) A1 - (Q2/V2) A2
      dA3/dt =  (Q3/V1) A1 - (Q3/V3) A3
    """

    name = "three_compartment"
    n_states = 3
    dosing_index = 0
    central_index = 0
    parameter_names = ("CL", "V1", "V2", "V3", "Q2", "Q3")
    clearance_names = ("CL", "Q2", "Q3")
    volume_names = ("V1", "V2", "V3")

    def rate_matrix(self, params: PKParameterSet) -> np.ndarray:
        k10 = params.CL / params.V1
        k12, k21 = params.Q2 / params.V1, params.Q2 / params.V2
        k13, k31 = params.Q3 / params.V1, params.Q3 / params.V3
        return np.array([
            [-k10 - k12 - k13, k21, k31],
            [k12, -k21, 0.0],
            [k13, 0.0, -k31],
        ])

    def central_volume(self, params: PKParameterSet) -> float:
        return float(params.V1)
