# src/pkpop/models/one_compartment.py
import numpy as np

from .base import CompartmentModel
from ..types import PKParameterSet


class OneCompartmentIV(CompartmentModel):
    """
    One-compartment model with IV bolus input and linear elimination.
    One state:
      y[0] = drug in central compartment (mg)

      dA1/dt = -(CL/V) * A1
    """

    name = "one_compartment"
    n_states = 1
    dosing_index = 0
    central_index = 0
    parameter_names = ("CL", "V")
    clearance_names = ("CL",)
    volume_names = ("V",)

    def rate_matrix(self, params: PKParameterSet) -> np.ndarray:
        return np.array([[-params.CL / params.V]])

    def central_volume(self, params: PKParameterSet) -> float:
        return float(params.V)
