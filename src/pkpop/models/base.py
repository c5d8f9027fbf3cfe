# src/pkpop/models/base.py
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np

from ..errors import ValidationError
from ..types import PKParameterSet

Derivative = Callable[[float, np.ndarray], np.ndarray]


class CompartmentModel(ABC):
    """
    A linear compartment model, dA/dt = K @ A.

    Subclasses declare their state layout and build the rate matrix K from a
    parameter set; everything else (derivative, observation) is shared.
    """

    name: str = ""
    n_states: int = 1
    has_depot: bool = False
    dosing_index: int = 0       # where dose mass lands
    central_index: int = 0      # the observed compartment
    parameter_names: tuple[str, ...] = ()
    clearance_names: tuple[str, ...] = ()   # allometric exponent 0.75
    volume_names: tuple[str, ...] = ()      # allometric exponent 1

    @abstractmethod
    def rate_matrix(self, params: PKParameterSet) -> np.ndarray:
        """First-order rate constants (1/h), shape (n_states, n_states)."""

    @abstractmethod
    def central_volume(self, params: PKParameterSet) -> float:
        """Volume used to turn the central amount into a concentration (L)."""

    def derivative(self, params: PKParameterSet) -> Derivative:
        """Right-hand side f(t, y) for the integrator, closed over `params`."""
        K = self.rate_matrix(params)

        def rhs(t: float, y: np.ndarray) -> np.ndarray:
            return K @ y

        return rhs

    def initial_state(self) -> np.ndarray:
        return np.zeros(self.n_states, dtype=float)

    def concentrations(self, amounts: np.ndarray, params: PKParameterSet) -> np.ndarray:
        """Central amount / central volume for each row of a state matrix."""
        return np.asarray(amounts, dtype=float)[:, self.central_index] / self.central_volume(params)

    def check_parameters(self, params: PKParameterSet) -> None:
        missing = [n for n in self.parameter_names if params.get(n) is None]
        if missing:
            raise ValidationError(f"model '{self.name}' requires parameters {', '.join(missing)}.")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
