# src/pkpop/models/registry.py
from .base import CompartmentModel
from .one_compartment import OneCompartmentIV
from .two_compartment import TwoCompartmentIV, TwoCompartmentOral
from .three_compartment import ThreeCompartmentIV
from ..errors import ValidationError

MODELS: dict[str, CompartmentModel] = {
    m.name: m for m in (OneCompartmentIV(), TwoCompartmentIV(), ThreeCompartmentIV(), TwoCompartmentOral())
}


def get_model(name: str) -> CompartmentModel:
    """Look up a model by its key, e.g. 'two_compartment_oral'."""
    try:
        return MODELS[name]
    except KeyError:
        raise ValidationError(
            f"unknown compartment model '{name}' (expected one of {', '.join(sorted(MODELS))})."
        ) from None
