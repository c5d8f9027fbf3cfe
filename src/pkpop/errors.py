# src/pkpop/errors.py


class ValidationError(ValueError):
    """Raised for an invalid configuration, before any simulation runs."""


class NumericDomainError(ArithmeticError):
    """Raised when a derived quantity falls outside its mathematical domain."""
