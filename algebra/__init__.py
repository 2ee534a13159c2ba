"""Modular arithmetic, randomness and fixed parameters for the election core."""

from .algebra import (
    FieldElement,
    GroupElement,
    ScalarField,
    Group,
    to_be_bytes_left_pad
)
from .csprng import CsprngBase, Csprng, OsCsprng, MAX_REJECTION_ATTEMPTS
from .parameters import (
    FixedParameters,
    STANDARD_PARAMETERS,
    TOY_PARAMETERS_Q7P16,
    TOY_PARAMETERS_Q64P256,
    parameters_by_name
)

__all__ = [
    'FieldElement',
    'GroupElement',
    'ScalarField',
    'Group',
    'to_be_bytes_left_pad',
    'CsprngBase',
    'Csprng',
    'OsCsprng',
    'MAX_REJECTION_ATTEMPTS',
    'FixedParameters',
    'STANDARD_PARAMETERS',
    'TOY_PARAMETERS_Q7P16',
    'TOY_PARAMETERS_Q64P256',
    'parameters_by_name'
]
