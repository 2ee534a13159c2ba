"""Domain-separated hashing and the election hash chain."""

from .hash import (
    HValue,
    DomainTag,
    HVALUE_BYTE_LEN,
    eg_h,
    eg_hmac,
    eg_h_tagged,
    eg_h_q,
    hvalue_to_field
)
from .hashes import H_V, ParameterBaseHash, Hashes, ExtendedBaseHash, u32_be

__all__ = [
    'HValue',
    'DomainTag',
    'HVALUE_BYTE_LEN',
    'eg_h',
    'eg_hmac',
    'eg_h_tagged',
    'eg_h_q',
    'hvalue_to_field',
    'H_V',
    'ParameterBaseHash',
    'Hashes',
    'ExtendedBaseHash',
    'u32_be'
]
