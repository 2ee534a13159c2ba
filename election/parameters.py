"""
Election Parameters
===================
Varying parameters (guardian count n, quorum k, date, info) combined with the
fixed cryptographic parameters.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from errors import InvalidParameterError, SerializationError
from algebra.parameters import FixedParameters
from utils.serialization import CanonicalSerializable, require

logger = logging.getLogger(__name__)

# Guardian indices are encoded as u32 in hashes; keep well inside that range
MAX_GUARDIANS = 2**31 - 1


@dataclass
class VaryingParameters(CanonicalSerializable):
    """Number of guardians n, decryption quorum k, election date and info"""
    n: int
    k: int
    date: str = ""
    info: str = ""

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not 1 <= self.n <= MAX_GUARDIANS:
            raise InvalidParameterError(
                f"Number of guardians must be in [1, {MAX_GUARDIANS}], got {self.n}")
        if not 1 <= self.k <= self.n:
            raise InvalidParameterError(
                f"Quorum k must satisfy 1 <= k <= n (k={self.k}, n={self.n})")

    def guardian_indices(self) -> range:
        return range(1, self.n + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {'n': self.n, 'k': self.k, 'date': self.date, 'info': self.info}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VaryingParameters':
        try:
            return cls(n=require(data, 'n', int), k=require(data, 'k', int),
                       date=require(data, 'date', str), info=require(data, 'info', str))
        except InvalidParameterError as e:
            raise SerializationError(str(e)) from e


@dataclass
class ElectionParameters:
    fixed_parameters: FixedParameters
    varying_parameters: VaryingParameters

    @property
    def n(self) -> int:
        return self.varying_parameters.n

    @property
    def k(self) -> int:
        return self.varying_parameters.k

    def __post_init__(self):
        # Guardian indices are evaluation points of the sharing polynomial; an
        # index congruent to 0 mod q would receive the dealer's secret itself
        q = self.fixed_parameters.q
        if self.n >= q:
            raise InvalidParameterError(
                f"Number of guardians n={self.n} must be below the field order q={q}")

    def validate_guardian_index(self, i: int):
        if not 1 <= i <= self.n:
            raise InvalidParameterError(
                f"Guardian index {i} is outside [1, {self.n}]")
