"""
Pedersen-Style Value Commitments
================================
com = g^r * ck^m for a commitment key ck whose discrete log base g is unknown.
Hiding comes from the random opening r, binding from discrete log hardness.
Commitments multiply to commit to the sum of their values.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from errors import DecryptionError, InvalidParameterError
from algebra.algebra import FieldElement, GroupElement
from algebra.csprng import CsprngBase
from algebra.parameters import FixedParameters
from elgamal.discrete_log import DiscreteLog
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Commitment(CanonicalSerializable):
    value: GroupElement

    @staticmethod
    def _compute(fixed_parameters: FixedParameters, commitment_key: GroupElement,
                 message: FieldElement, opening: FieldElement) -> GroupElement:
        group = fixed_parameters.group
        return group.g_exp(opening).mul(commitment_key.exp(message, group), group)

    @classmethod
    def new(cls, csprng: CsprngBase, fixed_parameters: FixedParameters,
            commitment_key: GroupElement, message: FieldElement) -> Tuple['Commitment', FieldElement]:
        """Commit to message, returning the commitment and its opening r"""
        if not commitment_key.is_valid(fixed_parameters.group):
            raise InvalidParameterError("Commitment key is not a group element")
        opening = fixed_parameters.field.random_field_elem(csprng)
        return cls(cls._compute(fixed_parameters, commitment_key, message, opening)), opening

    def verify(self, fixed_parameters: FixedParameters, commitment_key: GroupElement,
               message: FieldElement, opening: FieldElement) -> bool:
        expected = self._compute(fixed_parameters, commitment_key, message, opening)
        if expected != self.value:
            logger.warning("Commitment does not open to the claimed message")
            return False
        return True

    @classmethod
    def combine(cls, fixed_parameters: FixedParameters,
                commitments: Iterable[Tuple['Commitment', FieldElement]]) -> Tuple['Commitment', FieldElement]:
        """Product of commitments with the sum of their openings"""
        group = fixed_parameters.group
        field = fixed_parameters.field
        product = group.one()
        opening = field.zero()
        for commitment, r in commitments:
            product = product.mul(commitment.value, group)
            opening = opening.add(r, field)
        return cls(product), opening

    def open(self, fixed_parameters: FixedParameters, opening: FieldElement,
             dlog: DiscreteLog) -> int:
        """Recover a small message; dlog must be built over the commitment key"""
        group = fixed_parameters.group
        ck_m = self.value.mul(group.g_exp(opening).inv(group), group)
        message = dlog.find(ck_m)
        if message is None:
            raise DecryptionError("Committed value is outside the discrete log search bound")
        return message

    def to_dict(self) -> Dict[str, Any]:
        return {'commitment': int_to_hex(self.value.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Commitment':
        return cls(GroupElement(hex_to_int(require(data, 'commitment', str))))
