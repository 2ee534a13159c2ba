"""
Joint Election Public Key
=========================
K = prod_i K_{i,0} over all n guardians. Ballots are encrypted to K.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from errors import DuplicateGuardianError, JointPublicKeyError, MissingGuardianError
from algebra.algebra import FieldElement, GroupElement
from algebra.parameters import FixedParameters
from election.parameters import ElectionParameters
from elgamal.ciphertext import Ciphertext
from guardian.ceremony import GuardianPublicKey
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)


def validated_guardian_keys(election_parameters: ElectionParameters,
                            guardian_public_keys: Iterable[GuardianPublicKey]) -> List[GuardianPublicKey]:
    """Validate every key and require each guardian 1..n exactly once.

    Returns the keys sorted by guardian index.
    """
    by_index: Dict[int, GuardianPublicKey] = {}
    for public_key in guardian_public_keys:
        public_key.validate(election_parameters)
        if public_key.i in by_index:
            raise DuplicateGuardianError(public_key.i)
        by_index[public_key.i] = public_key

    missing = [i for i in election_parameters.varying_parameters.guardian_indices()
               if i not in by_index]
    if missing:
        raise MissingGuardianError(missing)

    return [by_index[i] for i in sorted(by_index)]


@dataclass(frozen=True)
class JointPublicKey(CanonicalSerializable):
    key: GroupElement

    @classmethod
    def compute(cls, election_parameters: ElectionParameters,
                guardian_public_keys: Iterable[GuardianPublicKey]) -> 'JointPublicKey':
        keys = validated_guardian_keys(election_parameters, guardian_public_keys)
        return cls.from_validated_keys(election_parameters.fixed_parameters, keys)

    @classmethod
    def from_validated_keys(cls, fixed_parameters: FixedParameters,
                            keys: Iterable[GuardianPublicKey]) -> 'JointPublicKey':
        """Product of K_{i,0} for keys already passed through validated_guardian_keys"""
        group = fixed_parameters.group
        product = group.one()
        count = 0
        for public_key in keys:
            product = product.mul(public_key.public_key_k_i_0, group)
            count += 1

        joint_key = cls(product)
        joint_key.validate(fixed_parameters)
        logger.info(f"Computed joint public key from {count} guardians")
        return joint_key

    def validate(self, fixed_parameters: FixedParameters):
        if not self.key.is_valid(fixed_parameters.group):
            raise JointPublicKeyError("Joint public key is not a valid group element")
        if self.key == fixed_parameters.group.one():
            raise JointPublicKeyError("Joint public key is the group identity")

    def encrypt_to(self, fixed_parameters: FixedParameters, nonce: FieldElement, value: int) -> Ciphertext:
        return Ciphertext.encrypt(fixed_parameters, self.key, nonce, value)

    def to_be_bytes_left_pad(self, fixed_parameters: FixedParameters) -> bytes:
        return self.key.to_be_bytes_left_pad(fixed_parameters.group)

    def to_dict(self) -> Dict[str, Any]:
        return {'joint_public_key': int_to_hex(self.key.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JointPublicKey':
        return cls(GroupElement(hex_to_int(require(data, 'joint_public_key', str))))
