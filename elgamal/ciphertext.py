"""
ElGamal Ciphertexts
===================
Exponential ElGamal: encrypting m under K with nonce xi gives
(alpha, beta) = (g^xi, K^(xi + m)). Ciphertexts multiply component-wise to
add plaintexts, and raising both components to k scales the plaintext by k.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence

from errors import DecryptionError, SerializationError
from algebra.algebra import FieldElement, GroupElement
from algebra.parameters import FixedParameters
from elgamal.discrete_log import DiscreteLog
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ciphertext(CanonicalSerializable):
    """(alpha, beta) pair. The nonce is kept only by the encrypting party and is
    never serialized or compared."""
    alpha: GroupElement
    beta: GroupElement
    nonce: Optional[FieldElement] = field(default=None, compare=False, repr=False)

    @classmethod
    def one(cls) -> 'Ciphertext':
        """Encryption of zero with nonce zero; the identity for homomorphic_add"""
        return cls(GroupElement(1), GroupElement(1), FieldElement(0))

    @classmethod
    def encrypt(cls, fixed_parameters: FixedParameters, public_key: GroupElement,
                nonce: FieldElement, value: int) -> 'Ciphertext':
        group = fixed_parameters.group
        field_ = fixed_parameters.field
        alpha = group.g_exp(nonce)
        exponent = nonce.add(field_.element(value), field_)
        beta = public_key.exp(exponent, group)
        return cls(alpha, beta, nonce)

    def is_valid(self, fixed_parameters: FixedParameters) -> bool:
        group = fixed_parameters.group
        return self.alpha.is_valid(group) and self.beta.is_valid(group)

    def without_nonce(self) -> 'Ciphertext':
        return Ciphertext(self.alpha, self.beta)

    # ------------------------------------------------------------------
    # Homomorphic operations
    # ------------------------------------------------------------------

    def homomorphic_add(self, other: 'Ciphertext', fixed_parameters: FixedParameters) -> 'Ciphertext':
        group = fixed_parameters.group
        nonce = None
        if self.nonce is not None and other.nonce is not None:
            nonce = self.nonce.add(other.nonce, fixed_parameters.field)
        return Ciphertext(self.alpha.mul(other.alpha, group),
                          self.beta.mul(other.beta, group),
                          nonce)

    @classmethod
    def sum(cls, ciphertexts: Iterable['Ciphertext'], fixed_parameters: FixedParameters) -> 'Ciphertext':
        total = cls.one()
        for ciphertext in ciphertexts:
            total = total.homomorphic_add(ciphertext, fixed_parameters)
        return total

    def scale(self, factor: FieldElement, fixed_parameters: FixedParameters) -> 'Ciphertext':
        group = fixed_parameters.group
        nonce = None
        if self.nonce is not None:
            nonce = self.nonce.mul(factor, fixed_parameters.field)
        return Ciphertext(self.alpha.exp(factor, group),
                          self.beta.exp(factor, group),
                          nonce)

    # ------------------------------------------------------------------
    # Decryption
    # ------------------------------------------------------------------

    def decrypt_to_group_element(self, fixed_parameters: FixedParameters,
                                 secret_key: FieldElement) -> GroupElement:
        """K^m = beta * (alpha^s)^-1"""
        group = fixed_parameters.group
        blinding_inv = self.alpha.exp(secret_key, group).inv(group)
        if blinding_inv is None:
            raise DecryptionError("Ciphertext alpha is not invertible")
        return self.beta.mul(blinding_inv, group)

    def decrypt_small(self, fixed_parameters: FixedParameters, secret_key: FieldElement,
                      public_key: GroupElement, candidates: Sequence[int] = (0, 1)) -> int:
        """Plaintext from a small known domain, by comparing K^m against K^v"""
        group = fixed_parameters.group
        k_m = self.decrypt_to_group_element(fixed_parameters, secret_key)
        for candidate in candidates:
            if public_key.pow(candidate, group) == k_m:
                return candidate
        raise DecryptionError(
            f"Plaintext is not among the {len(candidates)} candidate values")

    def decrypt_with_dlog(self, fixed_parameters: FixedParameters, secret_key: FieldElement,
                          dlog: DiscreteLog) -> int:
        """Plaintext via baby-step giant-step; dlog must be built over base K"""
        k_m = self.decrypt_to_group_element(fixed_parameters, secret_key)
        value = dlog.find(k_m)
        if value is None:
            raise DecryptionError(
                f"Plaintext exceeds the discrete log search bound {dlog.bound}")
        return value

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {'alpha': int_to_hex(self.alpha.value), 'beta': int_to_hex(self.beta.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ciphertext':
        return cls(GroupElement(hex_to_int(require(data, 'alpha', str))),
                   GroupElement(hex_to_int(require(data, 'beta', str))))

    @classmethod
    def from_dict_checked(cls, data: Dict[str, Any], fixed_parameters: FixedParameters) -> 'Ciphertext':
        ciphertext = cls.from_dict(data)
        if not ciphertext.is_valid(fixed_parameters):
            raise SerializationError("Ciphertext components are not group elements")
        return ciphertext
