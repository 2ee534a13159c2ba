"""
Guardian Key Ceremony
=====================
Each guardian i samples a secret polynomial P_i(x) = a_{i,0} + a_{i,1} x + ...
+ a_{i,k-1} x^(k-1) over Z_q, publishes the commitments K_{i,j} = g^(a_{i,j})
and proves knowledge of every coefficient with a Schnorr proof whose challenge
is H(H_P; 0x10 | i | j | K_{i,j} | h_{i,j}).

a_{i,0} is the guardian's ElGamal secret key and K_{i,0} its public key.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from errors import (
    ChallengeMismatchError,
    CoefficientProofError,
    CommitmentNotInGroupError,
    InvalidGuardianPublicKeyError,
    InvalidParameterError,
    ResponseNotInFieldError,
    SerializationError
)
from algebra.algebra import FieldElement, GroupElement, ScalarField
from algebra.csprng import CsprngBase
from algebra.parameters import FixedParameters
from election.parameters import ElectionParameters
from elgamal.keys import ElGamalSecretKey
from hashing.hash import DomainTag, HValue, eg_h_tagged, hvalue_to_field
from hashing.hashes import ParameterBaseHash, u32_be
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require, require_list

logger = logging.getLogger(__name__)


# ============================================================================
# SECRET POLYNOMIAL AND COMMITMENTS
# ============================================================================


@dataclass
class SecretCoefficients:
    """Coefficients a_0..a_{k-1} indexed by degree"""
    coefficients: List[FieldElement]

    @classmethod
    def generate(cls, csprng: CsprngBase, election_parameters: ElectionParameters) -> 'SecretCoefficients':
        field_ = election_parameters.fixed_parameters.field
        return cls([field_.random_field_elem(csprng) for _ in range(election_parameters.k)])

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, x: int, field_: ScalarField) -> FieldElement:
        """P(x) mod q by Horner's method"""
        x_elem = field_.element(x)
        result = field_.zero()
        for coefficient in reversed(self.coefficients):
            result = result.mul(x_elem, field_).add(coefficient, field_)
        return result

    def commit(self, fixed_parameters: FixedParameters) -> 'CoefficientCommitments':
        group = fixed_parameters.group
        return CoefficientCommitments([group.g_exp(a) for a in self.coefficients])


@dataclass(frozen=True)
class CoefficientCommitments:
    """K_{i,j} = g^(a_{i,j}), indexed by degree"""
    commitments: List[GroupElement]

    def __len__(self) -> int:
        return len(self.commitments)

    def __getitem__(self, j: int) -> GroupElement:
        return self.commitments[j]

    def __iter__(self):
        return iter(self.commitments)

    def to_list(self) -> List[str]:
        return [int_to_hex(k.value) for k in self.commitments]

    @classmethod
    def from_list(cls, items: List[Any]) -> 'CoefficientCommitments':
        return cls([GroupElement(hex_to_int(item)) for item in items])


# ============================================================================
# PROOFS OF KNOWLEDGE
# ============================================================================


def coefficient_proof_challenge(h_p: HValue, fixed_parameters: FixedParameters, i: int, j: int,
                                commitment: GroupElement, h: GroupElement) -> HValue:
    group = fixed_parameters.group
    return eg_h_tagged(h_p, DomainTag.COEFFICIENT_PROOF_CHALLENGE,
                       u32_be(i), u32_be(j),
                       commitment.to_be_bytes_left_pad(group),
                       h.to_be_bytes_left_pad(group))


@dataclass(frozen=True)
class CoefficientProof:
    """Schnorr proof of knowledge of one coefficient. The challenge is kept as the
    full hash output and reduced mod q where it is used."""
    challenge: HValue
    response: FieldElement

    @classmethod
    def new(cls, csprng: CsprngBase, fixed_parameters: FixedParameters, h_p: HValue,
            i: int, j: int, coefficient: FieldElement, commitment: GroupElement) -> 'CoefficientProof':
        field_ = fixed_parameters.field
        u = field_.random_field_elem(csprng)
        h = fixed_parameters.group.g_exp(u)
        challenge = coefficient_proof_challenge(h_p, fixed_parameters, i, j, commitment, h)
        c = hvalue_to_field(challenge, field_)
        response = u.sub(c.mul(coefficient, field_), field_)
        return cls(challenge, response)

    def verify(self, fixed_parameters: FixedParameters, h_p: HValue, i: int, j: int,
               commitment: GroupElement):
        """Raise a CoefficientProofError subclass naming (i, j) if the proof is invalid"""
        group = fixed_parameters.group
        field_ = fixed_parameters.field

        if not commitment.is_valid(group):
            raise CommitmentNotInGroupError(i, j)
        if not self.response.is_valid(field_):
            raise ResponseNotInFieldError(i, j)

        c = hvalue_to_field(self.challenge, field_)
        h = group.g_exp(self.response).mul(commitment.exp(c, group), group)
        if coefficient_proof_challenge(h_p, fixed_parameters, i, j, commitment, h) != self.challenge:
            raise ChallengeMismatchError(i, j)

    def to_dict(self) -> Dict[str, Any]:
        return {'challenge': str(self.challenge), 'response': int_to_hex(self.response.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoefficientProof':
        return cls(HValue.from_hex(require(data, 'challenge', str)),
                   FieldElement(hex_to_int(require(data, 'response', str))))


@dataclass(frozen=True)
class GuardianProof:
    """One coefficient proof per commitment"""
    proofs: List[CoefficientProof]

    @classmethod
    def new(cls, csprng: CsprngBase, fixed_parameters: FixedParameters, i: int,
            coefficients: SecretCoefficients, commitments: CoefficientCommitments) -> 'GuardianProof':
        h_p = ParameterBaseHash.compute(fixed_parameters).h_p
        proofs = [
            CoefficientProof.new(csprng, fixed_parameters, h_p, i, j, a_j, commitments[j])
            for j, a_j in enumerate(coefficients.coefficients)
        ]
        return cls(proofs)

    def verify(self, fixed_parameters: FixedParameters, i: int, commitments: CoefficientCommitments):
        if len(self.proofs) != len(commitments):
            raise InvalidGuardianPublicKeyError(
                i, f"{len(self.proofs)} proofs for {len(commitments)} commitments")
        h_p = ParameterBaseHash.compute(fixed_parameters).h_p
        for j, (proof, commitment) in enumerate(zip(self.proofs, commitments)):
            proof.verify(fixed_parameters, h_p, i, j, commitment)


# ============================================================================
# GUARDIAN KEYS
# ============================================================================


@dataclass
class GuardianPublicKey(CanonicalSerializable):
    """Published guardian record: index, commitments K_{i,0..k-1} and their proofs"""
    i: int
    name: str
    coefficient_commitments: CoefficientCommitments
    coefficient_proofs: GuardianProof

    @property
    def public_key_k_i_0(self) -> GroupElement:
        return self.coefficient_commitments[0]

    def validate(self, election_parameters: ElectionParameters):
        """Raise InvalidGuardianPublicKeyError unless this key fits the election"""
        if not 1 <= self.i <= election_parameters.n:
            raise InvalidGuardianPublicKeyError(
                self.i, f"index is outside [1, {election_parameters.n}]")
        if len(self.coefficient_commitments) != election_parameters.k:
            raise InvalidGuardianPublicKeyError(
                self.i, f"expected {election_parameters.k} commitments, found {len(self.coefficient_commitments)}")
        fixed_parameters = election_parameters.fixed_parameters
        if self.public_key_k_i_0 == fixed_parameters.group.one():
            raise InvalidGuardianPublicKeyError(self.i, "public key is the group identity")
        try:
            self.coefficient_proofs.verify(fixed_parameters, self.i, self.coefficient_commitments)
        except CoefficientProofError as e:
            logger.warning(f"Guardian {self.i} public key rejected: {e}")
            raise InvalidGuardianPublicKeyError(self.i, str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            'i': self.i,
            'name': self.name,
            'coefficient_commitments': self.coefficient_commitments.to_list(),
            'coefficient_proofs': [p.to_dict() for p in self.coefficient_proofs.proofs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GuardianPublicKey':
        i = require(data, 'i', int)
        if i < 1:
            raise SerializationError(f"Guardian index must be positive, got {i}")
        return cls(
            i=i,
            name=require(data, 'name', str),
            coefficient_commitments=CoefficientCommitments.from_list(
                require_list(data, 'coefficient_commitments')),
            coefficient_proofs=GuardianProof(
                [CoefficientProof.from_dict(p) for p in require_list(data, 'coefficient_proofs')]))


@dataclass
class GuardianSecretKey:
    """A guardian's secret polynomial together with its published commitments"""
    i: int
    name: str
    secret_coefficients: SecretCoefficients = field(repr=False)
    coefficient_commitments: CoefficientCommitments = field(repr=False)
    coefficient_proofs: GuardianProof = field(repr=False)

    @classmethod
    def generate(cls, csprng: CsprngBase, election_parameters: ElectionParameters,
                 i: int, name: Optional[str] = None) -> 'GuardianSecretKey':
        election_parameters.validate_guardian_index(i)
        fixed_parameters = election_parameters.fixed_parameters

        secret_coefficients = SecretCoefficients.generate(csprng, election_parameters)
        commitments = secret_coefficients.commit(fixed_parameters)
        proofs = GuardianProof.new(csprng, fixed_parameters, i, secret_coefficients, commitments)

        logger.info(f"Generated guardian {i} with {len(commitments)} coefficient commitments")
        return cls(i=i, name=name or f"Guardian {i}",
                   secret_coefficients=secret_coefficients,
                   coefficient_commitments=commitments,
                   coefficient_proofs=proofs)

    @property
    def secret_s(self) -> FieldElement:
        """a_{i,0}"""
        return self.secret_coefficients.coefficients[0]

    def election_secret_key(self, fixed_parameters: FixedParameters) -> ElGamalSecretKey:
        return ElGamalSecretKey(self.secret_s, fixed_parameters)

    def share_for(self, recipient: int, election_parameters: ElectionParameters) -> FieldElement:
        """P_i(recipient)"""
        election_parameters.validate_guardian_index(recipient)
        return self.secret_coefficients.evaluate(recipient, election_parameters.fixed_parameters.field)

    def make_public_key(self) -> GuardianPublicKey:
        return GuardianPublicKey(i=self.i, name=self.name,
                                 coefficient_commitments=self.coefficient_commitments,
                                 coefficient_proofs=self.coefficient_proofs)

    def check_matches(self, public_key: GuardianPublicKey):
        if public_key.i != self.i or public_key.coefficient_commitments != self.coefficient_commitments:
            raise InvalidParameterError(
                f"Public key of guardian {public_key.i} does not belong to secret key of guardian {self.i}")
