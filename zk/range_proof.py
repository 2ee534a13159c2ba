"""
Range Proofs
============
Disjunctive Chaum-Pedersen proof that an ElGamal ciphertext (alpha, beta)
encrypts some value in [0, L] under the joint key K.

For the true value l the prover commits honestly; for every other j it
simulates with a random challenge c_j. The overall challenge
c = H(H_E; 0x21 | K | alpha | beta | a_0..a_L | b_0..b_L) fixes c_l, so at
most one branch can be honest and the verifier cannot tell which.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from errors import RangeNotSatisfiedError, SerializationError
from algebra.algebra import FieldElement, GroupElement
from algebra.csprng import CsprngBase
from elgamal.ciphertext import Ciphertext
from hashing.hash import DomainTag, eg_h_q
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require, require_list

if TYPE_CHECKING:
    from ballot.pre_voting_data import PreVotingData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofRangeSingle:
    """One branch (c_j, v_j)"""
    c: FieldElement
    v: FieldElement

    def to_dict(self) -> Dict[str, Any]:
        return {'c': int_to_hex(self.c.value), 'v': int_to_hex(self.v.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProofRangeSingle':
        return cls(FieldElement(hex_to_int(require(data, 'c', str))),
                   FieldElement(hex_to_int(require(data, 'v', str))))


def range_proof_challenge(pre_voting_data: 'PreVotingData', ciphertext: Ciphertext,
                          a: Sequence[GroupElement], b: Sequence[GroupElement]) -> FieldElement:
    group = pre_voting_data.fixed_parameters.group
    data = DomainTag.RANGE_PROOF_CHALLENGE.prefix()
    data += pre_voting_data.public_key.to_be_bytes_left_pad(group)
    data += ciphertext.alpha.to_be_bytes_left_pad(group)
    data += ciphertext.beta.to_be_bytes_left_pad(group)
    data += b"".join(a_j.to_be_bytes_left_pad(group) for a_j in a)
    data += b"".join(b_j.to_be_bytes_left_pad(group) for b_j in b)
    return eg_h_q(pre_voting_data.h_e, data, pre_voting_data.fixed_parameters.field)


@dataclass(frozen=True)
class ProofRange(CanonicalSerializable):
    """L + 1 branches, indexed by the candidate value j"""
    proofs: List[ProofRangeSingle]

    def __len__(self) -> int:
        return len(self.proofs)

    @classmethod
    def new(cls, pre_voting_data: 'PreVotingData', csprng: CsprngBase, ciphertext: Ciphertext,
            nonce: FieldElement, small_l: int, big_l: int) -> 'ProofRange':
        """Prove that ciphertext, encrypted with nonce, holds small_l and small_l <= big_l"""
        if small_l < 0 or small_l > big_l:
            raise RangeNotSatisfiedError(small_l, big_l)

        fixed_parameters = pre_voting_data.fixed_parameters
        field_ = fixed_parameters.field
        group = fixed_parameters.group
        k = pre_voting_data.public_key

        u = [field_.random_field_elem(csprng) for _ in range(big_l + 1)]
        c = [field_.random_field_elem(csprng) for _ in range(big_l + 1)]

        a = [group.g_exp(u_j) for u_j in u]
        b = []
        for j in range(big_l + 1):
            if j == small_l:
                t_j = u[j]
            else:
                t_j = u[j].add(c[j].mul(field_.element(small_l - j), field_), field_)
            b.append(k.exp(t_j, group))

        challenge = range_proof_challenge(pre_voting_data, ciphertext, a, b)

        c_l = challenge
        for j in range(big_l + 1):
            if j != small_l:
                c_l = c_l.sub(c[j], field_)
        c[small_l] = c_l

        v = [u_j.sub(c_j.mul(nonce, field_), field_) for u_j, c_j in zip(u, c)]
        return cls([ProofRangeSingle(c_j, v_j) for c_j, v_j in zip(c, v)])

    def verify(self, pre_voting_data: 'PreVotingData', ciphertext: Ciphertext, big_l: int) -> bool:
        fixed_parameters = pre_voting_data.fixed_parameters
        field_ = fixed_parameters.field
        group = fixed_parameters.group
        k = pre_voting_data.public_key

        if len(self.proofs) != big_l + 1:
            logger.warning(f"Range proof has {len(self.proofs)} branches, expected {big_l + 1}")
            return False
        if not ciphertext.is_valid(fixed_parameters):
            logger.warning("Range proof ciphertext is not made of group elements")
            return False
        for proof in self.proofs:
            if not (proof.c.is_valid(field_) and proof.v.is_valid(field_)):
                logger.warning("Range proof contains a value outside the field")
                return False

        a = []
        b = []
        for j, proof in enumerate(self.proofs):
            a.append(group.g_exp(proof.v).mul(ciphertext.alpha.exp(proof.c, group), group))
            w_j = proof.v.sub(field_.element(j).mul(proof.c, field_), field_)
            b.append(k.exp(w_j, group).mul(ciphertext.beta.exp(proof.c, group), group))

        challenge = range_proof_challenge(pre_voting_data, ciphertext, a, b)

        total = field_.zero()
        for proof in self.proofs:
            total = total.add(proof.c, field_)
        if total != challenge:
            logger.warning("Range proof challenges do not sum to the recomputed challenge")
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {'proofs': [proof.to_dict() for proof in self.proofs]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProofRange':
        proofs = [ProofRangeSingle.from_dict(p) for p in require_list(data, 'proofs')]
        if not proofs:
            raise SerializationError("Range proof has no branches")
        return cls(proofs)
