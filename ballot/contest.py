"""
Encrypted Contests
==================
A contest with m options is encrypted as m ciphertexts, one per option, each
with a range proof that it holds 0 or 1, plus a proof that their homomorphic
sum is at most the contest's selection limit. The contest hash

    chi_i = H(H_E; 0x23 | i | K | alpha_1 | beta_1 | ... | alpha_m | beta_m)

commits to the ciphertexts and feeds the ballot confirmation code.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from errors import (
    BallotContestFieldCiphertextDoesNotVerifyError,
    ConfirmationCodeMismatchError,
    ContestSelectionLimitDoesNotVerifyError,
    InvalidBallotError,
    SerializationError
)
from algebra.algebra import FieldElement
from algebra.csprng import CsprngBase
from ballot.nonce import option_nonce
from ballot.pre_voting_data import PreVotingData
from election.manifest import Contest
from elgamal.ciphertext import Ciphertext
from hashing.hash import DomainTag, HValue, eg_h_tagged
from hashing.hashes import u32_be
from utils.serialization import CanonicalSerializable, require, require_list
from zk.range_proof import ProofRange

logger = logging.getLogger(__name__)


def validate_selections(contest_index: int, contest: Contest, selections: Sequence[int]):
    """Raise InvalidBallotError unless selections is a 0/1 vector within the limit"""
    if len(selections) != contest.num_options:
        raise InvalidBallotError(
            f"Contest {contest_index} has {contest.num_options} options, got {len(selections)} selections")
    for option_index, value in enumerate(selections, start=1):
        if isinstance(value, bool) or value not in (0, 1):
            raise InvalidBallotError(
                f"Contest {contest_index} option {option_index} must be 0 or 1, got {value!r}")
    if sum(selections) > contest.selection_limit:
        raise InvalidBallotError(
            f"Contest {contest_index} allows {contest.selection_limit} selections, got {sum(selections)}")


def contest_hash(pre_voting_data: PreVotingData, contest_index: int,
                 ciphertexts: Sequence[Ciphertext]) -> HValue:
    group = pre_voting_data.fixed_parameters.group
    parts = [u32_be(contest_index), pre_voting_data.public_key.to_be_bytes_left_pad(group)]
    for ciphertext in ciphertexts:
        parts.append(ciphertext.alpha.to_be_bytes_left_pad(group))
        parts.append(ciphertext.beta.to_be_bytes_left_pad(group))
    return eg_h_tagged(pre_voting_data.h_e, DomainTag.CONTEST_HASH, *parts)


@dataclass(frozen=True)
class ContestEncrypted(CanonicalSerializable):
    contest_index: int
    selection: List[Ciphertext]
    proof_ballot_correctness: List[ProofRange]
    proof_selection_limit: ProofRange
    contest_hash: HValue

    @classmethod
    def new(cls, pre_voting_data: PreVotingData, csprng: CsprngBase, primary_nonce: bytes,
            contest_index: int, contest: Contest, selections: Sequence[int]) -> 'ContestEncrypted':
        validate_selections(contest_index, contest, selections)
        fixed_parameters = pre_voting_data.fixed_parameters
        field_ = fixed_parameters.field

        ciphertexts = []
        proofs = []
        for option_index, value in enumerate(selections, start=1):
            nonce = option_nonce(pre_voting_data.h_e, primary_nonce,
                                 contest_index, option_index, field_)
            ciphertext = pre_voting_data.joint_public_key.encrypt_to(fixed_parameters, nonce, value)
            proofs.append(ProofRange.new(pre_voting_data, csprng, ciphertext, nonce, value, 1))
            ciphertexts.append(ciphertext)

        total = Ciphertext.sum(ciphertexts, fixed_parameters)
        limit_proof = ProofRange.new(pre_voting_data, csprng, total, total.nonce,
                                     sum(selections), contest.selection_limit)

        public_ciphertexts = [c.without_nonce() for c in ciphertexts]
        logger.debug(f"Encrypted contest {contest_index} with {len(ciphertexts)} options")
        return cls(contest_index=contest_index,
                   selection=public_ciphertexts,
                   proof_ballot_correctness=proofs,
                   proof_selection_limit=limit_proof,
                   contest_hash=contest_hash(pre_voting_data, contest_index, public_ciphertexts))

    def verify(self, pre_voting_data: PreVotingData, contest_index: int, contest: Contest):
        """Raise a ProofVerificationError subclass naming the failing ciphertext"""
        fixed_parameters = pre_voting_data.fixed_parameters
        if self.contest_index != contest_index:
            raise InvalidBallotError(
                f"Encrypted contest is for contest {self.contest_index}, expected {contest_index}")
        if len(self.selection) != contest.num_options or len(self.proof_ballot_correctness) != contest.num_options:
            raise InvalidBallotError(
                f"Contest {contest_index} has {contest.num_options} options, encrypted contest has {len(self.selection)}")

        for option_index, (ciphertext, proof) in enumerate(
                zip(self.selection, self.proof_ballot_correctness), start=1):
            if not proof.verify(pre_voting_data, ciphertext, 1):
                raise BallotContestFieldCiphertextDoesNotVerifyError(contest_index, option_index)

        total = Ciphertext.sum(self.selection, fixed_parameters)
        if not self.proof_selection_limit.verify(pre_voting_data, total, contest.selection_limit):
            raise ContestSelectionLimitDoesNotVerifyError(contest_index, contest.selection_limit)

        if contest_hash(pre_voting_data, contest_index, self.selection) != self.contest_hash:
            raise ConfirmationCodeMismatchError(
                f"Contest hash of contest {contest_index} does not match its ciphertexts")

    def scale(self, pre_voting_data: PreVotingData, factor: FieldElement) -> List[Ciphertext]:
        fixed_parameters = pre_voting_data.fixed_parameters
        return [c.scale(factor, fixed_parameters) for c in self.selection]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'contest_index': self.contest_index,
            'selection': [c.to_dict() for c in self.selection],
            'proof_ballot_correctness': [p.to_dict() for p in self.proof_ballot_correctness],
            'proof_selection_limit': self.proof_selection_limit.to_dict(),
            'contest_hash': str(self.contest_hash),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContestEncrypted':
        contest_index = require(data, 'contest_index', int)
        if contest_index < 1:
            raise SerializationError(f"Contest index must be positive, got {contest_index}")
        return cls(
            contest_index=contest_index,
            selection=[Ciphertext.from_dict(c) for c in require_list(data, 'selection')],
            proof_ballot_correctness=[ProofRange.from_dict(p)
                                      for p in require_list(data, 'proof_ballot_correctness')],
            proof_selection_limit=ProofRange.from_dict(require(data, 'proof_selection_limit', dict)),
            contest_hash=HValue.from_hex(require(data, 'contest_hash', str)))
