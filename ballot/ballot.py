"""
Encrypted Ballots
=================
A ballot encrypts every contest of the manifest in order and closes with the
confirmation code H(H_E; 0x24 | chi_1 | ... | chi_m | B_aux) that the voter
receives as a receipt.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from errors import ConfirmationCodeMismatchError, InvalidBallotError, SerializationError
from algebra.algebra import FieldElement
from algebra.csprng import CsprngBase
from ballot.contest import ContestEncrypted, contest_hash
from ballot.nonce import generate_primary_nonce
from ballot.pre_voting_data import PreVotingData
from elgamal.ciphertext import Ciphertext
from hashing.hash import DomainTag, HValue, eg_h_tagged
from utils.serialization import CanonicalSerializable, require, require_list

logger = logging.getLogger(__name__)


def confirmation_code(h_e: HValue, contest_hashes: Sequence[HValue], ballot_aux: bytes,
                      tag: DomainTag = DomainTag.CONFIRMATION_CODE) -> HValue:
    return eg_h_tagged(h_e, tag, *(chi.value for chi in contest_hashes), ballot_aux)


@dataclass(frozen=True)
class BallotEncrypted(CanonicalSerializable):
    contests: List[ContestEncrypted]
    confirmation_code: HValue
    ballot_aux: bytes = b""
    # Kept by the encrypting device so the ballot can be re-derived or challenged
    primary_nonce: Optional[bytes] = field(default=None, compare=False, repr=False)

    @classmethod
    def new(cls, pre_voting_data: PreVotingData, csprng: CsprngBase,
            selections: Sequence[Sequence[int]], ballot_aux: bytes = b"") -> 'BallotEncrypted':
        """Encrypt one 0/1 selection vector per contest, in manifest order"""
        manifest = pre_voting_data.manifest
        if len(selections) != len(manifest.contests):
            raise InvalidBallotError(
                f"Manifest has {len(manifest.contests)} contests, got {len(selections)} selection vectors")

        primary_nonce = generate_primary_nonce(csprng)
        contests = [
            ContestEncrypted.new(pre_voting_data, csprng, primary_nonce,
                                 contest_index, contest, contest_selections)
            for contest_index, (contest, contest_selections)
            in enumerate(zip(manifest.contests, selections), start=1)
        ]

        code = confirmation_code(pre_voting_data.h_e,
                                 [c.contest_hash for c in contests], ballot_aux)
        logger.info(f"Encrypted ballot with {len(contests)} contests, confirmation code {code}")
        return cls(contests=contests, confirmation_code=code,
                   ballot_aux=ballot_aux, primary_nonce=primary_nonce)

    def verify(self, pre_voting_data: PreVotingData):
        """Verify every contest, then the contest hashes and confirmation code"""
        manifest = pre_voting_data.manifest
        if len(self.contests) != len(manifest.contests):
            raise InvalidBallotError(
                f"Manifest has {len(manifest.contests)} contests, ballot has {len(self.contests)}")

        for position, encrypted in enumerate(self.contests, start=1):
            if encrypted.contest_index != position:
                raise InvalidBallotError(
                    f"Contest at position {position} is recorded as contest {encrypted.contest_index}")
            contest = manifest.get_contest(encrypted.contest_index)
            encrypted.verify(pre_voting_data, encrypted.contest_index, contest)

        recomputed = confirmation_code(
            pre_voting_data.h_e,
            [contest_hash(pre_voting_data, c.contest_index, c.selection) for c in self.contests],
            self.ballot_aux)
        if recomputed != self.confirmation_code:
            logger.warning(f"Confirmation code mismatch: recorded {self.confirmation_code}, computed {recomputed}")
            raise ConfirmationCodeMismatchError(
                "Recomputed confirmation code does not match the recorded one")
        logger.debug(f"Verified ballot {self.confirmation_code}")

    def scaled_ciphertexts(self, pre_voting_data: PreVotingData,
                           factor: FieldElement) -> List[List[Ciphertext]]:
        """Every option ciphertext raised to factor, grouped by contest"""
        return [contest.scale(pre_voting_data, factor) for contest in self.contests]

    @staticmethod
    def verify_scaled(pre_voting_data: PreVotingData, source: 'BallotEncrypted',
                      scaled: Sequence[Sequence[Ciphertext]], factor: FieldElement) -> bool:
        """Check a scaled ballot against the ballot it was derived from"""
        if len(scaled) != len(source.contests):
            logger.warning("Scaled ballot has a different number of contests than its source")
            return False
        for contest, scaled_contest in zip(source.contests, scaled):
            expected = contest.scale(pre_voting_data, factor)
            if len(expected) != len(scaled_contest):
                logger.warning(f"Scaled contest {contest.contest_index} has the wrong number of options")
                return False
            if any(e != s for e, s in zip(expected, scaled_contest)):
                logger.warning(f"Scaled contest {contest.contest_index} does not match its source")
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'contests': [c.to_dict() for c in self.contests],
            'confirmation_code': str(self.confirmation_code),
            'ballot_aux': self.ballot_aux.hex().upper(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BallotEncrypted':
        try:
            ballot_aux = bytes.fromhex(require(data, 'ballot_aux', str))
        except ValueError as e:
            raise SerializationError(f"Malformed ballot_aux: {e}") from e
        return cls(contests=[ContestEncrypted.from_dict(c) for c in require_list(data, 'contests')],
                   confirmation_code=HValue.from_hex(require(data, 'confirmation_code', str)),
                   ballot_aux=ballot_aux)
