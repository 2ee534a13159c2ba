"""
Pre-Encrypted Ballots
=====================
A pre-encrypted contest with m options and selection limit L holds m + L
selection vectors of m + L ciphertexts each. Vector j (1 <= j <= m) encrypts 1
at position j and 0 elsewhere; the L null vectors m+1..m+L encrypt 0
everywhere. Each vector is identified by its selection hash

    psi_j = H(H_E; 0x40 | K | alpha_1 | beta_1 | ... | alpha_{m+L} | beta_{m+L})

and shown to the voter as a two-hex-digit shortcode (the last byte of psi_j).
The contest hash (tag 0x41) is over the *sorted* selection hashes so it does
not reveal which vector belongs to which option. All nonces derive from one
primary nonce: xi_{i,j,k} = H(H_E; 0x43 | xi | i | j | k) mod q.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from errors import InvalidBallotError
from algebra.algebra import FieldElement, ScalarField
from algebra.csprng import CsprngBase
from ballot.ballot import confirmation_code
from ballot.contest import validate_selections
from ballot.nonce import generate_primary_nonce
from ballot.pre_voting_data import PreVotingData
from election.manifest import Contest
from elgamal.ciphertext import Ciphertext
from hashing.hash import DomainTag, HValue, HVALUE_BYTE_LEN, eg_h_q, eg_h_tagged
from hashing.hashes import u32_be
from utils.serialization import CanonicalSerializable, require, require_list

logger = logging.getLogger(__name__)


def preencrypted_option_nonce(h_e: HValue, primary_nonce: bytes, contest_index: int,
                              j: int, k: int, field_: ScalarField) -> FieldElement:
    data = (DomainTag.PRE_ENCRYPTED_OPTION_NONCE.prefix() + primary_nonce
            + u32_be(contest_index) + u32_be(j) + u32_be(k))
    return eg_h_q(h_e, data, field_)


def selection_hash(pre_voting_data: PreVotingData, ciphertexts: Sequence[Ciphertext]) -> HValue:
    group = pre_voting_data.fixed_parameters.group
    parts = [pre_voting_data.public_key.to_be_bytes_left_pad(group)]
    for ciphertext in ciphertexts:
        parts.append(ciphertext.alpha.to_be_bytes_left_pad(group))
        parts.append(ciphertext.beta.to_be_bytes_left_pad(group))
    return eg_h_tagged(pre_voting_data.h_e, DomainTag.PRE_ENCRYPTED_SELECTION_HASH, *parts)


def shortcode(h: HValue) -> str:
    """Last byte of the hash as two lowercase hex digits"""
    return format(h.value[HVALUE_BYTE_LEN - 1], '02x')


def preencrypted_contest_hash(pre_voting_data: PreVotingData, contest_index: int,
                              selection_hashes: Sequence[HValue]) -> HValue:
    group = pre_voting_data.fixed_parameters.group
    parts = [u32_be(contest_index), pre_voting_data.public_key.to_be_bytes_left_pad(group)]
    parts.extend(h.value for h in sorted(selection_hashes))
    return eg_h_tagged(pre_voting_data.h_e, DomainTag.PRE_ENCRYPTED_CONTEST_HASH, *parts)


# ============================================================================
# SELECTIONS AND CONTESTS
# ============================================================================


@dataclass(frozen=True)
class ContestSelectionPreEncrypted:
    index: int
    selections: List[Ciphertext] = field(repr=False)
    selection_hash: HValue
    shortcode: str

    @classmethod
    def new(cls, pre_voting_data: PreVotingData, primary_nonce: bytes, contest_index: int,
            j: int, num_selections: int, null: bool = False) -> 'ContestSelectionPreEncrypted':
        fixed_parameters = pre_voting_data.fixed_parameters
        selections = []
        for k in range(1, num_selections + 1):
            nonce = preencrypted_option_nonce(pre_voting_data.h_e, primary_nonce,
                                              contest_index, j, k, fixed_parameters.field)
            value = 0 if null else int(j == k)
            selections.append(pre_voting_data.joint_public_key.encrypt_to(fixed_parameters, nonce, value))

        psi = selection_hash(pre_voting_data, selections)
        return cls(index=j, selections=selections, selection_hash=psi, shortcode=shortcode(psi))

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'shortcode': self.shortcode,
                'selection_hash': str(self.selection_hash),
                'selections': [c.to_dict() for c in self.selections]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContestSelectionPreEncrypted':
        return cls(index=require(data, 'index', int),
                   selections=[Ciphertext.from_dict(c) for c in require_list(data, 'selections')],
                   selection_hash=HValue.from_hex(require(data, 'selection_hash', str)),
                   shortcode=require(data, 'shortcode', str))


@dataclass(frozen=True)
class ContestPreEncrypted:
    contest_index: int
    selections: List[ContestSelectionPreEncrypted]
    contest_hash: HValue

    @classmethod
    def new(cls, pre_voting_data: PreVotingData, primary_nonce: bytes,
            contest_index: int, contest: Contest) -> 'ContestPreEncrypted':
        m = contest.num_options
        width = m + contest.selection_limit
        selections = [
            ContestSelectionPreEncrypted.new(pre_voting_data, primary_nonce, contest_index, j, width,
                                             null=j > m)
            for j in range(1, width + 1)
        ]

        chi = preencrypted_contest_hash(pre_voting_data, contest_index,
                                        [s.selection_hash for s in selections])
        return cls(contest_index=contest_index, selections=selections, contest_hash=chi)

    def combine_voter_selections(self, pre_voting_data: PreVotingData, contest: Contest,
                                 voter_selections: Sequence[int]) -> List[Ciphertext]:
        """Sum the vectors of the chosen options, padded with null vectors up to
        the selection limit. The first m ciphertexts of the result encrypt the
        voter's selection vector and the remaining L encrypt 0."""
        validate_selections(self.contest_index, contest, voter_selections)
        width = contest.num_options + contest.selection_limit
        if len(self.selections) != width or any(len(s.selections) != width for s in self.selections):
            raise InvalidBallotError(
                f"Pre-encrypted contest {self.contest_index} does not hold {width} vectors "
                f"of {width} ciphertexts")

        chosen = [self.selections[j].selections for j, v in enumerate(voter_selections) if v == 1]
        null_position = len(self.selections) - 1
        while len(chosen) < contest.selection_limit:
            chosen.append(self.selections[null_position].selections)
            null_position -= 1

        fixed_parameters = pre_voting_data.fixed_parameters
        return [Ciphertext.sum((vector[k] for vector in chosen), fixed_parameters)
                for k in range(width)]

    def to_dict(self) -> Dict[str, Any]:
        return {'contest_index': self.contest_index,
                'contest_hash': str(self.contest_hash),
                'selections': [s.to_dict() for s in self.selections]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContestPreEncrypted':
        return cls(contest_index=require(data, 'contest_index', int),
                   selections=[ContestSelectionPreEncrypted.from_dict(s)
                               for s in require_list(data, 'selections')],
                   contest_hash=HValue.from_hex(require(data, 'contest_hash', str)))


# ============================================================================
# BALLOTS
# ============================================================================


@dataclass(frozen=True)
class BallotPreEncrypted(CanonicalSerializable):
    contests: List[ContestPreEncrypted]
    confirmation_code: HValue
    ballot_aux: bytes = b""
    primary_nonce: Optional[bytes] = field(default=None, compare=False, repr=False)

    @classmethod
    def new_with(cls, pre_voting_data: PreVotingData, primary_nonce: bytes,
                 ballot_aux: bytes = b"") -> 'BallotPreEncrypted':
        manifest = pre_voting_data.manifest
        contests = [
            ContestPreEncrypted.new(pre_voting_data, primary_nonce, contest_index, contest)
            for contest_index, contest in enumerate(manifest.contests, start=1)
        ]
        code = confirmation_code(pre_voting_data.h_e, [c.contest_hash for c in contests],
                                 ballot_aux, DomainTag.PRE_ENCRYPTED_CONFIRMATION_CODE)
        return cls(contests=contests, confirmation_code=code,
                   ballot_aux=ballot_aux, primary_nonce=primary_nonce)

    @classmethod
    def new(cls, pre_voting_data: PreVotingData, csprng: CsprngBase,
            ballot_aux: bytes = b"") -> 'BallotPreEncrypted':
        ballot = cls.new_with(pre_voting_data, generate_primary_nonce(csprng), ballot_aux)
        logger.info(f"Generated pre-encrypted ballot {ballot.confirmation_code}")
        return ballot

    def are_unique_shortcodes(self) -> bool:
        return are_unique_shortcodes(self.contests)

    def to_dict(self) -> Dict[str, Any]:
        return {'contests': [c.to_dict() for c in self.contests],
                'confirmation_code': str(self.confirmation_code),
                'ballot_aux': self.ballot_aux.hex().upper()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BallotPreEncrypted':
        return cls(contests=[ContestPreEncrypted.from_dict(c) for c in require_list(data, 'contests')],
                   confirmation_code=HValue.from_hex(require(data, 'confirmation_code', str)),
                   ballot_aux=bytes.fromhex(require(data, 'ballot_aux', str)))


def are_unique_shortcodes(contests: Sequence[ContestPreEncrypted]) -> bool:
    """True iff no two selection vectors within any one contest share a shortcode"""
    for contest in contests:
        codes = {s.shortcode for s in contest.selections}
        if len(codes) != len(contest.selections):
            logger.debug(f"Pre-encrypted contest {contest.contest_index} has colliding shortcodes")
            return False
    return True
