"""Ballot encryption: pre-voting data, nonces, encrypted contests and ballots, pre-encrypted ballots."""

from .pre_voting_data import PreVotingData
from .nonce import option_nonce, generate_primary_nonce, PRIMARY_NONCE_BYTE_LEN
from .contest import ContestEncrypted, contest_hash, validate_selections
from .ballot import BallotEncrypted, confirmation_code
from .preencrypted import (
    ContestSelectionPreEncrypted,
    ContestPreEncrypted,
    BallotPreEncrypted,
    are_unique_shortcodes,
    preencrypted_option_nonce,
    preencrypted_contest_hash,
    selection_hash,
    shortcode
)

__all__ = [
    'PreVotingData',
    'option_nonce',
    'generate_primary_nonce',
    'PRIMARY_NONCE_BYTE_LEN',
    'ContestEncrypted',
    'contest_hash',
    'validate_selections',
    'BallotEncrypted',
    'confirmation_code',
    'ContestSelectionPreEncrypted',
    'ContestPreEncrypted',
    'BallotPreEncrypted',
    'are_unique_shortcodes',
    'preencrypted_option_nonce',
    'preencrypted_contest_hash',
    'selection_hash',
    'shortcode'
]
