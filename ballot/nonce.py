"""
Ballot Nonces
=============
A ballot draws one 32-byte primary nonce xi_B. Every option ciphertext then
uses xi_{i,j} = H(H_E; 0x20 | xi_B | i | j) mod q, so the whole ballot can be
re-derived from xi_B alone.
"""

from algebra.algebra import FieldElement, ScalarField
from algebra.csprng import CsprngBase
from hashing.hash import DomainTag, HValue, eg_h_q
from hashing.hashes import u32_be

PRIMARY_NONCE_BYTE_LEN = 32


def generate_primary_nonce(csprng: CsprngBase) -> bytes:
    return csprng.next_bytes(PRIMARY_NONCE_BYTE_LEN)


def option_nonce(h_e: HValue, primary_nonce: bytes, contest_index: int, option_index: int,
                 field: ScalarField) -> FieldElement:
    """Nonce for option option_index of contest contest_index, both 1-based"""
    data = (DomainTag.OPTION_NONCE.prefix() + primary_nonce
            + u32_be(contest_index) + u32_be(option_index))
    return eg_h_q(h_e, data, field)
