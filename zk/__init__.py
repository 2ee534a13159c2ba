"""
Zero-Knowledge Range Proofs for Ballot Well-Formedness
Disjunctive Chaum-Pedersen proofs over exponential ElGamal ciphertexts
"""

from .range_proof import (
    ProofRange,
    ProofRangeSingle,
    range_proof_challenge,
)

__all__ = [
    'ProofRange',
    'ProofRangeSingle',
    'range_proof_challenge',
]
