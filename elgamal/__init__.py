"""ElGamal keys, ciphertexts, discrete logarithms and value commitments."""

from .keys import OnceCell, ElGamalSecretKey, ElGamalPublicKey, public_key_from_dict
from .ciphertext import Ciphertext
from .discrete_log import DiscreteLog, DEFAULT_TABLE_BITS
from .commitment import Commitment

__all__ = [
    'OnceCell',
    'ElGamalSecretKey',
    'ElGamalPublicKey',
    'public_key_from_dict',
    'Ciphertext',
    'DiscreteLog',
    'DEFAULT_TABLE_BITS',
    'Commitment'
]
