"""
Domain-Separated Hash Function H
================================
H(key, data) is HMAC-SHA-256 keyed by a 32-byte HValue. Every derivation in
the election record prefixes its data with a one-byte tag from DomainTag; the
table below is the single place where tag bytes are defined.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from errors import OutOfRangeError, SerializationError
from algebra.algebra import FieldElement, ScalarField

logger = logging.getLogger(__name__)

HVALUE_BYTE_LEN = 32


class DomainTag(IntEnum):
    """One-byte domain separation prefixes"""
    PARAMETER_BASE_HASH = 0x00
    MANIFEST_HASH = 0x01
    BASE_HASH = 0x02
    COEFFICIENT_PROOF_CHALLENGE = 0x10
    SHARE_ENCRYPTION_KEY = 0x11
    EXTENDED_BASE_HASH = 0x12
    OPTION_NONCE = 0x20
    RANGE_PROOF_CHALLENGE = 0x21
    CONTEST_HASH = 0x23
    CONFIRMATION_CODE = 0x24
    PRE_ENCRYPTED_SELECTION_HASH = 0x40
    PRE_ENCRYPTED_CONTEST_HASH = 0x41
    PRE_ENCRYPTED_CONFIRMATION_CODE = 0x42
    PRE_ENCRYPTED_OPTION_NONCE = 0x43

    def prefix(self) -> bytes:
        return bytes([self.value])


@dataclass(frozen=True, order=True)
class HValue:
    """256-bit hash output. Displays as uppercase hex."""
    value: bytes

    def __post_init__(self):
        if not isinstance(self.value, (bytes, bytearray)) or len(self.value) != HVALUE_BYTE_LEN:
            raise OutOfRangeError(
                f"HValue must be exactly {HVALUE_BYTE_LEN} bytes")
        object.__setattr__(self, 'value', bytes(self.value))

    @classmethod
    def default(cls) -> 'HValue':
        return cls(bytes(HVALUE_BYTE_LEN))

    @classmethod
    def from_hex(cls, text: Any) -> 'HValue':
        if not isinstance(text, str) or len(text) != 2 * HVALUE_BYTE_LEN:
            raise SerializationError(f"Not a 64-digit hex HValue: {text!r}")
        try:
            return cls(bytes.fromhex(text))
        except ValueError as e:
            raise SerializationError(f"Not a hex HValue: {text!r}") from e

    def to_hex(self) -> str:
        return self.value.hex().upper()

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"HValue({self.to_hex()})"


def eg_hmac(key: Union[HValue, bytes], data: bytes) -> HValue:
    """HMAC-SHA-256 of data under key"""
    mac = crypto_hmac.HMAC(bytes(key), hashes.SHA256())
    mac.update(data)
    return HValue(mac.finalize())


def eg_h(key: HValue, data: bytes) -> HValue:
    """The election hash function H(key; data)"""
    return eg_hmac(key, data)


def eg_h_tagged(key: HValue, tag: DomainTag, *parts: bytes) -> HValue:
    """H(key; tag | parts...) with the parts concatenated in order"""
    return eg_h(key, tag.prefix() + b"".join(parts))


def eg_h_q(key: HValue, data: bytes, field: ScalarField) -> FieldElement:
    """H(key; data) interpreted as a big-endian integer and reduced mod q"""
    return FieldElement.from_bytes_be(eg_h(key, data).value, field)


def hvalue_to_field(h: HValue, field: ScalarField) -> FieldElement:
    return FieldElement.from_bytes_be(h.value, field)
