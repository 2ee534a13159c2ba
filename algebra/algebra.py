"""
Modular Arithmetic over Z_q and the Order-q Subgroup of Z_p*
=============================================================
FieldElement values always lie in [0, q) and GroupElement values in [0, p).
Every operation takes the field or group as an explicit context argument and
returns a new reduced value; elements never carry their modulus.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import galois

from errors import InvalidParameterError, OutOfRangeError
from algebra.csprng import CsprngBase

logger = logging.getLogger(__name__)


def to_be_bytes_left_pad(value: int, length: int) -> bytes:
    """Big-endian encoding of value, left-padded with zeros to exactly `length` bytes"""
    if value < 0:
        raise OutOfRangeError(f"Cannot encode negative value {value}")
    if value.bit_length() > 8 * length:
        raise OutOfRangeError(
            f"Value needs {(value.bit_length() + 7) // 8} bytes, only {length} available")
    return value.to_bytes(length, 'big')


# ============================================================================
# FIELD Z_q
# ============================================================================


@dataclass(frozen=True, order=True)
class FieldElement:
    """Element of Z_q"""
    value: int

    def add(self, other: 'FieldElement', field: 'ScalarField') -> 'FieldElement':
        return FieldElement((self.value + other.value) % field.q)

    def sub(self, other: 'FieldElement', field: 'ScalarField') -> 'FieldElement':
        return FieldElement((self.value - other.value) % field.q)

    def mul(self, other: 'FieldElement', field: 'ScalarField') -> 'FieldElement':
        return FieldElement((self.value * other.value) % field.q)

    def neg(self, field: 'ScalarField') -> 'FieldElement':
        return FieldElement((-self.value) % field.q)

    def pow(self, exponent: int, field: 'ScalarField') -> 'FieldElement':
        return FieldElement(pow(self.value, exponent, field.q))

    def inv(self, field: 'ScalarField') -> Optional['FieldElement']:
        """Multiplicative inverse, or None for zero"""
        if self.value % field.q == 0:
            return None
        return FieldElement(pow(self.value, -1, field.q))

    def is_zero(self) -> bool:
        return self.value == 0

    def is_valid(self, field: 'ScalarField') -> bool:
        return 0 <= self.value < field.q

    @classmethod
    def from_int(cls, x: int, field: 'ScalarField') -> 'FieldElement':
        return cls(x % field.q)

    @classmethod
    def from_bytes_be(cls, data: bytes, field: 'ScalarField') -> 'FieldElement':
        """Interpret big-endian bytes as an integer and reduce it mod q"""
        return cls(int.from_bytes(data, 'big') % field.q)

    def to_be_bytes_left_pad(self, field: 'ScalarField') -> bytes:
        return to_be_bytes_left_pad(self.value, field.q_len_bytes)

    def to_32_be_bytes(self) -> bytes:
        return to_be_bytes_left_pad(self.value, 32)

    def __int__(self) -> int:
        return self.value


class ScalarField:
    """The prime field Z_q"""

    def __init__(self, q: int, validate: bool = True):
        if q < 2:
            raise InvalidParameterError(f"Field order must be at least 2, got {q}")
        if validate and not galois.is_prime(q):
            raise InvalidParameterError(f"Field order {q} is not prime")
        self.q = q

    @classmethod
    def new_unchecked(cls, q: int) -> 'ScalarField':
        """Construct without a primality check. Reserved for well-known parameters."""
        return cls(q, validate=False)

    def is_valid(self) -> bool:
        return galois.is_prime(self.q)

    @staticmethod
    def zero() -> FieldElement:
        return FieldElement(0)

    @staticmethod
    def one() -> FieldElement:
        return FieldElement(1)

    def element(self, x: int) -> FieldElement:
        return FieldElement.from_int(x, self)

    def random_field_elem(self, csprng: CsprngBase) -> FieldElement:
        return FieldElement(csprng.next_biguint_lt(self.q))

    @property
    def q_len_bytes(self) -> int:
        return (self.q.bit_length() + 7) // 8

    def __eq__(self, other) -> bool:
        return isinstance(other, ScalarField) and self.q == other.q

    def __hash__(self) -> int:
        return hash(('ScalarField', self.q))

    def __repr__(self) -> str:
        return f"ScalarField(q={self.q.bit_length()} bits)"


# ============================================================================
# GROUP: ORDER-q SUBGROUP OF Z_p*
# ============================================================================


@dataclass(frozen=True, order=True)
class GroupElement:
    """Element of the order-q subgroup of Z_p*"""
    value: int

    def mul(self, other: 'GroupElement', group: 'Group') -> 'GroupElement':
        return GroupElement((self.value * other.value) % group.p)

    def exp(self, exponent: FieldElement, group: 'Group') -> 'GroupElement':
        return GroupElement(pow(self.value, exponent.value, group.p))

    def pow(self, exponent: int, group: 'Group') -> 'GroupElement':
        return GroupElement(pow(self.value, exponent, group.p))

    def inv(self, group: 'Group') -> Optional['GroupElement']:
        """Multiplicative inverse mod p, or None if none exists"""
        if self.value % group.p == 0:
            return None
        return GroupElement(pow(self.value, -1, group.p))

    def is_valid(self, group: 'Group') -> bool:
        """0 <= value < p and value^q = 1 mod p"""
        return 0 <= self.value < group.p and pow(self.value, group.q, group.p) == 1

    def to_be_bytes_left_pad(self, group: 'Group') -> bytes:
        return to_be_bytes_left_pad(self.value, group.p_len_bytes)

    def __int__(self) -> int:
        return self.value


class Group:
    """Subgroup of Z_p* of prime order q generated by g, with p = q*r + 1"""

    def __init__(self, p: int, q: int, g: int, validate: bool = True):
        self.p = p
        self.q = q
        self.g = g
        if validate:
            self.validate()

    @classmethod
    def new_unchecked(cls, p: int, q: int, g: int) -> 'Group':
        return cls(p, q, g, validate=False)

    @property
    def r(self) -> int:
        """Cofactor (p - 1) / q"""
        return (self.p - 1) // self.q

    def validate(self, check_primality: bool = True):
        """Raise InvalidParameterError unless the group is well formed"""
        if self.p < 3 or self.q < 2:
            raise InvalidParameterError("Group modulus and order are too small")
        if (self.p - 1) % self.q != 0:
            raise InvalidParameterError("q does not divide p - 1")
        if self.r % self.q == 0:
            raise InvalidParameterError("q divides the cofactor r")
        if not 1 < self.g < self.p:
            raise InvalidParameterError("Generator is outside (1, p)")
        if pow(self.g, self.q, self.p) != 1:
            raise InvalidParameterError("Generator does not have order q")
        if check_primality:
            if not galois.is_prime(self.q):
                raise InvalidParameterError("Group order q is not prime")
            if not galois.is_prime(self.p):
                raise InvalidParameterError("Group modulus p is not prime")

    def is_valid(self) -> bool:
        try:
            self.validate()
        except InvalidParameterError as e:
            logger.warning(f"Group validation failed: {e}")
            return False
        return True

    @staticmethod
    def one() -> GroupElement:
        return GroupElement(1)

    def generator(self) -> GroupElement:
        return GroupElement(self.g)

    def g_exp(self, x: Union[FieldElement, int]) -> GroupElement:
        exponent = x.value if isinstance(x, FieldElement) else x
        return GroupElement(pow(self.g, exponent, self.p))

    def random_group_elem(self, csprng: CsprngBase) -> GroupElement:
        return self.g_exp(FieldElement(csprng.next_biguint_lt(self.q)))

    def matches_field(self, field: ScalarField) -> bool:
        return self.q == field.q

    @property
    def p_len_bytes(self) -> int:
        return (self.p.bit_length() + 7) // 8

    def __eq__(self, other) -> bool:
        return (isinstance(other, Group) and self.p == other.p
                and self.q == other.q and self.g == other.g)

    def __hash__(self) -> int:
        return hash(('Group', self.p, self.q, self.g))

    def __repr__(self) -> str:
        return f"Group(p={self.p.bit_length()} bits, q={self.q.bit_length()} bits)"
