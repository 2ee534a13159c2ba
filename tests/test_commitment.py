"""
Tests for Pedersen-style value commitments
"""

import pytest

from errors import DecryptionError, InvalidParameterError
from algebra.algebra import GroupElement
from elgamal.commitment import Commitment
from elgamal.discrete_log import DiscreteLog


@pytest.fixture
def commitment_key(toy64, csprng):
    return toy64.group.random_group_elem(csprng)


class TestCommitment:

    def test_verify(self, toy64, csprng, commitment_key):
        message = toy64.field.element(42)
        commitment, opening = Commitment.new(csprng, toy64, commitment_key, message)
        assert commitment.verify(toy64, commitment_key, message, opening)

    def test_wrong_message_or_opening(self, toy64, csprng, commitment_key):
        field = toy64.field
        commitment, opening = Commitment.new(csprng, toy64, commitment_key, field.element(42))
        assert not commitment.verify(toy64, commitment_key, field.element(43), opening)
        assert not commitment.verify(toy64, commitment_key, field.element(42),
                                     opening.add(field.one(), field))

    def test_hiding(self, toy64, csprng, commitment_key):
        message = toy64.field.element(1)
        first, _ = Commitment.new(csprng, toy64, commitment_key, message)
        second, _ = Commitment.new(csprng, toy64, commitment_key, message)
        assert first != second

    def test_combine(self, toy64, csprng, commitment_key):
        field = toy64.field
        parts = [Commitment.new(csprng, toy64, commitment_key, field.element(v)) for v in (3, 4, 5)]
        combined, opening = Commitment.combine(toy64, parts)
        assert combined.verify(toy64, commitment_key, field.element(12), opening)

    def test_open(self, toy64, csprng, commitment_key):
        commitment, opening = Commitment.new(csprng, toy64, commitment_key, toy64.field.element(200))
        dlog = DiscreteLog(commitment_key, toy64.group, table_bits=4)
        assert commitment.open(toy64, opening, dlog) == 200

    def test_open_beyond_bound(self, toy64, csprng, commitment_key):
        commitment, opening = Commitment.new(csprng, toy64, commitment_key, toy64.field.element(5000))
        dlog = DiscreteLog(commitment_key, toy64.group, table_bits=4)
        with pytest.raises(DecryptionError):
            commitment.open(toy64, opening, dlog)

    def test_invalid_key(self, toy64, csprng):
        with pytest.raises(InvalidParameterError):
            Commitment.new(csprng, toy64, GroupElement(0), toy64.field.element(1))

    def test_serialization(self, toy64, csprng, commitment_key):
        commitment, _ = Commitment.new(csprng, toy64, commitment_key, toy64.field.element(7))
        assert Commitment.from_canonical_bytes(commitment.to_canonical_bytes()) == commitment
