"""
Tests for the deterministic and OS-backed random number generators
"""

import pytest

from errors import RandomnessExhaustedError
from algebra.csprng import Csprng, CsprngBase, OsCsprng


class _AllOnes(CsprngBase):
    """Source that only ever produces 0xFF bytes"""

    def _read(self, count: int) -> bytes:
        return b"\xff" * count


class TestCsprng:

    def test_known_output(self):
        csprng = Csprng(0)
        assert csprng.next_u64() == 10686075903840013692
        assert csprng.next_u8() == 168
        assert csprng.next_bool() is False

    def test_reproducible(self):
        a = Csprng(b"seed")
        b = Csprng(b"seed")
        assert a.next_bytes(100) == b.next_bytes(100)
        assert a.next_u128() == b.next_u128()

    def test_seeds_differ(self):
        assert Csprng(b"seed one").next_bytes(32) != Csprng(b"seed two").next_bytes(32)

    def test_stream_is_continuous(self):
        """Reading in pieces yields the same bytes as one large read"""
        whole = Csprng(7).next_bytes(1000)
        pieces = Csprng(7)
        assert b"".join(pieces.next_bytes(n) for n in (1, 255, 300, 444)) == whole

    def test_next_biguint(self):
        csprng = Csprng(0)
        for bits in range(1, 100):
            assert csprng.next_biguint(bits) < (1 << bits)

    def test_next_biguint_requiring_bits(self):
        csprng = Csprng(0)
        for bits in range(1, 100):
            value = csprng.next_biguint_requiring_bits(bits)
            if bits == 1:
                assert value in (0, 1)
            else:
                assert (1 << (bits - 1)) <= value < (1 << bits)

    def test_next_biguint_lt(self):
        csprng = Csprng(0)
        for end in range(1, 100):
            assert csprng.next_biguint_lt(end) < end

    def test_next_biguint_range(self):
        csprng = Csprng(0)
        for start in range(0, 30):
            for end in range(start + 1, 31):
                assert start <= csprng.next_biguint_range(start, end) < end

    def test_invalid_bounds(self):
        csprng = Csprng(0)
        with pytest.raises(ValueError):
            csprng.next_biguint_lt(0)
        with pytest.raises(ValueError):
            csprng.next_biguint_range(5, 5)
        with pytest.raises(ValueError):
            csprng.next_biguint(0)

    def test_spawned_children_are_independent(self):
        parent = Csprng(b"parent")
        first = parent.spawn("worker-0")
        second = parent.spawn("worker-1")
        assert first.next_bytes(32) != second.next_bytes(32)

    def test_spawning_is_reproducible(self):
        assert (Csprng(b"parent").spawn("w").next_bytes(32)
                == Csprng(b"parent").spawn("w").next_bytes(32))

    def test_drawn_output_is_not_retained(self):
        csprng = Csprng(0)
        secret_source = csprng.next_bytes(32)
        for _ in range(20000):
            csprng.next_bytes(32)
        retained = [v for v in vars(csprng).values() if isinstance(v, (bytes, bytearray))]
        assert all(len(v) < 64 for v in retained)
        assert all(secret_source not in v for v in retained)

    def test_known_output_after_long_stream(self):
        csprng = Csprng(0)
        assert csprng.next_u64() == 10686075903840013692
        csprng.next_bytes(1 << 16)
        again = Csprng(0)
        again.next_bytes(8 + (1 << 16))
        assert csprng.next_bytes(32) == again.next_bytes(32)


class TestRejectionSampling:

    def test_exhaustion_raises(self):
        # Every draw of 3 bits is 7, never below 5
        source = _AllOnes(max_rejection_attempts=16)
        with pytest.raises(RandomnessExhaustedError):
            source.next_biguint_lt(5)

    def test_all_ones_never_fits_power_of_two_bound(self):
        # end=8 needs 4 bits; an all-ones source only ever yields 15
        with pytest.raises(RandomnessExhaustedError):
            _AllOnes(max_rejection_attempts=8).next_biguint_lt(8)

    def test_rejects_instead_of_reducing(self):
        """The result is the first raw draw below the bound, unmodified"""
        raw = Csprng(b"rejection")
        candidate = raw.next_biguint(7)
        while candidate >= 100:
            candidate = raw.next_biguint(7)
        assert Csprng(b"rejection").next_biguint_lt(100) == candidate

    def test_attempt_bound_must_be_positive(self):
        with pytest.raises(ValueError):
            Csprng(0, max_rejection_attempts=0)


class TestOsCsprng:

    def test_draws_in_range(self):
        csprng = OsCsprng()
        for end in (1, 2, 127, 1 << 70):
            assert csprng.next_biguint_lt(end) < end
        assert len(csprng.next_bytes(48)) == 48

    def test_spawn(self):
        child = OsCsprng().spawn("child")
        assert isinstance(child, OsCsprng)
