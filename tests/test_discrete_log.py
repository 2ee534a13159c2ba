"""
Tests for baby-step giant-step discrete logarithms
"""

import pytest

from errors import InvalidParameterError
from algebra.algebra import GroupElement
from elgamal.discrete_log import DiscreteLog


class TestDiscreteLog:

    @pytest.mark.parametrize("x", [0, 1, 2, 15, 16, 17, 100, 255])
    def test_find_below_bound(self, toy64, x):
        dlog = DiscreteLog.from_group(toy64.group, table_bits=4)
        assert dlog.bound == 256
        assert dlog.find(toy64.group.g_exp(x)) == x

    def test_beyond_bound(self, toy64):
        dlog = DiscreteLog.from_group(toy64.group, table_bits=4)
        assert dlog.find(toy64.group.g_exp(300)) is None

    def test_other_base(self, toy64, csprng):
        group = toy64.group
        base = group.random_group_elem(csprng)
        dlog = DiscreteLog(base, group, table_bits=5)
        for x in (0, 31, 32, 999):
            assert dlog.find(base.pow(x, group)) == x

    def test_small_group_wraps(self, toy7):
        """With q = 127 every element is found, at its least exponent"""
        dlog = DiscreteLog.from_group(toy7.group, table_bits=6)
        for x in range(toy7.q):
            assert dlog.find(toy7.group.g_exp(x)) == x
        assert dlog.find(toy7.group.g_exp(toy7.q + 5)) == 5

    def test_invalid_base(self, toy64):
        with pytest.raises(InvalidParameterError):
            DiscreteLog(toy64.group.one(), toy64.group)
        with pytest.raises(InvalidParameterError):
            DiscreteLog(GroupElement(0), toy64.group)

    def test_invalid_table_bits(self, toy64):
        with pytest.raises(InvalidParameterError):
            DiscreteLog.from_group(toy64.group, table_bits=0)
