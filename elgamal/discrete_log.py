"""
Baby-Step Giant-Step Discrete Logarithm
=======================================
Recovers small exponents x in [0, 2^(2*table_bits)) from base^x. The baby-step
table maps base^j -> j for j < 2^table_bits; the giant step multiplies by
base^(-2^table_bits).
"""

import logging
from typing import Dict, Optional

from errors import InvalidParameterError
from algebra.algebra import Group, GroupElement

logger = logging.getLogger(__name__)

DEFAULT_TABLE_BITS = 16


class DiscreteLog:
    """Precomputed baby-step table for one base"""

    def __init__(self, base: GroupElement, group: Group, table_bits: int = DEFAULT_TABLE_BITS):
        if table_bits < 1:
            raise InvalidParameterError(f"table_bits must be positive, got {table_bits}")
        if not base.is_valid(group) or base == group.one():
            raise InvalidParameterError("Discrete log base must be a group element other than 1")

        self.base = base
        self.group = group
        self.m = 1 << table_bits
        self.bound = self.m * self.m

        self.table: Dict[int, int] = {}
        current = 1
        for j in range(self.m):
            # First hit wins; duplicates only occur once the base's order is exceeded
            self.table.setdefault(current, j)
            current = (current * base.value) % group.p

        self.giant_step = base.pow(self.m, group).inv(group)
        logger.debug(f"Built discrete log table with {len(self.table)} entries")

    @classmethod
    def from_group(cls, group: Group, table_bits: int = DEFAULT_TABLE_BITS) -> 'DiscreteLog':
        return cls(group.generator(), group, table_bits)

    def find(self, y: GroupElement) -> Optional[int]:
        """Exponent x with base^x == y, or None if x is not below the search bound"""
        gamma = y.value % self.group.p
        for i in range(self.m):
            j = self.table.get(gamma)
            if j is not None:
                return i * self.m + j
            gamma = (gamma * self.giant_step.value) % self.group.p
        return None
