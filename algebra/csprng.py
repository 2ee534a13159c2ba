"""
Cryptographically Secure Random Number Generation
=================================================
Two interchangeable sources share one interface:

* Csprng    - deterministic SHAKE256 output stream, reproducible byte-for-byte
              from a seed. Used for tests and reproducible demo runs.
* OsCsprng  - operating-system entropy via os.urandom.

Uniform integers below a bound are drawn by rejection sampling: draw exactly
bits(end) bits and reject values >= end. Draws are never reduced modulo the
bound, and the number of attempts is bounded.
"""

import logging
import os
import struct
import sys
import threading
from typing import Union

from cryptography.hazmat.primitives import hashes

from errors import RandomnessExhaustedError

logger = logging.getLogger(__name__)

CSPRNG_LABEL = b"csprng for electionguard-rust"

# Upper bound on rejection-sampling attempts per draw
MAX_REJECTION_ATTEMPTS = 1024


class CsprngBase:
    """Uniform draws on top of a raw byte source"""

    def __init__(self, max_rejection_attempts: int = MAX_REJECTION_ATTEMPTS):
        if max_rejection_attempts < 1:
            raise ValueError("max_rejection_attempts must be positive")
        self.max_rejection_attempts = max_rejection_attempts
        self._lock = threading.Lock()

    def _read(self, count: int) -> bytes:
        raise NotImplementedError

    def next_bytes(self, count: int) -> bytes:
        if count < 0:
            raise ValueError("Byte count must be non-negative")
        with self._lock:
            return self._read(count)

    def next_u8(self) -> int:
        return self.next_bytes(1)[0]

    def next_u32(self) -> int:
        return struct.unpack('<I', self.next_bytes(4))[0]

    def next_u64(self) -> int:
        return struct.unpack('<Q', self.next_bytes(8))[0]

    def next_u128(self) -> int:
        return int.from_bytes(self.next_bytes(16), 'little')

    def next_bool(self) -> bool:
        return self.next_u8() & 1 != 0

    def _next_biguint_impl(self, bits: int, set_high_bit: bool) -> int:
        if bits < 1:
            raise ValueError("Bit count must be positive")
        count = (bits + 7) // 8
        value = int.from_bytes(self.next_bytes(count), 'big')
        value &= (1 << bits) - 1
        if set_high_bit and bits > 1:
            value |= 1 << (bits - 1)
        return value

    def next_biguint(self, bits: int) -> int:
        """Uniform integer in [0, 2^bits)"""
        return self._next_biguint_impl(bits, False)

    def next_biguint_requiring_bits(self, bits: int) -> int:
        """Uniform integer needing exactly `bits` bits; for bits == 1, uniform 0 or 1"""
        return self._next_biguint_impl(bits, True)

    def next_biguint_lt(self, end: int) -> int:
        """Uniform integer in [0, end) by bounded rejection sampling"""
        if end <= 0:
            raise ValueError("end must be greater than 0")
        bits = end.bit_length()
        for _ in range(self.max_rejection_attempts):
            candidate = self.next_biguint(bits)
            if candidate < end:
                return candidate
        logger.error(
            f"Rejection sampling below a {bits}-bit bound failed {self.max_rejection_attempts} times")
        raise RandomnessExhaustedError(
            f"No value below the {bits}-bit bound after {self.max_rejection_attempts} attempts")

    def next_biguint_range(self, start: int, end: int) -> int:
        """Uniform integer in [start, end)"""
        if start >= end:
            raise ValueError("`start` must be less than `end`")
        return start + self.next_biguint_lt(end - start)

    def spawn(self, label: str) -> 'CsprngBase':
        raise NotImplementedError


class Csprng(CsprngBase):
    """Deterministic SHAKE256-based generator.

    The XOF absorbs u64le(len(label)) | label | u64le(len(seed)) | seed and its
    output is squeezed incrementally as one continuous stream; nothing already
    returned is kept. An integer seed is encoded as eight little-endian bytes;
    a string seed as UTF-8.
    """

    def __init__(self, seed: Union[bytes, bytearray, int, str],
                 max_rejection_attempts: int = MAX_REJECTION_ATTEMPTS):
        super().__init__(max_rejection_attempts)
        if isinstance(seed, int):
            seed_bytes = struct.pack('<Q', seed)
        elif isinstance(seed, str):
            seed_bytes = seed.encode('utf-8')
        else:
            seed_bytes = bytes(seed)

        self._xof = hashes.XOFHash(hashes.SHAKE256(digest_size=sys.maxsize))
        self._xof.update(struct.pack('<Q', len(CSPRNG_LABEL)))
        self._xof.update(CSPRNG_LABEL)
        self._xof.update(struct.pack('<Q', len(seed_bytes)))
        self._xof.update(seed_bytes)

    def _read(self, count: int) -> bytes:
        if count == 0:
            return b""
        return self._xof.squeeze(count)

    def spawn(self, label: str) -> 'Csprng':
        """Derive an independent child stream for a worker"""
        child_seed = self.next_bytes(32) + label.encode('utf-8')
        return Csprng(child_seed, self.max_rejection_attempts)


class OsCsprng(CsprngBase):
    """Generator backed by operating-system randomness"""

    def _read(self, count: int) -> bytes:
        return os.urandom(count)

    def spawn(self, label: str) -> 'OsCsprng':
        return OsCsprng(self.max_rejection_attempts)
