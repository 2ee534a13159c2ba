"""
ElGamal Key Pairs
=================
ElGamalSecretKey holds the secret scalar zeta in a mutable buffer that is
overwritten with zeros on zeroize(), on context-manager exit and on garbage
collection. The public key kappa = g^zeta is memoized in a OnceCell: computed
once, read many times, and never stored twice.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from errors import CacheContentionError, KeyZeroizedError, OutOfRangeError, SerializationError
from algebra.algebra import FieldElement, GroupElement
from algebra.csprng import CsprngBase
from algebra.parameters import FixedParameters
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Seconds a reader waits for an in-flight write before reporting contention
DEFAULT_CACHE_WAIT = 5.0


class OnceCell(Generic[T]):
    """Compute-once slot with a single writer.

    A thread that re-enters get_or_init while its own write is in flight, or
    that cannot acquire the slot within `wait` seconds, gets
    CacheContentionError instead of deadlocking.
    """

    def __init__(self, wait: float = DEFAULT_CACHE_WAIT):
        self._wait = wait
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._initialized = False
        self._writer: Optional[int] = None

    def get(self) -> Optional[T]:
        return self._value if self._initialized else None

    def get_or_init(self, factory: Callable[[], T]) -> T:
        if self._initialized:
            return self._value

        if self._writer == threading.get_ident():
            raise CacheContentionError(
                "Memoized value re-entered while its write is in flight")

        if not self._lock.acquire(timeout=self._wait):
            raise CacheContentionError(
                f"Memoized value still being written after {self._wait}s")
        try:
            if self._initialized:
                return self._value
            self._writer = threading.get_ident()
            value = factory()
            self._value = value
            self._initialized = True
            return value
        finally:
            self._writer = None
            self._lock.release()

    def clear(self):
        with self._lock:
            self._value = None
            self._initialized = False


@dataclass(frozen=True)
class ElGamalPublicKey(CanonicalSerializable):
    """Public key kappa = g^zeta"""
    key: GroupElement

    def is_valid(self, fixed_parameters: FixedParameters) -> bool:
        return self.key.is_valid(fixed_parameters.group) and self.key != fixed_parameters.group.one()

    def to_dict(self) -> Dict[str, Any]:
        return {'key': int_to_hex(self.key.value)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElGamalPublicKey':
        return cls(GroupElement(hex_to_int(require(data, 'key', str))))


class ElGamalSecretKey:
    """Secret scalar zeta with a lazily computed public key"""

    def __init__(self, secret: FieldElement, fixed_parameters: FixedParameters,
                 cache_wait: float = DEFAULT_CACHE_WAIT):
        self._buffer = bytearray(fixed_parameters.field.q_len_bytes)
        self._zeroized = False
        try:
            if not secret.is_valid(fixed_parameters.field):
                raise OutOfRangeError("Secret key is not a valid field element")
            self._buffer[:] = secret.to_be_bytes_left_pad(fixed_parameters.field)
            self.fixed_parameters = fixed_parameters
            self._public_key: OnceCell[ElGamalPublicKey] = OnceCell(cache_wait)
        except Exception:
            self.zeroize()
            raise

    @classmethod
    def new_random(cls, csprng: CsprngBase, fixed_parameters: FixedParameters) -> 'ElGamalSecretKey':
        return cls(fixed_parameters.field.random_field_elem(csprng), fixed_parameters)

    @property
    def secret_s(self) -> FieldElement:
        if self._zeroized:
            raise KeyZeroizedError("Secret key has been zeroized")
        return FieldElement(int.from_bytes(self._buffer, 'big'))

    def _compute_public_key(self) -> ElGamalPublicKey:
        return ElGamalPublicKey(self.fixed_parameters.group.g_exp(self.secret_s))

    def public_key(self) -> ElGamalPublicKey:
        """kappa = g^zeta mod p, computed on first use"""
        if self._zeroized:
            raise KeyZeroizedError("Secret key has been zeroized")
        return self._public_key.get_or_init(self._compute_public_key)

    @property
    def is_zeroized(self) -> bool:
        return self._zeroized

    def zeroize(self):
        """Overwrite the secret with zeros and drop cached key material"""
        buffer = getattr(self, '_buffer', None)
        if buffer is not None:
            for i in range(len(buffer)):
                buffer[i] = 0
        cache = getattr(self, '_public_key', None)
        if cache is not None:
            cache.clear()
        self._zeroized = True

    def __enter__(self) -> 'ElGamalSecretKey':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()

    def __del__(self):
        self.zeroize()

    def __repr__(self) -> str:
        state = "zeroized" if self._zeroized else "live"
        return f"ElGamalSecretKey(<{state}>)"


def public_key_from_dict(data: Dict[str, Any], fixed_parameters: FixedParameters) -> ElGamalPublicKey:
    """Decode and validate a public key against the group"""
    key = ElGamalPublicKey.from_dict(data)
    if not key.is_valid(fixed_parameters):
        raise SerializationError("Public key is not a valid group element")
    return key
