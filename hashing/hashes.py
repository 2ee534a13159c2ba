"""
Election Hash Chain
===================
H_P  parameter base hash      H(H_V; 0x00 | b(p) | b(q) | b(g))
H_M  manifest hash            H(H_P; 0x01 | manifest canonical bytes)
H_B  election base hash       H(H_P; 0x02 | n | k | date | info | H_M)
H_E  extended base hash       H(H_B; 0x12 | b(K) | K_{1,0} | ... | K_{n,k-1})

All group and field elements are encoded with the fixed length of their
modulus; n, k and indices are 4-byte big-endian.
"""

import logging
import struct
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Sequence

from algebra.algebra import GroupElement, to_be_bytes_left_pad
from algebra.parameters import FixedParameters
from election.manifest import ElectionManifest
from election.parameters import ElectionParameters
from hashing.hash import DomainTag, HValue, eg_h_tagged
from utils.serialization import CanonicalSerializable, require

logger = logging.getLogger(__name__)

# H_V: UTF-8 "v2.0.0" right-padded with zeros to 32 bytes
H_V = HValue(b"v2.0.0".ljust(32, b"\x00"))


@lru_cache(maxsize=8)
def _parameter_base_hash(q: int, p: int, g: int) -> HValue:
    p_len = (p.bit_length() + 7) // 8
    q_len = (q.bit_length() + 7) // 8
    return eg_h_tagged(
        H_V, DomainTag.PARAMETER_BASE_HASH,
        to_be_bytes_left_pad(p, p_len),
        to_be_bytes_left_pad(q, q_len),
        to_be_bytes_left_pad(g, p_len))


@dataclass(frozen=True)
class ParameterBaseHash:
    h_p: HValue

    @classmethod
    def compute(cls, fixed_parameters: FixedParameters) -> 'ParameterBaseHash':
        return cls(_parameter_base_hash(fixed_parameters.q, fixed_parameters.p, fixed_parameters.g))


def u32_be(value: int) -> bytes:
    return struct.pack('>I', value)


@dataclass(frozen=True)
class Hashes(CanonicalSerializable):
    """Parameter base hash, manifest hash and election base hash"""
    h_p: HValue
    h_m: HValue
    h_b: HValue

    @classmethod
    def compute(cls, election_parameters: ElectionParameters,
                manifest: ElectionManifest) -> 'Hashes':
        h_p = ParameterBaseHash.compute(election_parameters.fixed_parameters).h_p

        h_m = eg_h_tagged(h_p, DomainTag.MANIFEST_HASH,
                          manifest.to_canonical_bytes())

        varying = election_parameters.varying_parameters
        h_b = eg_h_tagged(
            h_p, DomainTag.BASE_HASH,
            u32_be(varying.n),
            u32_be(varying.k),
            varying.date.encode('utf-8'),
            varying.info.encode('utf-8'),
            h_m.value)

        logger.debug(f"Computed hashes H_P={h_p} H_M={h_m} H_B={h_b}")
        return cls(h_p=h_p, h_m=h_m, h_b=h_b)

    def to_dict(self) -> Dict[str, Any]:
        return {'h_p': str(self.h_p), 'h_m': str(self.h_m), 'h_b': str(self.h_b)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Hashes':
        return cls(h_p=HValue.from_hex(require(data, 'h_p', str)),
                   h_m=HValue.from_hex(require(data, 'h_m', str)),
                   h_b=HValue.from_hex(require(data, 'h_b', str)))


@dataclass(frozen=True)
class ExtendedBaseHash:
    """H_E binds the joint public key and every guardian coefficient commitment"""
    h_e: HValue

    @classmethod
    def compute(cls, hashes: Hashes, fixed_parameters: FixedParameters,
                joint_public_key: GroupElement,
                guardian_commitments: Sequence[Sequence[GroupElement]]) -> 'ExtendedBaseHash':
        """guardian_commitments must be ordered by guardian index, each list by coefficient index"""
        group = fixed_parameters.group
        parts = [joint_public_key.to_be_bytes_left_pad(group)]
        for commitments in guardian_commitments:
            for k_i_j in commitments:
                parts.append(k_i_j.to_be_bytes_left_pad(group))

        h_e = eg_h_tagged(hashes.h_b, DomainTag.EXTENDED_BASE_HASH, *parts)
        logger.debug(f"Computed extended base hash H_E={h_e}")
        return cls(h_e=h_e)
