"""
Pre-Voting Data
===============
Everything a ballot encryption device needs once the key ceremony is over:
the election parameters, the manifest, the hash chain, the joint public key
and the extended base hash H_E.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from algebra.algebra import GroupElement
from algebra.parameters import FixedParameters
from election.manifest import ElectionManifest
from election.parameters import ElectionParameters
from guardian.ceremony import GuardianPublicKey
from guardian.joint_public_key import JointPublicKey, validated_guardian_keys
from hashing.hash import HValue
from hashing.hashes import ExtendedBaseHash, Hashes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreVotingData:
    parameters: ElectionParameters
    manifest: ElectionManifest
    hashes: Hashes
    joint_public_key: JointPublicKey
    hashes_ext: ExtendedBaseHash

    @classmethod
    def compute(cls, election_parameters: ElectionParameters, manifest: ElectionManifest,
                guardian_public_keys: Iterable[GuardianPublicKey]) -> 'PreVotingData':
        fixed_parameters = election_parameters.fixed_parameters
        keys = validated_guardian_keys(election_parameters, guardian_public_keys)

        hashes = Hashes.compute(election_parameters, manifest)
        joint_public_key = JointPublicKey.from_validated_keys(fixed_parameters, keys)
        hashes_ext = ExtendedBaseHash.compute(
            hashes, fixed_parameters, joint_public_key.key,
            [key.coefficient_commitments.commitments for key in keys])

        logger.info(f"Pre-voting data ready for '{manifest.label}' with H_E={hashes_ext.h_e}")
        return cls(parameters=election_parameters, manifest=manifest, hashes=hashes,
                   joint_public_key=joint_public_key, hashes_ext=hashes_ext)

    @property
    def fixed_parameters(self) -> FixedParameters:
        return self.parameters.fixed_parameters

    @property
    def public_key(self) -> GroupElement:
        return self.joint_public_key.key

    @property
    def h_e(self) -> HValue:
        return self.hashes_ext.h_e
