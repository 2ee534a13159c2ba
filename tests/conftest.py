"""
Shared fixtures for the election core test suite.

Proof-heavy tests run over the toy-q64p256 parameter set (64-bit q, 256-bit
p); arithmetic vectors use toy-q7p16 (q = 127) and hash vectors use the
standard parameters.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from algebra.algebra import FieldElement
from algebra.csprng import Csprng
from algebra.parameters import (
    STANDARD_PARAMETERS,
    TOY_PARAMETERS_Q64P256,
    TOY_PARAMETERS_Q7P16,
    FixedParameters
)
from ballot.pre_voting_data import PreVotingData
from election.manifest import Contest, ContestOption, ElectionManifest
from election.parameters import ElectionParameters, VaryingParameters
from guardian.ceremony import GuardianPublicKey, GuardianSecretKey

NUM_GUARDIANS = 5
QUORUM = 3


@dataclass
class Ceremony:
    election_parameters: ElectionParameters
    manifest: ElectionManifest
    secret_keys: List[GuardianSecretKey]
    public_keys: List[GuardianPublicKey]
    pre_voting_data: PreVotingData

    @property
    def fixed_parameters(self) -> FixedParameters:
        return self.election_parameters.fixed_parameters

    @property
    def joint_secret(self) -> FieldElement:
        field = self.fixed_parameters.field
        total = field.zero()
        for sk in self.secret_keys:
            total = total.add(sk.secret_s, field)
        return total


def make_manifest() -> ElectionManifest:
    return ElectionManifest(
        label="Test Election",
        contests=[
            Contest("Mayor", [ContestOption("Ann"), ContestOption("Ben"), ContestOption("Cy")],
                    selection_limit=1),
            Contest("Council", [ContestOption("Di"), ContestOption("Ed"), ContestOption("Flo")],
                    selection_limit=2),
            Contest("Levy", [ContestOption("Yes"), ContestOption("No")], selection_limit=1),
        ])


@pytest.fixture
def toy7() -> FixedParameters:
    return TOY_PARAMETERS_Q7P16


@pytest.fixture
def toy64() -> FixedParameters:
    return TOY_PARAMETERS_Q64P256


@pytest.fixture
def standard() -> FixedParameters:
    return STANDARD_PARAMETERS


@pytest.fixture
def csprng() -> Csprng:
    return Csprng(b"election core test suite")


@pytest.fixture
def manifest() -> ElectionManifest:
    return make_manifest()


@pytest.fixture
def election_parameters(toy64) -> ElectionParameters:
    return ElectionParameters(toy64, VaryingParameters(NUM_GUARDIANS, QUORUM, "2024-11-05", "test"))


@pytest.fixture(scope="session")
def ceremony() -> Ceremony:
    """Five guardians, quorum three, keys generated once for the session"""
    rng = Csprng(b"session ceremony")
    params = ElectionParameters(TOY_PARAMETERS_Q64P256,
                                VaryingParameters(NUM_GUARDIANS, QUORUM, "2024-11-05", "test"))
    manifest = make_manifest()
    secret_keys = [GuardianSecretKey.generate(rng, params, i)
                   for i in params.varying_parameters.guardian_indices()]
    public_keys = [sk.make_public_key() for sk in secret_keys]
    pvd = PreVotingData.compute(params, manifest, public_keys)
    return Ceremony(params, manifest, secret_keys, public_keys, pvd)
