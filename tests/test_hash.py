"""
Tests for the hash function H, its domain tags and the election hash chain
"""

import pytest

from errors import OutOfRangeError, SerializationError
from election.manifest import Contest, ContestOption, ElectionManifest
from election.parameters import ElectionParameters, VaryingParameters
from hashing.hash import DomainTag, HValue, eg_h, eg_h_q, eg_h_tagged
from hashing.hashes import H_V, ExtendedBaseHash, Hashes, ParameterBaseHash


class TestHashFunction:

    def test_known_value(self):
        expected = HValue.from_hex("B613679A0814D9EC772F95D778C35FC5FF1697C493715653C6C712144292C5AD")
        assert eg_h(HValue.default(), b"") == expected

    def test_tags_are_unique_bytes(self):
        values = [tag.value for tag in DomainTag]
        assert len(values) == len(set(values))
        assert all(0 <= v <= 0xFF for v in values)

    def test_domain_separation(self):
        """Identical data under different tags never collides"""
        key = HValue.default()
        data = b"same payload"
        outputs = {eg_h_tagged(key, tag, data) for tag in DomainTag}
        assert len(outputs) == len(DomainTag)

    def test_tagged_is_prefix_concatenation(self):
        key = H_V
        assert eg_h_tagged(key, DomainTag.OPTION_NONCE, b"ab", b"cd") == eg_h(key, b"\x20abcd")

    def test_reduction_into_field(self, toy7):
        for n in range(20):
            assert eg_h_q(H_V, bytes([n]), toy7.field).is_valid(toy7.field)


class TestHValue:

    def test_hex_round_trip(self):
        h = eg_h(H_V, b"x")
        text = h.to_hex()
        assert text == text.upper()
        assert HValue.from_hex(text) == h
        assert str(h) == text

    def test_wrong_length(self):
        with pytest.raises(OutOfRangeError):
            HValue(b"\x00" * 31)

    @pytest.mark.parametrize("text", ["00" * 31, "ZZ" * 32, 42, None])
    def test_malformed_hex(self, text):
        with pytest.raises(SerializationError):
            HValue.from_hex(text)

    def test_ordering_is_bytewise(self):
        assert HValue(b"\x00" * 31 + b"\x01") < HValue(b"\x01" + b"\x00" * 31)


class TestHashChain:

    def test_parameter_base_hash(self, standard):
        expected = HValue.from_hex("2B3B025E50E09C119CBA7E9448ACD1CABC9447EF39BF06327D81C665CDD86296")
        assert ParameterBaseHash.compute(standard).h_p == expected

    def test_parameter_sets_hash_differently(self, standard, toy64):
        assert ParameterBaseHash.compute(standard).h_p != ParameterBaseHash.compute(toy64).h_p

    def test_hashes_deterministic(self, election_parameters, manifest):
        assert Hashes.compute(election_parameters, manifest) == Hashes.compute(election_parameters, manifest)

    def test_manifest_changes_h_m_and_h_b(self, election_parameters, manifest):
        original = Hashes.compute(election_parameters, manifest)
        changed_manifest = ElectionManifest(
            label=manifest.label,
            contests=manifest.contests + [Contest("Extra", [ContestOption("Yes"), ContestOption("No")])])
        changed = Hashes.compute(election_parameters, changed_manifest)
        assert changed.h_p == original.h_p
        assert changed.h_m != original.h_m
        assert changed.h_b != original.h_b

    def test_varying_parameters_change_h_b(self, election_parameters, manifest):
        original = Hashes.compute(election_parameters, manifest)
        other = ElectionParameters(election_parameters.fixed_parameters,
                                   VaryingParameters(5, 4, "2024-11-05", "test"))
        changed = Hashes.compute(other, manifest)
        assert changed.h_m == original.h_m
        assert changed.h_b != original.h_b

    def test_extended_hash_binds_commitments(self, ceremony):
        pvd = ceremony.pre_voting_data
        fixed = ceremony.fixed_parameters
        commitments = [pk.coefficient_commitments.commitments for pk in ceremony.public_keys]

        recomputed = ExtendedBaseHash.compute(pvd.hashes, fixed, pvd.public_key, commitments)
        assert recomputed.h_e == pvd.h_e

        swapped = list(commitments)
        swapped[0], swapped[1] = swapped[1], swapped[0]
        assert ExtendedBaseHash.compute(pvd.hashes, fixed, pvd.public_key, swapped).h_e != pvd.h_e

    def test_hashes_serialization(self, election_parameters, manifest):
        hashes = Hashes.compute(election_parameters, manifest)
        assert Hashes.from_canonical_bytes(hashes.to_canonical_bytes()) == hashes
