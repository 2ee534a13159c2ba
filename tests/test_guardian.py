"""
Tests for the guardian key ceremony: coefficient proofs, Shamir shares,
share encryption, key shares and the joint public key
"""

import dataclasses
import itertools

import pytest

from errors import (
    ChallengeMismatchError,
    CommitmentNotInGroupError,
    DuplicateGuardianError,
    InvalidGuardianPublicKeyError,
    InvalidParameterError,
    InvalidShareMacError,
    MissingGuardianError,
    ResponseNotInFieldError,
    ShareCombinationError,
    ShareConsistencyError,
    ShareIndexMismatchError,
    ThresholdViolationError
)
from algebra.algebra import FieldElement, GroupElement
from algebra.csprng import Csprng
from election.parameters import ElectionParameters, VaryingParameters
from elgamal.ciphertext import Ciphertext
from guardian.ceremony import (
    CoefficientCommitments,
    GuardianProof,
    GuardianPublicKey,
    GuardianSecretKey,
    SecretCoefficients
)
from guardian.joint_public_key import JointPublicKey
from guardian.shares import (
    GuardianEncryptedShare,
    GuardianEncryptionSecret,
    GuardianSecretKeyShare,
    check_share,
    decryption_share,
    expected_share_commitment,
    lagrange_coefficient,
    reconstruct_secret,
    verify_share
)
from hashing.hash import HValue
from hashing.hashes import ParameterBaseHash


def _encrypt_all(ceremony, seed=b"share encryption"):
    """encrypted[recipient] -> list of shares addressed to it, one per dealer"""
    rng = Csprng(seed)
    params = ceremony.election_parameters
    encrypted = {pk.i: [] for pk in ceremony.public_keys}
    for dealer in ceremony.secret_keys:
        for recipient in ceremony.public_keys:
            result = GuardianEncryptedShare.encrypt(rng, params, dealer, recipient)
            encrypted[recipient.i].append(result.ciphertext)
    return encrypted


@pytest.fixture(scope="module")
def key_shares(ceremony):
    encrypted = _encrypt_all(ceremony)
    return {
        sk.i: GuardianSecretKeyShare.compute(ceremony.election_parameters, ceremony.public_keys,
                                             encrypted[sk.i], sk)
        for sk in ceremony.secret_keys
    }


class TestSecretPolynomial:

    def test_evaluate(self, toy7):
        field = toy7.field
        # 3 + 2x + x^2
        poly = SecretCoefficients([field.element(3), field.element(2), field.element(1)])
        assert poly.degree == 2
        assert poly.evaluate(0, field) == field.element(3)
        assert poly.evaluate(2, field) == field.element(11)
        assert poly.evaluate(20, field) == field.element(443)

    def test_generate_has_k_coefficients(self, election_parameters, csprng):
        poly = SecretCoefficients.generate(csprng, election_parameters)
        assert len(poly.coefficients) == election_parameters.k

    def test_commitments_are_g_powers(self, toy64, csprng):
        field = toy64.field
        poly = SecretCoefficients([field.random_field_elem(csprng) for _ in range(3)])
        commitments = poly.commit(toy64)
        assert list(commitments) == [toy64.group.g_exp(a) for a in poly.coefficients]


class TestCoefficientProofs:

    def test_generated_key_validates(self, ceremony):
        for public_key in ceremony.public_keys:
            public_key.validate(ceremony.election_parameters)

    def test_wrong_guardian_index(self, ceremony):
        public_key = ceremony.public_keys[0]
        with pytest.raises(ChallengeMismatchError) as exc_info:
            public_key.coefficient_proofs.verify(ceremony.fixed_parameters, 2,
                                                 public_key.coefficient_commitments)
        assert exc_info.value.guardian_index == 2
        assert exc_info.value.coefficient_index == 0

    def test_wrong_coefficient_index(self, ceremony):
        fixed = ceremony.fixed_parameters
        h_p = ParameterBaseHash.compute(fixed).h_p
        public_key = ceremony.public_keys[0]
        proof = public_key.coefficient_proofs.proofs[1]
        with pytest.raises(ChallengeMismatchError):
            proof.verify(fixed, h_p, public_key.i, 2, public_key.coefficient_commitments[1])

    def test_commitment_not_in_group(self, ceremony):
        fixed = ceremony.fixed_parameters
        h_p = ParameterBaseHash.compute(fixed).h_p
        proof = ceremony.public_keys[0].coefficient_proofs.proofs[0]
        with pytest.raises(CommitmentNotInGroupError):
            proof.verify(fixed, h_p, 1, 0, GroupElement(0))

    def test_response_not_in_field(self, ceremony):
        fixed = ceremony.fixed_parameters
        h_p = ParameterBaseHash.compute(fixed).h_p
        public_key = ceremony.public_keys[0]
        proof = dataclasses.replace(public_key.coefficient_proofs.proofs[0],
                                    response=FieldElement(fixed.q))
        with pytest.raises(ResponseNotInFieldError):
            proof.verify(fixed, h_p, 1, 0, public_key.coefficient_commitments[0])

    def test_tampered_challenge_rejected_with_cause(self, ceremony):
        public_key = ceremony.public_keys[2]
        proofs = list(public_key.coefficient_proofs.proofs)
        proofs[1] = dataclasses.replace(proofs[1], challenge=HValue.default())
        tampered = dataclasses.replace(public_key, coefficient_proofs=GuardianProof(proofs))

        with pytest.raises(InvalidGuardianPublicKeyError) as exc_info:
            tampered.validate(ceremony.election_parameters)
        assert exc_info.value.guardian_index == 3
        assert isinstance(exc_info.value.__cause__, ChallengeMismatchError)
        assert exc_info.value.__cause__.coefficient_index == 1

    def test_wrong_commitment_count(self, ceremony):
        public_key = ceremony.public_keys[0]
        truncated = dataclasses.replace(
            public_key,
            coefficient_commitments=CoefficientCommitments(public_key.coefficient_commitments.commitments[:2]),
            coefficient_proofs=GuardianProof(public_key.coefficient_proofs.proofs[:2]))
        with pytest.raises(InvalidGuardianPublicKeyError):
            truncated.validate(ceremony.election_parameters)

    def test_index_outside_election(self, ceremony):
        public_key = dataclasses.replace(ceremony.public_keys[0], i=6)
        with pytest.raises(InvalidGuardianPublicKeyError):
            public_key.validate(ceremony.election_parameters)

    def test_secret_key_matches_public_key(self, ceremony):
        ceremony.secret_keys[0].check_matches(ceremony.public_keys[0])
        assert ceremony.secret_keys[0].name == "Guardian 1"

    def test_election_secret_key(self, ceremony):
        sk = ceremony.secret_keys[0]
        with sk.election_secret_key(ceremony.fixed_parameters) as election_key:
            assert election_key.public_key().key == ceremony.public_keys[0].public_key_k_i_0


class TestShares:

    def test_share_matches_commitments(self, ceremony):
        fixed = ceremony.fixed_parameters
        params = ceremony.election_parameters
        for dealer, dealer_pk in zip(ceremony.secret_keys, ceremony.public_keys):
            for recipient in params.varying_parameters.guardian_indices():
                share = dealer.share_for(recipient, params)
                assert verify_share(fixed, dealer_pk, recipient, share)
                assert fixed.group.g_exp(share) == expected_share_commitment(
                    fixed, dealer_pk.coefficient_commitments, recipient)

    def test_inconsistent_share(self, ceremony):
        fixed = ceremony.fixed_parameters
        params = ceremony.election_parameters
        share = ceremony.secret_keys[0].share_for(2, params)
        bad = share.add(fixed.field.one(), fixed.field)
        with pytest.raises(ShareConsistencyError) as exc_info:
            check_share(fixed, ceremony.public_keys[0], 2, bad)
        assert (exc_info.value.dealer, exc_info.value.recipient) == (1, 2)

    def test_share_for_unknown_recipient(self, ceremony):
        with pytest.raises(InvalidParameterError):
            ceremony.secret_keys[0].share_for(6, ceremony.election_parameters)


class TestShareEncryption:

    def test_round_trip(self, ceremony, csprng):
        params = ceremony.election_parameters
        dealer, recipient = ceremony.secret_keys[0], ceremony.secret_keys[3]
        result = GuardianEncryptedShare.encrypt(csprng, params, dealer, recipient.make_public_key())
        share = result.ciphertext.decrypt_and_validate(params, ceremony.public_keys[0], recipient)
        assert share == dealer.share_for(4, params)
        assert result.secret.share == share

    def test_tampered_ciphertext_fails_mac(self, ceremony, csprng):
        params = ceremony.election_parameters
        result = GuardianEncryptedShare.encrypt(csprng, params, ceremony.secret_keys[0],
                                                ceremony.public_keys[1])
        c1 = bytearray(result.ciphertext.c1.value)
        c1[0] ^= 0x01
        tampered = dataclasses.replace(result.ciphertext, c1=HValue(bytes(c1)))
        with pytest.raises(InvalidShareMacError):
            tampered.decrypt_and_validate(params, ceremony.public_keys[0], ceremony.secret_keys[1])

    def test_wrong_recipient(self, ceremony, csprng):
        params = ceremony.election_parameters
        result = GuardianEncryptedShare.encrypt(csprng, params, ceremony.secret_keys[0],
                                                ceremony.public_keys[1])
        with pytest.raises(ShareIndexMismatchError):
            result.ciphertext.decrypt_and_validate(params, ceremony.public_keys[0], ceremony.secret_keys[2])

    def test_encrypted_share_hides_value(self, ceremony, csprng):
        params = ceremony.election_parameters
        first = GuardianEncryptedShare.encrypt(csprng, params, ceremony.secret_keys[0], ceremony.public_keys[1])
        second = GuardianEncryptedShare.encrypt(csprng, params, ceremony.secret_keys[0], ceremony.public_keys[1])
        assert first.ciphertext.c1 != second.ciphertext.c1

    def test_dispute_resolution(self, ceremony, csprng):
        params = ceremony.election_parameters
        dealer_pk, recipient_pk = ceremony.public_keys[0], ceremony.public_keys[1]
        result = GuardianEncryptedShare.encrypt(csprng, params, ceremony.secret_keys[0], recipient_pk)
        assert result.ciphertext.public_validation(params, dealer_pk, recipient_pk, result.secret)

        wrong_share = dataclasses.replace(
            result.secret, share=result.secret.share.add(FieldElement(1), params.fixed_parameters.field))
        assert not result.ciphertext.public_validation(params, dealer_pk, recipient_pk, wrong_share)

    def test_dispute_exposes_bad_dealer(self, ceremony, csprng):
        """A dealer who encrypts a wrong share is caught by the public check"""
        params = ceremony.election_parameters
        fixed = params.fixed_parameters
        recipient_pk = ceremony.public_keys[1]
        bad_share = ceremony.secret_keys[0].share_for(2, params).add(FieldElement(1), fixed.field)
        nonce = fixed.field.random_field_elem(csprng)
        sealed = GuardianEncryptedShare._seal(fixed, 1, 2, recipient_pk.public_key_k_i_0, bad_share, nonce)

        with pytest.raises(ShareConsistencyError):
            sealed.decrypt_and_validate(params, ceremony.public_keys[0], ceremony.secret_keys[1])
        secret = GuardianEncryptionSecret(1, 2, bad_share, nonce)
        assert not sealed.public_validation(params, ceremony.public_keys[0], recipient_pk, secret)

    def test_serialization(self, ceremony, csprng):
        result = GuardianEncryptedShare.encrypt(csprng, ceremony.election_parameters,
                                                ceremony.secret_keys[0], ceremony.public_keys[1])
        data = result.ciphertext.to_canonical_bytes()
        assert GuardianEncryptedShare.from_canonical_bytes(data) == result.ciphertext


class TestKeyShares:

    def test_key_share_commitment(self, ceremony, key_shares):
        fixed = ceremony.fixed_parameters
        for i, share in key_shares.items():
            expected = fixed.group.one()
            for pk in ceremony.public_keys:
                expected = expected.mul(
                    expected_share_commitment(fixed, pk.coefficient_commitments, i), fixed.group)
            assert share.public_commitment(fixed) == expected

    def test_any_quorum_reconstructs_joint_secret(self, ceremony, key_shares):
        field = ceremony.fixed_parameters.field
        for quorum in itertools.combinations(sorted(key_shares), 3):
            secret = reconstruct_secret([(i, key_shares[i].p_i) for i in quorum], field, threshold=3)
            assert secret == ceremony.joint_secret

    def test_joint_key_is_g_to_joint_secret(self, ceremony):
        pvd = ceremony.pre_voting_data
        assert pvd.public_key == ceremony.fixed_parameters.group.g_exp(ceremony.joint_secret)

    def test_too_few_shares(self, ceremony, key_shares):
        field = ceremony.fixed_parameters.field
        with pytest.raises(ThresholdViolationError):
            reconstruct_secret([(1, key_shares[1].p_i), (2, key_shares[2].p_i)], field, threshold=3)

    def test_duplicate_share(self, ceremony, key_shares):
        field = ceremony.fixed_parameters.field
        with pytest.raises(DuplicateGuardianError):
            reconstruct_secret([(1, key_shares[1].p_i)] * 3, field)

    def test_decryption_shares_combine(self, ceremony, key_shares, csprng):
        """prod M_i^(w_i) over a quorum equals alpha^s"""
        fixed = ceremony.fixed_parameters
        pvd = ceremony.pre_voting_data
        ciphertext = Ciphertext.encrypt(fixed, pvd.public_key, fixed.field.random_field_elem(csprng), 1)
        quorum = [2, 4, 5]
        combined = fixed.group.one()
        for i in quorum:
            m_i = decryption_share(fixed, ciphertext, key_shares[i])
            w_i = lagrange_coefficient(i, quorum, fixed.field)
            combined = combined.mul(m_i.exp(w_i, fixed.group), fixed.group)
        assert combined == ciphertext.alpha.exp(ceremony.joint_secret, fixed.group)

    def test_rejected_share_names_dealer(self, ceremony):
        encrypted = _encrypt_all(ceremony, b"tampered shares")
        shares = list(encrypted[1])
        c2 = bytearray(shares[3].c2.value)
        c2[-1] ^= 0xFF
        shares[3] = dataclasses.replace(shares[3], c2=HValue(bytes(c2)))

        with pytest.raises(ShareCombinationError) as exc_info:
            GuardianSecretKeyShare.compute(ceremony.election_parameters, ceremony.public_keys,
                                           shares, ceremony.secret_keys[0])
        assert exc_info.value.dealers == [4]
        assert isinstance(exc_info.value.causes[0], InvalidShareMacError)

    def test_missing_dealer(self, ceremony):
        encrypted = _encrypt_all(ceremony)
        with pytest.raises(MissingGuardianError) as exc_info:
            GuardianSecretKeyShare.compute(ceremony.election_parameters, ceremony.public_keys,
                                           encrypted[1][:4], ceremony.secret_keys[0])
        assert exc_info.value.guardian_indices == [5]

    def test_duplicate_dealer(self, ceremony):
        encrypted = _encrypt_all(ceremony)
        shares = encrypted[1] + encrypted[1][:1]
        with pytest.raises(DuplicateGuardianError):
            GuardianSecretKeyShare.compute(ceremony.election_parameters, ceremony.public_keys,
                                           shares, ceremony.secret_keys[0])


class TestLagrange:

    def test_coefficients_sum_to_one(self, toy7):
        field = toy7.field
        indices = [1, 3, 4]
        total = field.zero()
        for i in indices:
            total = total.add(lagrange_coefficient(i, indices, field), field)
        assert total == field.one()

    def test_interpolates_constant_term(self, toy7):
        field = toy7.field
        poly = SecretCoefficients([field.element(100), field.element(5), field.element(77)])
        shares = [(i, poly.evaluate(i, field)) for i in (2, 3, 5)]
        assert reconstruct_secret(shares, field) == field.element(100)

    def test_index_not_in_set(self, toy7):
        with pytest.raises(ValueError):
            lagrange_coefficient(2, [1, 3], toy7.field)

    def test_indices_congruent_mod_q(self, toy7):
        field = toy7.field
        shares = [(1, field.element(9)), (1 + toy7.q, field.element(9))]
        with pytest.raises(InvalidParameterError):
            reconstruct_secret(shares, field, 2)


class TestGuardianCount:

    def test_largest_count_below_q(self, toy7):
        params = ElectionParameters(toy7, VaryingParameters(toy7.q - 1, 2))
        assert params.n == 126

    @pytest.mark.parametrize("n", [127, 130])
    def test_count_reaching_q_rejected(self, toy7, n):
        # guardian q would be dealt P(q) = P(0)
        with pytest.raises(InvalidParameterError):
            ElectionParameters(toy7, VaryingParameters(n, 2))


class TestJointPublicKey:

    def test_order_independent(self, ceremony):
        params = ceremony.election_parameters
        forward = JointPublicKey.compute(params, ceremony.public_keys)
        backward = JointPublicKey.compute(params, list(reversed(ceremony.public_keys)))
        assert forward == backward == ceremony.pre_voting_data.joint_public_key

    def test_duplicate_guardian(self, ceremony):
        keys = ceremony.public_keys[:4] + [ceremony.public_keys[0]]
        with pytest.raises(DuplicateGuardianError) as exc_info:
            JointPublicKey.compute(ceremony.election_parameters, keys)
        assert exc_info.value.guardian_index == 1

    def test_missing_guardian(self, ceremony):
        with pytest.raises(MissingGuardianError) as exc_info:
            JointPublicKey.compute(ceremony.election_parameters, ceremony.public_keys[:3])
        assert exc_info.value.guardian_indices == [4, 5]

    def test_serialization(self, ceremony):
        key = ceremony.pre_voting_data.joint_public_key
        assert JointPublicKey.from_canonical_bytes(key.to_canonical_bytes()) == key


class TestGuardianPublicKeySerialization:

    def test_round_trip_is_byte_identical(self, ceremony):
        public_key = ceremony.public_keys[1]
        data = public_key.to_canonical_bytes()
        decoded = GuardianPublicKey.from_canonical_bytes(data)
        assert decoded.to_canonical_bytes() == data
        decoded.validate(ceremony.election_parameters)

    def test_generate_with_name(self, election_parameters, csprng):
        sk = GuardianSecretKey.generate(csprng, election_parameters, 2, name="Trustee B")
        assert sk.make_public_key().name == "Trustee B"
