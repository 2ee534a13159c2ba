"""
Shamir Shares between Guardians
===============================
Guardian i sends P_i(l) to guardian l. The share is checked against the
dealer's public commitments:

    g^(P_i(l)) == prod_j K_{i,j}^(l^j mod q)   (mod p)

In transit the share is hashed-ElGamal encrypted to K_{l,0}: a one-time key
k = H(H_P; 0x11 | i | l | K_l | alpha | beta) is expanded into a MAC key and
an encryption key; c1 = P_i(l) XOR k_enc and c2 = HMAC(k_mac, alpha | c1).

Once every share addressed to guardian l has been decrypted and validated,
their sum P(l) is that guardian's key share. Any k key shares reconstruct the
joint secret by Lagrange interpolation at zero.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from cryptography.hazmat.primitives import constant_time

from errors import (
    DuplicateGuardianError,
    InvalidParameterError,
    InvalidShareMacError,
    MissingGuardianError,
    ShareCombinationError,
    ShareConsistencyError,
    ShareIndexMismatchError,
    ThresholdViolationError
)
from algebra.algebra import FieldElement, GroupElement, ScalarField
from algebra.csprng import CsprngBase
from algebra.parameters import FixedParameters
from election.parameters import ElectionParameters
from elgamal.ciphertext import Ciphertext
from guardian.ceremony import CoefficientCommitments, GuardianPublicKey, GuardianSecretKey
from guardian.joint_public_key import validated_guardian_keys
from hashing.hash import DomainTag, HValue, eg_h_tagged, eg_hmac
from hashing.hashes import ParameterBaseHash, u32_be
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)

SHARE_KDF_LABEL = b"share_enc_keys"
SHARE_KDF_CONTEXT = b"share_encrypt"
# Output length of the KDF in bits (512) as a 2-byte big-endian suffix
SHARE_KDF_LENGTH = b"\x02\x00"


# ============================================================================
# SHARE EVALUATION AND COMMITMENT CHECK
# ============================================================================


def compute_share(secret_key: GuardianSecretKey, recipient: int,
                  election_parameters: ElectionParameters) -> FieldElement:
    return secret_key.share_for(recipient, election_parameters)


def expected_share_commitment(fixed_parameters: FixedParameters,
                              commitments: CoefficientCommitments, recipient: int) -> GroupElement:
    """prod_j K_j^(recipient^j mod q)"""
    group = fixed_parameters.group
    q = fixed_parameters.q
    result = group.one()
    for j, k_j in enumerate(commitments):
        result = result.mul(k_j.pow(pow(recipient, j, q), group), group)
    return result


def verify_share(fixed_parameters: FixedParameters, dealer_public_key: GuardianPublicKey,
                 recipient: int, share: FieldElement) -> bool:
    if not share.is_valid(fixed_parameters.field):
        return False
    expected = expected_share_commitment(
        fixed_parameters, dealer_public_key.coefficient_commitments, recipient)
    return fixed_parameters.group.g_exp(share) == expected


def check_share(fixed_parameters: FixedParameters, dealer_public_key: GuardianPublicKey,
                recipient: int, share: FieldElement):
    """Raise ShareConsistencyError if the share does not match the dealer's commitments"""
    if not verify_share(fixed_parameters, dealer_public_key, recipient, share):
        logger.warning(f"Share from guardian {dealer_public_key.i} to guardian {recipient} failed its commitment check")
        raise ShareConsistencyError(dealer_public_key.i, recipient)


# ============================================================================
# SHARE ENCRYPTION
# ============================================================================


def _share_keys(secret: HValue, dealer: int, recipient: int) -> Tuple[HValue, HValue]:
    """(MAC key, encryption key)"""
    suffix = (SHARE_KDF_LABEL + b"\x00" + SHARE_KDF_CONTEXT
              + u32_be(dealer) + u32_be(recipient) + SHARE_KDF_LENGTH)
    return eg_hmac(secret, b"\x01" + suffix), eg_hmac(secret, b"\x02" + suffix)


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


@dataclass(frozen=True)
class GuardianEncryptionSecret:
    """What the dealer publishes in a dispute: the share and the encryption nonce"""
    dealer: int
    recipient: int
    share: FieldElement
    nonce: FieldElement


@dataclass(frozen=True)
class GuardianEncryptedShare(CanonicalSerializable):
    dealer: int
    recipient: int
    c0: GroupElement
    c1: HValue
    c2: HValue

    @staticmethod
    def _derive(fixed_parameters: FixedParameters, dealer: int, recipient: int,
                recipient_key: GroupElement, alpha: GroupElement,
                beta: GroupElement) -> Tuple[HValue, HValue]:
        group = fixed_parameters.group
        h_p = ParameterBaseHash.compute(fixed_parameters).h_p
        secret = eg_h_tagged(h_p, DomainTag.SHARE_ENCRYPTION_KEY,
                             u32_be(dealer), u32_be(recipient),
                             recipient_key.to_be_bytes_left_pad(group),
                             alpha.to_be_bytes_left_pad(group),
                             beta.to_be_bytes_left_pad(group))
        return _share_keys(secret, dealer, recipient)

    @classmethod
    def _seal(cls, fixed_parameters: FixedParameters, dealer: int, recipient: int,
              recipient_key: GroupElement, share: FieldElement,
              nonce: FieldElement) -> 'GuardianEncryptedShare':
        group = fixed_parameters.group
        alpha = group.g_exp(nonce)
        beta = recipient_key.exp(nonce, group)
        mac_key, enc_key = cls._derive(fixed_parameters, dealer, recipient,
                                       recipient_key, alpha, beta)
        c1 = HValue(_xor(share.to_32_be_bytes(), enc_key.value))
        c2 = eg_hmac(mac_key, alpha.to_be_bytes_left_pad(group) + c1.value)
        return cls(dealer=dealer, recipient=recipient, c0=alpha, c1=c1, c2=c2)

    @classmethod
    def encrypt(cls, csprng: CsprngBase, election_parameters: ElectionParameters,
                dealer_secret_key: GuardianSecretKey,
                recipient_public_key: GuardianPublicKey) -> 'ShareEncryptionResult':
        fixed_parameters = election_parameters.fixed_parameters
        dealer = dealer_secret_key.i
        recipient = recipient_public_key.i

        share = dealer_secret_key.share_for(recipient, election_parameters)
        nonce = fixed_parameters.field.random_field_elem(csprng)
        ciphertext = cls._seal(fixed_parameters, dealer, recipient,
                               recipient_public_key.public_key_k_i_0, share, nonce)

        logger.debug(f"Encrypted share from guardian {dealer} to guardian {recipient}")
        return ShareEncryptionResult(
            ciphertext=ciphertext,
            secret=GuardianEncryptionSecret(dealer, recipient, share, nonce))

    def decrypt_and_validate(self, election_parameters: ElectionParameters,
                             dealer_public_key: GuardianPublicKey,
                             recipient_secret_key: GuardianSecretKey) -> FieldElement:
        fixed_parameters = election_parameters.fixed_parameters
        group = fixed_parameters.group

        if self.dealer != dealer_public_key.i or self.recipient != recipient_secret_key.i:
            raise ShareIndexMismatchError(self.dealer, self.recipient,
                                          dealer_public_key.i, recipient_secret_key.i)
        if not self.c0.is_valid(group):
            raise ShareConsistencyError(
                self.dealer, self.recipient,
                f"Share from guardian {self.dealer} to guardian {self.recipient} has an invalid c0")

        beta = self.c0.exp(recipient_secret_key.secret_s, group)
        mac_key, enc_key = self._derive(fixed_parameters, self.dealer, self.recipient,
                                        recipient_secret_key.coefficient_commitments[0],
                                        self.c0, beta)

        expected_mac = eg_hmac(mac_key, self.c0.to_be_bytes_left_pad(group) + self.c1.value)
        if not constant_time.bytes_eq(expected_mac.value, self.c2.value):
            logger.warning(f"MAC mismatch on share from guardian {self.dealer} to guardian {self.recipient}")
            raise InvalidShareMacError(self.dealer, self.recipient)

        share_value = int.from_bytes(_xor(self.c1.value, enc_key.value), 'big')
        share = FieldElement(share_value)
        if not share.is_valid(fixed_parameters.field):
            raise ShareConsistencyError(
                self.dealer, self.recipient,
                f"Share from guardian {self.dealer} to guardian {self.recipient} decrypts outside the field")

        check_share(fixed_parameters, dealer_public_key, self.recipient, share)
        return share

    def public_validation(self, election_parameters: ElectionParameters,
                          dealer_public_key: GuardianPublicKey,
                          recipient_public_key: GuardianPublicKey,
                          secret: GuardianEncryptionSecret) -> bool:
        """Settle a dispute from the published share and nonce alone"""
        fixed_parameters = election_parameters.fixed_parameters
        if (secret.dealer, secret.recipient) != (self.dealer, self.recipient):
            logger.warning("Published share secret does not name the disputed dealer and recipient")
            return False
        if (dealer_public_key.i, recipient_public_key.i) != (self.dealer, self.recipient):
            logger.warning("Public keys supplied for dispute do not match the disputed share")
            return False

        recomputed = self._seal(fixed_parameters, self.dealer, self.recipient,
                                recipient_public_key.public_key_k_i_0,
                                secret.share, secret.nonce)
        if recomputed != self:
            logger.warning(f"Published secret does not reproduce the share from guardian {self.dealer}")
            return False

        if not verify_share(fixed_parameters, dealer_public_key, self.recipient, secret.share):
            logger.warning(f"Disputed share from guardian {self.dealer} fails the commitment check")
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dealer': self.dealer,
            'recipient': self.recipient,
            'c0': int_to_hex(self.c0.value),
            'c1': str(self.c1),
            'c2': str(self.c2),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GuardianEncryptedShare':
        return cls(dealer=require(data, 'dealer', int),
                   recipient=require(data, 'recipient', int),
                   c0=GroupElement(hex_to_int(require(data, 'c0', str))),
                   c1=HValue.from_hex(require(data, 'c1', str)),
                   c2=HValue.from_hex(require(data, 'c2', str)))


@dataclass(frozen=True)
class ShareEncryptionResult:
    ciphertext: GuardianEncryptedShare
    secret: GuardianEncryptionSecret


# ============================================================================
# KEY SHARES
# ============================================================================


@dataclass(frozen=True)
class GuardianSecretKeyShare:
    """P(i) = sum over dealers l of P_l(i)"""
    i: int
    p_i: FieldElement

    @classmethod
    def compute(cls, election_parameters: ElectionParameters,
                guardian_public_keys: Iterable[GuardianPublicKey],
                encrypted_shares: Iterable[GuardianEncryptedShare],
                recipient_secret_key: GuardianSecretKey) -> 'GuardianSecretKeyShare':
        field_ = election_parameters.fixed_parameters.field
        keys = validated_guardian_keys(election_parameters, guardian_public_keys)

        shares_by_dealer: Dict[int, GuardianEncryptedShare] = {}
        for encrypted_share in encrypted_shares:
            if encrypted_share.dealer in shares_by_dealer:
                raise DuplicateGuardianError(encrypted_share.dealer)
            shares_by_dealer[encrypted_share.dealer] = encrypted_share

        missing = [key.i for key in keys if key.i not in shares_by_dealer]
        if missing:
            raise MissingGuardianError(missing)

        total = field_.zero()
        failed: List[int] = []
        causes: List[Exception] = []
        for dealer_key in keys:
            try:
                share = shares_by_dealer[dealer_key.i].decrypt_and_validate(
                    election_parameters, dealer_key, recipient_secret_key)
            except ShareConsistencyError as e:
                failed.append(dealer_key.i)
                causes.append(e)
                continue
            total = total.add(share, field_)

        if failed:
            logger.error(f"Guardian {recipient_secret_key.i} rejected shares from guardians {failed}")
            raise ShareCombinationError(failed, causes)

        logger.info(f"Guardian {recipient_secret_key.i} combined {len(keys)} shares into its key share")
        return cls(i=recipient_secret_key.i, p_i=total)

    def public_commitment(self, fixed_parameters: FixedParameters) -> GroupElement:
        """g^(P(i)), which equals prod_l prod_j K_{l,j}^(i^j)"""
        return fixed_parameters.group.g_exp(self.p_i)


# ============================================================================
# LAGRANGE INTERPOLATION
# ============================================================================


def lagrange_coefficient(i: int, indices: Sequence[int], field_: ScalarField) -> FieldElement:
    """w_i = prod_{l != i} l / (l - i) mod q"""
    if i not in indices:
        raise ValueError(f"Index {i} is not among the interpolation indices")
    numerator = field_.one()
    denominator = field_.one()
    for l in indices:
        if l == i:
            continue
        numerator = numerator.mul(field_.element(l), field_)
        denominator = denominator.mul(field_.element(l - i), field_)
    inverse = denominator.inv(field_)
    if inverse is None:
        raise InvalidParameterError(
            f"Interpolation indices {sorted(indices)} are not distinct modulo q")
    return numerator.mul(inverse, field_)


def reconstruct_secret(shares: Iterable[Tuple[int, FieldElement]], field_: ScalarField,
                       threshold: Optional[int] = None) -> FieldElement:
    """P(0) from (index, P(index)) pairs"""
    shares = list(shares)
    seen = set()
    for index, _ in shares:
        if index in seen:
            raise DuplicateGuardianError(index)
        seen.add(index)

    if threshold is not None and len(shares) < threshold:
        raise ThresholdViolationError(
            f"Need at least {threshold} shares to reconstruct, got {len(shares)}")

    indices = [index for index, _ in shares]
    secret = field_.zero()
    for index, value in shares:
        secret = secret.add(value.mul(lagrange_coefficient(index, indices, field_), field_), field_)
    return secret


def decryption_share(fixed_parameters: FixedParameters, ciphertext: Ciphertext,
                     key_share: GuardianSecretKeyShare) -> GroupElement:
    """M_i = alpha^(P(i))"""
    return ciphertext.alpha.exp(key_share.p_i, fixed_parameters.group)
