"""Guardian key ceremony, share transport, key shares and the joint public key."""

from .ceremony import (
    SecretCoefficients,
    CoefficientCommitments,
    CoefficientProof,
    GuardianProof,
    GuardianSecretKey,
    GuardianPublicKey,
    coefficient_proof_challenge
)
from .joint_public_key import JointPublicKey, validated_guardian_keys
from .shares import (
    compute_share,
    expected_share_commitment,
    verify_share,
    check_share,
    GuardianEncryptionSecret,
    GuardianEncryptedShare,
    ShareEncryptionResult,
    GuardianSecretKeyShare,
    lagrange_coefficient,
    reconstruct_secret,
    decryption_share
)

__all__ = [
    'SecretCoefficients',
    'CoefficientCommitments',
    'CoefficientProof',
    'GuardianProof',
    'GuardianSecretKey',
    'GuardianPublicKey',
    'coefficient_proof_challenge',
    'JointPublicKey',
    'validated_guardian_keys',
    'compute_share',
    'expected_share_commitment',
    'verify_share',
    'check_share',
    'GuardianEncryptionSecret',
    'GuardianEncryptedShare',
    'ShareEncryptionResult',
    'GuardianSecretKeyShare',
    'lagrange_coefficient',
    'reconstruct_secret',
    'decryption_share'
]
