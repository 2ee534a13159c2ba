"""
Error Taxonomy for the Election Cryptographic Core
==================================================
Every failure raised by the core derives from ElectionGuardError. Errors that
concern a specific guardian, contest or ciphertext carry those indices as
attributes so callers can report exactly what was rejected.
"""

from typing import Iterable, List, Optional


class ElectionGuardError(Exception):
    """Base exception for all election core operations"""
    pass


# ============================================================================
# PARAMETERS AND RANGES
# ============================================================================


class InvalidParameterError(ElectionGuardError):
    """Raised for a non-prime modulus, malformed group or bad election parameters"""
    pass


class JointPublicKeyError(InvalidParameterError):
    """Raised when the joint public key cannot be formed or is invalid"""
    pass


class InvalidGuardianPublicKeyError(InvalidParameterError):
    """Raised when a guardian public key does not match the election parameters"""

    def __init__(self, guardian_index: int, reason: str):
        self.guardian_index = guardian_index
        self.reason = reason
        super().__init__(
            f"Public key of guardian {guardian_index} is invalid: {reason}")


class OutOfRangeError(ElectionGuardError):
    """Raised when a field or group element lies outside its required bounds"""
    pass


class RangeNotSatisfiedError(OutOfRangeError):
    """Raised when a range proof is requested for a value above its limit"""

    def __init__(self, small_l: int, big_l: int):
        self.small_l = small_l
        self.big_l = big_l
        super().__init__(
            f"It must be that 0 <= small_l <= big_l (here small_l={small_l} and big_l={big_l})")


class RandomnessExhaustedError(ElectionGuardError):
    """Raised when rejection sampling exceeds its attempt bound"""
    pass


# ============================================================================
# PROOF VERIFICATION
# ============================================================================


class ProofVerificationError(ElectionGuardError):
    """A zero-knowledge proof did not verify. Always fatal, never retried."""
    pass


class CoefficientProofError(ProofVerificationError):
    """Base class for guardian coefficient proof failures"""

    description = "coefficient proof does not verify"

    def __init__(self, guardian_index: int, coefficient_index: int):
        self.guardian_index = guardian_index
        self.coefficient_index = coefficient_index
        super().__init__(
            f"Guardian {guardian_index} coefficient {coefficient_index}: {self.description}")


class CommitmentNotInGroupError(CoefficientProofError):
    description = "the commitment is not a valid element of the group"


class ResponseNotInFieldError(CoefficientProofError):
    description = "the proof response is not a valid element of the field"


class ChallengeMismatchError(CoefficientProofError):
    description = "the computed challenge does not match the given one"


class BallotContestFieldCiphertextDoesNotVerifyError(ProofVerificationError):
    """Range proof of a single option ciphertext failed"""

    def __init__(self, contest_index: int, ciphertext_index: int):
        self.contest_index = contest_index
        self.ciphertext_index = ciphertext_index
        super().__init__(
            f"Contest {contest_index} option {ciphertext_index} does not verify: proof does not verify")


class ContestSelectionLimitDoesNotVerifyError(ProofVerificationError):
    """Aggregate selection-limit proof of a contest failed"""

    def __init__(self, contest_index: int, selection_limit: int):
        self.contest_index = contest_index
        self.selection_limit = selection_limit
        super().__init__(
            f"Contest {contest_index} does not verify: contest selection limit of {selection_limit} does not verify")


class ConfirmationCodeMismatchError(ProofVerificationError):
    """Recomputed contest hash or confirmation code differs from the recorded one"""
    pass


# ============================================================================
# KEY CEREMONY
# ============================================================================


class ShareConsistencyError(ElectionGuardError):
    """A Shamir share failed its polynomial commitment check"""

    def __init__(self, dealer: int, recipient: int, message: Optional[str] = None):
        self.dealer = dealer
        self.recipient = recipient
        super().__init__(message or
                         f"Share from guardian {dealer} to guardian {recipient} does not validate against the dealer's commitments")


class ShareIndexMismatchError(ShareConsistencyError):
    """The encrypted share is addressed to or from a different guardian"""

    def __init__(self, dealer: int, recipient: int, expected_dealer: int, expected_recipient: int):
        self.expected_dealer = expected_dealer
        self.expected_recipient = expected_recipient
        super().__init__(
            dealer, recipient,
            f"Encrypted share is from {dealer} to {recipient}, but keys of {expected_dealer} and {expected_recipient} were supplied")


class InvalidShareMacError(ShareConsistencyError):
    """The MAC of an encrypted share does not verify"""

    def __init__(self, dealer: int, recipient: int):
        super().__init__(
            dealer, recipient,
            f"MAC of the share from guardian {dealer} to guardian {recipient} does not verify")


class ShareCombinationError(ElectionGuardError):
    """One or more shares could not be decrypted and validated"""

    def __init__(self, dealers: Iterable[int], causes: Optional[List[Exception]] = None):
        self.dealers = sorted(dealers)
        self.causes = causes or []
        super().__init__(
            f"Could not decrypt and validate all shares. There are issues with shares from the following guardians: {self.dealers}")


class DuplicateGuardianError(ElectionGuardError):
    """A guardian index occurs more than once"""

    def __init__(self, guardian_index: int):
        self.guardian_index = guardian_index
        super().__init__(
            f"Guardian {guardian_index} is represented more than once")


class MissingGuardianError(ElectionGuardError):
    """One or more guardians are not represented"""

    def __init__(self, guardian_indices: Iterable[int]):
        self.guardian_indices = sorted(guardian_indices)
        super().__init__(
            f"Guardians {self.guardian_indices} are not represented")


class ThresholdViolationError(ElectionGuardError):
    """Raised when fewer shares than the quorum are supplied"""
    pass


# ============================================================================
# KEYS, DECRYPTION, BALLOTS, SERIALIZATION
# ============================================================================


class CacheContentionError(ElectionGuardError):
    """The single-writer memo slot was re-entered while its write was in flight"""
    pass


class KeyZeroizedError(ElectionGuardError):
    """A secret key was used after it was zeroized"""
    pass


class DecryptionError(ElectionGuardError):
    """Plaintext could not be recovered from a ciphertext"""
    pass


class InvalidBallotError(ElectionGuardError):
    """Raised when ballot selections do not fit the election manifest"""
    pass


class SerializationError(ElectionGuardError):
    """Raised for malformed canonical bytes or object dictionaries"""
    pass
