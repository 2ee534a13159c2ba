#!/usr/bin/env python3
"""
In-Process Election Pipeline
============================
Runs the whole cryptographic life cycle of an election inside one process:

1. Key ceremony: every guardian generates its polynomial, commitments and
   proofs, encrypts a share to every guardian and combines the shares it
   receives into its key share.
2. Pre-voting data: hash chain, joint public key and H_E.
3. Ballot encryption and verification.
4. Homomorphic tally, decrypted with the joint secret reconstructed from a
   quorum of key shares.

Independent units (guardians, ballots) run on a ThreadPoolExecutor; each task
gets its own child CSRNG spawned from the pipeline's generator, so seeded runs
are reproducible regardless of scheduling.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import Any, Callable, Dict, List, Optional, Sequence

from errors import InvalidParameterError, ThresholdViolationError
from algebra.csprng import Csprng, CsprngBase, OsCsprng
from algebra.parameters import parameters_by_name
from ballot.ballot import BallotEncrypted
from ballot.pre_voting_data import PreVotingData
from config.config import SystemConfig
from election.manifest import ElectionManifest
from election.parameters import ElectionParameters, VaryingParameters
from elgamal.ciphertext import Ciphertext
from elgamal.discrete_log import DEFAULT_TABLE_BITS, DiscreteLog
from guardian.ceremony import GuardianPublicKey, GuardianSecretKey
from guardian.shares import GuardianEncryptedShare, GuardianSecretKeyShare, reconstruct_secret
from utils.utils import PerformanceMonitor

logger = logging.getLogger(__name__)


def random_selections(csprng: CsprngBase, manifest: ElectionManifest) -> List[List[int]]:
    """A valid random selection vector for every contest of the manifest"""
    ballot = []
    for contest in manifest.contests:
        vector = [0] * contest.num_options
        remaining = list(range(contest.num_options))
        for _ in range(csprng.next_biguint_lt(contest.selection_limit + 1)):
            vector[remaining.pop(csprng.next_biguint_lt(len(remaining)))] = 1
        ballot.append(vector)
    return ballot


class ElectionPipeline:
    """Key ceremony, ballot encryption, verification and tally for one election"""

    def __init__(
        self,
        election_parameters: ElectionParameters,
        manifest: ElectionManifest,
        csprng: Optional[CsprngBase] = None,
        max_workers: int = 4,
        dlog_table_bits: int = DEFAULT_TABLE_BITS,
        monitor: Optional[PerformanceMonitor] = None
    ):
        if max_workers < 1:
            raise InvalidParameterError("max_workers must be positive")

        self.election_parameters = election_parameters
        self.manifest = manifest
        self.csprng = csprng if csprng is not None else OsCsprng()
        self.max_workers = max_workers
        self.dlog_table_bits = dlog_table_bits
        self.monitor = monitor

        self.guardian_secret_keys: List[GuardianSecretKey] = []
        self.guardian_public_keys: List[GuardianPublicKey] = []
        self.encrypted_shares: Dict[int, List[GuardianEncryptedShare]] = {}
        self.key_shares: Dict[int, GuardianSecretKeyShare] = {}
        self.pre_voting_data: Optional[PreVotingData] = None

        logger.info(
            f"Election pipeline for '{manifest.label}' with n={election_parameters.n}, "
            f"k={election_parameters.k}, parameters '{election_parameters.fixed_parameters.name}'")

    @classmethod
    def from_config(cls, config: SystemConfig, manifest: ElectionManifest,
                    monitor: Optional[PerformanceMonitor] = None) -> 'ElectionPipeline':
        fixed_parameters = parameters_by_name(config.crypto.parameters)
        varying = VaryingParameters(n=config.election.num_guardians, k=config.election.quorum,
                                    date=config.election.date, info=config.election.info)
        if config.crypto.csprng_seed is not None:
            csprng = Csprng(config.crypto.csprng_seed, config.crypto.max_rejection_attempts)
        else:
            csprng = OsCsprng(config.crypto.max_rejection_attempts)
        return cls(ElectionParameters(fixed_parameters, varying), manifest, csprng,
                   max_workers=config.crypto.max_workers,
                   dlog_table_bits=config.crypto.dlog_table_bits,
                   monitor=monitor)

    def _measure(self, operation: str):
        if self.monitor is None:
            return nullcontext()
        return self.monitor.start_operation(operation)

    def _map(self, label: str, func: Callable[[CsprngBase, Any], Any], items: Sequence[Any]) -> List[Any]:
        """Run func over items in the pool, one spawned CSRNG per item, preserving order"""
        # Spawn in submission order so results do not depend on scheduling
        csprngs = [self.csprng.spawn(f"{label}-{n}") for n in range(len(items))]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(func, rng, item) for rng, item in zip(csprngs, items)]
            return [future.result() for future in futures]

    # ------------------------------------------------------------------
    # Key ceremony
    # ------------------------------------------------------------------

    def run_key_ceremony(self) -> PreVotingData:
        params = self.election_parameters
        indices = list(params.varying_parameters.guardian_indices())

        with self._measure("guardian_generation"):
            self.guardian_secret_keys = self._map(
                "guardian",
                lambda rng, i: GuardianSecretKey.generate(rng, params, i),
                indices)
            self.guardian_public_keys = [sk.make_public_key() for sk in self.guardian_secret_keys]

        with self._measure("share_encryption"):
            def encrypt_all(rng: CsprngBase, dealer: GuardianSecretKey) -> List[GuardianEncryptedShare]:
                return [GuardianEncryptedShare.encrypt(rng, params, dealer, recipient).ciphertext
                        for recipient in self.guardian_public_keys]

            by_dealer = self._map("shares", encrypt_all, self.guardian_secret_keys)
            self.encrypted_shares = {
                recipient: [shares[recipient - 1] for shares in by_dealer]
                for recipient in indices
            }

        with self._measure("key_share_combination"):
            key_shares = self._map(
                "key-share",
                lambda rng, sk: GuardianSecretKeyShare.compute(
                    params, self.guardian_public_keys, self.encrypted_shares[sk.i], sk),
                self.guardian_secret_keys)
            self.key_shares = {share.i: share for share in key_shares}

        with self._measure("pre_voting_data"):
            self.pre_voting_data = PreVotingData.compute(params, self.manifest, self.guardian_public_keys)

        logger.info(f"Key ceremony complete, H_E={self.pre_voting_data.h_e}")
        return self.pre_voting_data

    def _require_ceremony(self) -> PreVotingData:
        if self.pre_voting_data is None:
            raise InvalidParameterError("The key ceremony has not been run")
        return self.pre_voting_data

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    def encrypt_ballots(self, selections: Sequence[Sequence[Sequence[int]]],
                        ballot_aux: bytes = b"") -> List[BallotEncrypted]:
        """Encrypt one ballot per entry; each entry holds one selection vector per contest"""
        pvd = self._require_ceremony()
        with self._measure("ballot_encryption"):
            ballots = self._map(
                "ballot",
                lambda rng, ballot_selections: BallotEncrypted.new(pvd, rng, ballot_selections, ballot_aux),
                list(selections))
        logger.info(f"Encrypted {len(ballots)} ballots")
        return ballots

    def verify_ballots(self, ballots: Sequence[BallotEncrypted]):
        """Raise on the first ballot that does not verify"""
        pvd = self._require_ceremony()
        with self._measure("ballot_verification"):
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                for future in [executor.submit(ballot.verify, pvd) for ballot in ballots]:
                    future.result()
        logger.info(f"Verified {len(ballots)} ballots")

    # ------------------------------------------------------------------
    # Tally
    # ------------------------------------------------------------------

    def tally(self, ballots: Sequence[BallotEncrypted]) -> List[List[Ciphertext]]:
        """Per contest, per option: the product of all ballots' ciphertexts"""
        pvd = self._require_ceremony()
        fixed_parameters = pvd.fixed_parameters
        totals = []
        for contest_position, contest in enumerate(self.manifest.contests):
            totals.append([
                Ciphertext.sum((b.contests[contest_position].selection[option] for b in ballots),
                               fixed_parameters).without_nonce()
                for option in range(contest.num_options)
            ])
        return totals

    def decrypt_tally(self, encrypted_tally: Sequence[Sequence[Ciphertext]],
                      quorum: Optional[Sequence[int]] = None) -> List[List[int]]:
        """Decrypt with the joint secret reconstructed from the key shares of `quorum`"""
        pvd = self._require_ceremony()
        fixed_parameters = pvd.fixed_parameters
        if quorum is None:
            quorum = sorted(self.key_shares)[:self.election_parameters.k]
        if len(quorum) < self.election_parameters.k:
            raise ThresholdViolationError(
                f"Need {self.election_parameters.k} guardians to decrypt, got {len(quorum)}")

        with self._measure("tally_decryption"):
            secret = reconstruct_secret(
                [(i, self.key_shares[i].p_i) for i in quorum],
                fixed_parameters.field, self.election_parameters.k)
            dlog = DiscreteLog(pvd.public_key, fixed_parameters.group, self.dlog_table_bits)
            results = [[c.decrypt_with_dlog(fixed_parameters, secret, dlog) for c in contest]
                       for contest in encrypted_tally]

        logger.info(f"Decrypted tally with guardians {list(quorum)}")
        return results

    def run(self, selections: Sequence[Sequence[Sequence[int]]],
            ballot_aux: bytes = b"") -> Dict[str, Any]:
        """Full pipeline; returns a results dictionary suitable for save_results"""
        pvd = self.run_key_ceremony()
        ballots = self.encrypt_ballots(selections, ballot_aux)
        self.verify_ballots(ballots)
        counts = self.decrypt_tally(self.tally(ballots))

        results = {
            'election': {
                'label': self.manifest.label,
                'parameters': pvd.fixed_parameters.name,
                'num_guardians': self.election_parameters.n,
                'quorum': self.election_parameters.k,
                'num_ballots': len(ballots),
            },
            'hashes': {
                'h_p': str(pvd.hashes.h_p),
                'h_m': str(pvd.hashes.h_m),
                'h_b': str(pvd.hashes.h_b),
                'h_e': str(pvd.h_e),
            },
            'joint_public_key': pvd.joint_public_key.to_dict(),
            'confirmation_codes': [str(b.confirmation_code) for b in ballots],
            'tally': {contest.label: contest_counts
                      for contest, contest_counts in zip(self.manifest.contests, counts)},
            'integrity_checks': {'ballots_verified': True},
        }
        if self.monitor is not None:
            results['performance_metrics'] = self.monitor.get_summary()
        return results
