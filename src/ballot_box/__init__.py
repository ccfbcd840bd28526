"""Homomorphic ballot encryption and tallying over a safe-prime ElGamal group."""

from .config import ElectionContext, EngineConfig, configure_logging
from .decryption import DecryptedSection, SectionDecryption, build_lookup_table, decrypt_section
from .encryption import BallotPaperEncryption, encrypt_ballot_paper, encrypt_section
from .errors import (
    BallotBoxError,
    ElectionNotFrozen,
    GroupInvariantViolation,
    InconsistentSectionShape,
    LookupMiss,
    LookupTableNotInitialized,
    MalformedVoteShape,
    ProofVerificationFailure,
)
from .group import GroupParameters, KeyPair, PrivateKey, PublicKey, generate_key_pair
from .utils import extract_candidate_ids

__all__ = [
    "BallotBoxError",
    "BallotPaperEncryption",
    "DecryptedSection",
    "ElectionContext",
    "ElectionNotFrozen",
    "EngineConfig",
    "GroupInvariantViolation",
    "GroupParameters",
    "InconsistentSectionShape",
    "KeyPair",
    "LookupMiss",
    "LookupTableNotInitialized",
    "MalformedVoteShape",
    "PrivateKey",
    "ProofVerificationFailure",
    "PublicKey",
    "SectionDecryption",
    "build_lookup_table",
    "configure_logging",
    "decrypt_section",
    "encrypt_ballot_paper",
    "encrypt_section",
    "extract_candidate_ids",
    "generate_key_pair",
]
