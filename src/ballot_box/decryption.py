"""Tally encrypted sections without decrypting individual votes.

Each vote's proof is checked first. The ciphertexts of every option are then
multiplied together, the product is decrypted to g^t, and t is read back from
a precomputed lookup table. Because every option of every vote is 0 or 1,
t never exceeds the number of votes, so the table stays small.
"""

import logging
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import (
    GroupInvariantViolation,
    LookupMiss,
    LookupTableNotInitialized,
    MalformedVoteShape,
    ProofVerificationFailure,
)
from .group import PrivateKey
from .secrecy import Ciphertext, aggregate_votes, decrypt_to_element
from .utils import INVALID, NO_VOTE, extract_candidate_ids
from .verification import ProofTranscript, prove_decryption, verify_vote_proof
from .wire import parse_int

logger = logging.getLogger(__name__)


class LookupTable(Mapping):
    """Read-only map g^t mod p -> t for t in [0, max_votes]"""

    def __init__(self, generator: int, prime_p: int, max_votes: int):
        table: Dict[int, int] = {}
        encoded = 1
        for t in range(max_votes + 1):
            table[encoded] = t
            encoded = (encoded * generator) % prime_p
        self.generator = generator
        self.prime_p = prime_p
        self.max_votes = max_votes
        self._table = MappingProxyType(table)

    def __getitem__(self, element: int) -> int:
        return self._table[element]

    def __iter__(self) -> Iterator[int]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)


@lru_cache(maxsize=32)
def build_lookup_table(generator: int, prime_p: int, max_votes: int) -> LookupTable:
    """Build (or fetch the cached) lookup table for (g, p, max_votes)"""

    if isinstance(max_votes, bool) or not isinstance(max_votes, int) or max_votes < 0:
        raise ValueError("maxVotes must be a non-negative integer")
    logger.debug("building lookup table for up to %d votes", max_votes)
    return LookupTable(generator, prime_p, max_votes)


@dataclass
class DecryptedSection:
    """Plaintext counts of one section

    Attributes
    - section_id: id of the section
    - candidate_results: candidate id -> count (every candidate, zeros included)
    - no_vote_count: votes cast as noVote
    - invalid_count: votes cast as invalid
    - proofs: option key -> decryption proof, only when requested
    """

    section_id: str
    candidate_results: Dict[str, int] = field(default_factory=dict)
    no_vote_count: int = 0
    invalid_count: int = 0
    proofs: Dict[str, ProofTranscript] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sectionId": self.section_id,
            "candidateResults": dict(self.candidate_results),
            "noVoteCount": self.no_vote_count,
            "invalidCount": self.invalid_count,
        }
        if self.proofs:
            out["proofs"] = {
                option: {
                    "commitment1": str(proof.commitment[0]),
                    "commitment2": str(proof.commitment[1]),
                    "challenge": str(proof.challenge),
                    "response": str(proof.response),
                }
                for option, proof in self.proofs.items()
            }
        return out


def _read_vote(
    vote: Mapping[str, Any], candidate_ids: List[str]
) -> Tuple[List[Ciphertext], List[ProofTranscript]]:
    """Pull ciphertexts and proof transcripts out of one encrypted vote, in option order"""

    ciphertexts: List[Ciphertext] = []
    proofs: List[ProofTranscript] = []
    for candidate_id in candidate_ids:
        data = vote[candidate_id]
        if not isinstance(data, Mapping):
            raise MalformedVoteShape(f"encrypted value for '{candidate_id}' must be an object")
        ciphertexts.append((parse_int(data, "alpha"), parse_int(data, "beta")))
        proofs.append(
            ProofTranscript(
                commitment=(parse_int(data, "commitment1"), parse_int(data, "commitment2")),
                challenge=parse_int(data, "challenge"),
                response=parse_int(data, "response"),
            )
        )
    return ciphertexts, proofs


class SectionDecryption:
    """Decrypt sections with the election private key

    Call calculate_lookup_table(n) before decrypting a section of n votes.
    Only the largest table calculated so far is held; it covers every
    smaller section too. Safe to share between threads.
    """

    def __init__(self, private_key: PrivateKey):
        if not isinstance(private_key, PrivateKey):
            raise TypeError(f"expected a PrivateKey, got {type(private_key).__name__}")
        group = private_key.group
        if pow(group.generator, private_key.x, group.prime_p) != private_key.public_key.h:
            raise GroupInvariantViolation("Invalid: private key does not match its public key")
        self.private_key = private_key
        self._table: Optional[LookupTable] = None
        self._lock = threading.Lock()

    def calculate_lookup_table(self, max_votes: int) -> LookupTable:
        group = self.private_key.group
        table = build_lookup_table(group.generator, group.prime_p, max_votes)
        with self._lock:
            if self._table is None or table.max_votes > self._table.max_votes:
                self._table = table
        return table

    def lookup_table_for(self, vote_count: int) -> LookupTable:
        """The held table, if it covers vote_count votes"""

        with self._lock:
            table = self._table
        if table is None or table.max_votes < vote_count:
            raise LookupTableNotInitialized(
                "Lookup table not initialized. Call calculate_lookup_table() first."
            )
        return table

    def decrypt_section(
        self, encrypted_section: Mapping[str, Any], section_id: str, with_proofs: bool = False
    ) -> DecryptedSection:
        """Verify, aggregate and decrypt one section

        Raises
        - LookupTableNotInitialized: no table calculated for this many votes
        - InconsistentSectionShape: votes disagree on their options
        - ProofVerificationFailure: a vote's proof does not verify
        - LookupMiss: an aggregate decrypts outside [0, n]
        """

        if self._table is None:
            raise LookupTableNotInitialized(
                "Lookup table not initialized. Call calculate_lookup_table() first."
            )

        candidate_ids = extract_candidate_ids(encrypted_section)
        votes = encrypted_section["votes"]
        table = self.lookup_table_for(len(votes))
        pub = self.private_key.public_key

        all_ciphertexts: List[List[Ciphertext]] = []
        for index, vote in enumerate(votes):
            ciphertexts, proofs = _read_vote(vote, candidate_ids)
            if not verify_vote_proof(pub, ciphertexts, proofs):
                raise ProofVerificationFailure(
                    f"Failed to verify vote at index {index} in section {section_id}.",
                    vote_index=index,
                )
            all_ciphertexts.append(ciphertexts)

        aggregated = aggregate_votes(all_ciphertexts, pub.group.prime_p)

        result = DecryptedSection(section_id=section_id)
        for candidate_id, ciphertext in zip(candidate_ids, aggregated):
            if with_proofs:
                element, proof = prove_decryption(self.private_key, ciphertext)
                result.proofs[candidate_id] = proof
            else:
                element = decrypt_to_element(self.private_key, ciphertext)

            count: Optional[int] = table.get(element)
            if count is None or count > len(votes):
                logger.error(
                    "lookup miss for option %s in section %s (%d votes)",
                    candidate_id,
                    section_id,
                    len(votes),
                )
                raise LookupMiss(
                    f"Unable to decode encoded sum for option {candidate_id}. "
                    "Wrong key, tampered ciphertext or lookup table too small.",
                    option=candidate_id,
                )

            if candidate_id == NO_VOTE:
                result.no_vote_count = count
            elif candidate_id == INVALID:
                result.invalid_count = count
            else:
                result.candidate_results[candidate_id] = count

        logger.info("decrypted section %s (%d votes)", section_id, len(votes))
        return result


def decrypt_section(
    encrypted_section: Mapping[str, Any],
    section_id: str,
    private_key: PrivateKey,
    with_proofs: bool = False,
) -> DecryptedSection:
    """One-shot decryption: builds the lookup table for exactly this section"""

    decryption = SectionDecryption(private_key)
    decryption.calculate_lookup_table(len(encrypted_section.get("votes") or []))
    return decryption.decrypt_section(encrypted_section, section_id, with_proofs=with_proofs)
