"""Encrypt plaintext ballot papers section by section.

Every option of every vote gets its own ciphertext under fresh randomness,
and every vote carries a disjunctive proof that it is one-hot. Vote order and
option keys are kept as they came in.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import MalformedVoteShape
from .group import PublicKey, RandFunc
from .secrecy import encrypt_bit, require_public_key
from .utils import extract_candidate_ids, validate_plain_vote
from .verification import prove_vote

logger = logging.getLogger(__name__)

EncryptedVote = Dict[str, Dict[str, int]]


def encrypt_vote(
    pub: PublicKey,
    vote: Dict[str, int],
    candidate_ids: List[str],
    randfunc: Optional[RandFunc] = None,
) -> EncryptedVote:
    """Encrypt one validated one-hot vote

    Args
    - pub: election public key
    - vote: option key -> 0/1
    - candidate_ids: canonical option order of the section

    Returns: option key -> {alpha, beta, commitment1, commitment2, challenge, response}
    """

    ciphertexts = []
    rands = []
    for candidate_id in candidate_ids:
        c, r = encrypt_bit(pub, vote[candidate_id], randfunc=randfunc)
        ciphertexts.append(c)
        rands.append(r)

    real_index = next(i for i, cid in enumerate(candidate_ids) if vote[cid] == 1)
    proofs = prove_vote(pub, ciphertexts, real_index, rands, randfunc=randfunc)

    record: EncryptedVote = {}
    for candidate_id, (alpha, beta), proof in zip(candidate_ids, ciphertexts, proofs):
        record[candidate_id] = {
            "alpha": alpha,
            "beta": beta,
            "commitment1": proof.commitment[0],
            "commitment2": proof.commitment[1],
            "challenge": proof.challenge,
            "response": proof.response,
        }
    return record


def encrypt_section(
    plain_section: Dict[str, Any],
    section_id: str,
    pub: PublicKey,
    randfunc: Optional[RandFunc] = None,
) -> Dict[str, Any]:
    """Encrypt every vote of a plaintext section

    Raises MalformedVoteShape for a vote that is not one-hot and
    InconsistentSectionShape when votes disagree on their options.
    """

    require_public_key(pub)
    if not isinstance(plain_section, dict) or not isinstance(plain_section.get("votes"), list):
        raise MalformedVoteShape(f"section {section_id} must hold a list of votes")
    votes = plain_section["votes"]
    for vote in votes:
        validate_plain_vote(vote)
    candidate_ids = extract_candidate_ids(plain_section)

    encrypted = [encrypt_vote(pub, vote, candidate_ids, randfunc) for vote in votes]
    logger.debug(
        "encrypted section %s: %d votes, %d options", section_id, len(votes), len(candidate_ids)
    )
    return {"sectionId": section_id, "votes": encrypted}


def encrypt_ballot_paper(
    plain_ballot_paper: Dict[str, Any], pub: PublicKey, randfunc: Optional[RandFunc] = None
) -> Dict[str, Any]:
    """Encrypt a whole ballot paper, one section at a time

    The ballot paper id and the section ids are carried over unchanged.
    """

    sections: Dict[str, Any] = {}
    for section_id, section in plain_ballot_paper["sections"].items():
        encrypted = encrypt_section(section, section_id, pub, randfunc)
        sections[section_id] = {"votes": encrypted["votes"]}

    return {"ballotPaperId": plain_ballot_paper["ballotPaperId"], "sections": sections}


class BallotPaperEncryption:
    """Encryption bound to one election public key"""

    def __init__(self, public_key: PublicKey, randfunc: Optional[RandFunc] = None):
        self.public_key = require_public_key(public_key)
        self.randfunc = randfunc

    def encrypt_section(self, plain_section: Dict[str, Any], section_id: str) -> Dict[str, Any]:
        return encrypt_section(plain_section, section_id, self.public_key, self.randfunc)

    def encrypt_ballot_paper(self, plain_ballot_paper: Dict[str, Any]) -> Dict[str, Any]:
        return encrypt_ballot_paper(plain_ballot_paper, self.public_key, self.randfunc)
