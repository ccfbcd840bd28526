"""Section shape helpers shared by the encryption and decryption paths."""

from typing import Any, Dict, List, Mapping

from .errors import InconsistentSectionShape, MalformedVoteShape

NO_VOTE = "noVote"
INVALID = "invalid"
DEFAULT_VOTE_OPTIONS = (NO_VOTE, INVALID)


def extract_candidate_ids(section: Mapping[str, Any]) -> List[str]:
    """Return the option keys of a section in canonical order

    The first vote's keys, sorted, are the reference; every other vote must
    have exactly the same key set. Works for plaintext and encrypted sections.
    """

    votes = section.get("votes") or []
    if not votes:
        raise InconsistentSectionShape("No votes found in section.", vote_index=0, kind="empty")

    candidate_ids = sorted(votes[0].keys())
    for i, vote in enumerate(votes[1:], start=1):
        keys = sorted(vote.keys())
        if len(keys) != len(candidate_ids):
            raise InconsistentSectionShape(
                f"Inconsistent vote structure at index {i}: different number of candidates.",
                vote_index=i,
                kind="count",
            )
        if keys != candidate_ids:
            raise InconsistentSectionShape(
                f"Inconsistent vote structure at index {i}: different candidateIds.",
                vote_index=i,
                kind="identity",
            )
    return candidate_ids


def validate_plain_vote(vote: Dict[str, int]) -> int:
    """Check a plaintext vote is one-hot over noVote, invalid and >= 1 candidate

    Returns the number of candidate keys.
    """

    if not isinstance(vote, dict):
        raise MalformedVoteShape("vote must be an object")
    for option in DEFAULT_VOTE_OPTIONS:
        if option not in vote:
            raise MalformedVoteShape(f"vote is missing the '{option}' option")

    candidates = [key for key in vote if key not in DEFAULT_VOTE_OPTIONS]
    if not candidates:
        raise MalformedVoteShape("vote has no candidate options")

    for key, value in vote.items():
        if isinstance(value, bool) or not isinstance(value, int) or value not in (0, 1):
            raise MalformedVoteShape(f"value for '{key}' must be 0 or 1, got {value!r}")

    selected = sum(vote.values())
    if selected != 1:
        raise MalformedVoteShape(f"exactly one option must be 1, found {selected}")
    return len(candidates)
