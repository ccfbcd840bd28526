"""Exception types raised by the ballot engine.

Input-shape problems (`MalformedVoteShape`, `InconsistentSectionShape`) are
caller errors and also subclass `ValueError`. Everything else aborts the
current operation: group parameters that break their invariants, votes whose
proofs do not verify and aggregates that fall outside the lookup table.
"""

from typing import Optional


class BallotBoxError(Exception):
    """Base class for every error raised by the ballot engine."""


class GroupInvariantViolation(BallotBoxError):
    """The (p, q, g) triple does not describe a valid safe-prime group."""


class MalformedVoteShape(BallotBoxError, ValueError):
    """A plaintext vote (or a wire value) does not have the expected shape."""


class InconsistentSectionShape(BallotBoxError, ValueError):
    """Votes of one section disagree on their option keys.

    Attributes
    - vote_index: index of the first offending vote
    - kind: "count", "identity" or "empty"
    """

    def __init__(self, message: str, vote_index: int, kind: str):
        super().__init__(message)
        self.vote_index = vote_index
        self.kind = kind


class ProofVerificationFailure(BallotBoxError):
    """The zero-knowledge proof attached to a vote does not verify."""

    def __init__(self, message: str, vote_index: Optional[int] = None):
        super().__init__(message)
        self.vote_index = vote_index


class LookupMiss(BallotBoxError):
    """A decrypted group element is not in the discrete-log lookup table."""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option


class LookupTableNotInitialized(BallotBoxError, RuntimeError):
    """No lookup table large enough for the section has been calculated."""


class ElectionNotFrozen(BallotBoxError, RuntimeError):
    """The election context has no key pair yet."""
