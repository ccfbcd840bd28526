"""Plausibility checks and totals over decrypted sections.

A ballot paper is either marked invalid as a whole or not at all, and no
candidate may collect more votes than the section or ballot paper allows.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable

from .decryption import DecryptedSection


@dataclass
class BallotPaperTally:
    total_votes_per_candidate: Dict[str, int] = field(default_factory=dict)
    total_invalid_count: int = 0


def check_invalid_votes(result: DecryptedSection, vote_count: int) -> bool:
    """Either every vote in the section is invalid or none is"""

    return result.invalid_count in (0, vote_count)


def check_candidate_limits(result: DecryptedSection, max_votes_per_candidate: int) -> bool:
    return all(votes <= max_votes_per_candidate for votes in result.candidate_results.values())


def aggregate_results(results: Iterable[DecryptedSection]) -> BallotPaperTally:
    """Sum candidate and invalid counts over sections; noVote counts are dropped"""

    tally = BallotPaperTally()
    for result in results:
        for candidate_id, votes in result.candidate_results.items():
            tally.total_votes_per_candidate[candidate_id] = (
                tally.total_votes_per_candidate.get(candidate_id, 0) + votes
            )
        tally.total_invalid_count += result.invalid_count
    return tally
