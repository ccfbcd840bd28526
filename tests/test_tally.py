from ballot_box.decryption import DecryptedSection
from ballot_box.tally import aggregate_results, check_candidate_limits, check_invalid_votes

from conftest import CANDIDATE_1, CANDIDATE_2


def _section(c1, c2, no_vote=0, invalid=0):
    return DecryptedSection(
        section_id="s",
        candidate_results={CANDIDATE_1: c1, CANDIDATE_2: c2},
        no_vote_count=no_vote,
        invalid_count=invalid,
    )


def test_invalid_votes_all_or_nothing():
    assert check_invalid_votes(_section(1, 1), 2)
    assert check_invalid_votes(_section(0, 0, invalid=2), 2)
    assert not check_invalid_votes(_section(1, 0, invalid=1), 2)


def test_candidate_limits():
    assert check_candidate_limits(_section(2, 1), 2)
    assert not check_candidate_limits(_section(3, 0), 2)


def test_aggregate_results_drops_no_votes():
    tally = aggregate_results([_section(1, 2, no_vote=1), _section(0, 1, invalid=1)])
    assert tally.total_votes_per_candidate == {CANDIDATE_1: 1, CANDIDATE_2: 3}
    assert tally.total_invalid_count == 1
