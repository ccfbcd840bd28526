import pytest

from ballot_box.errors import InconsistentSectionShape, MalformedVoteShape
from ballot_box.utils import extract_candidate_ids, validate_plain_vote

from conftest import CANDIDATE_1, CANDIDATE_2, CANDIDATES, make_vote


def test_candidate_ids_are_sorted_and_stable():
    section = {"votes": [make_vote(CANDIDATE_2), make_vote("noVote")]}
    ids = extract_candidate_ids(section)
    assert ids == sorted([*CANDIDATES, "noVote", "invalid"])


def test_second_vote_with_different_count_names_index_and_kind():
    extra = make_vote(CANDIDATE_1)
    extra["someone-else"] = 0
    section = {"votes": [make_vote(CANDIDATE_1), extra]}

    with pytest.raises(InconsistentSectionShape) as exc:
        extract_candidate_ids(section)
    assert exc.value.vote_index == 1
    assert exc.value.kind == "count"
    assert "index 1" in str(exc.value)


def test_second_vote_with_different_ids_names_index_and_kind():
    other = make_vote(CANDIDATE_1, candidates=(CANDIDATE_1, CANDIDATE_2, "someone-else"))
    section = {"votes": [make_vote(CANDIDATE_1), make_vote(CANDIDATE_2), other]}

    with pytest.raises(InconsistentSectionShape) as exc:
        extract_candidate_ids(section)
    assert exc.value.vote_index == 2
    assert exc.value.kind == "identity"


def test_empty_section():
    with pytest.raises(InconsistentSectionShape) as exc:
        extract_candidate_ids({"votes": []})
    assert exc.value.kind == "empty"


def test_validate_plain_vote_accepts_one_hot():
    assert validate_plain_vote(make_vote("invalid")) == len(CANDIDATES)


@pytest.mark.parametrize(
    "vote",
    [
        {CANDIDATE_1: 1, "noVote": 0},  # invalid option missing
        {"noVote": 1, "invalid": 0},  # no candidates
        {CANDIDATE_1: 1, CANDIDATE_2: 1, "noVote": 0, "invalid": 0},
        {CANDIDATE_1: 0, CANDIDATE_2: 0, "noVote": 0, "invalid": 0},
        {CANDIDATE_1: 2, "noVote": 0, "invalid": 0},
        {CANDIDATE_1: True, "noVote": 0, "invalid": 0},
        {CANDIDATE_1: 1.0, "noVote": 0, "invalid": 0},
        [1, 0, 0],
    ],
)
def test_validate_plain_vote_rejects(vote):
    with pytest.raises(MalformedVoteShape):
        validate_plain_vote(vote)
