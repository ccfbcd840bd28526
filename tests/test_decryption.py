import threading

import pytest

from ballot_box import decryption as decryption_module
from ballot_box.decryption import SectionDecryption, build_lookup_table, decrypt_section
from ballot_box.encryption import encrypt_section
from ballot_box.errors import (
    GroupInvariantViolation,
    InconsistentSectionShape,
    LookupMiss,
    LookupTableNotInitialized,
    ProofVerificationFailure,
)
from ballot_box.group import PrivateKey
from ballot_box.verification import verify_decryption

from conftest import CANDIDATE_1, CANDIDATE_2, CANDIDATE_3, make_vote


@pytest.fixture
def encrypted_section(public_key, randfunc):
    plain = {
        "votes": [
            make_vote(CANDIDATE_2),
            make_vote(CANDIDATE_1),
            make_vote(CANDIDATE_2),
            make_vote("noVote"),
        ]
    }
    return encrypt_section(plain, "section-1", public_key, randfunc)


def test_decrypt_section_counts(private_key, encrypted_section):
    decryption = SectionDecryption(private_key)
    decryption.calculate_lookup_table(4)
    result = decryption.decrypt_section(encrypted_section, "section-1")

    assert result.section_id == "section-1"
    assert result.candidate_results == {CANDIDATE_1: 1, CANDIDATE_2: 2, CANDIDATE_3: 0}
    assert result.no_vote_count == 1
    assert result.invalid_count == 0
    assert result.to_dict() == {
        "sectionId": "section-1",
        "candidateResults": {CANDIDATE_1: 1, CANDIDATE_2: 2, CANDIDATE_3: 0},
        "noVoteCount": 1,
        "invalidCount": 0,
    }


def test_larger_table_is_reused(private_key, encrypted_section):
    decryption = SectionDecryption(private_key)
    decryption.calculate_lookup_table(100)
    result = decryption.decrypt_section(encrypted_section, "section-1")
    assert result.candidate_results[CANDIDATE_2] == 2


def test_one_shot_decrypt_with_proofs(public_key, private_key, encrypted_section):
    result = decrypt_section(encrypted_section, "section-1", private_key, with_proofs=True)
    assert result.no_vote_count == 1
    assert set(result.proofs) == {CANDIDATE_1, CANDIDATE_2, CANDIDATE_3, "noVote", "invalid"}
    assert set(result.to_dict()["proofs"][CANDIDATE_1]) == {
        "commitment1",
        "commitment2",
        "challenge",
        "response",
    }

    # the proof for candidate 2 shows the aggregate decrypts to g^2
    group = public_key.group
    votes = encrypted_section["votes"]
    alpha, beta = 1, 1
    for vote in votes:
        alpha = alpha * vote[CANDIDATE_2]["alpha"] % group.prime_p
        beta = beta * vote[CANDIDATE_2]["beta"] % group.prime_p
    element = pow(group.generator, 2, group.prime_p)
    assert verify_decryption(public_key, (alpha, beta), element, result.proofs[CANDIDATE_2])


def test_decrypt_accepts_decimal_strings(private_key, encrypted_section):
    as_strings = {
        "votes": [
            {option: {k: str(v) for k, v in fields.items()} for option, fields in vote.items()}
            for vote in encrypted_section["votes"]
        ]
    }
    result = decrypt_section(as_strings, "section-1", private_key)
    assert result.candidate_results[CANDIDATE_1] == 1


def test_lookup_table_has_n_plus_one_distinct_entries(public_key):
    group = public_key.group
    table = build_lookup_table(group.generator, group.prime_p, 10)
    assert len(table) == 11
    assert sorted(table.values()) == list(range(11))
    assert table[1] == 0
    assert table[group.generator] == 1
    # cached per (g, p, n)
    assert build_lookup_table(group.generator, group.prime_p, 10) is table
    with pytest.raises(TypeError):
        table[1] = 5


def test_lookup_table_rejects_negative_size(private_key):
    with pytest.raises(ValueError, match="non-negative"):
        SectionDecryption(private_key).calculate_lookup_table(-1)


def test_decrypt_before_table_is_calculated(private_key, encrypted_section):
    with pytest.raises(LookupTableNotInitialized):
        SectionDecryption(private_key).decrypt_section(encrypted_section, "section-1")


def test_table_too_small(private_key, encrypted_section):
    decryption = SectionDecryption(private_key)
    decryption.calculate_lookup_table(2)
    with pytest.raises(LookupTableNotInitialized):
        decryption.decrypt_section(encrypted_section, "section-1")


def test_tampered_vote_fails_with_index(public_key, private_key, encrypted_section):
    group = public_key.group
    tampered = encrypted_section["votes"][2][CANDIDATE_1]
    tampered["beta"] = tampered["beta"] * group.generator % group.prime_p

    with pytest.raises(ProofVerificationFailure) as exc:
        decrypt_section(encrypted_section, "section-1", private_key)
    assert exc.value.vote_index == 2


def test_inconsistent_encrypted_section(private_key, encrypted_section):
    del encrypted_section["votes"][1]["invalid"]
    with pytest.raises(InconsistentSectionShape) as exc:
        decrypt_section(encrypted_section, "section-1", private_key)
    assert exc.value.vote_index == 1


def test_key_not_matching_its_public_key_is_rejected(public_key, private_key):
    wrong = PrivateKey(public_key=public_key, x=private_key.x + 1)
    with pytest.raises(GroupInvariantViolation):
        SectionDecryption(wrong)
    with pytest.raises(GroupInvariantViolation):
        decrypt_section({"votes": []}, "section-1", wrong)


def test_aggregate_outside_the_table_is_a_lookup_miss(
    monkeypatch, public_key, private_key, encrypted_section
):
    # p - 1 has order 2, so it is never g^t
    p = public_key.group.prime_p
    monkeypatch.setattr(decryption_module, "decrypt_to_element", lambda priv, c: p - 1)

    with pytest.raises(LookupMiss) as exc:
        decrypt_section(encrypted_section, "section-1", private_key)
    assert exc.value.option is not None


def test_only_the_largest_table_is_held(private_key):
    decryption = SectionDecryption(private_key)
    for n in range(1, 200):
        decryption.calculate_lookup_table(n)
    decryption.calculate_lookup_table(5)

    assert decryption.lookup_table_for(0).max_votes == 199
    assert decryption.lookup_table_for(199) is decryption.lookup_table_for(3)
    assert build_lookup_table.cache_info().currsize <= 32


def test_tables_can_grow_while_other_threads_decrypt(private_key, encrypted_section):
    decryption = SectionDecryption(private_key)
    decryption.calculate_lookup_table(4)
    errors = []
    done = threading.Event()

    def tally():
        while not done.is_set():
            try:
                result = decryption.decrypt_section(encrypted_section, "section-1")
                assert result.candidate_results[CANDIDATE_2] == 2
                decryption.lookup_table_for(0)
            except Exception as e:
                errors.append(repr(e))
                return

    readers = [threading.Thread(target=tally) for _ in range(2)]
    for t in readers:
        t.start()
    for n in range(5, 1000):
        decryption.calculate_lookup_table(n)
    done.set()
    for t in readers:
        t.join()

    assert errors == []
    assert decryption.lookup_table_for(0).max_votes == 999


def test_section_decryption_needs_a_private_key(public_key):
    with pytest.raises(TypeError):
        SectionDecryption(public_key)
