import os
import random
import sys

import pytest


# Ensure repository src directory is on sys.path for tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from ballot_box.group import generate_key_pair  # noqa: E402

# small groups keep the safe-prime search fast; never use these sizes for real
TEST_KEY_BITS = 64

CANDIDATE_1 = "1b4e28ba-2fa1-11d2-883f-0016d3cca427"
CANDIDATE_2 = "6fa459ea-ee8a-3ca4-894e-db77e160355e"
CANDIDATE_3 = "886313e1-3b8a-5372-9b90-0c9aee199e5d"
CANDIDATES = (CANDIDATE_1, CANDIDATE_2, CANDIDATE_3)


@pytest.fixture
def randfunc():
    return random.Random(42).randbytes


@pytest.fixture(scope="session")
def key_pair():
    return generate_key_pair(TEST_KEY_BITS, randfunc=random.Random(1234).randbytes)


@pytest.fixture(scope="session")
def other_key_pair():
    return generate_key_pair(TEST_KEY_BITS, randfunc=random.Random(5678).randbytes)


@pytest.fixture
def public_key(key_pair):
    return key_pair.public_key


@pytest.fixture
def private_key(key_pair):
    return key_pair.private_key


def make_vote(choice, candidates=CANDIDATES):
    """Plaintext one-hot vote selecting `choice` (a candidate, "noVote" or "invalid")"""
    vote = {cid: 0 for cid in candidates}
    vote["noVote"] = 0
    vote["invalid"] = 0
    vote[choice] = 1
    return vote
