"""Non-interactive zero-knowledge proofs (Fiat-Shamir over SHA-256).

Vote proofs
-----------
A vote is a list of k ciphertexts, one per option, in canonical option
order. Its proof is a Chaum-Pedersen OR-proof with one branch per option;
branch i claims "this vote is the one-hot vector selecting option i". Each
option therefore carries exactly one transcript: a commitment pair, a
challenge and a response.

The k equalities behind branch i are folded into a single Diffie-Hellman
tuple with hash-derived weights w_j:

    A   = prod_j alpha_j ^ w_j                     = g ^ R
    B_i = prod_j (beta_j / g^[j == i]) ^ w_j       = h ^ R   (only if vote == e_i)

with R = sum_j w_j * r_j. The branch for the option the voter picked is
proven for real, the others are simulated by choosing challenge and response
first. The branch challenges must add up to the hash over the public key,
the ciphertexts and all commitments, so at most one branch can be simulated
away: a valid proof shows every option encrypts 0 or 1 and exactly one of
them encrypts 1, without revealing which.

Decryption proofs
-----------------
`prove_decryption` shows that an element was obtained as beta / alpha^x
with the x behind the public key h = g^x.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .group import PrivateKey, PublicKey, RandFunc
from .secrecy import Ciphertext, decrypt_to_element, rand_scalar, require_public_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofTranscript:
    """One Chaum-Pedersen transcript

    Attributes
    - commitment: (commitment1, commitment2)
    - challenge: branch challenge in [0, q-1]
    - response: branch response in [0, q-1]
    """

    commitment: Tuple[int, int]
    challenge: int
    response: int


def H_int(*elements, modulus: int) -> int:
    h = hashlib.sha256()
    for e in elements:
        h.update(str(e).encode())
        h.update(b"|")
    return int.from_bytes(h.digest(), "big") % modulus


def _flatten(ciphertexts: Sequence[Ciphertext]) -> List[int]:
    flat: List[int] = []
    for alpha, beta in ciphertexts:
        flat.extend([alpha, beta])
    return flat


def batch_weights(pub: PublicKey, ciphertexts: Sequence[Ciphertext]) -> List[int]:
    """Per-option weights bound to the public key and every ciphertext of the vote"""

    group = pub.group
    flat = _flatten(ciphertexts)
    return [
        H_int("weight", group.prime_p, group.generator, pub.h, *flat, j, modulus=group.prime_q)
        for j in range(len(ciphertexts))
    ]


def vote_challenge(
    pub: PublicKey, ciphertexts: Sequence[Ciphertext], commitments: Sequence[Tuple[int, int]]
) -> int:
    group = pub.group
    flat = _flatten(ciphertexts)
    for a, b in commitments:
        flat.extend([a, b])
    return H_int("vote", group.prime_p, group.generator, pub.h, *flat, modulus=group.prime_q)


def _batched_bases(
    pub: PublicKey, ciphertexts: Sequence[Ciphertext], weights: Sequence[int]
) -> Tuple[int, List[int]]:
    """Return A and the list of B_i, one per branch"""

    p, g = pub.group.prime_p, pub.group.generator
    big_a, beta_all = 1, 1
    for (alpha, beta), w in zip(ciphertexts, weights):
        big_a = (big_a * pow(alpha, w, p)) % p
        beta_all = (beta_all * pow(beta, w, p)) % p
    big_b = [(beta_all * pow(pow(g, w, p), -1, p)) % p for w in weights]
    return big_a, big_b


def prove_vote(
    pub: PublicKey,
    ciphertexts: Sequence[Ciphertext],
    real_index: int,
    randomness: Sequence[int],
    randfunc: Optional[RandFunc] = None,
) -> List[ProofTranscript]:
    """Build the disjunctive proof for one encrypted one-hot vote

    Args
    - pub: public key the ciphertexts were encrypted under
    - ciphertexts: the vote, one ciphertext per option in canonical order
    - real_index: position of the option that encrypts 1
    - randomness: encryption randomness r_j of every ciphertext
    - randfunc: optional byte source for the proof nonces

    Returns: one transcript per option
    """

    require_public_key(pub)
    k = len(ciphertexts)
    if not 0 <= real_index < k:
        raise ValueError("real_index is out of bounds")
    if len(randomness) != k:
        raise ValueError(f"expected {k} randomness values, found {len(randomness)}")

    group = pub.group
    p, q, g = group.prime_p, group.prime_q, group.generator

    weights = batch_weights(pub, ciphertexts)
    big_a, big_b = _batched_bases(pub, ciphertexts, weights)
    witness = sum(w * r for w, r in zip(weights, randomness)) % q

    commitments: List[Tuple[int, int]] = []
    challenges = [0] * k
    responses = [0] * k
    simulated_sum = 0
    t_real = 0
    for i in range(k):
        if i == real_index:
            t_real = rand_scalar(q, randfunc)
            commitments.append((pow(g, t_real, p), pow(pub.h, t_real, p)))
        else:
            # simulated branch: pick challenge and response, solve for the commitment
            c_sim = rand_scalar(q, randfunc)
            z_sim = rand_scalar(q, randfunc)
            a1 = (pow(g, z_sim, p) * pow(big_a, (q - c_sim) % q, p)) % p
            a2 = (pow(pub.h, z_sim, p) * pow(big_b[i], (q - c_sim) % q, p)) % p
            commitments.append((a1, a2))
            challenges[i] = c_sim
            responses[i] = z_sim
            simulated_sum = (simulated_sum + c_sim) % q

    c = vote_challenge(pub, ciphertexts, commitments)
    challenges[real_index] = (c - simulated_sum) % q
    responses[real_index] = (t_real + challenges[real_index] * witness) % q

    return [ProofTranscript(commitments[i], challenges[i], responses[i]) for i in range(k)]


def verify_vote_proof(
    pub: PublicKey, ciphertexts: Sequence[Ciphertext], proofs: Sequence[ProofTranscript]
) -> bool:
    """Check a disjunctive vote proof produced by prove_vote"""

    require_public_key(pub)
    group = pub.group
    p, q, g = group.prime_p, group.prime_q, group.generator

    if not ciphertexts:
        logger.warning("Empty vote: no ciphertexts to verify")
        return False
    if len(ciphertexts) != len(proofs):
        logger.warning(
            "Bad number of proofs (expected %d, found %d)", len(ciphertexts), len(proofs)
        )
        return False

    for index, (alpha, beta) in enumerate(ciphertexts):
        if not (group.contains(alpha) and group.contains(beta)):
            logger.warning("Ciphertext at index %d is not in the order-q subgroup", index)
            return False
    for index, proof in enumerate(proofs):
        if not (group.contains(proof.commitment[0]) and group.contains(proof.commitment[1])):
            logger.warning("Commitment at index %d is not in the order-q subgroup", index)
            return False
        if not (0 <= proof.challenge < q and 0 <= proof.response < q):
            logger.warning("Challenge or response at index %d out of range", index)
            return False

    expected = vote_challenge(pub, ciphertexts, [proof.commitment for proof in proofs])
    actual = sum(proof.challenge for proof in proofs) % q
    if expected != actual:
        logger.warning("Bad challenge sum for vote proof")
        return False

    weights = batch_weights(pub, ciphertexts)
    big_a, big_b = _batched_bases(pub, ciphertexts, weights)
    for i, proof in enumerate(proofs):
        a1, a2 = proof.commitment
        c, z = proof.challenge, proof.response
        if pow(g, z, p) != (a1 * pow(big_a, c, p)) % p:
            logger.warning("Branch %d: g^response != commitment1 * A^challenge", i)
            return False
        if pow(pub.h, z, p) != (a2 * pow(big_b[i], c, p)) % p:
            logger.warning("Branch %d: h^response != commitment2 * B^challenge", i)
            return False

    return True


## --- decryption proofs ---------------------------------------------------


def _decryption_challenge(
    pub: PublicKey, c: Ciphertext, element: int, commitment: Tuple[int, int]
) -> int:
    group = pub.group
    return H_int(
        "decryption",
        group.prime_p,
        group.generator,
        pub.h,
        c[0],
        c[1],
        element,
        commitment[0],
        commitment[1],
        modulus=group.prime_q,
    )


def prove_decryption(
    priv: PrivateKey, c: Ciphertext, randfunc: Optional[RandFunc] = None
) -> Tuple[int, ProofTranscript]:
    """Decrypt c to its group element and prove it was done with the right key

    Returns (element, proof) where the proof shows log_g(h) == log_alpha(beta / element).
    """

    pub = priv.public_key
    group = pub.group
    p, q = group.prime_p, group.prime_q

    element = decrypt_to_element(priv, c)
    w = rand_scalar(q, randfunc)
    commitment = (pow(group.generator, w, p), pow(c[0], w, p))
    challenge = _decryption_challenge(pub, c, element, commitment)
    response = (w + challenge * priv.x) % q
    return element, ProofTranscript(commitment, challenge, response)


def verify_decryption(pub: PublicKey, c: Ciphertext, element: int, proof: ProofTranscript) -> bool:
    require_public_key(pub)
    group = pub.group
    p = group.prime_p
    alpha, beta = c

    if not (group.contains(alpha) and group.contains(beta) and group.contains(element)):
        logger.warning("Decryption proof input is not in the order-q subgroup")
        return False

    if _decryption_challenge(pub, c, element, proof.commitment) != proof.challenge:
        logger.warning("Bad challenge for decryption proof")
        return False

    a1, a2 = proof.commitment
    if pow(group.generator, proof.response, p) != (a1 * pow(pub.h, proof.challenge, p)) % p:
        logger.warning("First check failed: g^response != commitment1 * h^challenge")
        return False

    shared = (beta * pow(element, -1, p)) % p
    if pow(alpha, proof.response, p) != (a2 * pow(shared, proof.challenge, p)) % p:
        logger.warning("Second check failed: alpha^response != commitment2 * (beta/m)^challenge")
        return False

    return True
