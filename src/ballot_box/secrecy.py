"""Exponential ElGamal over the election group.

A bit m is encrypted as (g^r, h^r * g^m). Because m sits in the exponent,
multiplying ciphertexts component-wise adds the plaintexts, which is what
lets a whole section be tallied without decrypting a single vote.
"""

from typing import List, Optional, Sequence, Tuple

from Crypto.Util import number

from .errors import LookupMiss
from .group import PrivateKey, PublicKey, RandFunc

Ciphertext = Tuple[int, int]


def require_public_key(pub) -> PublicKey:
    # a PrivateKey must never be usable in place of a PublicKey
    if not isinstance(pub, PublicKey):
        raise TypeError(f"expected a PublicKey, got {type(pub).__name__}")
    return pub


def rand_scalar(q: int, randfunc: Optional[RandFunc] = None) -> int:
    """Return a random scalar in [0, q-1]"""

    return number.getRandomRange(0, q, randfunc=randfunc)


def encrypt_bit(
    pub: PublicKey, m: int, r: Optional[int] = None, randfunc: Optional[RandFunc] = None
) -> Tuple[Ciphertext, int]:
    """Encrypt a 0/1 message using ElGamal exponent encoding

    Args
    - pub: public key
    - m: message in {0,1}
    - r: optional randomness (for testing); sampled uniformly in [0, q-1] if None
    - randfunc: optional byte source used when sampling r

    Returns: ((alpha, beta), r)
    """

    require_public_key(pub)
    if isinstance(m, bool) or m not in (0, 1):
        raise ValueError("This encryptor expects m in {0,1} (bit encoding).")
    group = pub.group
    p, g = group.prime_p, group.generator

    if r is None:
        r = rand_scalar(group.prime_q, randfunc)

    alpha = pow(g, r, p)
    beta = (pow(pub.h, r, p) * pow(g, m, p)) % p
    return (alpha, beta), r


def decrypt_to_element(priv: PrivateKey, c: Ciphertext) -> int:
    """Strip the mask from a (possibly aggregated) ciphertext

    Returns g^t mod p; turning that into t is the lookup table's job.
    """

    alpha, beta = c
    p = priv.group.prime_p
    s = pow(alpha, priv.x, p)
    return (beta * pow(s, -1, p)) % p


def decrypt_bit(priv: PrivateKey, c: Ciphertext) -> int:
    """Decrypt a single, non-aggregated ciphertext to its bit"""

    m_elem = decrypt_to_element(priv, c)
    if m_elem == 1:
        return 0
    if m_elem == priv.group.generator:
        return 1
    raise LookupMiss("Ciphertext does not decrypt to a valid bit.")


def ciphertext_mul(a: Ciphertext, b: Ciphertext, p: int) -> Ciphertext:
    """Homomorphic addition of two ciphertexts: Enc(m1) * Enc(m2) = Enc(m1 + m2)"""

    return (a[0] * b[0]) % p, (a[1] * b[1]) % p


def aggregate_ciphertexts(ciphertexts: Sequence[Ciphertext], p: int) -> Ciphertext:
    out = (1, 1)
    for c in ciphertexts:
        out = ciphertext_mul(out, c, p)
    return out


def aggregate_votes(votes: Sequence[Sequence[Ciphertext]], p: int) -> List[Ciphertext]:
    """Aggregate votes column by column

    Every vote is a list of ciphertexts in the same option order. Returns one
    aggregated ciphertext per option.
    """

    if not votes:
        raise ValueError("Aggregating zero votes.")

    choice_count = len(votes[0])
    for j, vote in enumerate(votes):
        if len(vote) != choice_count:
            raise ValueError(
                f"Invalid vote (index {j}): expected {choice_count} choices, found {len(vote)}"
            )

    return [aggregate_ciphertexts([vote[i] for vote in votes], p) for i in range(choice_count)]
