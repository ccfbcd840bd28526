"""Safe-prime group parameters and ElGamal key pairs.

The election key custodian holds a `PrivateKey`; everybody else only ever
sees the `PublicKey`. A private key *contains* its public key instead of
extending it, so code that expects a public key cannot be handed decryption
capability by accident.

All sampling takes an optional ``randfunc(n) -> bytes`` (the pycryptodome
convention). Pass a seeded source in tests to get reproducible groups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from Crypto.Util import number

from .errors import GroupInvariantViolation

logger = logging.getLogger(__name__)

RandFunc = Callable[[int], bytes]

# Miller-Rabin error bound used for both p and q
PRIME_FALSE_POSITIVE_PROB = 1e-30


@dataclass(frozen=True)
class GroupParameters:
    """Safe-prime group params

    Attributes
    - prime_p: safe prime modulus, p = 2q + 1
    - prime_q: Sophie-Germain prime, order of the subgroup generated by g
    - generator: element of order q in Z_p*
    """

    prime_p: int
    prime_q: int
    generator: int

    def validate(self) -> "GroupParameters":
        """Check the group invariants, raise GroupInvariantViolation otherwise"""

        p, q, g = self.prime_p, self.prime_q, self.generator
        get_cofactor(p, q)
        if g in (0, 1) or not 0 < g < p:
            raise GroupInvariantViolation(f"Invalid: generator {g} is not in [2, p-1]")
        if pow(g, q, p) != 1:
            raise GroupInvariantViolation("Invalid: generator does not have order q")
        return self

    def contains(self, element: int) -> bool:
        """True if element lies in the order-q subgroup"""

        return 0 < element < self.prime_p and pow(element, self.prime_q, self.prime_p) == 1


@dataclass(frozen=True)
class PublicKey:
    """ElGamal public key

    Attributes
    - group: the group parameters
    - h: public component h = g^x mod p
    """

    group: GroupParameters
    h: int


@dataclass(frozen=True)
class PrivateKey:
    """ElGamal private key

    Owns the matching public key; the secret scalar is never printed.
    """

    public_key: PublicKey
    x: int = field(repr=False)

    @property
    def group(self) -> GroupParameters:
        return self.public_key.group


@dataclass(frozen=True)
class KeyPair:
    public_key: PublicKey
    private_key: PrivateKey

    def __post_init__(self):
        group = self.public_key.group
        group.validate()
        if self.private_key.public_key != self.public_key:
            raise GroupInvariantViolation("Private key belongs to a different public key")
        if pow(group.generator, self.private_key.x, group.prime_p) != self.public_key.h:
            raise GroupInvariantViolation("Invalid: public value is not g^x mod p")

    @classmethod
    def from_values(cls, prime_p: int, prime_q: int, generator: int, h: int, x: int) -> "KeyPair":
        """Rebuild a key pair from stored integers (e.g. read from the database)"""

        public_key = PublicKey(GroupParameters(prime_p, prime_q, generator), h)
        return cls(public_key, PrivateKey(public_key, x))


def get_cofactor(p: int, q: int) -> int:
    """Return j = (p-1)/q

    j must divide p-1 exactly and be even. Both are invariants of a correctly
    chosen (p, q); a violation is a programming error and is not retried.
    """

    if q <= 0 or (p - 1) % q != 0:
        raise GroupInvariantViolation("Invalid: (p - 1) is not divisible by q")
    j = (p - 1) // q
    if j % 2 != 0:
        raise GroupInvariantViolation("Invalid: cofactor j is not even")
    return j


def find_safe_prime(bits: int, randfunc: Optional[RandFunc] = None) -> int:
    """Sample primes of the given bit length until (p-1)/2 is prime as well

    Unbounded; callers that give up simply abandon the search.
    """

    attempts = 0
    while True:
        attempts += 1
        p = number.getPrime(bits, randfunc=randfunc)
        if number.isPrime((p - 1) // 2, PRIME_FALSE_POSITIVE_PROB, randfunc=randfunc):
            logger.debug("found %d-bit safe prime after %d candidates", bits, attempts)
            return p


def get_generator_for_primes(p: int, q: int, randfunc: Optional[RandFunc] = None) -> int:
    """Find a generator of the order-q subgroup of Z_p*

    g = h^j mod p for random h in [1, p-1], resampled until g > 1.
    """

    j = get_cofactor(p, q)
    while True:
        h = number.getRandomRange(1, p, randfunc=randfunc)
        g = pow(h, j, p)
        if g > 1:
            return g


def generate_group(bits: int = 2048, randfunc: Optional[RandFunc] = None) -> GroupParameters:
    p = find_safe_prime(bits, randfunc)
    q = (p - 1) // 2
    g = get_generator_for_primes(p, q, randfunc)
    return GroupParameters(prime_p=p, prime_q=q, generator=g).validate()


def generate_key_pair(bits: int = 2048, randfunc: Optional[RandFunc] = None) -> KeyPair:
    """Generate a fresh group and an ElGamal key pair over it

    The secret scalar is drawn from [1, p-1]; draws that are 0 mod q would
    give h = 1 and are resampled.
    """

    if bits < 8:
        raise ValueError("bits must be at least 8")

    group = generate_group(bits, randfunc)
    p, q, g = group.prime_p, group.prime_q, group.generator

    x = number.getRandomRange(1, p, randfunc=randfunc)
    while x % q == 0:
        x = number.getRandomRange(1, p, randfunc=randfunc)

    public_key = PublicKey(group=group, h=pow(g, x, p))
    logger.info("generated %d-bit election key pair", p.bit_length())
    return KeyPair(public_key=public_key, private_key=PrivateKey(public_key=public_key, x=x))
