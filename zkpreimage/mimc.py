"""
MiMC hash over the BN254 scalar field
=====================================

The one-way function the circuit encodes, computed natively.

**Permutation** (MiMC-7, key k, round constants c_0..c_{R-1}):

    x ← (x + k + c_i)^7      for i in 0..R-1
    E_k(x) = x + k

**Compression** (Miyaguchi-Preneel over field-element blocks):

    h_0 = 0
    h_{j+1} = E_{h_j}(m_j) + m_j

**Round constants**: c_0 = SHA3-256(SHA3-256(seed)), c_{i+1} = SHA3-256(c_i),
each read big-endian and reduced mod r.

**Blocks**: the input is cut into 32-byte big-endian blocks; a short final
block is left-padded with zeros, and empty input is one zero block, so a
value of at most 32 bytes (empty included) hashes as a single field element. This is what lets the one-input circuit match
``digest(secret)`` for any secret that fits the field.

Usage:
    >>> h = MiMC(seed="seed")
    >>> h.update(b"secret")
    >>> h.digest().hex()
    >>> digest(b"secret") == h.digest()  # True
"""

import hashlib
from functools import lru_cache

from zkpreimage.field import CURVE_ORDER, FIELD_BYTES

SEED = "seed"
ROUNDS = 91
EXPONENT = 7
BLOCK_SIZE = FIELD_BYTES


@lru_cache(maxsize=None)
def round_constants(seed=SEED, rounds=ROUNDS):
    rnd = hashlib.sha3_256(seed.encode()).digest()
    constants = []
    for _ in range(rounds):
        rnd = hashlib.sha3_256(rnd).digest()
        constants.append(int.from_bytes(rnd, "big") % CURVE_ORDER)
    return tuple(constants)


def encrypt(message, key, constants):
    x = message
    for c in constants:
        x = pow((x + key + c) % CURVE_ORDER, EXPONENT, CURVE_ORDER)
    return (x + key) % CURVE_ORDER


def to_blocks(data):
    """bytes → list of field elements (ints), 32-byte big-endian blocks."""
    if not data:
        return [0]
    q, r = divmod(len(data), BLOCK_SIZE)
    if r:
        data = data[:q * BLOCK_SIZE] + b"\x00" * (BLOCK_SIZE - r) + data[q * BLOCK_SIZE:]
    return [
        int.from_bytes(data[i:i + BLOCK_SIZE], "big") % CURVE_ORDER
        for i in range(0, len(data), BLOCK_SIZE)
    ]


def hash_elements(elements, seed=SEED, rounds=ROUNDS):
    constants = round_constants(seed, rounds)
    h = 0
    for m in elements:
        h = (encrypt(m, h, constants) + m) % CURVE_ORDER
    return h


class MiMC:
    """hashlib-style MiMC hasher.

    Attributes:
        seed: round-constant seed
        rounds: number of rounds
    """

    digest_size = FIELD_BYTES
    block_size = BLOCK_SIZE

    def __init__(self, seed=SEED, rounds=ROUNDS):
        self.seed = seed
        self.rounds = rounds
        self._data = bytearray()

    def update(self, data):
        self._data.extend(data)

    def reset(self):
        self._data = bytearray()

    def sum_element(self):
        return hash_elements(to_blocks(bytes(self._data)), self.seed, self.rounds)

    def digest(self):
        return self.sum_element().to_bytes(FIELD_BYTES, "big")

    def hexdigest(self):
        return self.digest().hex()


def digest(data, seed=SEED, rounds=ROUNDS):
    """One-shot MiMC digest → 32 bytes."""
    h = MiMC(seed, rounds)
    h.update(data)
    return h.digest()
