"""
Groth16 prover
==============

With prover randomness r, s and full assignment a:

  A = [α]₁ + Σ a_i·[u_i(τ)]₁ + r·[δ]₁
  B = [β]₂ + Σ a_i·[v_i(τ)]₂ + s·[δ]₂
  C = Σ_{i>l} a_i·K_i + Σ h_k·H_k + s·A + r·B₁ - r·s·[δ]₁

where B₁ is B computed in G1 and h_k are the coefficients of the quotient
H(x) = (A(x)·B(x) - C(x)) / Z(x).

**Raw encoding** (256 bytes, eight 32-byte big-endian words):

  A.x | A.y | B.x.c1 | B.x.c0 | B.y.c1 | B.y.c0 | C.x | C.y

G2 coordinates go imaginary part first, the order the EVM pairing
precompile reads. The calldata marshaller relies on this layout.
"""

import logging
import secrets

from zkpreimage.errors import ArtifactMismatch, UnsatisfiedConstraint
from zkpreimage.field import (
    CURVE_ORDER,
    FIELD_BYTES,
    Z2,
    ec_add,
    ec_eq,
    ec_mul,
    ec_neg,
    from_word,
    g1_from_ints,
    g1_to_ints,
    g2_from_ints,
    g2_to_ints,
    msm,
    to_word,
)
from zkpreimage.groth16.qap import hxr

logger = logging.getLogger(__name__)

RAW_PROOF_WORDS = 8
RAW_PROOF_SIZE = RAW_PROOF_WORDS * FIELD_BYTES


class Proof:
    """Groth16 proof: A ∈ G1, B ∈ G2, C ∈ G1."""

    def __init__(self, A, B, C):
        self.A = A
        self.B = B
        self.C = C

    def write_raw(self):
        ax, ay = g1_to_ints(self.A)
        (bx0, bx1), (by0, by1) = g2_to_ints(self.B)
        cx, cy = g1_to_ints(self.C)
        words = (ax, ay, bx1, bx0, by1, by0, cx, cy)
        return b"".join(to_word(w) for w in words)

    @classmethod
    def read_raw(cls, data):
        """256 raw bytes → Proof.

        Raises:
            ValueError: wrong length, or a word is not a valid coordinate
        """
        if len(data) != RAW_PROOF_SIZE:
            raise ValueError("raw proof must be {} bytes, got {}".format(RAW_PROOF_SIZE, len(data)))
        w = [from_word(data[i:i + FIELD_BYTES]) for i in range(0, RAW_PROOF_SIZE, FIELD_BYTES)]
        A = g1_from_ints(w[0], w[1])
        B = g2_from_ints((w[3], w[2]), (w[5], w[4]))
        C = g1_from_ints(w[6], w[7])
        return cls(A, B, C)

    def __eq__(self, other):
        if not isinstance(other, Proof):
            return NotImplemented
        return ec_eq(self.A, other.A) and ec_eq(self.B, other.B) and ec_eq(self.C, other.C)

    def __hash__(self):
        return hash(self.write_raw())

    def __repr__(self):
        return "Proof({}...)".format(self.write_raw()[:8].hex())


def proof_a(pk, assignment, r):
    proof_A = ec_add(pk.alpha_g1, msm(pk.a_query, assignment))
    return ec_add(proof_A, ec_mul(pk.delta_g1, r))


def proof_b(pk, assignment, s):
    proof_B = ec_add(pk.beta_g2, msm(pk.b_g2_query, assignment, identity=Z2))
    return ec_add(proof_B, ec_mul(pk.delta_g2, s))


def proof_c(pk, assignment, Hx, s, r, prf_A):
    # build temp_proof_B in G1
    temp_proof_B = ec_add(pk.beta_g1, msm(pk.b_g1_query, assignment))
    temp_proof_B = ec_add(temp_proof_B, ec_mul(pk.delta_g1, s))

    private = list(range(pk.num_public + 1, len(assignment)))
    proof_C = msm([pk.k_query[i] for i in private], [assignment[i] for i in private])

    h = list(Hx[:len(pk.h_query)])
    h += [0] * (len(pk.h_query) - len(h))
    proof_C = ec_add(proof_C, msm(pk.h_query, h))

    proof_C = ec_add(proof_C, ec_mul(prf_A, s))
    proof_C = ec_add(proof_C, ec_mul(temp_proof_B, r))
    proof_C = ec_add(proof_C, ec_neg(ec_mul(pk.delta_g1, r * s % CURVE_ORDER)))
    return proof_C


def prove(cs, pk, witness):
    """Prove that ``witness`` satisfies ``cs``.

    Args:
        cs: ConstraintSystem
        pk: ProvingKey derived from ``cs``
        witness: Witness (public and secret field elements)

    Returns:
        Proof

    Raises:
        UnsatisfiedConstraint: the witness does not satisfy the relation,
            e.g. the digest is not the hash of the secret
        ArtifactMismatch: ``pk`` was not derived from ``cs``
    """
    if pk.cs_fingerprint != cs.fingerprint():
        raise ArtifactMismatch("proving key was derived from a different constraint system")

    assignment = cs.solve(witness.public_values, witness.secret_values)
    index = cs.first_unsatisfied(assignment)
    if index is not None:
        raise UnsatisfiedConstraint(index)

    Hx, remainder = hxr(cs, assignment)
    if any(remainder):
        raise UnsatisfiedConstraint(-1, "quotient polynomial has a non-zero remainder")

    r = secrets.randbelow(CURVE_ORDER)
    s = secrets.randbelow(CURVE_ORDER)

    prf_A = proof_a(pk, assignment, r)
    prf_B = proof_b(pk, assignment, s)
    prf_C = proof_c(pk, assignment, Hx, s, r, prf_A)
    logger.debug("proof generated over %d constraints", cs.num_constraints)
    return Proof(prf_A, prf_B, prf_C)