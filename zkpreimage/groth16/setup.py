"""
Groth16 trusted setup
=====================

Samples the toxic waste (α, β, γ, δ, τ), evaluates the QAP at τ and
publishes group-encoded values:

  σ1,1 = [α, β, δ]₁
  σ1,3 = [(β·u_i(τ) + α·v_i(τ) + w_i(τ)) / γ]₁     public wires (IC)
  σ1,4 = [(β·u_i(τ) + α·v_i(τ) + w_i(τ)) / δ]₁     private wires
  σ1,5 = [τ^k·Z(τ) / δ]₁                           k = 0..n-2
  σ2,1 = [β, γ, δ]₂
  plus the per-wire queries [u_i(τ)]₁, [v_i(τ)]₁, [v_i(τ)]₂ the prover
  combines with the witness.

The toxic waste is dropped when ``setup`` returns. Every call draws fresh
randomness, so two runs over the same constraint system give unrelated,
non-interchangeable key pairs.
"""

import logging
import secrets

from zkpreimage.field import FR, CURVE_ORDER, G1, G2, Z1, ec_mul
from zkpreimage.groth16.qap import getNumGates, getNumWires, qap_eval

logger = logging.getLogger(__name__)

g1 = G1
g2 = G2
mult = ec_mul


class ProvingKey:
    """Everything the prover needs, derived from one constraint system.

    Attributes:
        alpha_g1, beta_g1, delta_g1: G1 points
        beta_g2, delta_g2: G2 points
        a_query: [u_i(τ)]₁ per wire
        b_g1_query: [v_i(τ)]₁ per wire
        b_g2_query: [v_i(τ)]₂ per wire
        k_query: [(β·u_i + α·v_i + w_i)(τ) / δ]₁ per wire, infinity on
            public wires
        h_query: [τ^k·Z(τ) / δ]₁, k = 0..n-2
        num_public: number of public inputs (constant wire excluded)
        cs_fingerprint: fingerprint of the source constraint system
    """

    def __init__(self, alpha_g1, beta_g1, delta_g1, beta_g2, delta_g2,
                 a_query, b_g1_query, b_g2_query, k_query, h_query,
                 num_public, cs_fingerprint):
        self.alpha_g1 = alpha_g1
        self.beta_g1 = beta_g1
        self.delta_g1 = delta_g1
        self.beta_g2 = beta_g2
        self.delta_g2 = delta_g2
        self.a_query = a_query
        self.b_g1_query = b_g1_query
        self.b_g2_query = b_g2_query
        self.k_query = k_query
        self.h_query = h_query
        self.num_public = num_public
        self.cs_fingerprint = cs_fingerprint


class VerifyingKey:
    """Public verification material.

    Attributes:
        alpha_g1: G1 point
        beta_g2, gamma_g2, delta_g2: G2 points
        ic: [IC_0, ..., IC_l], one per public wire including the constant
        cs_fingerprint: fingerprint of the source constraint system
    """

    def __init__(self, alpha_g1, beta_g2, gamma_g2, delta_g2, ic, cs_fingerprint):
        self.alpha_g1 = alpha_g1
        self.beta_g2 = beta_g2
        self.gamma_g2 = gamma_g2
        self.delta_g2 = delta_g2
        self.ic = ic
        self.cs_fingerprint = cs_fingerprint

    @property
    def num_public(self):
        return len(self.ic) - 1


def sigma11(alpha, beta, delta):
    return [mult(g1, int(alpha)), mult(g1, int(beta)), mult(g1, int(delta))]


def sigma13(numWires, alpha, beta, gamma, Ax_val, Bx_val, Cx_val, num_public):
    sigma1_3 = []
    for i in range(num_public + 1):
        val = (beta * Ax_val[i] + alpha * Bx_val[i] + Cx_val[i]) / gamma
        sigma1_3.append(mult(g1, int(val)))
    return sigma1_3


def sigma14(numWires, alpha, beta, delta, Ax_val, Bx_val, Cx_val, num_public):
    sigma1_4 = []
    for i in range(numWires):
        if i <= num_public:
            sigma1_4.append(Z1)
        else:
            val = (beta * Ax_val[i] + alpha * Bx_val[i] + Cx_val[i]) / delta
            sigma1_4.append(mult(g1, int(val)))
    return sigma1_4


def sigma15(numGates, delta, x_val, Zx_val):
    sigma1_5 = []
    val = FR(Zx_val) / delta
    for _ in range(numGates - 1):
        sigma1_5.append(mult(g1, int(val)))
        val = val * x_val
    return sigma1_5


def sigma21(beta, gamma, delta):
    return [mult(g2, int(beta)), mult(g2, int(gamma)), mult(g2, int(delta))]


def wire_query(generator, values):
    return [mult(generator, int(v)) for v in values]


def _toxic_scalar():
    return FR(secrets.randbelow(CURVE_ORDER - 1) + 1)


def _toxic_point(numGates):
    # τ must stay off the evaluation domain {1..n}
    while True:
        x_val = _toxic_scalar()
        if int(x_val) > numGates:
            return x_val


def setup(cs):
    """Run the Groth16 setup for ``cs``.

    Args:
        cs: ConstraintSystem

    Returns:
        (ProvingKey, VerifyingKey)
    """
    numGates = getNumGates(cs)
    numWires = getNumWires(cs)
    num_public = cs.num_public

    alpha = _toxic_scalar()
    beta = _toxic_scalar()
    gamma = _toxic_scalar()
    delta = _toxic_scalar()
    x_val = _toxic_point(numGates)

    logger.debug("setup: %d gates, %d wires", numGates, numWires)
    Ax_val, Bx_val, Cx_val, Zx_val = qap_eval(cs, int(x_val))
    Ax_fr = [FR(v) for v in Ax_val]
    Bx_fr = [FR(v) for v in Bx_val]
    Cx_fr = [FR(v) for v in Cx_val]

    s11 = sigma11(alpha, beta, delta)
    s13 = sigma13(numWires, alpha, beta, gamma, Ax_fr, Bx_fr, Cx_fr, num_public)
    s14 = sigma14(numWires, alpha, beta, delta, Ax_fr, Bx_fr, Cx_fr, num_public)
    s15 = sigma15(numGates, delta, x_val, Zx_val)
    s21 = sigma21(beta, gamma, delta)

    fingerprint = cs.fingerprint()
    pk = ProvingKey(
        alpha_g1=s11[0],
        beta_g1=s11[1],
        delta_g1=s11[2],
        beta_g2=s21[0],
        delta_g2=s21[2],
        a_query=wire_query(g1, Ax_val),
        b_g1_query=wire_query(g1, Bx_val),
        b_g2_query=wire_query(g2, Bx_val),
        k_query=s14,
        h_query=s15,
        num_public=num_public,
        cs_fingerprint=fingerprint,
    )
    vk = VerifyingKey(
        alpha_g1=s11[0],
        beta_g2=s21[0],
        gamma_g2=s21[1],
        delta_g2=s21[2],
        ic=s13,
        cs_fingerprint=fingerprint,
    )
    return pk, vk
