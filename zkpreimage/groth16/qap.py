"""
R1CS → QAP
==========

Constraint j is pinned at domain point x = j + 1, so for every wire i

    u_i(j+1) = A_j[i],   v_i(j+1) = B_j[i],   w_i(j+1) = C_j[i]

and a satisfying assignment a makes

    A(x)·B(x) - C(x) = H(x)·Z(x),   A(x) = Σ a_i·u_i(x)  (same for B, C)

Setup only needs u_i, v_i, w_i at the secret point τ; the prover only needs
H(x), which it gets by interpolating A, B, C from their values on the
domain, i.e. the per-constraint dot products.
"""

from zkpreimage.field import CURVE_ORDER
from zkpreimage.groth16.poly_utils import (
    _multiply_polys,
    _subtract_polys,
    _div_polys,
    interpolate,
    lagrange_basis_eval,
    vanishing_eval,
    vanishing_poly,
)

P = CURVE_ORDER


def getNumWires(cs):
    return cs.num_wires


def getNumGates(cs):
    return cs.num_constraints


def qap_eval(cs, x_val):
    """u_i(τ), v_i(τ), w_i(τ) for every wire, and Z(τ).

    Args:
        cs: ConstraintSystem
        x_val: τ as int, outside the domain {1..n}

    Returns:
        (Ax_val, Bx_val, Cx_val, Zx_val), the first three indexed by wire
    """
    numGates = getNumGates(cs)
    numWires = getNumWires(cs)
    basis = lagrange_basis_eval(numGates, x_val)
    Ax_val = [0] * numWires
    Bx_val = [0] * numWires
    Cx_val = [0] * numWires
    for j, (a, b, c) in enumerate(cs.constraints):
        lj = basis[j]
        for wire, coeff in a.items():
            Ax_val[wire] = (Ax_val[wire] + coeff * lj) % P
        for wire, coeff in b.items():
            Bx_val[wire] = (Bx_val[wire] + coeff * lj) % P
        for wire, coeff in c.items():
            Cx_val[wire] = (Cx_val[wire] + coeff * lj) % P
    return Ax_val, Bx_val, Cx_val, vanishing_eval(numGates, x_val)


def _dot(lc, assignment):
    total = 0
    for wire, coeff in lc.items():
        total += coeff * assignment[wire]
    return total % P


# (A.R * B.R - C.R) / Z = H .... r
def hxr(cs, assignment):
    """Quotient H and remainder of (A·B - C) / Z for one assignment.

    The remainder is all zeros exactly when every constraint holds.
    """
    a_evals = []
    b_evals = []
    c_evals = []
    for a, b, c in cs.constraints:
        a_evals.append(_dot(a, assignment))
        b_evals.append(_dot(b, assignment))
        c_evals.append(_dot(c, assignment))
    Ax = interpolate(a_evals)
    Bx = interpolate(b_evals)
    Cx = interpolate(c_evals)
    Px = _subtract_polys(_multiply_polys(Ax, Bx), Cx)
    Zx = vanishing_poly(getNumGates(cs))
    Hx, r = _div_polys(Px, Zx)
    return Hx, r
