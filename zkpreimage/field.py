"""
BN254 fields and curve operations
=================================

Algebraic toolbox shared by the circuit frontend, the Groth16 backend, the
calldata marshaller and the simulated chain.

**Fields**:
  - FR: the scalar field (order r ≈ 2^254). Witness values, public inputs
    and every polynomial coefficient live here.
  - the base field (modulus p ≈ 2^254). Curve coordinates live here.
  Both fit in 32 bytes, which fixes the width of every calldata word.

**Curve**:
  G1 over the base field, G2 over its quadratic extension, optimal Ate
  pairing into GT. Points are py_ecc ``optimized_bn128`` projective triples;
  the point at infinity is encoded as all zeros when serialized, the same
  convention the EVM precompiles use.

**G2 coordinate order**:
  py_ecc stores an FQ2 element as (c0, c1) = c0 + c1·i. The EVM pairing
  precompile (EIP-197) reads (c1, c0), imaginary part first. The helpers
  below always name which order they produce.

Usage:
    >>> P = ec_mul(G1, 5)
    >>> g1_to_ints(P)
    >>> pairing_check([(ec_neg(P), G2), (G1, ec_mul(G2, 5))])  # True
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import optimized_bn128 as bn128


class FR(FQ):
    field_modulus = bn128.curve_order


# scalar field order
CURVE_ORDER = bn128.curve_order

# base field modulus
FIELD_MODULUS = bn128.field_modulus

# bytes per field element, both fields
FIELD_BYTES = 32

G1 = bn128.G1
G2 = bn128.G2
Z1 = bn128.Z1
Z2 = bn128.Z2


# ─────────────────────────────────────────────────────────────────────
# group operations
# ─────────────────────────────────────────────────────────────────────

def ec_mul(point, scalar):
    if isinstance(scalar, FQ):
        scalar = int(scalar)
    return bn128.multiply(point, scalar % CURVE_ORDER)


def ec_add(p1, p2):
    return bn128.add(p1, p2)


def ec_neg(point):
    return bn128.neg(point)


def is_infinity(point):
    return bn128.is_inf(point)


def ec_eq(p1, p2):
    return bn128.eq(p1, p2)


def msm(points, scalars, identity=Z1):
    """Σ scalars[i]·points[i], skipping zero scalars.

    Args:
        points: points of one group
        scalars: ints (reduced mod r)
        identity: Z1 or Z2, returned when every scalar is zero

    Returns:
        the sum
    """
    assert len(points) == len(scalars)
    acc = None
    for point, scalar in zip(points, scalars):
        scalar = int(scalar) % CURVE_ORDER
        if scalar == 0 or is_infinity(point):
            continue
        term = ec_mul(point, scalar)
        acc = term if acc is None else ec_add(acc, term)
    return identity if acc is None else acc


# ─────────────────────────────────────────────────────────────────────
# affine integer encodings
# ─────────────────────────────────────────────────────────────────────

def g1_to_ints(point):
    """G1 point → (x, y) ints, (0, 0) for infinity."""
    if is_infinity(point):
        return (0, 0)
    x, y = bn128.normalize(point)
    return (int(x), int(y))


def g2_to_ints(point):
    """G2 point → ((x.c0, x.c1), (y.c0, y.c1)) ints, real part first."""
    if is_infinity(point):
        return ((0, 0), (0, 0))
    x, y = bn128.normalize(point)
    return (
        (int(x.coeffs[0]), int(x.coeffs[1])),
        (int(y.coeffs[0]), int(y.coeffs[1])),
    )


def g1_from_ints(x, y):
    """(x, y) ints → G1 point.

    Raises:
        ValueError: a coordinate is not below p, or the point is off curve
    """
    if x == 0 and y == 0:
        return Z1
    if not (0 <= x < FIELD_MODULUS and 0 <= y < FIELD_MODULUS):
        raise ValueError("G1 coordinate out of the base field")
    point = (bn128.FQ(x), bn128.FQ(y), bn128.FQ.one())
    if not bn128.is_on_curve(point, bn128.b):
        raise ValueError("point is not on G1")
    return point


def g2_from_ints(x, y):
    """((x.c0, x.c1), (y.c0, y.c1)) ints → G2 point, real part first.

    Raises:
        ValueError: a coordinate is not below p, or the point is off curve
    """
    coords = (x[0], x[1], y[0], y[1])
    if not any(coords):
        return Z2
    if not all(0 <= c < FIELD_MODULUS for c in coords):
        raise ValueError("G2 coordinate out of the base field")
    point = (bn128.FQ2([x[0], x[1]]), bn128.FQ2([y[0], y[1]]), bn128.FQ2.one())
    if not bn128.is_on_curve(point, bn128.b2):
        raise ValueError("point is not on G2")
    return point


def in_g2_subgroup(point):
    return is_infinity(bn128.multiply(point, CURVE_ORDER))


def to_word(value, width=FIELD_BYTES):
    """int → fixed-width big-endian bytes."""
    return int(value).to_bytes(width, "big")


def from_word(data):
    return int.from_bytes(data, "big")


# ─────────────────────────────────────────────────────────────────────
# pairing
# ─────────────────────────────────────────────────────────────────────

def pairing_check(pairs):
    """Π e(P_i, Q_i) == 1 ?

    The product of Miller loops shares a single final exponentiation,
    which is what the EVM pairing precompile computes.

    Args:
        pairs: list of (G1 point, G2 point)

    Returns:
        bool
    """
    acc = bn128.FQ12.one()
    for p1, q2 in pairs:
        if is_infinity(p1) or is_infinity(q2):
            continue
        acc = acc * bn128.pairing(q2, p1, final_exponentiate=False)
    return bn128.final_exponentiate(acc) == bn128.FQ12.one()
