"""
Polynomial helpers over FR
==========================

Coefficient lists, lowest degree first, entries are ints reduced mod r.
The QAP evaluation domain is {1, 2, ..., n}: constraint j (0-based) is
pinned at x = j + 1.
"""

from zkpreimage.field import CURVE_ORDER

P = CURVE_ORDER


def _inv(a):
    return pow(a, P - 2, P)


# Multiply two polynomials
def _multiply_polys(a, b):
    o = [0] * (len(a) + len(b) - 1)
    for i, ai in enumerate(a):
        if ai == 0:
            continue
        for j, bj in enumerate(b):
            o[i + j] += ai * bj
    return [c % P for c in o]


# Add two polynomials
def _add_polys(a, b, subtract=False):
    o = [0] * max(len(a), len(b))
    for i in range(len(a)):
        o[i] += a[i]
    for i in range(len(b)):
        o[i] += b[i] * (-1 if subtract else 1)
    return [c % P for c in o]


def _subtract_polys(a, b):
    return _add_polys(a, b, subtract=True)


# Divide a/b, return quotient and remainder
def _div_polys(a, b):
    while b and b[-1] == 0:
        b = b[:-1]
    if not b:
        raise ZeroDivisionError("Division by zero polynomial")
    if len(a) < len(b):
        return [0], list(a)
    o = [0] * (len(a) - len(b) + 1)
    remainder = list(a)
    lead_inv = _inv(b[-1])
    for pos in range(len(o) - 1, -1, -1):
        leading_fac = remainder[pos + len(b) - 1] * lead_inv % P
        o[pos] = leading_fac
        if leading_fac:
            for i, bi in enumerate(b):
                remainder[pos + i] = (remainder[pos + i] - leading_fac * bi) % P
    return o, remainder[:len(b) - 1]


# Evaluate a polynomial at a point
def _eval_poly(poly, x):
    acc = 0
    for c in reversed(poly):
        acc = (acc * x + c) % P
    return acc


def vanishing_poly(n):
    """Z(x) = (x - 1)(x - 2)...(x - n)"""
    z = [1]
    for i in range(1, n + 1):
        z = _multiply_polys(z, [-i % P, 1])
    return z


def vanishing_eval(n, x):
    acc = 1
    for i in range(1, n + 1):
        acc = acc * (x - i) % P
    return acc


def lagrange_denominators(n):
    """d_j = Π_{k≠j} (j - k) for j = 1..n, as inverses mod r."""
    fact = [1] * (n + 1)
    for i in range(1, n + 1):
        fact[i] = fact[i - 1] * i % P
    inverses = []
    for j in range(1, n + 1):
        d = fact[j - 1] * fact[n - j] % P
        if (n - j) % 2:
            d = -d % P
        inverses.append(_inv(d))
    return inverses


def lagrange_basis_eval(n, x):
    """[L_1(x), ..., L_n(x)] for x outside the domain."""
    z = vanishing_eval(n, x)
    d_inv = lagrange_denominators(n)
    return [z * _inv((x - j) % P) % P * d_inv[j - 1] % P for j in range(1, n + 1)]


def interpolate(evals):
    """Coefficients of the degree < n polynomial with p(j) = evals[j-1]."""
    n = len(evals)
    z = vanishing_poly(n)
    d_inv = lagrange_denominators(n)
    o = [0] * n
    for j in range(1, n + 1):
        y = evals[j - 1] % P
        if y == 0:
            continue
        # z / (x - j) by synthetic division
        quot = [0] * n
        carry = 0
        for k in range(n, 0, -1):
            carry = (z[k] + carry * j) % P
            quot[k - 1] = carry
        scale = y * d_inv[j - 1] % P
        for k in range(n):
            o[k] += quot[k] * scale
    return [c % P for c in o]
