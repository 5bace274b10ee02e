"""
In-circuit MiMC
===============

Constraint version of ``zkpreimage.mimc``. Each round costs four
multiplication constraints:

    t  = x + k + c_i        (linear, free)
    t2 = t·t
    t3 = t2·t
    t6 = t3·t3
    t7 = t6·t
"""

from zkpreimage import mimc


def pow7(api, t):
    t2 = api.mul(t, t)
    t3 = api.mul(t2, t)
    t6 = api.mul(t3, t3)
    return api.mul(t6, t)


def mimc_encrypt(api, message, key, constants):
    x = message
    for c in constants:
        x = pow7(api, api.add(x, key, c))
    return api.add(x, key)


def mimc_hash(api, *data, seed=mimc.SEED, rounds=mimc.ROUNDS):
    """Miyaguchi-Preneel MiMC over already-allocated field elements."""
    constants = mimc.round_constants(seed, rounds)
    h = 0
    for m in data:
        h = api.add(mimc_encrypt(api, m, h, constants), m)
    return h
