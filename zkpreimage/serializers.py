"""
Artifact serialization helpers
==============================

Turn the constraint system and the Groth16 keys into plain structures that
msgpack can carry, and back.

Field elements and coordinates are 32-byte big-endian ``bytes``; the point
at infinity is all zeros. G2 coordinates are stored real part first.
A sparse linear combination is a list of ``[wire, coeff]`` pairs.

Every ``deserialize_*`` raises ``ValueError`` on a payload that does not
match its schema; the store turns that into ``ArtifactCorrupt``.
"""

from zkpreimage.circuit.r1cs import ConstraintSystem
from zkpreimage.field import (
    CURVE_ORDER,
    FIELD_BYTES,
    g1_from_ints,
    g1_to_ints,
    g2_from_ints,
    g2_to_ints,
    to_word,
)
from zkpreimage.groth16.setup import ProvingKey, VerifyingKey


# ─── field element ───

def serialize_fr(val):
    """int → 32 bytes"""
    return to_word(int(val) % CURVE_ORDER)


def deserialize_fr(data):
    """32 bytes → int"""
    if not isinstance(data, bytes) or len(data) != FIELD_BYTES:
        raise ValueError("field element must be {} bytes".format(FIELD_BYTES))
    val = int.from_bytes(data, "big")
    if val >= CURVE_ORDER:
        raise ValueError("field element is not reduced")
    return val


def _coord(data):
    if not isinstance(data, bytes) or len(data) != FIELD_BYTES:
        raise ValueError("coordinate must be {} bytes".format(FIELD_BYTES))
    return int.from_bytes(data, "big")


# ─── G1 point ───

def serialize_g1(point):
    """G1 point → [x, y]"""
    x, y = g1_to_ints(point)
    return [to_word(x), to_word(y)]


def deserialize_g1(data):
    """[x, y] → G1 point"""
    if not isinstance(data, list) or len(data) != 2:
        raise ValueError("G1 point must be a pair")
    return g1_from_ints(_coord(data[0]), _coord(data[1]))


# ─── G2 point ───

def serialize_g2(point):
    """G2 point → [[x.c0, x.c1], [y.c0, y.c1]]"""
    (x0, x1), (y0, y1) = g2_to_ints(point)
    return [[to_word(x0), to_word(x1)], [to_word(y0), to_word(y1)]]


def deserialize_g2(data):
    """[[x.c0, x.c1], [y.c0, y.c1]] → G2 point"""
    if not isinstance(data, list) or len(data) != 2 or any(
            not isinstance(c, list) or len(c) != 2 for c in data):
        raise ValueError("G2 point must be a pair of pairs")
    x = (_coord(data[0][0]), _coord(data[0][1]))
    y = (_coord(data[1][0]), _coord(data[1][1]))
    return g2_from_ints(x, y)


def serialize_g1_list(points):
    return [serialize_g1(p) for p in points]


def deserialize_g1_list(data):
    if not isinstance(data, list):
        raise ValueError("expected a list of G1 points")
    return [deserialize_g1(p) for p in data]


def serialize_g2_list(points):
    return [serialize_g2(p) for p in points]


def deserialize_g2_list(data):
    if not isinstance(data, list):
        raise ValueError("expected a list of G2 points")
    return [deserialize_g2(p) for p in data]


# ─── linear combination ───

def serialize_lc(lc):
    """{wire: coeff} → [[wire, coeff], ...] sorted by wire"""
    return [[wire, serialize_fr(lc[wire])] for wire in sorted(lc)]


def deserialize_lc(data, num_wires):
    if not isinstance(data, list):
        raise ValueError("linear combination must be a list")
    lc = {}
    for item in data:
        if not isinstance(item, list) or len(item) != 2:
            raise ValueError("linear combination term must be [wire, coeff]")
        wire, coeff = item
        if not isinstance(wire, int) or not 0 <= wire < num_wires:
            raise ValueError("wire index {!r} out of range".format(wire))
        lc[wire] = deserialize_fr(coeff)
    return lc


# ─── ConstraintSystem ───

def serialize_cs(cs):
    return {
        "curve": cs.curve,
        "public": list(cs.public_names),
        "secret": list(cs.secret_names),
        "num_wires": cs.num_wires,
        "constraints": [[serialize_lc(lc) for lc in triple] for triple in cs.constraints],
        "solvers": [[wire, serialize_lc(a), serialize_lc(b)] for wire, a, b in cs.solvers],
        "metadata": dict(cs.metadata),
    }


def deserialize_cs(data):
    try:
        num_wires = data["num_wires"]
        if not isinstance(num_wires, int) or num_wires < 1:
            raise ValueError("num_wires must be a positive integer")
        constraints = []
        for triple in data["constraints"]:
            if len(triple) != 3:
                raise ValueError("constraint must have three linear combinations")
            constraints.append(tuple(deserialize_lc(lc, num_wires) for lc in triple))
        solvers = []
        for wire, a, b in data["solvers"]:
            if not isinstance(wire, int) or not 0 < wire < num_wires:
                raise ValueError("solver wire {!r} out of range".format(wire))
            solvers.append((wire, deserialize_lc(a, num_wires), deserialize_lc(b, num_wires)))
        return ConstraintSystem(
            curve=data["curve"],
            public_names=list(data["public"]),
            secret_names=list(data["secret"]),
            num_wires=num_wires,
            constraints=constraints,
            solvers=solvers,
            metadata=dict(data["metadata"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError("malformed constraint system payload: {}".format(e)) from e


# ─── keys ───

def _fingerprint(data):
    if not isinstance(data, bytes):
        raise ValueError("fingerprint must be bytes")
    return data


def serialize_pk(pk):
    return {
        "alpha_g1": serialize_g1(pk.alpha_g1),
        "beta_g1": serialize_g1(pk.beta_g1),
        "delta_g1": serialize_g1(pk.delta_g1),
        "beta_g2": serialize_g2(pk.beta_g2),
        "delta_g2": serialize_g2(pk.delta_g2),
        "a_query": serialize_g1_list(pk.a_query),
        "b_g1_query": serialize_g1_list(pk.b_g1_query),
        "b_g2_query": serialize_g2_list(pk.b_g2_query),
        "k_query": serialize_g1_list(pk.k_query),
        "h_query": serialize_g1_list(pk.h_query),
        "num_public": pk.num_public,
        "cs_fingerprint": pk.cs_fingerprint,
    }


def deserialize_pk(data):
    try:
        return ProvingKey(
            alpha_g1=deserialize_g1(data["alpha_g1"]),
            beta_g1=deserialize_g1(data["beta_g1"]),
            delta_g1=deserialize_g1(data["delta_g1"]),
            beta_g2=deserialize_g2(data["beta_g2"]),
            delta_g2=deserialize_g2(data["delta_g2"]),
            a_query=deserialize_g1_list(data["a_query"]),
            b_g1_query=deserialize_g1_list(data["b_g1_query"]),
            b_g2_query=deserialize_g2_list(data["b_g2_query"]),
            k_query=deserialize_g1_list(data["k_query"]),
            h_query=deserialize_g1_list(data["h_query"]),
            num_public=int(data["num_public"]),
            cs_fingerprint=_fingerprint(data["cs_fingerprint"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError("malformed proving key payload: {}".format(e)) from e


def serialize_vk(vk):
    return {
        "alpha_g1": serialize_g1(vk.alpha_g1),
        "beta_g2": serialize_g2(vk.beta_g2),
        "gamma_g2": serialize_g2(vk.gamma_g2),
        "delta_g2": serialize_g2(vk.delta_g2),
        "ic": serialize_g1_list(vk.ic),
        "cs_fingerprint": vk.cs_fingerprint,
    }


def deserialize_vk(data):
    try:
        ic = deserialize_g1_list(data["ic"])
        if not ic:
            raise ValueError("verifying key has no IC points")
        return VerifyingKey(
            alpha_g1=deserialize_g1(data["alpha_g1"]),
            beta_g2=deserialize_g2(data["beta_g2"]),
            gamma_g2=deserialize_g2(data["gamma_g2"]),
            delta_g2=deserialize_g2(data["delta_g2"]),
            ic=ic,
            cs_fingerprint=_fingerprint(data["cs_fingerprint"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError("malformed verifying key payload: {}".format(e)) from e
