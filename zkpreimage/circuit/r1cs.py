"""
Compiled constraint system
==========================

A ``ConstraintSystem`` is the read-only product of compiling a circuit
descriptor for one curve. Each constraint is a triple of sparse linear
combinations ``({wire: coeff}, {wire: coeff}, {wire: coeff})``.

The fingerprint is a SHA-256 over a canonical byte encoding of everything
that determines the relation. Keys derived from this system record it.
"""

import hashlib

from zkpreimage.errors import UnsatisfiedConstraint
from zkpreimage.field import CURVE_ORDER, FIELD_BYTES


def _lc_value(lc, assignment):
    total = 0
    for wire, coeff in lc.items():
        total += coeff * assignment[wire]
    return total % CURVE_ORDER


class ConstraintSystem:

    def __init__(self, curve, public_names, secret_names, num_wires,
                 constraints, solvers, metadata=None):
        self.curve = curve
        self.public_names = public_names
        self.secret_names = secret_names
        self.num_wires = num_wires
        self.constraints = constraints
        self.solvers = solvers
        self.metadata = metadata or {}
        self._fingerprint = None

    @property
    def num_public(self):
        return len(self.public_names)

    @property
    def num_secret(self):
        return len(self.secret_names)

    @property
    def num_constraints(self):
        return len(self.constraints)

    def solve(self, public_values, secret_values):
        """Inputs → full wire assignment [1, public..., secret..., internal...]."""
        if len(public_values) != self.num_public or len(secret_values) != self.num_secret:
            raise ValueError("wrong number of inputs for this constraint system")
        assignment = [0] * self.num_wires
        assignment[0] = 1
        inputs = list(public_values) + list(secret_values)
        for i, value in enumerate(inputs):
            assignment[1 + i] = int(value) % CURVE_ORDER
        for wire, a, b in self.solvers:
            assignment[wire] = _lc_value(a, assignment) * _lc_value(b, assignment) % CURVE_ORDER
        return assignment

    def first_unsatisfied(self, assignment):
        for index, (a, b, c) in enumerate(self.constraints):
            lhs = _lc_value(a, assignment) * _lc_value(b, assignment) % CURVE_ORDER
            if lhs != _lc_value(c, assignment):
                return index
        return None

    def check(self, assignment):
        index = self.first_unsatisfied(assignment)
        if index is not None:
            raise UnsatisfiedConstraint(index)

    def fingerprint(self):
        if self._fingerprint is None:
            h = hashlib.sha256()
            h.update(self.curve.encode())
            for name in self.public_names + [""] + self.secret_names:
                h.update(name.encode() + b"\x00")
            h.update(self.num_wires.to_bytes(8, "big"))
            for triple in self.constraints:
                for lc in triple:
                    h.update(len(lc).to_bytes(4, "big"))
                    for wire in sorted(lc):
                        h.update(wire.to_bytes(4, "big"))
                        h.update(lc[wire].to_bytes(FIELD_BYTES, "big"))
            self._fingerprint = h.digest()
        return self._fingerprint

    def __repr__(self):
        return "ConstraintSystem(curve={}, constraints={}, wires={}, public={})".format(
            self.curve, self.num_constraints, self.num_wires, self.public_names)
