"""
R1CS frontend
=============

Builds rank-1 constraints ⟨A, w⟩ · ⟨B, w⟩ = ⟨C, w⟩ from ordinary-looking
code, in the spirit of a circuit ``Define`` method.

**Wire layout** (fixed, the Groth16 backend depends on it):

  | index             | wire                                  |
  |-------------------|---------------------------------------|
  | 0                 | constant one                          |
  | 1 .. l            | public inputs, declaration order      |
  | l+1 .. l+m        | secret inputs, declaration order      |
  | l+m+1 ..          | internal wires, creation order        |

Every internal wire is the product of two linear combinations of earlier
wires, so the full assignment is solved by a single forward pass.

Usage:
    >>> api = ConstraintBuilder()
    >>> y = api.public_input("y")
    >>> x = api.secret_input("x")
    >>> x3 = api.mul(api.mul(x, x), x)
    >>> api.assert_is_equal(x3 + x + 5, y)
    >>> cs = api.build(curve="bn254")
"""

from zkpreimage.errors import InvalidConstraint
from zkpreimage.field import CURVE_ORDER
from zkpreimage.circuit.r1cs import ConstraintSystem

ONE = 0


class LinearCombination:
    """Σ coeff_i · wire_i over the scalar field.

    Attributes:
        terms: {wire index: coefficient int}
    """

    __slots__ = ("terms",)

    def __init__(self, terms=None):
        self.terms = {}
        for wire, coeff in (terms or {}).items():
            coeff %= CURVE_ORDER
            if coeff:
                self.terms[wire] = coeff

    @classmethod
    def constant(cls, value):
        return cls({ONE: value})

    @classmethod
    def wire(cls, index):
        return cls({index: 1})

    @classmethod
    def of(cls, value):
        if isinstance(value, LinearCombination):
            return value
        return cls.constant(int(value))

    def is_constant(self):
        return all(wire == ONE for wire in self.terms)

    def constant_value(self):
        return self.terms.get(ONE, 0)

    def scale(self, k):
        return LinearCombination({w: c * k for w, c in self.terms.items()})

    def evaluate(self, assignment):
        total = 0
        for wire, coeff in self.terms.items():
            total += coeff * assignment[wire]
        return total % CURVE_ORDER

    def __add__(self, other):
        other = LinearCombination.of(other)
        terms = dict(self.terms)
        for wire, coeff in other.terms.items():
            terms[wire] = terms.get(wire, 0) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self):
        return self.scale(-1)

    def __sub__(self, other):
        return self + (-LinearCombination.of(other))

    def __rsub__(self, other):
        return LinearCombination.of(other) - self

    def __repr__(self):
        return "LC({})".format(self.terms)


class ConstraintBuilder:
    """Collects wires and constraints for one circuit.

    Public inputs must all be declared before the first secret input or
    internal wire, so that public wires stay contiguous after the constant.
    """

    def __init__(self):
        self.public_names = []
        self.secret_names = []
        self.num_wires = 1
        self.constraints = []
        self.solvers = []
        self._sealed_public = False

    def public_input(self, name):
        if self._sealed_public:
            raise InvalidConstraint(
                "public input {!r} declared after secret or internal wires".format(name))
        self._check_name(name)
        self.public_names.append(name)
        return self._new_wire()

    def secret_input(self, name):
        self._check_name(name)
        self._sealed_public = True
        self.secret_names.append(name)
        return self._new_wire()

    def add(self, *terms):
        total = LinearCombination()
        for t in terms:
            total = total + t
        return total

    def mul(self, a, b):
        a = LinearCombination.of(a)
        b = LinearCombination.of(b)
        # constant factors stay linear
        if a.is_constant():
            return b.scale(a.constant_value())
        if b.is_constant():
            return a.scale(b.constant_value())
        self._sealed_public = True
        out = self._new_wire()
        index = max(out.terms)
        self.solvers.append((index, a.terms, b.terms))
        self.constraints.append((a.terms, b.terms, out.terms))
        return out

    def assert_is_equal(self, a, b):
        a = LinearCombination.of(a)
        b = LinearCombination.of(b)
        if a.is_constant() and b.is_constant():
            if a.constant_value() != b.constant_value():
                raise InvalidConstraint(
                    "assertion between distinct constants can never hold")
            return
        self.constraints.append((a.terms, {ONE: 1}, b.terms))

    def build(self, curve, metadata=None):
        if not self.public_names:
            raise InvalidConstraint("circuit declares no public input")
        if not self.constraints:
            raise InvalidConstraint("circuit has no constraints")
        return ConstraintSystem(
            curve=curve,
            public_names=list(self.public_names),
            secret_names=list(self.secret_names),
            num_wires=self.num_wires,
            constraints=list(self.constraints),
            solvers=list(self.solvers),
            metadata=dict(metadata or {}),
        )

    def _new_wire(self):
        index = self.num_wires
        self.num_wires += 1
        return LinearCombination.wire(index)

    def _check_name(self, name):
        if not name or name in self.public_names or name in self.secret_names:
            raise InvalidConstraint("invalid or duplicate input name {!r}".format(name))
