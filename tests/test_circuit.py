import pytest

from zkpreimage.circuit import CircuitDescriptor, ConstraintBuilder, LinearCombination, compile
from zkpreimage.circuit.frontend import ONE
from zkpreimage.errors import InvalidConstraint, SetupError, UnsatisfiedConstraint
from zkpreimage.field import CURVE_ORDER


def x3_circuit():
    """x^3 + x + 5 == y"""
    api = ConstraintBuilder()
    y = api.public_input("y")
    x = api.secret_input("x")
    x3 = api.mul(api.mul(x, x), x)
    api.assert_is_equal(x3 + x + 5, y)
    return api.build(curve="bn254")


class TestLinearCombination:
    def test_zero_coefficients_dropped(self):
        lc = LinearCombination({1: 3, 2: CURVE_ORDER})
        assert lc.terms == {1: 3}

    def test_add_constant(self):
        lc = LinearCombination.wire(1) + 5
        assert lc.terms == {1: 1, ONE: 5}

    def test_sub_cancels(self):
        w = LinearCombination.wire(2)
        assert (w - w).terms == {}

    def test_rsub(self):
        lc = 7 - LinearCombination.wire(1)
        assert lc.terms == {ONE: 7, 1: CURVE_ORDER - 1}

    def test_evaluate(self):
        lc = LinearCombination({ONE: 2, 1: 3})
        assert lc.evaluate([1, 4]) == 14

    def test_is_constant(self):
        assert LinearCombination.constant(4).is_constant()
        assert not LinearCombination.wire(1).is_constant()


class TestConstraintBuilder:
    def test_wire_layout(self):
        api = ConstraintBuilder()
        y = api.public_input("y")
        x = api.secret_input("x")
        t = api.mul(x, x)
        assert (y.terms, x.terms, t.terms) == ({1: 1}, {2: 1}, {3: 1})

    def test_public_after_secret(self):
        api = ConstraintBuilder()
        api.secret_input("x")
        with pytest.raises(InvalidConstraint):
            api.public_input("y")

    def test_duplicate_name(self):
        api = ConstraintBuilder()
        api.public_input("y")
        with pytest.raises(InvalidConstraint):
            api.secret_input("y")

    def test_constant_factor_stays_linear(self):
        api = ConstraintBuilder()
        api.public_input("y")
        x = api.secret_input("x")
        out = api.mul(x, 3)
        assert out.terms == {2: 3}
        assert api.constraints == []

    def test_distinct_constants(self):
        api = ConstraintBuilder()
        with pytest.raises(InvalidConstraint):
            api.assert_is_equal(1, 2)

    def test_equal_constants_add_nothing(self):
        api = ConstraintBuilder()
        api.assert_is_equal(3, 3)
        assert api.constraints == []

    def test_needs_public_input(self):
        api = ConstraintBuilder()
        x = api.secret_input("x")
        api.assert_is_equal(api.mul(x, x), 4)
        with pytest.raises(InvalidConstraint):
            api.build("bn254")

    def test_needs_constraints(self):
        api = ConstraintBuilder()
        api.public_input("y")
        with pytest.raises(InvalidConstraint):
            api.build("bn254")


class TestConstraintSystem:
    def test_solve(self):
        cs = x3_circuit()
        assignment = cs.solve([35], [3])
        assert assignment == [1, 35, 3, 9, 27]

    def test_satisfied(self):
        cs = x3_circuit()
        assert cs.first_unsatisfied(cs.solve([35], [3])) is None

    def test_unsatisfied(self):
        cs = x3_circuit()
        assignment = cs.solve([36], [3])
        assert cs.first_unsatisfied(assignment) == 2
        with pytest.raises(UnsatisfiedConstraint) as e:
            cs.check(assignment)
        assert e.value.index == 2

    def test_wrong_arity(self):
        with pytest.raises(ValueError):
            x3_circuit().solve([35], [])

    def test_fingerprint_stable(self):
        assert x3_circuit().fingerprint() == x3_circuit().fingerprint()
        assert len(x3_circuit().fingerprint()) == 32


class TestMiMCCircuit:
    def test_shape(self, cs, descriptor):
        assert cs.public_names == [descriptor.public]
        assert cs.secret_names == [descriptor.secret]
        assert cs.num_constraints == 4 * descriptor.mimc_rounds + 1
        assert cs.num_wires == 3 + 4 * descriptor.mimc_rounds

    def test_matches_native_hash(self, cs, descriptor, digest):
        secret = int.from_bytes(b"secret", "big")
        assignment = cs.solve([int.from_bytes(digest, "big")], [secret])
        assert cs.first_unsatisfied(assignment) is None

    def test_wrong_digest(self, cs):
        secret = int.from_bytes(b"secret", "big")
        assignment = cs.solve([42], [secret])
        assert cs.first_unsatisfied(assignment) == cs.num_constraints - 1

    def test_metadata(self, cs, descriptor):
        assert cs.metadata["mimc_rounds"] == descriptor.mimc_rounds
        assert cs.metadata["mimc_seed"] == descriptor.mimc_seed

    def test_fingerprint_tracks_parameters(self, cs, descriptor):
        assert compile(descriptor).fingerprint() == cs.fingerprint()
        other = CircuitDescriptor(mimc_rounds=descriptor.mimc_rounds + 1)
        assert compile(other).fingerprint() != cs.fingerprint()


class TestCompileValidation:
    def test_unknown_curve(self, descriptor):
        with pytest.raises(InvalidConstraint):
            compile(descriptor, "bls12-381")

    @pytest.mark.parametrize("rounds", [0, -1])
    def test_rounds(self, rounds):
        with pytest.raises(InvalidConstraint):
            compile(CircuitDescriptor(mimc_rounds=rounds))

    def test_empty_seed(self):
        with pytest.raises(InvalidConstraint):
            compile(CircuitDescriptor(mimc_seed="", mimc_rounds=2))

    def test_same_names(self):
        with pytest.raises(InvalidConstraint):
            compile(CircuitDescriptor(secret="X", public="X", mimc_rounds=2))

    def test_is_setup_error(self):
        assert issubclass(InvalidConstraint, SetupError)
