import pytest

from zkpreimage.circuit import CircuitDescriptor, compile
from zkpreimage.errors import (
    ArtifactMismatch,
    DeploymentError,
    PublicInputArityMismatch,
    UnsatisfiedConstraint,
    ValueOutOfRange,
)
from zkpreimage.field import CURVE_ORDER, G1, G2, ec_eq, ec_mul, is_infinity, pairing_check, ec_neg
from zkpreimage.groth16 import Groth16, Proof, RAW_PROOF_SIZE, export_solidity, prove, read_verifying_key, verify
from zkpreimage.groth16.poly_utils import (
    _div_polys,
    _eval_poly,
    _multiply_polys,
    interpolate,
    lagrange_basis_eval,
    vanishing_poly,
)
from zkpreimage.groth16.qap import hxr, qap_eval
from zkpreimage.witness import build

from conftest import TEST_SECRET, WRONG_INPUT


class TestPolyUtils:
    def test_interpolate(self):
        evals = [5, 7, 11, 2]
        poly = interpolate(evals)
        assert [_eval_poly(poly, x) for x in range(1, 5)] == evals

    def test_vanishing_roots(self):
        z = vanishing_poly(4)
        assert all(_eval_poly(z, x) == 0 for x in range(1, 5))
        assert _eval_poly(z, 5) == 24

    def test_div_exact(self):
        a = [1, 2]
        b = [3, 0, 1]
        q, r = _div_polys(_multiply_polys(a, b), b)
        assert q == a
        assert not any(r)

    def test_lagrange_basis(self):
        """Σ L_j(x)·p(j) == p(x)"""
        evals = [3, 1, 4, 1, 5]
        poly = interpolate(evals)
        basis = lagrange_basis_eval(5, 1000)
        combined = sum(l * e for l, e in zip(basis, evals)) % CURVE_ORDER
        assert combined == _eval_poly(poly, 1000)


class TestQAP:
    def test_remainder_zero(self, cs, digest_int):
        assignment = cs.solve([digest_int], [int.from_bytes(TEST_SECRET, "big")])
        _, remainder = hxr(cs, assignment)
        assert not any(remainder)

    def test_remainder_nonzero(self, cs):
        assignment = cs.solve([WRONG_INPUT], [int.from_bytes(TEST_SECRET, "big")])
        _, remainder = hxr(cs, assignment)
        assert any(remainder)

    def test_divisibility_at_point(self, cs, digest_int):
        """A(τ)·B(τ) - C(τ) == H(τ)·Z(τ)"""
        assignment = cs.solve([digest_int], [int.from_bytes(TEST_SECRET, "big")])
        x = 123456789
        Ax, Bx, Cx, Zx = qap_eval(cs, x)
        a = sum(u * w for u, w in zip(Ax, assignment)) % CURVE_ORDER
        b = sum(v * w for v, w in zip(Bx, assignment)) % CURVE_ORDER
        c = sum(t * w for t, w in zip(Cx, assignment)) % CURVE_ORDER
        Hx, _ = hxr(cs, assignment)
        assert (a * b - c) % CURVE_ORDER == _eval_poly(Hx, x) * Zx % CURVE_ORDER


class TestSetup:
    def test_ic_length(self, cs, keys):
        _, vk = keys
        assert len(vk.ic) == cs.num_public + 1
        assert vk.num_public == 1

    def test_query_lengths(self, cs, keys):
        pk, _ = keys
        assert len(pk.a_query) == cs.num_wires
        assert len(pk.b_g2_query) == cs.num_wires
        assert len(pk.h_query) == cs.num_constraints - 1

    def test_public_k_query_is_infinity(self, cs, keys):
        pk, _ = keys
        for i in range(cs.num_public + 1):
            assert is_infinity(pk.k_query[i])

    def test_shared_elements(self, keys):
        pk, vk = keys
        assert ec_eq(pk.alpha_g1, vk.alpha_g1)
        assert ec_eq(pk.beta_g2, vk.beta_g2)
        assert ec_eq(pk.delta_g2, vk.delta_g2)

    def test_beta_consistent_across_groups(self, keys):
        """e(β₁, G2) == e(G1, β₂)"""
        pk, _ = keys
        assert pairing_check([(ec_neg(pk.beta_g1), G2), (G1, pk.beta_g2)])

    def test_fingerprint_recorded(self, cs, keys):
        pk, vk = keys
        assert pk.cs_fingerprint == vk.cs_fingerprint == cs.fingerprint()


class TestProveVerify:
    def test_verifies(self, keys, proof, digest_int):
        _, vk = keys
        assert verify(proof, vk, [digest_int])

    def test_idempotent(self, keys, proof, digest_int):
        _, vk = keys
        assert verify(proof, vk, [digest_int]) == verify(proof, vk, [digest_int])

    def test_wrong_input(self, keys, proof):
        _, vk = keys
        assert not verify(proof, vk, [WRONG_INPUT])

    def test_tampered_proof(self, keys, proof, digest_int):
        _, vk = keys
        forged = Proof(ec_mul(proof.A, 2), proof.B, proof.C)
        assert not verify(forged, vk, [digest_int])

    def test_arity(self, keys, proof, digest_int):
        _, vk = keys
        with pytest.raises(PublicInputArityMismatch):
            verify(proof, vk, [digest_int, 1])
        with pytest.raises(PublicInputArityMismatch):
            verify(proof, vk, [])

    def test_input_out_of_range(self, keys, proof):
        _, vk = keys
        with pytest.raises(ValueOutOfRange):
            verify(proof, vk, [CURVE_ORDER])

    def test_unsatisfied(self, cs, keys):
        pk, _ = keys
        with pytest.raises(UnsatisfiedConstraint) as e:
            prove(cs, pk, build(TEST_SECRET, WRONG_INPUT.to_bytes(32, "big")))
        assert e.value.index == cs.num_constraints - 1
        assert not e.value.fatal

    def test_fresh_randomness(self, cs, keys, digest):
        pk, vk = keys
        p1 = prove(cs, pk, build(TEST_SECRET, digest))
        assert p1 != prove(cs, pk, build(TEST_SECRET, digest))

    def test_keys_from_other_circuit(self, keys, digest):
        pk, _ = keys
        other = compile(CircuitDescriptor(mimc_rounds=2))
        with pytest.raises(ArtifactMismatch):
            prove(other, pk, build(TEST_SECRET, digest))

    def test_capability(self, descriptor, digest, digest_int):
        backend = Groth16()
        cs = backend.compile(descriptor, "bn254")
        pk, vk = backend.setup(cs)
        proof = backend.prove(cs, pk, build(TEST_SECRET, digest))
        assert backend.verify(proof, vk, [digest_int])


class TestRawProof:
    def test_size(self, proof):
        assert len(proof.write_raw()) == RAW_PROOF_SIZE == 256

    def test_round_trip(self, proof):
        assert Proof.read_raw(proof.write_raw()) == proof

    def test_wrong_length(self, proof):
        with pytest.raises(ValueError):
            Proof.read_raw(proof.write_raw()[:-1])

    def test_off_curve(self, proof):
        raw = bytearray(proof.write_raw())
        raw[31] ^= 1
        with pytest.raises(ValueError):
            Proof.read_raw(bytes(raw))

    def test_repr_is_short(self, proof):
        assert len(repr(proof)) < 40


class TestSolidityExport:
    def test_deterministic(self, keys):
        _, vk = keys
        assert export_solidity(vk) == export_solidity(vk)

    def test_entry_point(self, keys):
        _, vk = keys
        source = export_solidity(vk)
        assert "pragma solidity ^0.8.0;" in source
        assert "uint256[1] memory input" in source
        assert "function verifyProof(" in source
        assert str(CURVE_ORDER) in source

    def test_key_round_trip(self, keys):
        _, vk = keys
        parsed = read_verifying_key(export_solidity(vk))
        assert ec_eq(parsed.alpha_g1, vk.alpha_g1)
        assert ec_eq(parsed.beta_g2, vk.beta_g2)
        assert ec_eq(parsed.gamma_g2, vk.gamma_g2)
        assert ec_eq(parsed.delta_g2, vk.delta_g2)
        assert len(parsed.ic) == len(vk.ic)
        assert all(ec_eq(a, b) for a, b in zip(parsed.ic, vk.ic))
        assert parsed.cs_fingerprint == vk.cs_fingerprint

    def test_garbage_source(self):
        with pytest.raises(DeploymentError):
            read_verifying_key("contract Verifier {}")
