"""
Groth16 backend
===============

The proving-system capability the lifecycle drives:

  ┌──────────┬──────────────────────────────────────────────┐
  │ compile  │ descriptor, curve → ConstraintSystem          │
  │ setup    │ ConstraintSystem → (ProvingKey, VerifyingKey) │
  │ prove    │ ConstraintSystem, ProvingKey, Witness → Proof │
  │ verify   │ Proof, VerifyingKey, public inputs → bool     │
  └──────────┴──────────────────────────────────────────────┘

plus ``export_solidity`` for the on-chain verifier source.

Usage:
    >>> backend = Groth16()
    >>> cs = backend.compile(CircuitDescriptor(), "bn254")
    >>> pk, vk = backend.setup(cs)
"""

from zkpreimage import circuit
from zkpreimage.groth16.proving import Proof, prove, RAW_PROOF_SIZE
from zkpreimage.groth16.setup import ProvingKey, VerifyingKey, setup
from zkpreimage.groth16.solidity import export_solidity, read_verifying_key
from zkpreimage.groth16.verifying import verify


class Groth16:
    name = "groth16"

    def compile(self, descriptor, curve=None):
        return circuit.compile(descriptor, curve)

    def setup(self, cs):
        return setup(cs)

    def prove(self, cs, pk, witness):
        return prove(cs, pk, witness)

    def verify(self, proof, vk, public_inputs):
        return verify(proof, vk, public_inputs)

    def export_solidity(self, vk, name="mimc"):
        return export_solidity(vk, name)


__all__ = [
    "Groth16",
    "Proof",
    "ProvingKey",
    "RAW_PROOF_SIZE",
    "VerifyingKey",
    "export_solidity",
    "prove",
    "read_verifying_key",
    "setup",
    "verify",
]
