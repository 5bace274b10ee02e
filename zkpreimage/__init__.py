"""
zkpreimage
==========

Zero-knowledge proof of knowledge of a MiMC pre-image: Groth16 over BN254,
checked locally or by a generated Solidity verifier.

    circuit/     R1CS frontend and the MiMC gadget
    groth16/     setup, prover, verifier, solidity export
    witness      secret/digest → field elements
    store        persisted constraint system and keys
    marshal      proof → verifier calldata
    chain/       simulated and web3 verifier backends
    lifecycle    setup orchestration and the proof service
"""

__version__ = "0.1.0"
