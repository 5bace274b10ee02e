"""
Circuit compilation
===================

``compile(descriptor)`` realizes a ``CircuitDescriptor`` as an R1CS
``ConstraintSystem``:

    assert MiMC(Secret) == Hash

Usage:
    >>> cs = compile(CircuitDescriptor(mimc_rounds=91))
    >>> cs.num_public, cs.num_secret  # (1, 1)
"""

import logging

from zkpreimage.errors import InvalidConstraint
from zkpreimage.circuit.descriptor import CircuitDescriptor, SUPPORTED_CURVES
from zkpreimage.circuit.frontend import ConstraintBuilder, LinearCombination
from zkpreimage.circuit.gadgets import mimc_hash
from zkpreimage.circuit.r1cs import ConstraintSystem

logger = logging.getLogger(__name__)


def define(api, descriptor):
    digest = api.public_input(descriptor.public)
    secret = api.secret_input(descriptor.secret)
    api.assert_is_equal(
        mimc_hash(api, secret, seed=descriptor.mimc_seed, rounds=descriptor.mimc_rounds),
        digest,
    )


def compile(descriptor, curve=None):
    curve = curve or descriptor.curve
    if curve not in SUPPORTED_CURVES:
        raise InvalidConstraint("unsupported curve {!r}".format(curve))
    if not isinstance(descriptor.mimc_rounds, int) or descriptor.mimc_rounds < 1:
        raise InvalidConstraint("mimc_rounds must be a positive integer")
    if not descriptor.mimc_seed:
        raise InvalidConstraint("mimc_seed must not be empty")
    if descriptor.secret == descriptor.public:
        raise InvalidConstraint("secret and public fields must have distinct names")

    api = ConstraintBuilder()
    define(api, descriptor)
    cs = api.build(curve, metadata=descriptor.metadata())
    logger.info("compiled %s: %d constraints, %d wires",
                descriptor.name, cs.num_constraints, cs.num_wires)
    return cs


__all__ = [
    "CircuitDescriptor",
    "ConstraintBuilder",
    "ConstraintSystem",
    "LinearCombination",
    "compile",
    "define",
]
