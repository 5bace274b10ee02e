"""
Chain client
============

Deploys the generated verifier on a ``ChainBackend`` and submits proofs to
it. The answer is ``True`` / ``False``; anything that prevents an answer
(revert, timeout, transport failure, bad return data) is a
``ChainCallError`` and never reads as ``False``.

Usage:
    >>> client = ChainClient(SimulatedBackend())
    >>> handle = client.deploy(source)
    >>> client.call_verify(handle, marshal(proof, [digest]))  # True
"""

import hashlib
import logging
from dataclasses import dataclass

from zkpreimage.chain import abi
from zkpreimage.errors import PublicInputArityMismatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractHandle:
    address: str
    num_public: int
    source_hash: str


class ChainClient:

    def __init__(self, backend):
        self.backend = backend

    def deploy(self, verifier_source):
        """Raises DeploymentError."""
        num_public = abi.num_public_inputs(verifier_source)
        address = self.backend.deploy(verifier_source)
        self.backend.commit()
        handle = ContractHandle(
            address=address,
            num_public=num_public,
            source_hash=hashlib.sha256(verifier_source.encode("utf-8")).hexdigest(),
        )
        logger.info("verifier deployed at %s (%s backend)", address, self.backend.name)
        return handle

    def call_verify(self, handle, calldata):
        """Raises ChainCallError, PublicInputArityMismatch."""
        if len(calldata.input) != handle.num_public:
            raise PublicInputArityMismatch(handle.num_public, len(calldata.input))
        data = abi.encode_verify_call(calldata)
        result = abi.decode_bool(self.backend.call(handle.address, data))
        logger.info("on-chain verification at %s: %s", handle.address, result)
        return result
