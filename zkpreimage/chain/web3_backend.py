"""
web3.py backend
===============

Talks to a real node over HTTP JSON-RPC. Solidity compilation happens out
of band: the backend deploys the bytecode it is given (hex text, e.g. the
``bin`` output of ``solc``) through a contract object whose ABI is sized
from the source it is asked to deploy.
Verification is an ``eth_call``; nothing is retried.
"""

import logging

from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from zkpreimage.chain import abi
from zkpreimage.chain.backend import ChainBackend
from zkpreimage.errors import ChainCallError, DeploymentError

logger = logging.getLogger(__name__)


def read_bytecode(path):
    with open(path) as f:
        text = f.read().strip()
    if not text.startswith("0x"):
        text = "0x" + text
    return text


class Web3Backend(ChainBackend):

    name = "web3"

    def __init__(self, rpc_url, bytecode=None, timeout=30, gas_limit=8000029, account=None):
        self.rpc_url = rpc_url
        self.bytecode = bytecode
        self.timeout = timeout
        self.gas_limit = gas_limit
        self.account = account
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    @classmethod
    def from_config(cls, config):
        bytecode = read_bytecode(config.verifier_bytecode) if config.verifier_bytecode else None
        return cls(config.rpc_url, bytecode, config.chain_timeout, config.gas_limit)

    def deploy(self, verifier_source):
        if not self.bytecode:
            raise DeploymentError(
                "the web3 backend needs compiled verifier bytecode "
                "(set ZKPREIMAGE_VERIFIER_BYTECODE)")
        num_public = abi.num_public_inputs(verifier_source)
        logger.debug("deploying %d bytes of bytecode for a %d-input verifier",
                     len(self.bytecode) // 2 - 1, num_public)
        contract = self.w3.eth.contract(abi=abi.verifier_abi(num_public), bytecode=self.bytecode)
        try:
            account = self.account or self.w3.eth.accounts[0]
            tx_hash = contract.constructor().transact({"from": account, "gas": self.gas_limit})
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except (Web3Exception, OSError, ValueError, IndexError) as e:
            raise DeploymentError("deployment to {} failed: {}".format(self.rpc_url, e)) from e
        if receipt["status"] != 1 or not receipt["contractAddress"]:
            raise DeploymentError("deployment transaction {} failed".format(tx_hash.hex()))
        return receipt["contractAddress"]

    def call(self, address, data):
        try:
            result = self.w3.eth.call({"to": address, "data": Web3.to_hex(bytes(data)), "gas": self.gas_limit})
        except ContractLogicError as e:
            raise ChainCallError("execution reverted", reason=str(e)) from e
        except (Web3Exception, OSError, ValueError) as e:
            raise ChainCallError("call to {} failed".format(address), reason=str(e)) from e
        return bytes(result)
