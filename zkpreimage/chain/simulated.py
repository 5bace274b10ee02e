"""
Simulated chain
===============

An in-process stand-in for an Ethereum node, enough to deploy the generated
verifier and call ``verifyProof`` on it.

"Deploying" a verifier source reads the verifying-key constants embedded in
it. A call then runs the contract's logic with the semantics of the EVM
precompiles it relies on:

  | step                       | precompile | failure                          |
  |----------------------------|------------|----------------------------------|
  | input[i] < r               | (require)  | verifier-gte-snark-scalar-field  |
  | vk_x += input[i]·IC[i+1]   | 0x07, 0x06 | pairing-mul/add-failed           |
  | e(-A,B)·e(α,β)·e(vk_x,γ)·e(C,δ) == 1 | 0x08 | pairing-opcode-failed    |

A point that is off its curve (or not in G2's subgroup) makes the
precompile fail, which reverts the call. Reverts and out-of-gas raise
``ChainCallError``; a call to an address without code returns empty data.

A deployment is only callable once ``commit()`` has mined it. Accounts,
contracts and calls are kept in a TinyDB ledger backed by ``MemoryStorage``;
ledger reads and writes take one lock, pairing checks run outside it.
"""

import logging
import threading

from eth_utils import keccak, to_checksum_address
from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

from zkpreimage.chain import abi
from zkpreimage.chain.backend import ChainBackend
from zkpreimage.errors import ChainCallError, DeploymentError
from zkpreimage.field import (
    CURVE_ORDER,
    ec_add,
    ec_mul,
    ec_neg,
    g1_from_ints,
    g2_from_ints,
    in_g2_subgroup,
    pairing_check,
)
from zkpreimage.groth16.solidity import read_verifying_key

logger = logging.getLogger(__name__)

# block gas limit of the simulated chain
GAS_LIMIT = 8000029

DEPLOYER = to_checksum_address("0x" + keccak(b"zkpreimage deployer")[12:].hex())
DEPLOYER_BALANCE = 10 ** 21

# gas schedule, Istanbul prices
G_TRANSACTION = 21000
G_CREATE = 32000
G_CODE_BYTE = 200
G_TXDATA_ZERO = 4
G_TXDATA_NONZERO = 16
G_ECADD = 150
G_ECMUL = 6000
G_PAIRING_BASE = 45000
G_PAIRING_POINT = 34000


class Revert(Exception):
    pass


def calldata_gas(data):
    return sum(G_TXDATA_ZERO if byte == 0 else G_TXDATA_NONZERO for byte in data)


def verify_gas(data, num_public, pairs=4):
    return (G_TRANSACTION + calldata_gas(data)
            + num_public * (G_ECMUL + G_ECADD)
            + G_PAIRING_BASE + pairs * G_PAIRING_POINT)


def _g1(x, y, reason):
    try:
        return g1_from_ints(x, y)
    except ValueError as e:
        raise Revert(reason) from e


def _g2(x, y, reason):
    # calldata order is imaginary part first
    try:
        point = g2_from_ints((x[1], x[0]), (y[1], y[0]))
    except ValueError as e:
        raise Revert(reason) from e
    if not in_g2_subgroup(point):
        raise Revert(reason)
    return point


def execute_verify(vk, a, b, c, inputs):
    """Run ``Verifier.verifyProof`` against ``vk``.

    Raises:
        Revert: a ``require`` or a precompile failed
    """
    vk_x = vk.ic[0]
    for i, x in enumerate(inputs):
        if x >= CURVE_ORDER:
            raise Revert("verifier-gte-snark-scalar-field")
        vk_x = ec_add(vk_x, ec_mul(vk.ic[i + 1], x))

    A = _g1(a[0], a[1], "pairing-opcode-failed")
    B = _g2(b[0], b[1], "pairing-opcode-failed")
    C = _g1(c[0], c[1], "pairing-opcode-failed")
    return pairing_check([
        (ec_neg(A), B),
        (vk.alpha_g1, vk.beta_g2),
        (vk_x, vk.gamma_g2),
        (C, vk.delta_g2),
    ])


class SimulatedBackend(ChainBackend):
    """In-memory chain with a single funded deployer account."""

    name = "simulated"

    def __init__(self, gas_limit=GAS_LIMIT):
        self.gas_limit = gas_limit
        self.db = TinyDB(storage=MemoryStorage)
        self.accounts = self.db.table("accounts")
        self.contracts = self.db.table("contracts")
        self.calls = self.db.table("calls")
        self.block_number = 0
        self._code = {}
        self._lock = threading.Lock()
        self.accounts.insert({"address": DEPLOYER, "balance": DEPLOYER_BALANCE, "nonce": 0})

    def _deployer(self):
        return self.accounts.get(Query().address == DEPLOYER)

    def deploy(self, verifier_source):
        code = verifier_source.encode("utf-8")
        gas = G_TRANSACTION + G_CREATE + calldata_gas(code) + G_CODE_BYTE * len(code)
        if gas > self.gas_limit:
            raise DeploymentError("deployment needs {} gas, limit is {}".format(gas, self.gas_limit))

        vk = read_verifying_key(verifier_source)
        num_public = abi.num_public_inputs(verifier_source)
        if num_public != vk.num_public:
            raise DeploymentError("verifyProof takes {} inputs but the key has {}".format(
                num_public, vk.num_public))

        with self._lock:
            nonce = self._deployer()["nonce"]
            address = to_checksum_address(
                "0x" + keccak(bytes.fromhex(DEPLOYER[2:]) + nonce.to_bytes(32, "big"))[12:].hex())
            self.accounts.update({"nonce": nonce + 1}, Query().address == DEPLOYER)

            self._code[address] = (vk, num_public)
            self.contracts.insert({
                "address": address,
                "deployer": DEPLOYER,
                "code_hash": keccak(code).hex(),
                "gas_used": gas,
                "block": None,
            })
        logger.debug("deployment of %s pending, %d gas", address, gas)
        return address

    def commit(self):
        pending = Query().block.test(lambda block: block is None)
        with self._lock:
            self.block_number += 1
            block = self.block_number
            self.contracts.update({"block": block}, pending)
        logger.debug("mined block %d", block)
        return block

    def code_at(self, address):
        with self._lock:
            contract = self.contracts.get(Query().address == address)
            if contract is None or contract["block"] is None:
                return None
            return self._code[address]

    def call(self, address, data):
        data = bytes(data)
        code = self.code_at(address)
        if code is None:
            # no code at the address: the call succeeds and returns nothing
            self._record(address, 0, None)
            return b""
        vk, num_public = code

        args = abi.decode_verify_call(data, num_public)
        if args is None:
            self._record(address, 0, "revert")
            raise ChainCallError("execution reverted", reason="unknown function selector or bad calldata")
        gas = verify_gas(data, num_public)
        if gas > self.gas_limit:
            self._record(address, self.gas_limit, "out of gas")
            raise ChainCallError("out of gas", reason="needs {} gas".format(gas))

        try:
            result = execute_verify(vk, *args)
        except Revert as e:
            self._record(address, gas, "revert: {}".format(e))
            raise ChainCallError("execution reverted", reason=str(e)) from e
        self._record(address, gas, bool(result))
        return abi.encode_bool(result)

    def _record(self, address, gas_used, result):
        with self._lock:
            self.calls.insert({
                "to": address,
                "block": self.block_number,
                "gas_used": gas_used,
                "result": result,
            })
