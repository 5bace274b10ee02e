"""
ABI of the generated verifier
=============================

One entry point, ``verifyProof(uint256[2],uint256[2][2],uint256[2],uint256[N])``,
returning ``bool``. Every argument is a static type, so a call is always
``4 + 32·(8 + N)`` bytes.
"""

import re

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from zkpreimage.errors import ChainCallError, DeploymentError

FUNCTION_NAME = "verifyProof"

_INPUT_DECL = re.compile(r"uint256\[(\d+)\] memory input\s*\)")


def verify_types(num_public=1):
    return ["uint256[2]", "uint256[2][2]", "uint256[2]", "uint256[{}]".format(num_public)]


def verify_signature(num_public=1):
    return "{}({})".format(FUNCTION_NAME, ",".join(verify_types(num_public)))


def selector(num_public=1):
    return function_signature_to_4byte_selector(verify_signature(num_public))


def call_size(num_public=1):
    return 4 + 32 * (8 + num_public)


def verifier_abi(num_public=1):
    """JSON ABI, for web3 contract objects."""
    names = ("a", "b", "c", "input")
    return [{
        "type": "function",
        "name": FUNCTION_NAME,
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in zip(names, verify_types(num_public))],
        "outputs": [{"name": "r", "type": "bool"}],
    }]


def num_public_inputs(source):
    """Public-input count declared by a generated verifier source."""
    match = _INPUT_DECL.search(source)
    if match is None:
        raise DeploymentError("verifier source declares no verifyProof input array")
    return int(match.group(1))


def encode_verify_call(calldata):
    n = len(calldata.input)
    return selector(n) + encode(verify_types(n), list(calldata.as_args()))


def decode_verify_call(data, num_public):
    """Call bytes → (a, b, c, input), or None when they do not target verifyProof."""
    if len(data) != call_size(num_public) or data[:4] != selector(num_public):
        return None
    return decode(verify_types(num_public), data[4:])


def decode_bool(data):
    """Return data → bool.

    Raises:
        ChainCallError: empty or malformed return data
    """
    try:
        (result,) = decode(["bool"], bytes(data))
    except DecodingError as e:
        raise ChainCallError("undecodable verifier return data", reason=str(e)) from e
    return result


def encode_bool(value):
    return encode(["bool"], [bool(value)])
