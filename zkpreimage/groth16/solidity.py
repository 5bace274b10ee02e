"""
Solidity verifier export
========================

``export_solidity(vk)`` is a deterministic text transform of a verifying key
into a ``Verifier`` contract whose entry point is

    verifyProof(uint256[2] a, uint256[2][2] b, uint256[2] c, uint256[N] input)
        public view returns (bool)

The key is embedded as hex ``uint256 constant`` declarations (G2 constants
imaginary part first, matching the pairing precompile), which
``read_verifying_key`` parses back. The simulated chain uses that to run
a deployed source without a Solidity compiler.
"""

import re

from jinja2 import Environment, PackageLoader, StrictUndefined

from zkpreimage.errors import DeploymentError
from zkpreimage.field import CURVE_ORDER, FIELD_MODULUS, g1_from_ints, g1_to_ints, g2_from_ints, g2_to_ints
from zkpreimage.groth16.setup import VerifyingKey

_env = Environment(
    loader=PackageLoader("zkpreimage", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)

_CONSTANT = re.compile(r"uint256 constant ([A-Z0-9_]+) = (0x[0-9a-f]{64});")
_FINGERPRINT = re.compile(r"// constraint system fingerprint: ([0-9a-f]*)")


def _hex(value):
    return "0x{:064x}".format(value)


def _g2_constants(prefix, point):
    (x0, x1), (y0, y1) = g2_to_ints(point)
    return [
        (prefix + "_X0", _hex(x1)),
        (prefix + "_X1", _hex(x0)),
        (prefix + "_Y0", _hex(y1)),
        (prefix + "_Y1", _hex(y0)),
    ]


def verifier_constants(vk):
    ax, ay = g1_to_ints(vk.alpha_g1)
    constants = [("ALPHA_X", _hex(ax)), ("ALPHA_Y", _hex(ay))]
    constants += _g2_constants("BETA", vk.beta_g2)
    constants += _g2_constants("GAMMA", vk.gamma_g2)
    constants += _g2_constants("DELTA", vk.delta_g2)
    for i, point in enumerate(vk.ic):
        x, y = g1_to_ints(point)
        constants += [("IC{}_X".format(i), _hex(x)), ("IC{}_Y".format(i), _hex(y))]
    return constants


def export_solidity(vk, name="mimc"):
    template = _env.get_template("verifier.sol.j2")
    return template.render(
        name=name,
        fingerprint=vk.cs_fingerprint.hex(),
        prime_q=FIELD_MODULUS,
        snark_scalar_field=CURVE_ORDER,
        constants=verifier_constants(vk),
        ic_count=len(vk.ic),
        num_public=vk.num_public,
    )


def read_verifying_key(source):
    """Generated verifier source → VerifyingKey.

    Raises:
        DeploymentError: the source does not carry a complete, valid key
    """
    values = {name: int(value, 16) for name, value in _CONSTANT.findall(source)}

    def g2(prefix):
        return g2_from_ints(
            (values[prefix + "_X1"], values[prefix + "_X0"]),
            (values[prefix + "_Y1"], values[prefix + "_Y0"]),
        )

    try:
        alpha = g1_from_ints(values["ALPHA_X"], values["ALPHA_Y"])
        beta, gamma, delta = g2("BETA"), g2("GAMMA"), g2("DELTA")
        ic = []
        while "IC{}_X".format(len(ic)) in values:
            i = len(ic)
            ic.append(g1_from_ints(values["IC{}_X".format(i)], values["IC{}_Y".format(i)]))
    except (KeyError, ValueError) as e:
        raise DeploymentError("verifier source carries no valid verifying key: {}".format(e)) from e
    if not ic:
        raise DeploymentError("verifier source carries no IC points")

    match = _FINGERPRINT.search(source)
    fingerprint = bytes.fromhex(match.group(1)) if match else b""
    return VerifyingKey(alpha, beta, gamma, delta, ic, fingerprint)
