"""
Witness builder
===============

Maps raw values onto the scalar field, refusing anything that would be
silently reduced: a value must be at most 32 bytes wide and strictly below
the modulus r.

The witness is ephemeral. It is never persisted, logged or sent anywhere;
its ``repr`` hides the secret part.

Usage:
    >>> secret = b"secret"
    >>> w = build(secret, descriptor.hash(secret))
    >>> public_inputs(42)  # [42]
"""

from zkpreimage.errors import ValueOutOfRange
from zkpreimage.field import CURVE_ORDER, FIELD_BYTES


class Witness:
    """Assignment of the circuit's public and secret fields.

    Attributes:
        public_values: list of ints, declaration order
        secret_values: list of ints, declaration order
    """

    __slots__ = ("public_values", "secret_values")

    def __init__(self, public_values, secret_values):
        self.public_values = list(public_values)
        self.secret_values = list(secret_values)

    def public(self):
        """The public part alone, as passed to a verifier."""
        return list(self.public_values)

    def __repr__(self):
        return "Witness(public={}, secret=<{} hidden>)".format(
            self.public_values, len(self.secret_values))


def field_element(value, name="value"):
    """bytes or int → int in [0, r).

    Raises:
        ValueOutOfRange: negative, wider than 32 bytes, or not below r
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) > FIELD_BYTES:
            raise ValueOutOfRange(
                name, "{} bytes exceeds the {}-byte field width".format(len(value), FIELD_BYTES))
        value = int.from_bytes(value, "big")
    elif not isinstance(value, int):
        raise TypeError("{}: expected bytes or int, got {}".format(name, type(value).__name__))
    if value < 0:
        raise ValueOutOfRange(name, "negative value")
    if value >= CURVE_ORDER:
        raise ValueOutOfRange(name, "not below the scalar field modulus")
    return value


def build(secret_bytes, public_digest_bytes):
    """(secret, digest) → Witness.

    The digest is not checked against the secret here; a mismatching pair
    builds fine and fails at proving time.
    """
    secret = field_element(secret_bytes, "secret")
    digest = field_element(public_digest_bytes, "digest")
    return Witness([digest], [secret])


def public_inputs(*values):
    return [field_element(v, "input[{}]".format(i)) for i, v in enumerate(values)]
