"""
Proof → calldata marshaller
===========================

Turns a proof's raw byte stream and the public inputs into the argument
tuple of the generated verifier:

    verifyProof(uint256[2] a, uint256[2][2] b, uint256[2] c, uint256[N] input)

**Layout**:
  The raw stream is cut into consecutive ``field_bytes`` chunks, each read
  as a big-endian unsigned integer, and chunk k goes to ``slots[k]``:

  | chunk | proof word | calldata |
  |-------|------------|----------|
  | 0     | A.x        | a[0]     |
  | 1     | A.y        | a[1]     |
  | 2     | B.x.c1     | b[0][0]  |
  | 3     | B.x.c0     | b[0][1]  |
  | 4     | B.y.c1     | b[1][0]  |
  | 5     | B.y.c0     | b[1][1]  |
  | 6     | C.x        | c[0]     |
  | 7     | C.y        | c[1]     |

  This table is a contract with the verifier's function signature. A
  different curve or proof encoding means a different ``ProofLayout``, never
  new offset arithmetic here.

Usage:
    >>> calldata = marshal(proof, [digest])
    >>> a, b, c, inputs = calldata.as_args()
    >>> calldata.to_proof_bytes() == proof.write_raw()  # True
"""

from dataclasses import dataclass

from zkpreimage.errors import EncodingOverflow, PublicInputArityMismatch
from zkpreimage.field import CURVE_ORDER, FIELD_BYTES, FIELD_MODULUS


@dataclass(frozen=True)
class ProofLayout:
    """How a proof byte stream maps onto calldata.

    Attributes:
        field_bytes: width of every chunk and every calldata word
        slots: calldata position of each chunk, stream order
        coordinate_modulus: every proof chunk must be below this
        scalar_modulus: every public input must be below this
    """

    field_bytes: int
    slots: tuple
    coordinate_modulus: int
    scalar_modulus: int

    @property
    def proof_size(self):
        return self.field_bytes * len(self.slots)


BN254_LAYOUT = ProofLayout(
    field_bytes=FIELD_BYTES,
    slots=(
        ("a", 0), ("a", 1),
        ("b", 0, 0), ("b", 0, 1), ("b", 1, 0), ("b", 1, 1),
        ("c", 0), ("c", 1),
    ),
    coordinate_modulus=FIELD_MODULUS,
    scalar_modulus=CURVE_ORDER,
)


@dataclass(frozen=True)
class CallData:
    a: tuple
    b: tuple
    c: tuple
    input: tuple

    def as_args(self):
        return (
            list(self.a),
            [list(row) for row in self.b],
            list(self.c),
            list(self.input),
        )

    def to_proof_bytes(self, layout=BN254_LAYOUT):
        """Re-slice into the proof's raw byte stream."""
        out = []
        for slot in layout.slots:
            value = getattr(self, slot[0])
            for index in slot[1:]:
                value = value[index]
            out.append(value.to_bytes(layout.field_bytes, "big"))
        return b"".join(out)


def _proof_stream(proof):
    if isinstance(proof, (bytes, bytearray)):
        return bytes(proof)
    return proof.write_raw()


def encode_input(value, layout=BN254_LAYOUT, index=0):
    if isinstance(value, (bytes, bytearray)):
        if len(value) > layout.field_bytes:
            raise EncodingOverflow("input[{}] is {} bytes, wider than {}".format(
                index, len(value), layout.field_bytes))
        value = int.from_bytes(value, "big")
    elif not isinstance(value, int):
        raise TypeError("input[{}]: expected bytes or int, got {}".format(index, type(value).__name__))
    if value < 0 or value >= layout.scalar_modulus:
        raise EncodingOverflow("input[{}] does not fit the scalar field".format(index))
    return value


def encode_inputs(public_inputs, layout=BN254_LAYOUT):
    return tuple(encode_input(v, layout, i) for i, v in enumerate(public_inputs))


def marshal(proof, public_inputs, layout=BN254_LAYOUT, expected_inputs=None):
    """Proof + public inputs → CallData.

    Args:
        proof: Proof or its raw byte stream
        public_inputs: ints or big-endian bytes
        layout: ProofLayout
        expected_inputs: public-input count declared by the verifying key

    Raises:
        EncodingOverflow: stream length does not match the layout, or a
            value does not fit its word
        PublicInputArityMismatch: wrong number of public inputs
    """
    stream = _proof_stream(proof)
    if len(stream) != layout.proof_size:
        raise EncodingOverflow("proof stream is {} bytes, layout expects {}".format(
            len(stream), layout.proof_size))
    if expected_inputs is not None and len(public_inputs) != expected_inputs:
        raise PublicInputArityMismatch(expected_inputs, len(public_inputs))

    a = [0, 0]
    b = [[0, 0], [0, 0]]
    c = [0, 0]
    targets = {"a": a, "b": b, "c": c}
    width = layout.field_bytes
    for k, slot in enumerate(layout.slots):
        value = int.from_bytes(stream[k * width:(k + 1) * width], "big")
        if value >= layout.coordinate_modulus:
            raise EncodingOverflow("proof chunk {} does not fit the coordinate field".format(k))
        target = targets[slot[0]]
        for index in slot[1:-1]:
            target = target[index]
        target[slot[-1]] = value

    return CallData(
        a=tuple(a),
        b=tuple(tuple(row) for row in b),
        c=tuple(c),
        input=encode_inputs(public_inputs, layout),
    )
