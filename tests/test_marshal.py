import pytest

from zkpreimage.errors import EncodingOverflow, PublicInputArityMismatch
from zkpreimage.field import CURVE_ORDER, FIELD_MODULUS, g1_to_ints, g2_to_ints
from zkpreimage.marshal import BN254_LAYOUT, CallData, ProofLayout, marshal

from conftest import WRONG_INPUT


class TestLayout:
    def test_bn254(self):
        assert BN254_LAYOUT.field_bytes == 32
        assert len(BN254_LAYOUT.slots) == 8
        assert BN254_LAYOUT.proof_size == 256


class TestMarshal:
    def test_round_trip(self, proof, digest_int):
        calldata = marshal(proof, [digest_int])
        assert calldata.to_proof_bytes() == proof.write_raw()

    def test_accepts_raw_bytes(self, proof, digest_int):
        assert marshal(proof.write_raw(), [digest_int]) == marshal(proof, [digest_int])

    def test_slot_mapping(self, proof, digest_int):
        calldata = marshal(proof, [digest_int])
        ax, ay = g1_to_ints(proof.A)
        (bx0, bx1), (by0, by1) = g2_to_ints(proof.B)
        cx, cy = g1_to_ints(proof.C)
        assert calldata.a == (ax, ay)
        # imaginary part first
        assert calldata.b == ((bx1, bx0), (by1, by0))
        assert calldata.c == (cx, cy)
        assert calldata.input == (digest_int,)

    def test_as_args(self, proof, digest_int):
        a, b, c, inputs = marshal(proof, [digest_int]).as_args()
        assert len(a) == 2 and len(c) == 2 and len(inputs) == 1
        assert [len(row) for row in b] == [2, 2]

    def test_words_fit(self, proof, digest_int):
        a, b, c, inputs = marshal(proof, [digest_int]).as_args()
        for word in a + b[0] + b[1] + c:
            assert 0 <= word < FIELD_MODULUS < 2 ** 256
        assert inputs[0] < CURVE_ORDER

    def test_bytes_input(self, proof, digest):
        calldata = marshal(proof, [digest])
        assert calldata.input == (int.from_bytes(digest, "big"),)

    def test_other_input_keeps_proof(self, proof, digest_int):
        good = marshal(proof, [digest_int])
        wrong = marshal(proof, [WRONG_INPUT])
        assert wrong.to_proof_bytes() == good.to_proof_bytes()
        assert wrong.a == good.a and wrong.b == good.b and wrong.c == good.c


class TestMarshalErrors:
    def test_short_stream(self, proof):
        with pytest.raises(EncodingOverflow):
            marshal(proof.write_raw()[:-1], [1])

    def test_long_stream(self, proof):
        with pytest.raises(EncodingOverflow):
            marshal(proof.write_raw() + b"\x00", [1])

    def test_chunk_not_a_coordinate(self, proof):
        raw = bytearray(proof.write_raw())
        raw[0:32] = FIELD_MODULUS.to_bytes(32, "big")
        with pytest.raises(EncodingOverflow):
            marshal(bytes(raw), [1])

    def test_input_not_below_modulus(self, proof):
        with pytest.raises(EncodingOverflow):
            marshal(proof, [CURVE_ORDER])

    def test_input_too_wide(self, proof):
        with pytest.raises(EncodingOverflow):
            marshal(proof, [b"\x00" * 33])

    def test_negative_input(self, proof):
        with pytest.raises(EncodingOverflow):
            marshal(proof, [-1])

    def test_float_input(self, proof):
        with pytest.raises(TypeError):
            marshal(proof, [3.7])

    def test_arity(self, proof, digest_int):
        with pytest.raises(PublicInputArityMismatch) as e:
            marshal(proof, [digest_int, 1], expected_inputs=1)
        assert (e.value.expected, e.value.got) == (1, 2)


class TestCustomLayout:
    def test_swapped_slots(self, proof, digest_int):
        """a different layout is data, not new code"""
        slots = list(BN254_LAYOUT.slots)
        slots[0], slots[1] = slots[1], slots[0]
        layout = ProofLayout(32, tuple(slots), FIELD_MODULUS, CURVE_ORDER)
        calldata = marshal(proof, [digest_int], layout=layout)
        ax, ay = g1_to_ints(proof.A)
        assert calldata.a == (ay, ax)
        assert calldata.to_proof_bytes(layout) == proof.write_raw()

    def test_calldata_is_value(self):
        c1 = CallData((1, 2), ((3, 4), (5, 6)), (7, 8), (9,))
        c2 = CallData((1, 2), ((3, 4), (5, 6)), (7, 8), (9,))
        assert c1 == c2
