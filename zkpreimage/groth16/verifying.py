from zkpreimage.errors import PublicInputArityMismatch, ValueOutOfRange
from zkpreimage.field import CURVE_ORDER, ec_add, ec_mul, ec_neg, pairing_check


def prepare_inputs(vk, public_inputs):
    """vk_x = IC_0 + Σ x_i·IC_{i+1}"""
    if len(public_inputs) != vk.num_public:
        raise PublicInputArityMismatch(vk.num_public, len(public_inputs))
    vk_x = vk.ic[0]
    for i, x in enumerate(public_inputs):
        x = int(x)
        if not 0 <= x < CURVE_ORDER:
            raise ValueOutOfRange("input[{}]".format(i), "not below the scalar field modulus")
        vk_x = ec_add(vk_x, ec_mul(vk.ic[i + 1], x))
    return vk_x


#  e(A, B) == e(α, β)·e(vk_x, γ)·e(C, δ)
#  ⇔ e(-A, B)·e(α, β)·e(vk_x, γ)·e(C, δ) == 1
def verify(proof, vk, public_inputs):
    vk_x = prepare_inputs(vk, public_inputs)
    return pairing_check([
        (ec_neg(proof.A), proof.B),
        (vk.alpha_g1, vk.beta_g2),
        (vk_x, vk.gamma_g2),
        (proof.C, vk.delta_g2),
    ])
