from dataclasses import dataclass

from zkpreimage import mimc

SUPPORTED_CURVES = ("bn254",)


@dataclass(frozen=True)
class CircuitDescriptor:
    """Pre-image knowledge relation: MiMC(Secret) == Hash.

    ``Secret`` has secret visibility and ``Hash`` public visibility. The hash
    parameters are part of the relation's identity: changing the seed or the
    round count is a different circuit.
    """

    name: str = "mimc"
    secret: str = "Secret"
    public: str = "Hash"
    curve: str = "bn254"
    mimc_seed: str = mimc.SEED
    mimc_rounds: int = mimc.ROUNDS

    def hash(self, data):
        """Native digest under this circuit's hash parameters → 32 bytes."""
        return mimc.digest(data, self.mimc_seed, self.mimc_rounds)

    def metadata(self):
        return {
            "name": self.name,
            "mimc_seed": self.mimc_seed,
            "mimc_rounds": self.mimc_rounds,
        }
