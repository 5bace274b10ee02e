"""
Runtime configuration
=====================

Every knob has a default matching the reference deployment; ``from_env``
overrides them from ``ZKPREIMAGE_*`` environment variables:

  | variable                       | field              | default          |
  |--------------------------------|--------------------|------------------|
  | ZKPREIMAGE_ARTIFACT_DIR        | artifact_dir       | circuit          |
  | ZKPREIMAGE_CURVE               | curve              | bn254            |
  | ZKPREIMAGE_MIMC_SEED           | mimc_seed          | seed             |
  | ZKPREIMAGE_MIMC_ROUNDS         | mimc_rounds        | 91               |
  | ZKPREIMAGE_CHAIN_BACKEND       | chain_backend      | simulated        |
  | ZKPREIMAGE_RPC_URL             | rpc_url            | http://localhost:8545 |
  | ZKPREIMAGE_CHAIN_TIMEOUT       | chain_timeout      | 30               |
  | ZKPREIMAGE_GAS_LIMIT           | gas_limit          | 8000029          |
  | ZKPREIMAGE_VERIFIER_BYTECODE   | verifier_bytecode  | (none)           |
  | ZKPREIMAGE_LOG_LEVEL           | log_level          | INFO             |
  | ZKPREIMAGE_DB_PATH             | db_path            | (in memory)      |
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

from zkpreimage import mimc
from zkpreimage.circuit.descriptor import CircuitDescriptor

ENV_PREFIX = "ZKPREIMAGE_"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass
class Config:
    artifact_dir: str = "circuit"
    r1cs_file: str = "mimc.r1cs"
    pk_file: str = "mimc.pk"
    vk_file: str = "mimc.vk"
    solidity_file: str = "mimc_verifier.sol"
    curve: str = "bn254"
    mimc_seed: str = mimc.SEED
    mimc_rounds: int = mimc.ROUNDS
    chain_backend: str = "simulated"
    rpc_url: str = "http://localhost:8545"
    chain_timeout: float = 30.0
    gas_limit: int = 8000029
    verifier_bytecode: Optional[str] = None
    log_level: str = "INFO"
    db_path: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None, **overrides):
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type is int:
                values[f.name] = int(raw)
            elif f.type is float:
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        values.update(overrides)
        return cls(**values)

    def path(self, name):
        return os.path.join(self.artifact_dir, name)

    @property
    def r1cs_path(self):
        return self.path(self.r1cs_file)

    @property
    def pk_path(self):
        return self.path(self.pk_file)

    @property
    def vk_path(self):
        return self.path(self.vk_file)

    @property
    def solidity_path(self):
        return self.path(self.solidity_file)

    def descriptor(self):
        return CircuitDescriptor(
            curve=self.curve,
            mimc_seed=self.mimc_seed,
            mimc_rounds=self.mimc_rounds,
        )

    def as_mapping(self):
        """Upper-case keys, the shape ``flask.Config.from_mapping`` takes."""
        return {"ZKPREIMAGE_" + k.upper(): v for k, v in asdict(self).items()}


def configure_logging(level="INFO"):
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("zkpreimage").setLevel(level)
