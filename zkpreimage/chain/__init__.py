from zkpreimage.chain.backend import ChainBackend
from zkpreimage.chain.client import ChainClient, ContractHandle
from zkpreimage.chain.simulated import SimulatedBackend
from zkpreimage.chain.web3_backend import Web3Backend


def backend_from_config(config):
    if config.chain_backend == "simulated":
        return SimulatedBackend(gas_limit=config.gas_limit)
    if config.chain_backend == "web3":
        return Web3Backend.from_config(config)
    raise ValueError("unknown chain backend {!r}".format(config.chain_backend))


__all__ = [
    "ChainBackend",
    "ChainClient",
    "ContractHandle",
    "SimulatedBackend",
    "Web3Backend",
    "backend_from_config",
]
