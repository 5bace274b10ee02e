"""
zkpreimage command line
=======================

    zkpreimage --init            compile, set up, write circuit/mimc.* and
                                 the solidity verifier
    zkpreimage [--secret TEXT]   one proof cycle against the stored artifacts:
                                 prove, verify locally and on chain (true),
                                 then the same proof against input 42 (false)
"""

import logging
import sys

import click

from zkpreimage.chain import ChainClient, backend_from_config
from zkpreimage.config import Config, configure_logging
from zkpreimage.errors import ArtifactMissing, ZKPreimageError
from zkpreimage.lifecycle import ProofService, SetupOrchestrator
from zkpreimage.store import ArtifactStore

logger = logging.getLogger("zkpreimage.cli")

WRONG_INPUT = 42


def run_init(config):
    store = ArtifactStore.from_config(config)
    SetupOrchestrator.from_config(config, store).run()
    logger.info("artifacts written to %s", config.artifact_dir)


def run_cycle(config, secret):
    """→ True when every check came out as expected."""
    store = ArtifactStore.from_config(config)
    client = ChainClient(backend_from_config(config))
    service = ProofService.load(store, client)

    digest = service.hash(secret)
    logger.info("creating proof")
    outcome = service.request(secret, digest)
    if not outcome.accepted:
        logger.error("proof for the secret was not accepted: %s at %s (%s)",
                     outcome.state.value, outcome.stage, outcome.error)
        return False
    logger.info("successfully verified proof on-chain")

    wrong = service.check(outcome.proof, [WRONG_INPUT])
    logger.info("same proof against input %d: %s locally", WRONG_INPUT, wrong.state.value)
    if service.verify_on_chain(outcome.proof, [WRONG_INPUT]):
        logger.error("calling the verifier with input %d succeeded, but shouldn't have", WRONG_INPUT)
        return False
    logger.info("verifier rejected input %d on-chain", WRONG_INPUT)
    return wrong.locally_verified is False


@click.command()
@click.option("--init", "init", is_flag=True,
              help="Run circuit setup and export the solidity verifier.")
@click.option("--secret", default="secret", show_default=True,
              help="Secret to prove knowledge of.")
@click.option("--artifact-dir", default=None,
              help="Directory holding mimc.r1cs, mimc.pk and mimc.vk.")
@click.option("--log-level", default=None, help="Logging level.")
def main(init, secret, artifact_dir, log_level):
    overrides = {}
    if artifact_dir:
        overrides["artifact_dir"] = artifact_dir
    if log_level:
        overrides["log_level"] = log_level
    config = Config.from_env(**overrides)
    configure_logging(config.log_level)

    try:
        if init:
            run_init(config)
            return
        ok = run_cycle(config, secret.encode("utf-8"))
    except ArtifactMissing:
        logger.error("please run with --init first to serialize circuit, keys and solidity contract")
        sys.exit(1)
    except ZKPreimageError as e:
        logger.error("%s: %s", type(e).__name__, e)
        sys.exit(1)
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
