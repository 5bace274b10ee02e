"""
Proof lifecycle
===============

**Setup** (``SetupOrchestrator``), once per circuit:

    UNINITIALIZED ──compile──▶ COMPILED ──setup──▶ KEYS_GENERATED
                                                    │
                          persist cs/pk/vk, export verifier source

  ``run()`` holds an exclusive lock on ``.setup.lock`` in the artifact
  directory, so two concurrent runs cannot interleave their writes. The OS
  drops the lock when its holder dies; a leftover file is not a lock.

**Requests** (``ProofService``), per secret:

    WITNESS_READY → PROOF_GENERATED → LOCALLY_VERIFIED → SUBMITTED
        → ON_CHAIN_ACCEPTED | ON_CHAIN_REJECTED | CHAIN_CALL_FAILED

  short-circuiting to REJECTED (bad witness, unsatisfied relation) or
  LOCALLY_REJECTED (local verification false). A locally rejected proof is
  never submitted.

Per-request errors (``fatal = False``) end up in the ``ProofOutcome``;
fatal ones propagate.
"""

import contextlib
import enum
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import portalocker

from zkpreimage import mimc
from zkpreimage.errors import (
    ArtifactCorrupt,
    ArtifactMismatch,
    ArtifactMissing,
    ChainCallError,
    SetupError,
    UnsatisfiedConstraint,
    WitnessError,
)
from zkpreimage.groth16 import Groth16
from zkpreimage.marshal import marshal
from zkpreimage.store import ArtifactStatus
from zkpreimage.witness import build, public_inputs as encode_public_inputs

logger = logging.getLogger(__name__)

LOCK_NAME = ".setup.lock"


class SetupState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    COMPILED = "compiled"
    KEYS_GENERATED = "keys_generated"


class SetupOrchestrator:
    """Compile, set up, persist and export, in that order.

    Attributes:
        descriptor: CircuitDescriptor
        store: ArtifactStore the triple is written to
        solidity_path: where the verifier source goes
        state: SetupState
    """

    def __init__(self, descriptor, store, solidity_path, backend=None):
        self.descriptor = descriptor
        self.store = store
        self.solidity_path = solidity_path
        self.backend = backend or Groth16()
        self.state = SetupState.UNINITIALIZED
        self.cs = None
        self.pk = None
        self.vk = None

    @classmethod
    def from_config(cls, config, store):
        return cls(config.descriptor(), store, config.solidity_path)

    def compile(self):
        logger.info("compiling circuit %s", self.descriptor.name)
        self.cs = self.backend.compile(self.descriptor, self.descriptor.curve)
        self.pk = self.vk = None
        self.state = SetupState.COMPILED
        return self.cs

    def setup(self):
        if self.state is SetupState.UNINITIALIZED:
            raise SetupError("setup called before compile")
        logger.info("running groth16 setup")
        self.pk, self.vk = self.backend.setup(self.cs)
        self.state = SetupState.KEYS_GENERATED
        return self.pk, self.vk

    def export(self):
        if self.state is not SetupState.KEYS_GENERATED:
            raise SetupError("export called before setup")
        source = self.backend.export_solidity(self.vk, self.descriptor.name)
        self.store.write_text(source, self.solidity_path)
        logger.info("exported solidity verifier to %s", self.solidity_path)
        return source

    @contextlib.contextmanager
    def lock(self):
        os.makedirs(self.store.directory, exist_ok=True)
        path = os.path.join(self.store.directory, LOCK_NAME)
        lock = portalocker.Lock(path, mode="a", timeout=0, fail_when_locked=True)
        try:
            lock.acquire()
        except portalocker.LockException as e:
            raise SetupError("another setup holds {}".format(path)) from e
        try:
            yield path
        finally:
            lock.release()

    def run(self):
        """→ (ConstraintSystem, ProvingKey, VerifyingKey), persisted."""
        with self.lock():
            self.compile()
            self.setup()
            self.store.save_all(self.cs, self.pk, self.vk)
            self.export()
        return self.cs, self.pk, self.vk


class RequestState(enum.Enum):
    WITNESS_READY = "witness_ready"
    PROOF_GENERATED = "proof_generated"
    LOCALLY_VERIFIED = "locally_verified"
    SUBMITTED = "submitted"
    ON_CHAIN_ACCEPTED = "on_chain_accepted"
    ON_CHAIN_REJECTED = "on_chain_rejected"
    CHAIN_CALL_FAILED = "chain_call_failed"
    REJECTED = "rejected"
    LOCALLY_REJECTED = "locally_rejected"


TERMINAL_STATES = frozenset([
    RequestState.ON_CHAIN_ACCEPTED,
    RequestState.ON_CHAIN_REJECTED,
    RequestState.CHAIN_CALL_FAILED,
    RequestState.REJECTED,
    RequestState.LOCALLY_REJECTED,
])


@dataclass
class ProofOutcome:
    state: RequestState
    stage: Optional[str] = None
    error: Optional[Exception] = None
    proof: Any = None
    calldata: Any = None
    public_inputs: list = field(default_factory=list)
    locally_verified: Optional[bool] = None
    on_chain: Optional[bool] = None

    @property
    def accepted(self):
        return self.state is RequestState.ON_CHAIN_ACCEPTED

    @property
    def terminal(self):
        return self.state in TERMINAL_STATES

    def fail(self, state, stage, error=None):
        self.state = state
        self.stage = stage
        self.error = error
        return self

    def to_dict(self):
        """JSON-ready view; the secret never appears here."""
        out = {
            "state": self.state.value,
            "stage": self.stage,
            "error": str(self.error) if self.error is not None else None,
            "public_inputs": [str(x) for x in self.public_inputs],
            "locally_verified": self.locally_verified,
            "on_chain": self.on_chain,
            "proof": self.proof.write_raw().hex() if self.proof is not None else None,
        }
        if self.calldata is not None:
            a, b, c, inputs = self.calldata.as_args()
            out["calldata"] = {
                "a": [str(x) for x in a],
                "b": [[str(x) for x in row] for row in b],
                "c": [str(x) for x in c],
                "input": [str(x) for x in inputs],
            }
        return out


class ProofService:
    """Proves and checks against one loaded artifact triple.

    The triple is read-only once loaded, so a service can serve concurrent
    requests; chain calls are made without holding any lock.
    """

    def __init__(self, cs, pk, vk, client, backend=None):
        if pk.cs_fingerprint != cs.fingerprint() or vk.cs_fingerprint != cs.fingerprint():
            raise ArtifactMismatch("keys were not derived from the loaded constraint system")
        self.cs = cs
        self.pk = pk
        self.vk = vk
        self.client = client
        self.backend = backend or Groth16()
        self.handle = None

    @classmethod
    def load(cls, store, client, deploy=True):
        """Load the triple from ``store`` and deploy its verifier.

        Raises:
            ArtifactMissing: nothing has been set up yet
            ArtifactCorrupt: the triple is incomplete or unreadable
            ArtifactMismatch: the keys belong to another constraint system
        """
        status = store.status()
        if status is ArtifactStatus.ABSENT:
            raise ArtifactMissing("no artifacts in {}; run setup first".format(store.directory),
                                  store.directory)
        if status is ArtifactStatus.CORRUPT:
            raise ArtifactCorrupt("artifacts in {} are incomplete or corrupt".format(store.directory),
                                  store.directory)
        cs, pk, vk = store.load_all()
        service = cls(cs, pk, vk, client)
        if deploy:
            service.deploy()
        return service

    def deploy(self):
        source = self.backend.export_solidity(self.vk, self.cs.metadata.get("name", "mimc"))
        self.handle = self.client.deploy(source)
        return self.handle

    def hash(self, secret):
        """Digest of ``secret`` under the loaded circuit's hash parameters."""
        return mimc.digest(
            secret,
            self.cs.metadata.get("mimc_seed", mimc.SEED),
            self.cs.metadata.get("mimc_rounds", mimc.ROUNDS),
        )

    def request(self, secret, digest, public_inputs=None):
        """Prove knowledge of ``secret`` for ``digest``, then check the proof.

        The proof is checked against ``public_inputs`` when given, otherwise
        against the digest itself.
        """
        outcome = ProofOutcome(RequestState.WITNESS_READY)
        try:
            witness = build(secret, digest)
        except WitnessError as e:
            logger.info("request rejected: %s", e)
            return outcome.fail(RequestState.REJECTED, "witness", e)

        logger.info("proving")
        try:
            proof = self.backend.prove(self.cs, self.pk, witness)
        except UnsatisfiedConstraint as e:
            logger.info("request rejected: %s", e)
            return outcome.fail(RequestState.REJECTED, "prove", e)
        outcome.proof = proof
        outcome.state = RequestState.PROOF_GENERATED

        if public_inputs is None:
            public_inputs = witness.public()
        return self._check(outcome, public_inputs)

    def check(self, proof, public_inputs):
        """Check an existing proof against arbitrary public inputs."""
        outcome = ProofOutcome(RequestState.PROOF_GENERATED, proof=proof)
        return self._check(outcome, public_inputs)

    def verify_on_chain(self, proof, public_inputs):
        """Ask the deployed verifier directly, without the local gate.

        Raises:
            ChainCallError: no answer from the chain
        """
        inputs = encode_public_inputs(*public_inputs)
        calldata = marshal(proof, inputs, expected_inputs=self.vk.num_public)
        return self.client.call_verify(self._deployed(), calldata)

    def _deployed(self):
        if self.handle is None:
            self.deploy()
        return self.handle

    def _check(self, outcome, public_inputs):
        try:
            inputs = encode_public_inputs(*public_inputs)
        except WitnessError as e:
            return outcome.fail(RequestState.REJECTED, "inputs", e)
        outcome.public_inputs = inputs

        ok = self.backend.verify(outcome.proof, self.vk, inputs)
        outcome.locally_verified = ok
        if not ok:
            logger.info("local verification failed; not submitting")
            return outcome.fail(RequestState.LOCALLY_REJECTED, "verify")
        outcome.state = RequestState.LOCALLY_VERIFIED

        outcome.calldata = marshal(outcome.proof, inputs, expected_inputs=self.vk.num_public)
        handle = self._deployed()
        outcome.state = RequestState.SUBMITTED
        try:
            accepted = self.client.call_verify(handle, outcome.calldata)
        except ChainCallError as e:
            logger.warning("chain call failed: %s", e)
            return outcome.fail(RequestState.CHAIN_CALL_FAILED, "chain", e)
        outcome.on_chain = accepted
        if accepted:
            outcome.state = RequestState.ON_CHAIN_ACCEPTED
        else:
            outcome.fail(RequestState.ON_CHAIN_REJECTED, "chain")
        return outcome
