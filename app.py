"""
HTTP front end for the MiMC pre-image prover.

  GET  /status     artifact status and deployed verifier address
  POST /setup      compile, set up, persist, export
  POST /prove      {"secret": "...", "digest": "<hex>"?}
  POST /verify     {"proof": "<hex>", "input": [int | "<hex>", ...]}
  GET  /requests   outcomes recorded so far

Outcomes (never the secret) are recorded in a TinyDB table.
"""

import threading

from flask import Blueprint, Flask, current_app, jsonify, request
from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

from zkpreimage.chain import ChainClient, backend_from_config
from zkpreimage.config import Config, configure_logging
from zkpreimage.errors import ArtifactError, SetupError, ZKPreimageError
from zkpreimage.groth16 import Proof
from zkpreimage.lifecycle import ProofService, SetupOrchestrator
from zkpreimage.store import ArtifactStore

bp = Blueprint("zkpreimage", __name__)

Requests = Query()


class Runtime:
    """Per-app state: store, request log, and the lazily loaded service.

    ``_lock`` guards the service slot and the request table. It is not held
    while the service loads and deploys its verifier.
    """

    def __init__(self, config):
        self.config = config
        self.store = ArtifactStore.from_config(config)
        self.db = TinyDB(config.db_path) if config.db_path else TinyDB(storage=MemoryStorage)
        self.requests = self.db.table("requests")
        self.client = ChainClient(backend_from_config(config))
        self.service = None
        self._lock = threading.Lock()

    def get_service(self):
        with self._lock:
            if self.service is not None:
                return self.service
        service = ProofService.load(self.store, self.client)
        with self._lock:
            if self.service is None:
                self.service = service
            return self.service

    def reset(self):
        with self._lock:
            self.service = None

    def log(self, row):
        with self._lock:
            row["id"] = self.requests.insert(dict(row))
        return row

    def rows(self, kind=None):
        with self._lock:
            docs = self.requests.search(Requests.kind == kind) if kind else self.requests.all()
        return sorted((dict(doc, id=doc.doc_id) for doc in docs), key=lambda row: row["id"])


def runtime():
    return current_app.extensions["zkpreimage"]


def record(kind, outcome):
    row = outcome.to_dict()
    row["kind"] = kind
    return runtime().log(row)


def bad_request(message):
    return jsonify({"error": "BadRequest", "message": message}), 400


def parse_input(value):
    if isinstance(value, bool):
        raise ValueError("boolean is not a public input")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value[2:] if value.startswith("0x") else value
        return int(text, 16)
    raise ValueError("public input must be an int or a hex string")


@bp.route("/status", methods=["GET"])
def status():
    rt = runtime()
    service = rt.service
    return jsonify({
        "status": rt.store.status().value,
        "artifact_dir": rt.config.artifact_dir,
        "curve": rt.config.curve,
        "chain_backend": rt.config.chain_backend,
        "verifier": service.handle.address if service and service.handle else None,
    })


@bp.route("/setup", methods=["POST"])
def setup():
    rt = runtime()
    orchestrator = SetupOrchestrator.from_config(rt.config, rt.store)
    cs, pk, vk = orchestrator.run()
    rt.reset()
    return jsonify({
        "status": rt.store.status().value,
        "constraints": cs.num_constraints,
        "wires": cs.num_wires,
        "fingerprint": cs.fingerprint().hex(),
    })


@bp.route("/prove", methods=["POST"])
def prove():
    body = request.get_json(silent=True) or {}
    secret = body.get("secret")
    if not isinstance(secret, str):
        return bad_request("'secret' must be a string")
    service = runtime().get_service()

    secret = secret.encode("utf-8")
    digest = body.get("digest")
    if digest is None:
        digest = service.hash(secret)
    else:
        try:
            digest = bytes.fromhex(digest[2:] if digest.startswith("0x") else digest)
        except (AttributeError, ValueError):
            return bad_request("'digest' must be a hex string")

    outcome = service.request(secret, digest)
    return jsonify(record("prove", outcome))


@bp.route("/verify", methods=["POST"])
def verify():
    body = request.get_json(silent=True) or {}
    try:
        proof = Proof.read_raw(bytes.fromhex(body.get("proof", "")))
        inputs = [parse_input(v) for v in body.get("input", [])]
    except (TypeError, ValueError) as e:
        return bad_request(str(e))
    outcome = runtime().get_service().check(proof, inputs)
    return jsonify(record("verify", outcome))


@bp.route("/requests", methods=["GET"])
def list_requests():
    return jsonify(runtime().rows(request.args.get("kind")))


@bp.app_errorhandler(ZKPreimageError)
def handle_error(e):
    # conflicts with server state: artifacts missing, setup in progress
    code = 409 if isinstance(e, ArtifactError) or type(e) is SetupError else 400
    return jsonify({"error": type(e).__name__, "message": str(e), "fatal": e.fatal}), code


def create_app(config=None):
    config = config or Config.from_env()
    configure_logging(config.log_level)
    app = Flask(__name__)
    app.config.from_mapping(config.as_mapping())
    app.extensions["zkpreimage"] = Runtime(config)
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    create_app().run(debug=False)
