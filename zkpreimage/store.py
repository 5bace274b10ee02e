"""
Artifact store
==============

Persists the setup triple (constraint system, proving key, verifying key)
as self-describing binary blobs.

**Blob layout**:

  | offset | size | field                                           |
  |--------|------|-------------------------------------------------|
  | 0      | 4    | magic ``b"ZKPA"``                               |
  | 4      | 1    | format version (1)                              |
  | 5      | 1    | kind: 1 = constraint system, 2 = pk, 3 = vk     |
  | 6      | 1    | curve id: 1 = bn254                             |
  | 7      | 4    | payload length, u32 big-endian                  |
  | 11     | 32   | sha256(payload)                                 |
  | 43     | n    | msgpack payload                                 |

Writes go to a temp file in the destination directory, are fsync'ed and
then ``os.replace``'d into place, so a reader never sees a partial blob.

The store does not check that the keys belong to the constraint system;
the keys carry the system's fingerprint and the proof service compares it.

Usage:
    >>> store = ArtifactStore("circuit")
    >>> store.save_all(cs, pk, vk)
    >>> store.status()  # ArtifactStatus.READY
    >>> cs, pk, vk = store.load_all()
"""

import enum
import hashlib
import logging
import os
import struct
import tempfile

import msgpack

from zkpreimage import serializers
from zkpreimage.circuit.r1cs import ConstraintSystem
from zkpreimage.errors import ArtifactCorrupt, ArtifactMissing
from zkpreimage.groth16.setup import ProvingKey, VerifyingKey

logger = logging.getLogger(__name__)

MAGIC = b"ZKPA"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sBBBI32s")
HEADER_SIZE = _HEADER.size

CURVE_IDS = {"bn254": 1}


class ArtifactKind(enum.IntEnum):
    CONSTRAINT_SYSTEM = 1
    PROVING_KEY = 2
    VERIFYING_KEY = 3


class ArtifactStatus(enum.Enum):
    ABSENT = "absent"
    CORRUPT = "corrupt"
    READY = "ready"


_CODECS = {
    ArtifactKind.CONSTRAINT_SYSTEM: (serializers.serialize_cs, serializers.deserialize_cs),
    ArtifactKind.PROVING_KEY: (serializers.serialize_pk, serializers.deserialize_pk),
    ArtifactKind.VERIFYING_KEY: (serializers.serialize_vk, serializers.deserialize_vk),
}


def kind_of(artifact):
    if isinstance(artifact, ConstraintSystem):
        return ArtifactKind.CONSTRAINT_SYSTEM
    if isinstance(artifact, ProvingKey):
        return ArtifactKind.PROVING_KEY
    if isinstance(artifact, VerifyingKey):
        return ArtifactKind.VERIFYING_KEY
    raise TypeError("not an artifact: {!r}".format(type(artifact).__name__))


def encode(artifact, curve="bn254"):
    """artifact → blob bytes"""
    kind = kind_of(artifact)
    serialize, _ = _CODECS[kind]
    payload = msgpack.packb(serialize(artifact), use_bin_type=True)
    header = _HEADER.pack(
        MAGIC, FORMAT_VERSION, kind, CURVE_IDS[curve],
        len(payload), hashlib.sha256(payload).digest())
    return header + payload


def decode(blob, kind, path=None):
    """blob bytes → artifact of ``kind``

    Raises:
        ArtifactCorrupt: bad header, checksum, kind or payload schema
    """
    if len(blob) < HEADER_SIZE:
        raise ArtifactCorrupt("truncated header", path)
    magic, version, blob_kind, curve_id, length, checksum = _HEADER.unpack_from(blob)
    if magic != MAGIC:
        raise ArtifactCorrupt("bad magic {!r}".format(magic), path)
    if version != FORMAT_VERSION:
        raise ArtifactCorrupt("unsupported format version {}".format(version), path)
    if blob_kind != kind:
        raise ArtifactCorrupt("expected artifact kind {}, found {}".format(int(kind), blob_kind), path)
    if curve_id not in CURVE_IDS.values():
        raise ArtifactCorrupt("unknown curve id {}".format(curve_id), path)
    payload = blob[HEADER_SIZE:]
    if len(payload) != length:
        raise ArtifactCorrupt("payload is {} bytes, header says {}".format(len(payload), length), path)
    if hashlib.sha256(payload).digest() != checksum:
        raise ArtifactCorrupt("checksum mismatch", path)

    _, deserialize = _CODECS[ArtifactKind(kind)]
    try:
        data = msgpack.unpackb(payload, raw=False)
        return deserialize(data)
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        raise ArtifactCorrupt("undecodable payload: {}".format(e), path) from e


def _atomic_write(path, data):
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=os.path.basename(path))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class ArtifactStore:

    def __init__(self, directory, r1cs_file="mimc.r1cs", pk_file="mimc.pk",
                 vk_file="mimc.vk", curve="bn254"):
        self.directory = directory
        self.r1cs_path = os.path.join(directory, r1cs_file)
        self.pk_path = os.path.join(directory, pk_file)
        self.vk_path = os.path.join(directory, vk_file)
        self.curve = curve

    @classmethod
    def from_config(cls, config):
        return cls(config.artifact_dir, config.r1cs_file, config.pk_file,
                   config.vk_file, config.curve)

    @property
    def paths(self):
        return {
            ArtifactKind.CONSTRAINT_SYSTEM: self.r1cs_path,
            ArtifactKind.PROVING_KEY: self.pk_path,
            ArtifactKind.VERIFYING_KEY: self.vk_path,
        }

    def save(self, artifact, path):
        blob = encode(artifact, self.curve)
        _atomic_write(path, blob)
        logger.info("wrote %s (%d bytes) to %s", kind_of(artifact).name.lower(), len(blob), path)

    def load(self, path, kind):
        """Raises ArtifactMissing or ArtifactCorrupt."""
        try:
            with open(path, "rb") as f:
                blob = f.read()
        except FileNotFoundError as e:
            raise ArtifactMissing("no artifact at {}".format(path), path) from e
        artifact = decode(blob, ArtifactKind(kind), path)
        logger.debug("loaded %s from %s", ArtifactKind(kind).name.lower(), path)
        return artifact

    def write_text(self, text, path):
        _atomic_write(path, text.encode("utf-8"))
        logger.info("wrote %s", path)

    def save_all(self, cs, pk, vk):
        self.save(cs, self.r1cs_path)
        self.save(pk, self.pk_path)
        self.save(vk, self.vk_path)

    def load_all(self):
        """→ (ConstraintSystem, ProvingKey, VerifyingKey)"""
        return tuple(self.load(path, kind) for kind, path in self.paths.items())

    def status(self):
        present = [os.path.exists(p) for p in self.paths.values()]
        if not any(present):
            return ArtifactStatus.ABSENT
        if not all(present):
            return ArtifactStatus.CORRUPT
        try:
            self.load_all()
        except ArtifactCorrupt:
            return ArtifactStatus.CORRUPT
        except ArtifactMissing:
            # removed between the probe and the read
            return ArtifactStatus.CORRUPT
        return ArtifactStatus.READY
