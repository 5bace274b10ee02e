import hashlib
import os

import msgpack
import pytest

from zkpreimage.errors import ArtifactCorrupt, ArtifactMissing
from zkpreimage.field import ec_eq
from zkpreimage.store import (
    HEADER_SIZE,
    MAGIC,
    ArtifactKind,
    ArtifactStatus,
    ArtifactStore,
    decode,
    encode,
)


@pytest.fixture
def store(tmp_path):
    return ArtifactStore(str(tmp_path / "circuit"))


@pytest.fixture
def saved(store, cs, keys):
    pk, vk = keys
    store.save_all(cs, pk, vk)
    return store


class TestEncoding:
    def test_header(self, cs):
        blob = encode(cs)
        assert blob[:4] == MAGIC
        assert blob[4] == 1
        assert blob[5] == ArtifactKind.CONSTRAINT_SYSTEM
        assert blob[6] == 1
        assert int.from_bytes(blob[7:11], "big") == len(blob) - HEADER_SIZE

    def test_payload_is_msgpack(self, keys):
        _, vk = keys
        payload = msgpack.unpackb(encode(vk)[HEADER_SIZE:], raw=False)
        assert set(payload) >= {"alpha_g1", "beta_g2", "gamma_g2", "delta_g2", "ic"}

    def test_cs_round_trip(self, cs):
        loaded = decode(encode(cs), ArtifactKind.CONSTRAINT_SYSTEM)
        assert loaded.fingerprint() == cs.fingerprint()
        assert loaded.public_names == cs.public_names
        assert loaded.metadata == cs.metadata
        assert loaded.solve([5], [7]) == cs.solve([5], [7])

    def test_vk_round_trip(self, keys):
        _, vk = keys
        loaded = decode(encode(vk), ArtifactKind.VERIFYING_KEY)
        assert all(ec_eq(a, b) for a, b in zip(loaded.ic, vk.ic))
        assert ec_eq(loaded.gamma_g2, vk.gamma_g2)
        assert loaded.cs_fingerprint == vk.cs_fingerprint

    def test_pk_round_trip(self, keys):
        pk, _ = keys
        loaded = decode(encode(pk), ArtifactKind.PROVING_KEY)
        assert loaded.num_public == pk.num_public
        assert len(loaded.k_query) == len(pk.k_query)
        assert all(ec_eq(a, b) for a, b in zip(loaded.b_g2_query, pk.b_g2_query))
        assert all(ec_eq(a, b) for a, b in zip(loaded.h_query, pk.h_query))

    def test_not_an_artifact(self):
        with pytest.raises(TypeError):
            encode({"not": "an artifact"})


class TestCorruption:
    def test_wrong_kind(self, cs):
        with pytest.raises(ArtifactCorrupt):
            decode(encode(cs), ArtifactKind.PROVING_KEY)

    def test_bad_magic(self, cs):
        blob = b"XXXX" + encode(cs)[4:]
        with pytest.raises(ArtifactCorrupt):
            decode(blob, ArtifactKind.CONSTRAINT_SYSTEM)

    def test_bad_version(self, cs):
        blob = bytearray(encode(cs))
        blob[4] = 2
        with pytest.raises(ArtifactCorrupt):
            decode(bytes(blob), ArtifactKind.CONSTRAINT_SYSTEM)

    def test_truncated(self, cs):
        with pytest.raises(ArtifactCorrupt):
            decode(encode(cs)[:-1], ArtifactKind.CONSTRAINT_SYSTEM)
        with pytest.raises(ArtifactCorrupt):
            decode(encode(cs)[:10], ArtifactKind.CONSTRAINT_SYSTEM)

    def test_checksum(self, cs):
        blob = bytearray(encode(cs))
        blob[-1] ^= 0xFF
        with pytest.raises(ArtifactCorrupt):
            decode(bytes(blob), ArtifactKind.CONSTRAINT_SYSTEM)

    def test_schema(self, cs):
        # well-formed container around a payload of the wrong shape
        good = encode(cs)
        payload = msgpack.packb({"curve": "bn254"}, use_bin_type=True)
        header = bytearray(good[:HEADER_SIZE])
        header[7:11] = len(payload).to_bytes(4, "big")
        header[11:43] = hashlib.sha256(payload).digest()
        with pytest.raises(ArtifactCorrupt):
            decode(bytes(header) + payload, ArtifactKind.CONSTRAINT_SYSTEM)


class TestStore:
    def test_absent(self, store):
        assert store.status() is ArtifactStatus.ABSENT

    def test_ready(self, saved):
        assert saved.status() is ArtifactStatus.READY

    def test_partial_is_corrupt(self, saved):
        os.unlink(saved.pk_path)
        assert saved.status() is ArtifactStatus.CORRUPT

    def test_damaged_is_corrupt(self, saved):
        with open(saved.vk_path, "r+b") as f:
            f.seek(HEADER_SIZE + 3)
            f.write(b"\x00\x00\x00")
        assert saved.status() is ArtifactStatus.CORRUPT

    def test_load_missing(self, store):
        with pytest.raises(ArtifactMissing) as e:
            store.load(store.vk_path, ArtifactKind.VERIFYING_KEY)
        assert e.value.path == store.vk_path
        assert e.value.fatal

    def test_load_all(self, saved, cs):
        loaded_cs, pk, vk = saved.load_all()
        assert loaded_cs.fingerprint() == cs.fingerprint()
        assert pk.cs_fingerprint == vk.cs_fingerprint == cs.fingerprint()

    def test_no_temp_files(self, saved):
        names = sorted(os.listdir(saved.directory))
        assert names == ["mimc.pk", "mimc.r1cs", "mimc.vk"]

    @pytest.mark.parametrize("step", ["fsync", "replace"])
    def test_failed_write_keeps_previous(self, saved, keys, monkeypatch, step):
        with open(saved.vk_path, "rb") as f:
            before = f.read()

        def fail(*args):
            raise OSError("disk full")

        monkeypatch.setattr(os, step, fail)
        pk, _ = keys
        with pytest.raises(OSError):
            saved.save(pk, saved.vk_path)
        monkeypatch.undo()

        assert sorted(os.listdir(saved.directory)) == ["mimc.pk", "mimc.r1cs", "mimc.vk"]
        with open(saved.vk_path, "rb") as f:
            assert f.read() == before
        assert saved.status() is ArtifactStatus.READY

    def test_overwrite(self, saved, cs):
        saved.save(cs, saved.r1cs_path)
        assert saved.status() is ArtifactStatus.READY

    def test_write_text(self, store):
        path = os.path.join(store.directory, "mimc_verifier.sol")
        store.write_text("contract Verifier {}\n", path)
        with open(path) as f:
            assert f.read() == "contract Verifier {}\n"

    def test_from_config(self, test_config):
        store = ArtifactStore.from_config(test_config)
        assert store.r1cs_path == test_config.r1cs_path
        assert store.pk_path == test_config.pk_path
        assert store.vk_path == test_config.vk_path
