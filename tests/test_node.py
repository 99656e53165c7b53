from pathlib import Path

import pytest

from ramd.config import NodeConfig
from ramd.node import LiveObjectHandler, Node
from ramd.storage import MemoryStorage, Storage, StorageError, hash_sha256


class FailingStorage(Storage):
    def get_opt(self, key):
        return None

    def set(self, key, value):
        raise StorageError("write failed")

    def delete(self, key):
        return None


@pytest.fixture
def config(tmp_path):
    return NodeConfig(root_path=tmp_path, config_path=tmp_path / "config" / "ramd.toml")


def test_create_live_object_stores_code(config):
    storage = MemoryStorage()
    node = Node(config, storage)
    node.create_live_object(b"\x00asm\x01")
    assert storage.get(hash_sha256(b"\x00asm\x01")) == b"\x00asm\x01"


def test_create_live_object_accepts_bytearray(config):
    storage = MemoryStorage()
    Node(config, storage).create_live_object(bytearray(b"module"))
    assert storage.get(hash_sha256(b"module")) == b"module"


def test_storage_failure_is_not_raised(config):
    storage = FailingStorage()
    node = Node(config, storage)
    assert node.create_live_object(b"code") is None
    assert storage.has(hash_sha256(b"code")) is False


def test_node_keeps_config(config):
    node = Node(config, MemoryStorage())
    assert node.config.root_path == Path(config.root_path)
    assert isinstance(node, LiveObjectHandler)


def test_handler_is_abstract():
    with pytest.raises(TypeError):
        LiveObjectHandler()