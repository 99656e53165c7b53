import base64
import logging
from pathlib import Path

import aiohttp
import pytest

from ramd.cli import build_parser, main, parse_flags, start
from ramd.storage import DiskStorage, hash_sha256


def _config_for(tmp_path, *extra):
    args = build_parser().parse_args(["node", "--ramd-dir-name", str(tmp_path), *extra])
    return parse_flags(args)


@pytest.fixture
def clean_ramd_logger():
    yield
    ramd_logger = logging.getLogger("ramd")
    for handler in list(ramd_logger.handlers):
        handler.close()
        ramd_logger.removeHandler(handler)


def test_defaults_are_placed_under_ramd_dir(tmp_path):
    config = _config_for(tmp_path)
    assert config.node.root_path == tmp_path
    assert config.node.config_path == tmp_path / "config/ramd.toml"
    assert config.rocks.path == tmp_path / "db/ramd.db"
    assert config.p2p.config_path == tmp_path / "network"
    assert config.tracing.path == tmp_path / "logs/ramd.log"


def test_default_numbers(tmp_path):
    config = _config_for(tmp_path)
    assert config.json_rpc.port == 1319
    assert config.p2p.port == 1211
    assert config.p2p.idle_connection_timeout_secs == 60
    assert config.p2p.max_peers_limit == 10
    assert config.tracing.max_files == 5
    assert config.tracing.max_size_bytes == 200
    assert config.p2p.boot_nodes is None
    assert config.p2p.network_key is None


def test_absolute_paths_are_kept(tmp_path):
    other = tmp_path / "elsewhere"
    config = _config_for(
        tmp_path / "root",
        "--db-rocks-path", str(other / "db"),
        "--tracing-path", str(other / "log.txt"),
        "--ramd-config-file", str(other / "cfg.toml"),
        "--network-config-path", str(other / "net"),
    )
    assert config.rocks.path == other / "db"
    assert config.tracing.path == other / "log.txt"
    assert config.node.config_path == other / "cfg.toml"
    assert config.p2p.config_path == other / "net"


def test_flags_override_values(tmp_path):
    config = _config_for(
        tmp_path,
        "--network-boot-nodes", "/ip4/127.0.0.1/tcp/1/p2p/a",
        "--network-boot-nodes", "/ip4/127.0.0.1/tcp/2/p2p/b",
        "--network-key", "/keys/node.key",
        "--json-rpc-port", "4000",
        "--network-port", "4001",
        "--tracing-max-files", "3",
    )
    assert config.p2p.boot_nodes == ["/ip4/127.0.0.1/tcp/1/p2p/a", "/ip4/127.0.0.1/tcp/2/p2p/b"]
    assert config.p2p.network_key == Path("/keys/node.key")
    assert config.json_rpc.port == 4000
    assert config.p2p.port == 4001
    assert config.tracing.max_files == 3


@pytest.mark.parametrize("flag", ["--json-rpc-port", "--network-port"])
def test_port_out_of_range_is_rejected(flag):
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["node", flag, "65536"])
    assert exc.value.code == 2


def test_negative_count_is_rejected():
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["node", "--tracing-max-files", "-1"])
    assert exc.value.code == 2


def test_init_creates_directories(tmp_path):
    config = _config_for(tmp_path / "ramd").init()
    assert config.node.root_path.is_dir()
    assert config.node.config_path.parent.is_dir()
    assert config.p2p.config_path.is_dir()
    assert config.rocks.path.parent.is_dir()
    assert config.tracing.path.parent.is_dir()


def test_bootnode_not_implemented(capsys):
    assert main(["bootnode"]) == 1
    assert "Bootnode not implemented!" in capsys.readouterr().err


def test_relayer_not_implemented(capsys):
    assert main(["relayer"]) == 1
    assert "Relayer node not implemented!" in capsys.readouterr().err


def test_no_arguments_prints_help(capsys):
    assert main([]) == 2
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "bootnode" in err


@pytest.mark.asyncio
async def test_start_serves_and_stores_live_object(tmp_path, clean_ramd_logger):
    config = _config_for(tmp_path, "--json-rpc-port", "0").init()
    wasm = b"\x00asm\x01\x00\x00\x00"
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "live_object_create",
        "params": [{"wasm_bytes": base64.b64encode(wasm).decode("ascii")}],
    }
    async with start(config) as runner:
        port = runner.addresses[0][1]
        async with aiohttp.ClientSession() as session:
            async with session.post(f"http://127.0.0.1:{port}/", json=payload) as response:
                body = await response.json()
    assert body == {"jsonrpc": "2.0", "result": None, "id": 1}

    with DiskStorage(config.rocks.path) as storage:
        assert storage.get(hash_sha256(wasm)) == wasm
    assert config.tracing.path.is_file()