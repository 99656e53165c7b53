"""Command line entry point: parses flags, prepares directories and runs the node."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from aiohttp import web

from .config import (
    JsonRpcServerConfig,
    NodeConfig,
    P2pConfig,
    RamdConfig,
    RocksConfig,
    TracingConfig,
)
from .jsonrpc import launch
from .logs import init_logging
from .node import Node
from .storage import DiskStorage, StorageError

logger = logging.getLogger("ramd")

_U16_MAX = 0xFFFF
_U64_MAX = 2**64 - 1

_GREETING = (
    "Topology is a community-driven technology that brings random access memory "
    "to the world computer to power lock-free asynchronous decentralized applications."
)


def _package_version() -> str:
    try:
        return version("ramd")
    except PackageNotFoundError:
        return "0.0.0"


def _default_ramd_dir() -> Path:
    home = os.environ.get("HOME")
    return (Path(home) if home is not None else Path.home()) / ".ramd"


def _bounded_int(maximum: int):
    def parse(text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid digit found in string: {text!r}") from None
        if not 0 <= value <= maximum:
            raise argparse.ArgumentTypeError(f"{value} is not in 0..={maximum}")
        return value

    return parse


def _add_node_arguments(parser: argparse.ArgumentParser) -> None:
    unsigned = _bounded_int(_U64_MAX)
    port = _bounded_int(_U16_MAX)

    parser.add_argument(
        "--db-rocks-path", type=Path, default=Path("db/ramd.db"),
        help="Path for rocks db file",
    )

    parser.add_argument(
        "--network-boot-nodes", action="append", default=None, metavar="NETWORK_BOOT_NODES",
        help="List of boot nodes to join the network",
    )
    parser.add_argument(
        "--network-config-path", type=Path, default=Path("network/"),
        help="Path for network related files",
    )
    parser.add_argument(
        "--network-idle-connection-timeout", type=unsigned, default=60,
        help="Seconds until an idle connection timeout",
    )
    parser.add_argument(
        "--network-key", type=Path, default=None,
        help="Path for libp2p secret key",
    )
    parser.add_argument(
        "--network-max-peers-limit", type=unsigned, default=10,
        help="Maximum number of peers allowed",
    )
    parser.add_argument(
        "--network-port", type=port, default=1211,
        help="Port for libp2p",
    )

    parser.add_argument(
        "--ramd-config-file", type=Path, default=Path("config/ramd.toml"),
        help="Config file for ramd (relative with `ramd_dir_name`)",
    )
    parser.add_argument(
        "--ramd-dir-name", type=Path, default=_default_ramd_dir(),
        help="Directory for all ramd fs files",
    )

    parser.add_argument(
        "--json-rpc-port", type=port, default=1319,
        help="Port for JSON RPC Server",
    )

    parser.add_argument(
        "--tracing-max-files", type=unsigned, default=5,
        help="Maximum number of files generated by the logger",
    )
    parser.add_argument(
        "--tracing-max-size-bytes", type=unsigned, default=200,
        help="Maximum file size",
    )
    parser.add_argument(
        "--tracing-path", type=Path, default=Path("logs/ramd.log"),
        help="Path for the log file (relative with `ramd_dir_name`)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with the bootnode, node and relayer subcommands."""
    parser = argparse.ArgumentParser(prog="ramd", description="Runs a ramd node.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    subcommands = parser.add_subparsers(dest="subcommand", metavar="COMMAND")

    subcommands.add_parser(
        "bootnode",
        help="Runs ramd as bootnode mode, where the only functionalities are peer discovery",
    )
    node = subcommands.add_parser("node", help="Runs ramd node with full functionalities")
    _add_node_arguments(node)
    subcommands.add_parser(
        "relayer",
        help="Runs ramd relayer node. The only functionality is relaying messages",
    )
    return parser


def _under(root: Path, path: Path) -> Path:
    return path if os.fspath(path).startswith("/") else root / path


def parse_flags(args: argparse.Namespace) -> RamdConfig:
    """Build the node config from parsed ``node`` flags; relative paths sit under the ramd dir."""
    root = Path(args.ramd_dir_name)
    boot_nodes = None if args.network_boot_nodes is None else list(args.network_boot_nodes)
    return RamdConfig(
        node=NodeConfig(
            root_path=root,
            config_path=_under(root, Path(args.ramd_config_file)),
        ),
        rocks=RocksConfig(path=_under(root, Path(args.db_rocks_path))),
        json_rpc=JsonRpcServerConfig(port=args.json_rpc_port),
        p2p=P2pConfig(
            boot_nodes=boot_nodes,
            config_path=_under(root, Path(args.network_config_path)),
            idle_connection_timeout_secs=args.network_idle_connection_timeout,
            max_peers_limit=args.network_max_peers_limit,
            network_key=None if args.network_key is None else Path(args.network_key),
            port=args.network_port,
        ),
        tracing=TracingConfig(
            path=_under(root, Path(args.tracing_path)),
            max_files=args.tracing_max_files,
            max_size_bytes=args.tracing_max_size_bytes,
        ),
    )


@asynccontextmanager
async def start(config: RamdConfig) -> AsyncIterator[web.AppRunner]:
    """Open storage, build the node and serve JSON-RPC until the context exits."""
    init_logging(config.tracing)
    logger.info(_GREETING)

    storage = DiskStorage(config.rocks.path)
    try:
        node = Node(config.node, storage)
        runner = await launch(config.json_rpc, node)
        try:
            yield runner
        finally:
            await runner.cleanup()
    finally:
        storage.close()


def _find_dotenv() -> Path | None:
    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


def _load_dotenv() -> None:
    """Load variables from the nearest ``.env`` without overriding existing ones."""
    path = _find_dotenv()
    if path is None:
        return
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        os.environ.setdefault(key, value)


async def _serve(config: RamdConfig) -> None:
    async with start(config):
        await asyncio.Event().wait()


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; returns the process exit status."""
    parser = build_parser()
    arguments = list(sys.argv[1:] if argv is None else argv)
    if not arguments:
        parser.print_help(sys.stderr)
        return 2

    args = parser.parse_args(arguments)
    match args.subcommand:
        case "bootnode":
            return _fail("Bootnode not implemented!")
        case "relayer":
            return _fail("Relayer node not implemented!")
        case "node":
            try:
                config = parse_flags(args).init()
            except OSError as err:
                return _fail(str(err))
            _load_dotenv()
            try:
                asyncio.run(_serve(config))
            except KeyboardInterrupt:
                return 0
            except (OSError, StorageError, RuntimeError) as err:
                return _fail(f"Failed to start ramd node. Reason: {err}")
            return 0
        case _:
            return 0


if __name__ == "__main__":
    sys.exit(main())