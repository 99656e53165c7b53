"""Node configuration: defaults, TOML persistence and directory layout."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import tomli_w

RAMD_DIR = ".ramd"
"""Directory name for all ramd related data."""

CONFIG_DIR = "config"
"""Directory, inside the ramd directory, that holds the config file."""

CONFIG_FILE = "ramd.toml"

_U16_MAX = 0xFFFF
_U64_MAX = 2**64 - 1


def _home() -> Path:
    home = os.environ.get("HOME")
    if home is None:
        raise RuntimeError("HOME environment variable is not set")
    return Path(home)


def _default_home() -> Path:
    home = os.environ.get("HOME")
    return Path(home) if home is not None else Path.home()


def _path_str(path: Path) -> str:
    return "" if path == Path("") else str(path)


def _require(table: dict[str, Any], key: str, section: str) -> Any:
    try:
        return table[key]
    except KeyError:
        raise ValueError(f"missing field `{key}` in [{section}]") from None


def _as_path(value: Any, key: str) -> Path:
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string path")
    return Path(value)


def _as_int(value: Any, key: str, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field `{key}` must be an integer")
    if not 0 <= value <= maximum:
        raise ValueError(f"field `{key}` is out of range: {value}")
    return value


def _table(data: dict[str, Any], name: str) -> dict[str, Any] | None:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table")
    return value


@dataclass
class NodeConfig:
    """Locations of the node's root directory and config file."""

    root_path: Path = field(default_factory=lambda: _default_home() / ".ramd")
    config_path: Path = field(
        default_factory=lambda: _default_home() / ".ramd" / "config" / "ramd.toml"
    )

    def _to_table(self) -> dict[str, Any]:
        return {
            "root_path": _path_str(self.root_path),
            "config_path": _path_str(self.config_path),
        }

    @classmethod
    def _from_table(cls, table: dict[str, Any]) -> NodeConfig:
        return cls(
            root_path=_as_path(_require(table, "root_path", "node"), "root_path"),
            config_path=_as_path(_require(table, "config_path", "node"), "config_path"),
        )


@dataclass
class P2pConfig:
    """Peer-to-peer networking settings."""

    boot_nodes: list[str] | None = None
    config_path: Path = field(default_factory=Path)
    idle_connection_timeout_secs: int = 60
    max_peers_limit: int = 10
    network_key: Path | None = None
    port: int = 1211

    def idle_connection_timeout(self) -> timedelta:
        """Idle connection timeout as a duration."""
        return timedelta(seconds=self.idle_connection_timeout_secs)

    def _to_table(self) -> dict[str, Any]:
        table: dict[str, Any] = {}
        if self.boot_nodes is not None:
            table["boot_nodes"] = list(self.boot_nodes)
        table["config_path"] = _path_str(self.config_path)
        table["idle_connection_timeout_secs"] = self.idle_connection_timeout_secs
        table["max_peers_limit"] = self.max_peers_limit
        if self.network_key is not None:
            table["network_key"] = _path_str(self.network_key)
        table["port"] = self.port
        return table

    @classmethod
    def _from_table(cls, table: dict[str, Any]) -> P2pConfig:
        config = cls()
        if "boot_nodes" in table:
            nodes = table["boot_nodes"]
            if not isinstance(nodes, list) or not all(isinstance(n, str) for n in nodes):
                raise ValueError("field `boot_nodes` must be a list of strings")
            config.boot_nodes = list(nodes)
        if "config_path" in table:
            config.config_path = _as_path(table["config_path"], "config_path")
        if "idle_connection_timeout_secs" in table:
            config.idle_connection_timeout_secs = _as_int(
                table["idle_connection_timeout_secs"], "idle_connection_timeout_secs", _U64_MAX
            )
        if "max_peers_limit" in table:
            config.max_peers_limit = _as_int(
                table["max_peers_limit"], "max_peers_limit", _U64_MAX
            )
        if "network_key" in table:
            config.network_key = _as_path(table["network_key"], "network_key")
        if "port" in table:
            config.port = _as_int(table["port"], "port", _U16_MAX)
        return config


@dataclass
class JsonRpcServerConfig:
    """JSON-RPC server settings."""

    port: int = 1319

    def _to_table(self) -> dict[str, Any]:
        return {"port": self.port}

    @classmethod
    def _from_table(cls, table: dict[str, Any]) -> JsonRpcServerConfig:
        return cls(port=_as_int(_require(table, "port", "json_rpc"), "port", _U16_MAX))


@dataclass
class RocksConfig:
    """Location of the key-value database."""

    path: Path = field(default_factory=Path)

    @classmethod
    def from_root(cls, root_path: str | os.PathLike[str]) -> RocksConfig:
        """Database located in ``ramd_db`` under the given root."""
        return cls(path=Path(root_path) / "ramd_db")

    def _to_table(self) -> dict[str, Any]:
        return {"path": _path_str(self.path)}

    @classmethod
    def _from_table(cls, table: dict[str, Any]) -> RocksConfig:
        return cls(path=_as_path(_require(table, "path", "rocks"), "path"))


@dataclass
class TracingConfig:
    """Log file location and rotation limits."""

    path: Path = field(default_factory=Path)
    max_size_bytes: int = 0
    max_files: int = 0

    @classmethod
    def from_root(cls, root_path: str | os.PathLike[str]) -> TracingConfig:
        """Logs directory under the given root with default rotation limits."""
        return cls(path=Path(root_path) / "logs", max_size_bytes=200, max_files=5)

    def log_file_name(self) -> Path:
        return self.path / "ramd.log"

    def _to_table(self) -> dict[str, Any]:
        return {
            "path": _path_str(self.path),
            "max_size_bytes": self.max_size_bytes,
            "max_files": self.max_files,
        }

    @classmethod
    def _from_table(cls, table: dict[str, Any]) -> TracingConfig:
        return cls(
            path=_as_path(_require(table, "path", "tracing"), "path"),
            max_size_bytes=_as_int(
                _require(table, "max_size_bytes", "tracing"), "max_size_bytes", _U64_MAX
            ),
            max_files=_as_int(_require(table, "max_files", "tracing"), "max_files", _U64_MAX),
        )


_SECTIONS: dict[str, type] = {
    "node": NodeConfig,
    "rocks": RocksConfig,
    "json_rpc": JsonRpcServerConfig,
    "p2p": P2pConfig,
    "tracing": TracingConfig,
}


def ramd_dir_name() -> str:
    """Name of the ramd directory, overridable by ``RAMD_DIR_NAME``."""
    return os.environ.get("RAMD_DIR_NAME", RAMD_DIR)


def popped_path(path: str | os.PathLike[str]) -> Path:
    """Strip the last ``/``-separated component from a path string."""
    text = os.fspath(path)
    last = text.split("/")[-1]
    return Path(text.replace(last, ""))


@dataclass
class RamdConfig:
    """All configuration values used across the node."""

    node: NodeConfig = field(default_factory=NodeConfig)
    rocks: RocksConfig = field(default_factory=RocksConfig)
    json_rpc: JsonRpcServerConfig = field(default_factory=JsonRpcServerConfig)
    p2p: P2pConfig = field(default_factory=P2pConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    def to_toml(self) -> str:
        document = {name: getattr(self, name)._to_table() for name in _SECTIONS}
        return tomli_w.dumps(document)

    @classmethod
    def from_toml(cls, text: str) -> RamdConfig:
        """Parse a TOML document; absent sections take their defaults."""
        data = tomllib.loads(text)
        values = {}
        for name, section_type in _SECTIONS.items():
            table = _table(data, name)
            values[name] = section_type() if table is None else section_type._from_table(table)
        return cls(**values)

    @classmethod
    def read(cls) -> RamdConfig:
        """Read the config from its default location."""
        config_path = _home() / ramd_dir_name() / CONFIG_DIR / CONFIG_FILE
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as err:
            raise FileNotFoundError(f"Path doesn't exist: {config_path}") from err
        return cls.from_toml(text)

    @classmethod
    def init_or_read(cls) -> RamdConfig:
        """Read the stored config, or create the default layout and config."""
        try:
            return cls.read()
        except (OSError, ValueError):
            pass

        root_dir = _home() / ramd_dir_name()
        root_dir.mkdir(parents=True, exist_ok=True)

        config = cls(
            rocks=RocksConfig.from_root(root_dir),
            tracing=TracingConfig.from_root(root_dir),
        )

        config_dir = root_dir / CONFIG_DIR
        config_dir.mkdir()
        config.rocks.path.mkdir()
        config.tracing.path.mkdir()

        (config_dir / CONFIG_FILE).write_text(config.to_toml(), encoding="utf-8")
        return config

    def init(self) -> RamdConfig:
        """Create every directory this config refers to and return it."""
        directories = (
            self.node.root_path,
            popped_path(self.node.config_path),
            self.p2p.config_path,
            popped_path(self.rocks.path),
            popped_path(self.tracing.path),
        )
        for directory in directories:
            Path(directory).mkdir(parents=True, exist_ok=True)
        return self