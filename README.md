# ramd

`ramd` is a node daemon for live objects. A node keeps its state in a
key-value store on disk and answers requests over a JSON-RPC server. When a
request asks it to create a live object, the node stores the object's
WebAssembly bytes. The key is the SHA-256 hash of those bytes.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Running a node

```
ramd node
```

Before it starts, the node creates the directories its paths need under the
node directory, which is `~/.ramd/` by default:

- `config/` is the directory for the config file. The `node` command does
  not write a config file there.
- `db/ramd.db/` holds the key-value store, an SQLite file.
- `logs/` holds `ramd.log`, which rotates by size.
- `network/` is created for network files.

Variables from the nearest `.env` file are loaded in the current directory
or a parent directory. They never override variables that are already set.
The JSON-RPC server listens on all interfaces, on port 1319 by default.
Stop the node with Ctrl+C.

Running `ramd` with no arguments prints the help and exits with status 2.
The `bootnode` and `relayer` subcommands print an error and exit with
status 1.

### Options of `ramd node`

| Flag | Default | Meaning |
|------|---------|---------|
| `--ramd-dir-name` | `~/.ramd/` | Directory for all node files |
| `--ramd-config-file` | `config/ramd.toml` | Config file, relative to the node directory |
| `--db-rocks-path` | `db/ramd.db` | Storage path, relative to the node directory |
| `--json-rpc-port` | `1319` | Port for the JSON-RPC server |
| `--network-boot-nodes` | none | Boot node address. Repeat the flag to give several |
| `--network-config-path` | `network/` | Network files, relative to the node directory |
| `--network-idle-connection-timeout` | `60` | Seconds before an idle connection times out |
| `--network-key` | none | Path to the network secret key |
| `--network-max-peers-limit` | `10` | Maximum number of peers |
| `--network-port` | `1211` | Network port |
| `--tracing-max-files` | `5` | Number of rotated log files to keep |
| `--tracing-max-size-bytes` | `200` | Size at which the log file rotates |
| `--tracing-path` | `logs/ramd.log` | Log file, relative to the node directory |

A path that starts with `/` is used as given. Any other path is taken
relative to `--ramd-dir-name`.

### Logging

Logs go to standard output and to the rotating log file. The `RAMD_LOG`
environment variable selects what gets logged. It holds a comma-separated
list of directives. A bare level (`trace`, `debug`, `info`, `warn`, `error`,
`off`) sets the default. A `target=level` pair sets the level for one
logger, for example `info,ramd::processor=debug`. When `RAMD_LOG` is unset,
only errors are logged.

## JSON-RPC

The server accepts JSON-RPC 2.0 requests by `POST` on `/`, either one at a
time or in batches. It has one method, `live_object_create`. Its parameter
is an object with one field, `wasm_bytes`, which holds the WebAssembly module
in standard base64. You can pass it positionally or as `{"request": {...}}`:

```json
{"jsonrpc": "2.0", "id": 1, "method": "live_object_create",
 "params": [{"wasm_bytes": "AGFzbQEAAAA="}]}
```

A successful call returns `null` as its result. If `wasm_bytes` is not
canonical base64, the server returns the "Invalid params" error, code
`-32602`. Unknown methods return code `-32601`.

## Using it as a library

```python
from ramd.config import RamdConfig
from ramd.storage import MemoryStorage, hash_sha256
from ramd.node import Node

storage = MemoryStorage()
node = Node(RamdConfig().node, storage)
node.create_live_object(b"\x00asm\x01\x00\x00\x00")
assert storage.has(hash_sha256(b"\x00asm\x01\x00\x00\x00"))
```

The modules:

- `ramd.config`: `RamdConfig` and its sections. They convert to and from
  TOML with `to_toml` and `from_toml`. `RamdConfig.init_or_read()` reads
  `~/.ramd/config/ramd.toml`, or creates it with defaults if it cannot read
  it. The `RAMD_DIR_NAME` environment variable renames the `.ramd`
  directory.
- `ramd.storage`: the `Storage` interface, with `MemoryStorage` and the
  SQLite-backed `DiskStorage`. A missing key raises `KeyNotFoundError`.
- `ramd.processor`: the `Message`, `CreateLiveObjectAction`,
  `ExecuteLiveObjectAction` and `Processor` classes.
- `ramd.node`: `Node`, which turns requests into messages.
- `ramd.jsonrpc`: `LiveObjectApi`, `build_app` and `launch`.
- `ramd.rpc_types`: `CreateLiveObject` and `InvalidParamsError`.
- `ramd.p2p_message`: the `Noop` peer message with `to_json` and
  `from_json`.
- `ramd.memory_slice`: `MemorySlice`, an 8-byte pointer and length
  descriptor, read from and written to a guest module's linear memory.
  This module needs Python 3.12 or later.

## What it does not do

- The node has no peer-to-peer networking. The network options are checked
  and stored in the configuration, but nothing listens on the network port
  and nothing connects to boot nodes.
- Executing a live object's methods is not supported. An
  `ExecuteLiveObjectAction` only reports whether the object is stored.
- The package does not load or run WebAssembly modules.