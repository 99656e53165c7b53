"""Node daemon that stores live objects by hash and serves a JSON-RPC API."""

__version__ = "0.1.0"