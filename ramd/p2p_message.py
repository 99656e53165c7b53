"""Messages exchanged between peers, in their JSON wire form."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class Noop:
    """A message that carries data and asks for no action."""

    data: str


P2pMessage = Noop


def to_json(message: P2pMessage) -> str:
    """Encode a message as compact JSON, tagged by its variant name."""
    if not isinstance(message, Noop):
        raise TypeError(f"not a p2p message: {message!r}")
    body = {"Noop": {"data": message.data}}
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def from_json(text: str | bytes) -> P2pMessage:
    """Decode a message produced by :func:`to_json`."""
    try:
        value = json.loads(text)
    except ValueError as err:
        raise ValueError(f"invalid JSON: {err}") from err
    if not isinstance(value, dict) or len(value) != 1:
        raise ValueError("expected an object holding exactly one variant")
    ((variant, fields),) = value.items()
    if variant != "Noop":
        raise ValueError(f"unknown variant `{variant}`")
    if not isinstance(fields, dict) or "data" not in fields:
        raise ValueError("missing field `data`")
    if not isinstance(fields["data"], str):
        raise ValueError("field `data` must be a string")
    return Noop(fields["data"])