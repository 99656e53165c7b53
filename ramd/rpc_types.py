"""Request types of the JSON-RPC interface."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("ramd.jsonrpc-types")


class InvalidParamsError(Exception):
    """The parameters of a JSON-RPC call are not acceptable."""

    code = -32602
    message = "Invalid params"

    def __init__(self, detail: str = "") -> None:
        super().__init__(f"{self.message}: {detail}" if detail else self.message)
        self.detail = detail


@dataclass(frozen=True)
class CreateLiveObject:
    """Request to create a live object; ``wasm_bytes`` is base64 encoded."""

    wasm_bytes: str

    def decode_wasm_bytes(self) -> bytes:
        """Decode the base64 payload, rejecting anything not in canonical form."""
        try:
            data = base64.b64decode(self.wasm_bytes, validate=True)
        except (binascii.Error, ValueError) as err:
            logger.error("Failed to decode wasm bytes with error `%s`", err)
            raise InvalidParamsError(str(err)) from err
        if base64.b64encode(data).decode("ascii") != self.wasm_bytes:
            logger.error("Failed to decode wasm bytes with error `non-canonical encoding`")
            raise InvalidParamsError("non-canonical base64 encoding")
        return data

    @classmethod
    def from_params(cls, params: Any) -> CreateLiveObject:
        """Build the request from positional ``[obj]`` or named ``{"request": obj}`` params."""
        if isinstance(params, list):
            if len(params) != 1:
                raise InvalidParamsError(f"expected 1 parameter, got {len(params)}")
            value = params[0]
        elif isinstance(params, dict):
            if "request" not in params:
                raise InvalidParamsError("missing parameter `request`")
            value = params["request"]
        else:
            raise InvalidParamsError("missing parameters")
        if not isinstance(value, dict):
            raise InvalidParamsError("`request` must be an object")
        wasm_bytes = value.get("wasm_bytes")
        if not isinstance(wasm_bytes, str):
            raise InvalidParamsError("field `wasm_bytes` must be a string")
        return cls(wasm_bytes)