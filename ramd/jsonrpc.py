"""JSON-RPC API for live objects and the HTTP server that serves it."""

from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web

from .config import JsonRpcServerConfig
from .node import LiveObjectHandler
from .rpc_types import CreateLiveObject, InvalidParamsError

logger = logging.getLogger("ramd.jsonrpc")
server_logger = logging.getLogger("ramd.jsonrpc-server")

METHOD_CREATE = "live_object_create"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601


def _valid_id(value: Any) -> bool:
    return value is None or isinstance(value, str) or (
        isinstance(value, int) and not isinstance(value, bool)
    )


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id}


class LiveObjectApi:
    """Live object methods, dispatched from JSON-RPC requests."""

    def __init__(self, node: LiveObjectHandler) -> None:
        self._node = node

    async def create_live_object(self, request: CreateLiveObject) -> None:
        logger.info("Request to create a live object with wasm bytes %s", request.wasm_bytes)
        self._node.create_live_object(request.decode_wasm_bytes())

    async def handle_request(self, payload: Any) -> dict[str, Any] | None:
        """Answer one decoded JSON-RPC request; notifications get no answer."""
        if not isinstance(payload, dict):
            return _error(None, INVALID_REQUEST, "Invalid request")
        request_id = payload.get("id")
        if not _valid_id(request_id):
            return _error(None, INVALID_REQUEST, "Invalid request")
        if payload.get("jsonrpc") != "2.0" or not isinstance(payload.get("method"), str):
            return _error(request_id, INVALID_REQUEST, "Invalid request")

        if payload["method"] != METHOD_CREATE:
            response = _error(request_id, METHOD_NOT_FOUND, "Method not found")
        else:
            try:
                request = CreateLiveObject.from_params(payload.get("params"))
                await self.create_live_object(request)
            except InvalidParamsError as err:
                response = _error(request_id, err.code, err.message)
            else:
                response = {"jsonrpc": "2.0", "result": None, "id": request_id}

        return None if "id" not in payload else response


def build_app(node: LiveObjectHandler) -> web.Application:
    """HTTP application that serves the live object API on ``POST /``."""
    api = LiveObjectApi(node)

    async def handle(request: web.Request) -> web.StreamResponse:
        try:
            payload = json.loads(await request.read())
        except ValueError:
            return web.json_response(_error(None, PARSE_ERROR, "Parse error"))

        if isinstance(payload, list):
            if not payload:
                return web.json_response(_error(None, INVALID_REQUEST, "Invalid request"))
            responses = []
            for item in payload:
                answer = await api.handle_request(item)
                if answer is not None:
                    responses.append(answer)
            return web.json_response(responses) if responses else web.Response()

        answer = await api.handle_request(payload)
        return web.Response() if answer is None else web.json_response(answer)

    app = web.Application()
    app.router.add_post("/", handle)
    return app


async def launch(config: JsonRpcServerConfig, node: LiveObjectHandler) -> web.AppRunner:
    """Start serving on all interfaces; ``cleanup()`` on the result stops it."""
    runner = web.AppRunner(build_app(node))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", config.port)
    try:
        await site.start()
    except OSError as err:
        await runner.cleanup()
        raise RuntimeError("Failed to build jsonrpc server") from err

    host, port = runner.addresses[0][:2]
    server_logger.info("Launching jsonrpc server. Address: %s:%s", host, port)
    return runner