import base64

import aiohttp
import pytest
from aiohttp.test_utils import TestClient, TestServer

from ramd.config import JsonRpcServerConfig, NodeConfig
from ramd.jsonrpc import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    LiveObjectApi,
    build_app,
    launch,
)
from ramd.node import Node
from ramd.rpc_types import CreateLiveObject, InvalidParamsError
from ramd.storage import MemoryStorage, hash_sha256

WASM = b"\x00asm\x01\x00\x00\x00"
ENCODED = base64.b64encode(WASM).decode()
INVALID_PARAMS = -32602


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def api(storage):
    return LiveObjectApi(Node(NodeConfig(), storage))


def _call(params, request_id=1, method="live_object_create"):
    return {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}


@pytest.mark.asyncio
async def test_create_live_object_stores_code(api, storage):
    await api.create_live_object(CreateLiveObject(ENCODED))
    assert storage.get(hash_sha256(WASM)) == WASM


@pytest.mark.asyncio
async def test_create_live_object_rejects_bad_base64(api, storage):
    with pytest.raises(InvalidParamsError):
        await api.create_live_object(CreateLiveObject("***"))
    assert len(storage) == 0


@pytest.mark.asyncio
async def test_handle_request_success(api, storage):
    response = await api.handle_request(_call([{"wasm_bytes": ENCODED}], request_id=7))
    assert response == {"jsonrpc": "2.0", "result": None, "id": 7}
    assert storage.has(hash_sha256(WASM))


@pytest.mark.asyncio
async def test_handle_request_named_params(api, storage):
    response = await api.handle_request(_call({"request": {"wasm_bytes": ENCODED}}, "a"))
    assert response["id"] == "a"
    assert storage.get(hash_sha256(WASM)) == WASM


@pytest.mark.asyncio
async def test_unknown_method(api):
    response = await api.handle_request(_call([], method="live_object_delete"))
    assert response["error"]["code"] == METHOD_NOT_FOUND
    assert response["id"] == 1


@pytest.mark.asyncio
async def test_invalid_params(api, storage):
    response = await api.handle_request(_call([{"wasm_bytes": "!!"}]))
    assert response["error"]["code"] == INVALID_PARAMS
    assert len(storage) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        "text",
        {"method": "live_object_create", "id": 1},
        {"jsonrpc": "1.0", "method": "live_object_create", "id": 1},
        {"jsonrpc": "2.0", "method": 5, "id": 1},
        {"jsonrpc": "2.0", "method": "live_object_create", "id": [1]},
    ],
)
async def test_invalid_request(api, payload):
    response = await api.handle_request(payload)
    assert response["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_notification_gets_no_answer_but_runs(api, storage):
    payload = {"jsonrpc": "2.0", "method": "live_object_create", "params": [{"wasm_bytes": ENCODED}]}
    assert await api.handle_request(payload) is None
    assert storage.get(hash_sha256(WASM)) == WASM


@pytest.mark.asyncio
async def test_app_single_request(storage):
    app = build_app(Node(NodeConfig(), storage))
    async with TestClient(TestServer(app)) as client:
        resp = await client.post("/", json=_call([{"wasm_bytes": ENCODED}]))
        body = await resp.json()
    assert body == {"jsonrpc": "2.0", "result": None, "id": 1}
    assert storage.has(hash_sha256(WASM))


@pytest.mark.asyncio
async def test_app_parse_error(storage):
    app = build_app(Node(NodeConfig(), storage))
    async with TestClient(TestServer(app)) as client:
        resp = await client.post("/", data=b"{broken")
        body = await resp.json()
    assert body["error"]["code"] == PARSE_ERROR
    assert body["id"] is None


@pytest.mark.asyncio
async def test_app_batch(storage):
    app = build_app(Node(NodeConfig(), storage))
    batch = [
        _call([{"wasm_bytes": ENCODED}], request_id=1),
        _call([], request_id=2, method="nope"),
    ]
    async with TestClient(TestServer(app)) as client:
        resp = await client.post("/", json=batch)
        body = await resp.json()
    assert [item["id"] for item in body] == [1, 2]
    assert body[1]["error"]["code"] == METHOD_NOT_FOUND


@pytest.mark.asyncio
async def test_app_empty_batch(storage):
    app = build_app(Node(NodeConfig(), storage))
    async with TestClient(TestServer(app)) as client:
        resp = await client.post("/", json=[])
        body = await resp.json()
    assert body["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_launch_serves_requests(storage):
    runner = await launch(JsonRpcServerConfig(port=0), Node(NodeConfig(), storage))
    try:
        port = runner.addresses[0][1]
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"http://127.0.0.1:{port}/", json=_call([{"wasm_bytes": ENCODED}], 3)
            ) as resp:
                body = await resp.json()
    finally:
        await runner.cleanup()
    assert body["id"] == 3
    assert storage.get(hash_sha256(WASM)) == WASM