"""Tests for LedgerEndpoint against a local JSON-RPC server."""

import asyncio
from decimal import Decimal

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from snx_api.core.exceptions import NetworkError, NotFoundError, SourceError, SourceUnavailable
from snx_api.sources.ledger import (
    CONTRACTS,
    EndpointConfig,
    EndpointRegistry,
    LedgerEndpoint,
    from_fixed_point,
)
from snx_api.sources.reader import SourceReader
from snx_api.sources.specs import LedgerSpec

SYNTHETIX = CONTRACTS["mainnet"]["Synthetix"]
BRIDGE_ESCROW = CONTRACTS["mainnet"]["SynthetixBridgeEscrow"]


def encode_uint(value):
    return "0x" + format(value, "064x")


class RPCServer:
    """Minimal JSON-RPC node answering eth_call with a configurable reply."""

    def __init__(self):
        self.requests = []
        self.status = 200
        self.delay = 0.0
        self.call_result = encode_uint(0)
        self.call_error = None
        self.url = None

    async def handle(self, request):
        body = await request.json()
        self.requests.append(body)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.status != 200:
            return web.Response(status=self.status, text="upstream unavailable")

        reply = {"jsonrpc": "2.0", "id": body["id"]}
        if body["method"] == "eth_call":
            if self.call_error is not None:
                reply["error"] = self.call_error
            else:
                reply["result"] = self.call_result
        elif body["method"] == "eth_chainId":
            reply["result"] = "0x1"
        else:
            reply["result"] = "0x"
        return web.json_response(reply)

    def eth_calls(self):
        return [body for body in self.requests if body["method"] == "eth_call"]


@pytest.fixture
async def rpc():
    node = RPCServer()
    app = web.Application()
    app.router.add_post("/", node.handle)
    server = TestServer(app)
    await server.start_server()
    node.url = str(server.make_url("/"))
    yield node
    await server.close()


def make_endpoint(rpc, timeout=5.0, label="primary"):
    return LedgerEndpoint(EndpointConfig(network="mainnet", url=rpc.url, timeout=timeout), label)


class TestLedgerEndpointCalls:
    """Test decoding of successful contract reads."""

    @pytest.mark.asyncio
    async def test_total_supply_is_decoded(self, rpc):
        rpc.call_result = encode_uint(309509422088773603337882496)

        raw = await make_endpoint(rpc).call(SYNTHETIX, "totalSupply")

        assert raw == 309509422088773603337882496
        assert from_fixed_point(raw) == Decimal("309509422.088773603337882496")
        call = rpc.eth_calls()[0]
        assert call["params"][0]["to"].lower() == SYNTHETIX.lower()

    @pytest.mark.asyncio
    async def test_full_width_uint_keeps_every_digit(self, rpc):
        rpc.call_result = encode_uint(2 ** 256 - 1)

        raw = await make_endpoint(rpc).call(SYNTHETIX, "totalSupply")

        assert raw == 2 ** 256 - 1
        assert from_fixed_point(raw) == Decimal(f"{2 ** 256 - 1}E-18")

    @pytest.mark.asyncio
    async def test_lowercase_address_argument(self, rpc):
        rpc.call_result = encode_uint(71283923100000000000000000)

        raw = await make_endpoint(rpc).call(SYNTHETIX.lower(), "balanceOf", [BRIDGE_ESCROW.lower()])

        assert raw == 71283923100000000000000000
        tx = rpc.eth_calls()[0]["params"][0]
        data = tx.get("data") or tx.get("input")
        assert data.lower().endswith(BRIDGE_ESCROW[2:].lower())

    @pytest.mark.asyncio
    async def test_unsupported_method_makes_no_request(self, rpc):
        with pytest.raises(NotFoundError):
            await make_endpoint(rpc).call(SYNTHETIX, "transfer", [BRIDGE_ESCROW, 1])

        assert rpc.requests == []


class TestLedgerEndpointErrors:
    """Test the mapping of provider failures onto source errors."""

    @pytest.mark.asyncio
    async def test_http_error_is_a_single_request(self, rpc):
        rpc.status = 503

        with pytest.raises(NetworkError) as exc_info:
            await make_endpoint(rpc).call(SYNTHETIX, "totalSupply")

        assert len(rpc.requests) == 1
        assert exc_info.value.details == {"network": "mainnet", "endpoint": "primary"}

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, rpc):
        rpc.delay = 1.0

        with pytest.raises(NetworkError):
            await make_endpoint(rpc, timeout=0.2).call(SYNTHETIX, "totalSupply")

        assert len(rpc.requests) == 1

    @pytest.mark.asyncio
    async def test_revert_is_source_error(self, rpc):
        rpc.call_error = {"code": 3, "message": "execution reverted: paused"}

        with pytest.raises(SourceError) as exc_info:
            await make_endpoint(rpc).call(SYNTHETIX, "totalSupply")

        assert not isinstance(exc_info.value, NetworkError)
        assert "totalSupply" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_output_is_source_error(self, rpc):
        rpc.call_result = "0x"

        with pytest.raises(SourceError) as exc_info:
            await make_endpoint(rpc).call(SYNTHETIX, "totalSupply")

        assert not isinstance(exc_info.value, NetworkError)


class TestLedgerFailover:
    """Test the retry budget end to end through SourceReader."""

    @pytest.fixture
    def reader(self, rpc):
        config = EndpointConfig(network="mainnet", url=rpc.url, timeout=5.0)
        return SourceReader(EndpointRegistry({"mainnet": config}))

    @pytest.mark.asyncio
    async def test_reader_decodes_value(self, reader, rpc):
        rpc.call_result = encode_uint(10 ** 18)

        result = await reader.fetch_with_failover(LedgerSpec("mainnet", "Synthetix", "totalSupply"))

        assert result.value == Decimal(1)
        assert result.endpoint == "primary"

    @pytest.mark.asyncio
    async def test_failing_node_sees_exactly_two_requests(self, reader, rpc):
        rpc.status = 503

        with pytest.raises(SourceUnavailable):
            await reader.fetch_with_failover(LedgerSpec("mainnet", "Synthetix", "totalSupply"))

        assert len(rpc.requests) == 2

    @pytest.mark.asyncio
    async def test_revert_is_not_retried(self, reader, rpc):
        rpc.call_error = {"code": 3, "message": "execution reverted"}

        with pytest.raises(SourceError) as exc_info:
            await reader.fetch_with_failover(LedgerSpec("mainnet", "Synthetix", "totalSupply"))

        assert not isinstance(exc_info.value, NetworkError)
        assert len(rpc.eth_calls()) == 1
