"""
Tests for the ledger gateway with a mocked aiohttp session.
"""

import aiohttp
import pytest

from biochain_client.config import NetworkConfig
from biochain_client.gateway import LedgerGateway
from biochain_client.models import TransactionRequest
from biochain_client.runtime.errors import ErrorKind, LedgerError

from helpers import MockResponse, MockSession, WALLET_ADDRESS, committed


NODE = "http://node.test/v1"
RESOURCE = "0x1::SampleProvenance::SampleRegistry"


def make_gateway(*responses):
    session = MockSession(*responses)
    return LedgerGateway(NetworkConfig(node_url=NODE), session=session), session


def not_found(message="Resource not found by Address(0x1)", code="resource_not_found"):
    return MockResponse(404, {"message": message, "error_code": code}, reason="Not Found")


@pytest.fixture
def request_():
    return TransactionRequest(
        module_address="0x1", module_name="SampleProvenance",
        function_name="register_sample", arguments=(b"liver",),
    )


class TestRequests:

    @pytest.mark.asyncio
    async def test_ledger_info(self):
        gateway, session = make_gateway(MockResponse(200, {"chain_id": 4, "ledger_version": "10"}))
        info = await gateway.get_ledger_info()
        assert info["chain_id"] == 4
        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"] == NODE

    @pytest.mark.asyncio
    async def test_sequence_number(self):
        gateway, session = make_gateway(MockResponse(200, {"sequence_number": "12", "authentication_key": "0x"}))
        assert await gateway.get_sequence_number(WALLET_ADDRESS) == 12
        assert session.calls[0]["url"] == f"{NODE}/accounts/{WALLET_ADDRESS}"

    @pytest.mark.asyncio
    async def test_sequence_number_missing_account(self):
        gateway, _ = make_gateway(not_found("Account not found by Address(0x1)", "account_not_found"))
        with pytest.raises(LedgerError) as exc_info:
            await gateway.get_sequence_number(WALLET_ADDRESS)
        assert exc_info.value.kind is ErrorKind.RESOURCE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        gateway, _ = make_gateway(MockResponse(200, text="<html>"))
        with pytest.raises(LedgerError) as exc_info:
            await gateway.get_ledger_info()
        assert exc_info.value.kind is ErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_connection_error_classified(self):
        gateway, _ = make_gateway(aiohttp.ClientConnectionError("Cannot connect to host"))
        with pytest.raises(LedgerError) as exc_info:
            await gateway.get_ledger_info()
        assert exc_info.value.kind is ErrorKind.NETWORK_UNREACHABLE

    @pytest.mark.asyncio
    async def test_close_leaves_injected_session_open(self):
        gateway, session = make_gateway(MockResponse(200, {}))
        await gateway.close()
        assert not session.closed


class TestLiveness:

    @pytest.mark.asyncio
    async def test_reachable(self):
        gateway, _ = make_gateway(MockResponse(200, {"chain_id": 4}))
        assert await gateway.is_network_reachable()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        MockResponse(503, text="unavailable", reason="Service Unavailable"),
        aiohttp.ClientConnectionError("refused"),
    ])
    async def test_unreachable_never_raises(self, response):
        gateway, _ = make_gateway(response)
        assert await gateway.is_network_reachable() is False


class TestResources:

    @pytest.mark.asyncio
    async def test_exists(self):
        gateway, session = make_gateway(MockResponse(200, {"type": RESOURCE, "data": {}}))
        assert await gateway.resource_exists(WALLET_ADDRESS, RESOURCE)
        assert session.calls[0]["url"] == f"{NODE}/accounts/{WALLET_ADDRESS}/resource/{RESOURCE}"

    @pytest.mark.asyncio
    async def test_not_found_is_false(self):
        gateway, _ = make_gateway(not_found())
        assert await gateway.resource_exists(WALLET_ADDRESS, RESOURCE) is False

    @pytest.mark.asyncio
    async def test_other_failure_propagates(self):
        gateway, _ = make_gateway(MockResponse(500, {"message": "internal", "error_code": "internal_error"}))
        with pytest.raises(LedgerError):
            await gateway.resource_exists(WALLET_ADDRESS, RESOURCE)

    @pytest.mark.asyncio
    async def test_list_resources_best_effort(self):
        gateway, _ = make_gateway(MockResponse(500, {"message": "internal"}))
        assert await gateway.get_account_resources(WALLET_ADDRESS) == []


class TestTransactions:

    @pytest.mark.asyncio
    async def test_by_hash(self):
        gateway, session = make_gateway(MockResponse(200, committed("0xabc")))
        txn = await gateway.get_transaction_by_hash("0xabc")
        assert txn["success"] is True
        assert session.calls[0]["url"] == f"{NODE}/transactions/by_hash/0xabc"

    @pytest.mark.asyncio
    async def test_by_hash_not_found(self):
        gateway, _ = make_gateway(not_found("Transaction not found by Transaction hash(0xabc)", "transaction_not_found"))
        assert await gateway.get_transaction_by_hash("0xabc") is None

    @pytest.mark.asyncio
    async def test_check_transaction(self):
        gateway, _ = make_gateway(MockResponse(200, committed("0xabc", success=False, vm_status="Out of gas")))
        result = await gateway.check_transaction("0xabc")
        assert not result.success
        assert result.status == "Transaction failed: Out of gas"

    @pytest.mark.asyncio
    async def test_check_transaction_missing(self):
        gateway, _ = make_gateway(not_found())
        result = await gateway.check_transaction("0xabc")
        assert result.status == "Transaction not found or query failed"

    @pytest.mark.asyncio
    async def test_details(self):
        txn = committed("0xabc")
        txn["payload"] = {"function": "0x1::SampleProvenance::register_sample", "arguments": ["0x6c"]}
        gateway, _ = make_gateway(MockResponse(200, txn))
        details = await gateway.get_transaction_details("0xabc")
        assert details["status"] == "success"
        assert details["function"] == "0x1::SampleProvenance::register_sample"

    @pytest.mark.asyncio
    async def test_details_on_error(self):
        gateway, _ = make_gateway(MockResponse(500, {"message": "internal"}))
        details = await gateway.get_transaction_details("0xabc")
        assert details["status"] == "error"


class TestSimulate:

    @pytest.mark.asyncio
    async def test_success(self, request_):
        simulated = [{"success": True, "vm_status": "Executed successfully", "gas_used": "500",
                      "gas_unit_price": "100", "max_gas_amount": "1000"}]
        gateway, session = make_gateway(MockResponse(200, simulated))
        result = await gateway.simulate(request_, WALLET_ADDRESS, sequence_number=3)

        assert result.max_gas_amount == 1000
        assert result.gas_unit_price == 100
        call = session.calls[0]
        assert call["url"] == f"{NODE}/transactions/simulate"
        assert call["params"] == {"estimate_gas_unit_price": "true", "estimate_max_gas_amount": "true"}
        assert call["json"]["sequence_number"] == "3"
        assert call["json"]["payload"]["arguments"] == ["0x" + b"liver".hex()]
        assert call["json"]["signature"]["signature"] == "0x" + "00" * 64

    @pytest.mark.asyncio
    async def test_fetches_sequence_number_when_missing(self, request_):
        gateway, session = make_gateway(
            MockResponse(200, {"sequence_number": "8"}),
            MockResponse(200, [{"success": True, "vm_status": "Executed successfully"}]),
        )
        await gateway.simulate(request_, WALLET_ADDRESS)
        assert session.calls[1]["json"]["sequence_number"] == "8"

    @pytest.mark.asyncio
    async def test_failed_execution_classified(self, request_):
        simulated = [{"success": False, "vm_status": "Move abort in 0x1::SampleProvenance: RESOURCE_ALREADY_EXISTS(0x80001)"}]
        gateway, _ = make_gateway(MockResponse(200, simulated))
        with pytest.raises(LedgerError) as exc_info:
            await gateway.simulate(request_, WALLET_ADDRESS, sequence_number=0)
        assert exc_info.value.kind is ErrorKind.RESOURCE_ALREADY_EXISTS


class TestView:

    @pytest.mark.asyncio
    async def test_view(self):
        gateway, session = make_gateway(MockResponse(200, ["3"]))
        assert await gateway.view("0x1", "SampleProvenance", "get_sample_count") == ["3"]
        assert session.calls[0]["json"] == {
            "function": "0x1::SampleProvenance::get_sample_count",
            "type_arguments": [],
            "arguments": [],
        }

    @pytest.mark.asyncio
    async def test_view_encodes_arguments(self):
        gateway, session = make_gateway(MockResponse(200, [{"id": "1"}]))
        await gateway.view("0x1", "SampleProvenance", "get_sample", arguments=[1])
        assert session.calls[0]["json"]["arguments"] == ["1"]
