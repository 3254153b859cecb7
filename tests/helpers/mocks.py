"""
Test doubles for the ledger gateway, the wallet signer, timers and the
aiohttp session.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from biochain_client.models import ConfirmationResult, SimulationResult, WalletAccount
from biochain_client.runtime.errors import ErrorKind, LedgerError
from biochain_client.signer import WalletSigner


WALLET_ADDRESS = "0x" + "ab" * 32
OTHER_ADDRESS = "0x" + "cd" * 32


def committed(tx_hash: str, success: bool = True, vm_status: str = "Executed successfully") -> Dict[str, Any]:
    """A committed user transaction record as returned by the node."""
    return {
        "type": "user_transaction",
        "hash": tx_hash,
        "success": success,
        "vm_status": vm_status,
        "gas_used": "42",
        "version": "1001",
        "events": [],
    }


class RecordingSleep:
    """Injected sleep that records delays and only yields to the loop."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class MockGateway:
    """
    In-memory stand-in for ``LedgerGateway``.

    ``transactions`` maps a hash to the responses returned by successive
    polls; the last one repeats. Entries may be exceptions. Unscripted hashes
    are reported committed when ``auto_commit`` is set.
    """

    def __init__(self, *, sequence_number: int = 7, reachable: bool = True, auto_commit: bool = True):
        self.sequence_number = sequence_number
        self.sequence_error: Optional[Exception] = None
        self.reachable = reachable
        self.auto_commit = auto_commit
        self.resources = set()
        self.resource_checks: List[tuple] = []
        self.simulation: Any = SimulationResult(success=True, vm_status="Executed successfully")
        self.simulations: List[tuple] = []
        self.transactions: Dict[str, List[Any]] = {}
        self.polls: List[str] = []
        self.views: Dict[str, Any] = {}
        self.view_calls: List[tuple] = []
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def is_network_reachable(self) -> bool:
        return self.reachable

    async def get_sequence_number(self, address: str) -> int:
        await asyncio.sleep(0)
        if self.sequence_error is not None:
            raise self.sequence_error
        return self.sequence_number

    async def resource_exists(self, address: str, resource_type: str) -> bool:
        self.resource_checks.append((address, resource_type))
        await asyncio.sleep(0)
        return (address, resource_type) in self.resources

    async def simulate(self, request, sender, *, public_key=None, sequence_number=None) -> SimulationResult:
        self.simulations.append((request, sender, sequence_number))
        await asyncio.sleep(0)
        if isinstance(self.simulation, Exception):
            raise self.simulation
        return self.simulation

    async def get_transaction_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self.polls.append(tx_hash)
        script = self.transactions.get(tx_hash)
        if script is None:
            return committed(tx_hash) if self.auto_commit else None
        response = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def check_transaction(self, tx_hash: str) -> ConfirmationResult:
        txn = await self.get_transaction_by_hash(tx_hash)
        if txn is None:
            return ConfirmationResult(hash=tx_hash, success=False, status="Transaction not found or query failed")
        return ConfirmationResult.from_transaction(txn)

    async def view(self, module_address, module_name, function_name, type_arguments=(), arguments=()):
        self.view_calls.append((module_name, function_name, list(arguments)))
        result = self.views.get(function_name)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise LedgerError.of(ErrorKind.RESOURCE_NOT_FOUND, f"view {function_name} not found")
        return result


class MockSigner(WalletSigner):
    """
    Scripted wallet signer.

    ``responses`` is consumed one entry per sign-and-submit call: a string
    is returned as the hash, an exception is raised. Once exhausted, each
    call returns a fresh ``0xhash<n>``.
    """

    def __init__(self, address: str = WALLET_ADDRESS, responses: Optional[List[Any]] = None,
                 public_key: Optional[str] = "0x" + "11" * 32):
        self.account = WalletAccount(address=address, public_key=public_key)
        self.responses = list(responses or [])
        self.payloads: List[Dict[str, Any]] = []
        self.connected = False
        self.connect_error: Optional[Exception] = None
        self.disconnect_calls = 0

    async def connect(self) -> WalletAccount:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return self.account

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    async def is_connected(self) -> bool:
        return self.connected

    async def sign_and_submit_transaction(self, payload: Dict[str, Any]):
        self.payloads.append(payload)
        await asyncio.sleep(0)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return {"hash": f"0xhash{len(self.payloads)}"}

    def functions(self) -> List[str]:
        return [p["function"].rsplit("::", 1)[-1] for p in self.payloads]


class MockResponse:
    """Mock aiohttp response usable as an async context manager."""

    def __init__(self, status: int = 200, json_data: Any = None, text: Optional[str] = None,
                 reason: str = "OK"):
        self.status = status
        self.reason = reason
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class MockSession:
    """Mock aiohttp session returning queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True
