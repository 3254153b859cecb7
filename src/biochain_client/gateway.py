"""
Ledger Read Gateway.

Async client for the node REST API: account state, resource existence,
transactions by hash, simulation, view calls and a liveness probe. Every
failure is classified before it leaves this module; nothing here retries.
"""

from __future__ import annotations
import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from .config import NetworkConfig
from .models import ConfirmationResult, SimulationResult, TransactionRequest
from .runtime.encoding import encode_json_argument, function_id
from .runtime.errors import ErrorKind, LedgerApiError, LedgerError, classify


logger = logging.getLogger(__name__)

# Simulation requests carry an all-zero signature; the node rejects real ones.
_NULL_PUBLIC_KEY = "0x" + "00" * 32
_NULL_SIGNATURE = "0x" + "00" * 64
_SIMULATION_MAX_GAS = 200_000
_SIMULATION_GAS_PRICE = 100
_SIMULATION_EXPIRY_SECS = 600


class LedgerGateway:
    """
    Read-side gateway to one ledger node.

    Example:
        ```python
        async with LedgerGateway(NetworkConfig()) as gateway:
            seq = await gateway.get_sequence_number("0x1")
        ```
    """

    def __init__(self, config: Optional[NetworkConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the gateway.

        Args:
            config: Network configuration (defaults to devnet)
            session: Optional aiohttp session for connection reuse
        """
        self.config = config or NetworkConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def node_url(self) -> str:
        return self.config.node_url

    async def __aenter__(self) -> "LedgerGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if owned by this gateway."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    # =========================================================================
    # Low-level HTTP
    # =========================================================================

    async def _request(self, method: str, path: str, *,
                       params: Optional[Dict[str, str]] = None,
                       body: Optional[Any] = None) -> Any:
        """
        Perform one REST call and decode the JSON body.

        Raises:
            LedgerError: Classified failure (HTTP status, node error body,
                connection failure or malformed JSON)
        """
        url = f"{self.node_url}{path}"
        try:
            async with self._get_session().request(
                method, url, params=params, json=body,
                headers={"Content-Type": "application/json"},
            ) as response:
                text = await response.text()
                if response.status >= 400:
                    raise self._api_error(response.status, response.reason, text)
                return json.loads(text) if text else None
        except LedgerError:
            raise
        except LedgerApiError as e:
            raise LedgerError(classify(e), e)
        except json.JSONDecodeError as e:
            raise LedgerError.of(ErrorKind.UNKNOWN, f"Invalid JSON response from {path}: {e}", e)
        except Exception as e:
            raise LedgerError(classify(e), e)

    @staticmethod
    def _api_error(status: int, reason: Optional[str], text: str) -> LedgerApiError:
        message = reason or "Request failed"
        error_code = None
        vm_error_code = None
        try:
            data = json.loads(text) if text else {}
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            message = data.get("message", message)
            error_code = data.get("error_code")
            vm_error_code = data.get("vm_error_code")
        elif text:
            message = text
        return LedgerApiError(status, message, error_code, vm_error_code)

    # =========================================================================
    # Account state
    # =========================================================================

    async def get_ledger_info(self) -> Dict[str, Any]:
        """Latest ledger metadata (chain id, version, timestamp)."""
        return await self._request("GET", "")

    async def is_network_reachable(self) -> bool:
        """Liveness probe; never raises."""
        try:
            await self.get_ledger_info()
            return True
        except Exception as e:
            logger.warning(f"Network connection error: {e}")
            return False

    async def get_sequence_number(self, address: str) -> int:
        """Current sequence number of an account."""
        account = await self._request("GET", f"/accounts/{address}")
        try:
            return int(account["sequence_number"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerError.of(ErrorKind.UNKNOWN, f"Malformed account record for {address}", e)

    async def get_account_resource(self, address: str, resource_type: str) -> Dict[str, Any]:
        """Fetch one resource of an account."""
        return await self._request("GET", f"/accounts/{address}/resource/{resource_type}")

    async def get_account_resources(self, address: str) -> List[Dict[str, Any]]:
        """All resources of an account; best-effort, empty on failure."""
        try:
            return await self._request("GET", f"/accounts/{address}/resources") or []
        except LedgerError as e:
            logger.warning(f"Error fetching resources for account {address}: {e}")
            return []

    async def resource_exists(self, address: str, resource_type: str) -> bool:
        """
        Check whether an account holds a resource.

        A not-found response means ``False``; any other failure propagates.
        """
        try:
            await self.get_account_resource(address, resource_type)
            return True
        except LedgerError as e:
            if e.kind is ErrorKind.RESOURCE_NOT_FOUND:
                return False
            raise

    # =========================================================================
    # Transactions
    # =========================================================================

    async def get_transaction_by_hash(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Transaction record by hash, or ``None`` if the node has not indexed it."""
        try:
            return await self._request("GET", f"/transactions/by_hash/{tx_hash}")
        except LedgerError as e:
            if e.kind is ErrorKind.RESOURCE_NOT_FOUND:
                return None
            raise

    async def check_transaction(self, tx_hash: str) -> ConfirmationResult:
        """One-shot status check without waiting."""
        try:
            txn = await self.get_transaction_by_hash(tx_hash)
        except LedgerError as e:
            logger.warning(f"Error checking transaction {tx_hash}: {e}")
            txn = None
        if txn is None:
            return ConfirmationResult(
                hash=tx_hash, success=False, status="Transaction not found or query failed"
            )
        if txn.get("type") == "pending_transaction":
            return ConfirmationResult(hash=tx_hash, success=False, status="Pending")
        return ConfirmationResult.from_transaction(txn)

    async def get_transaction_details(self, tx_hash: str) -> Dict[str, Any]:
        """Debug view of a transaction; never raises."""
        try:
            txn = await self.get_transaction_by_hash(tx_hash)
        except LedgerError as e:
            return {"status": "error", "errorDetails": str(e)}
        if txn is None:
            return {"status": "not_found", "hash": tx_hash}
        payload = txn.get("payload") or {}
        return {
            "status": "pending" if txn.get("type") == "pending_transaction" else (
                "success" if txn.get("success") else "failed"),
            "hash": tx_hash,
            "vmStatus": txn.get("vm_status"),
            "gasUsed": txn.get("gas_used"),
            "gasUnitPrice": txn.get("gas_unit_price"),
            "sender": txn.get("sender"),
            "sequenceNumber": txn.get("sequence_number"),
            "function": payload.get("function"),
            "arguments": payload.get("arguments"),
            "events": txn.get("events", []),
            "version": txn.get("version"),
        }

    async def simulate(self, request: TransactionRequest, sender: str, *,
                       public_key: Optional[str] = None,
                       sequence_number: Optional[int] = None) -> SimulationResult:
        """
        Dry-run a transaction to estimate gas and surface would-be failures.

        Does not change ledger state.

        Raises:
            LedgerError: The request failed, or the simulated execution did
                (classified from its VM status)
        """
        if sequence_number is None:
            sequence_number = await self.get_sequence_number(sender)
        gas = request.gas_options
        body = {
            "sender": sender,
            "sequence_number": str(sequence_number),
            "max_gas_amount": str(gas.max_gas_amount if gas and gas.max_gas_amount else _SIMULATION_MAX_GAS),
            "gas_unit_price": str(gas.gas_unit_price if gas and gas.gas_unit_price else _SIMULATION_GAS_PRICE),
            "expiration_timestamp_secs": str(int(time.time()) + _SIMULATION_EXPIRY_SECS),
            "payload": request.to_json_payload(),
            "signature": {
                "type": "ed25519_signature",
                "public_key": public_key or _NULL_PUBLIC_KEY,
                "signature": _NULL_SIGNATURE,
            },
        }
        params = {"estimate_gas_unit_price": "true", "estimate_max_gas_amount": "true"}
        result = await self._request("POST", "/transactions/simulate", params=params, body=body)
        txn = result[0] if isinstance(result, list) and result else result
        if not isinstance(txn, dict):
            raise LedgerError.of(ErrorKind.UNKNOWN, f"Unexpected simulation response: {result!r}")

        simulation = SimulationResult.from_transaction(txn)
        if not simulation.success:
            raise LedgerError(classify({"vm_status": simulation.vm_status}))
        return simulation

    async def view(self, module_address: str, module_name: str, function_name: str,
                   type_arguments: Sequence[str] = (), arguments: Sequence[Any] = ()) -> List[Any]:
        """Read-only view function call; no signature required."""
        body = {
            "function": function_id(module_address, module_name, function_name),
            "type_arguments": list(type_arguments),
            "arguments": [encode_json_argument(a) for a in arguments],
        }
        result = await self._request("POST", "/view", body=body)
        return result if isinstance(result, list) else [result]
