"""
Request, result and account models shared by the pipeline components.
"""

from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .runtime.encoding import (
    encode_json_argument, encode_signer_argument, function_id, normalize_address
)
from .runtime.errors import ClassifiedError


class GasOptions(BaseModel):
    """Caller-supplied gas settings, used when simulation gives no estimate."""
    max_gas_amount: Optional[int] = Field(default=None, ge=1)
    gas_unit_price: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(frozen=True)


class TransactionRequest(BaseModel):
    """
    One entry-function call to be signed and submitted.

    Immutable; built fresh for every submission.
    """
    module_address: str
    module_name: str
    function_name: str
    type_arguments: Tuple[str, ...] = ()
    arguments: Tuple[Any, ...] = ()
    gas_options: Optional[GasOptions] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def function(self) -> str:
        """Fully-qualified call target."""
        return function_id(self.module_address, self.module_name, self.function_name)

    def to_json_payload(self) -> Dict[str, Any]:
        """Entry-function payload in the node's JSON form (simulate)."""
        return {
            "type": "entry_function_payload",
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": [encode_json_argument(a) for a in self.arguments],
        }

    def to_signer_payload(
        self,
        sequence_number: Optional[int] = None,
        gas_unit_price: Optional[int] = None,
        max_gas_amount: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Payload handed to the wallet's sign-and-submit capability."""
        payload: Dict[str, Any] = {
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": [encode_signer_argument(a) for a in self.arguments],
        }
        if sequence_number is not None:
            payload["sequence_number"] = str(sequence_number)
        if gas_unit_price is not None:
            payload["gas_unit_price"] = str(gas_unit_price)
        if max_gas_amount is not None:
            payload["max_gas_amount"] = str(max_gas_amount)
        return payload


class SimulationResult(BaseModel):
    """Outcome of a dry-run execution."""
    success: bool
    vm_status: str = ""
    gas_used: int = 0
    gas_unit_price: Optional[int] = None
    max_gas_amount: Optional[int] = None

    @classmethod
    def from_transaction(cls, txn: Dict[str, Any]) -> "SimulationResult":
        """Build from a simulated transaction record."""
        def _int(key: str) -> Optional[int]:
            value = txn.get(key)
            return int(value) if value not in (None, "") else None

        return cls(
            success=bool(txn.get("success", False)),
            vm_status=txn.get("vm_status", ""),
            gas_used=_int("gas_used") or 0,
            gas_unit_price=_int("gas_unit_price"),
            max_gas_amount=_int("max_gas_amount"),
        )


class ConfirmationResult(BaseModel):
    """Terminal status of a submitted transaction."""
    hash: str
    success: bool
    status: str
    vm_status: Optional[str] = None
    gas_used: Optional[str] = None
    events: Optional[List[Any]] = None
    version: Optional[str] = None
    timed_out: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_transaction(cls, txn: Dict[str, Any]) -> "ConfirmationResult":
        """Format a committed transaction record."""
        success = bool(txn.get("success", False))
        vm_status = txn.get("vm_status")
        if success:
            status = "Transaction succeeded"
        else:
            status = f"Transaction failed: {vm_status or 'unknown VM status'}"
        gas_used = txn.get("gas_used")
        version = txn.get("version")
        return cls(
            hash=txn.get("hash", ""),
            success=success,
            status=status,
            vm_status=vm_status,
            gas_used=str(gas_used) if gas_used is not None else None,
            events=txn.get("events"),
            version=str(version) if version is not None else None,
        )


class WalletAccount(BaseModel):
    """Account reported by the wallet signer."""
    address: str
    public_key: Optional[str] = None

    @field_validator("address")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_address(value)


@dataclass
class SubmissionAttempt:
    """Information about one sign-and-submit attempt."""
    attempt_number: int
    sequence_number: Optional[int] = None
    simulated_gas: Optional[Tuple[int, int]] = None
    hash: Optional[str] = None
    error: Optional[ClassifiedError] = None
    backoff_delay: float = 0.0
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0

    @property
    def submitted(self) -> bool:
        return self.hash is not None

    @property
    def duration(self) -> float:
        """Get attempt duration in seconds."""
        if self.end_time > self.start_time:
            return self.end_time - self.start_time
        return 0.0


@dataclass
class SubmissionResult:
    """Outcome of a completed submission."""
    hash: str
    already_completed: bool = False
    attempts: List[SubmissionAttempt] = field(default_factory=list)
