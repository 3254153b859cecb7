"""
Biochain Error Model

Every failure coming back from the ledger, the node's REST API or the wallet
signer is reduced to one ``ClassifiedError`` by ``classify()``. Downstream code
branches on ``ErrorKind`` only and never inspects raw failure shapes.
"""

from __future__ import annotations
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import aiohttp


class ErrorKind(Enum):
    """Kinds of failure the pipeline distinguishes."""

    SEQUENCE_NUMBER_CONFLICT = "SequenceNumberConflict"
    RESOURCE_ALREADY_EXISTS = "ResourceAlreadyExists"
    RESOURCE_NOT_FOUND = "ResourceNotFound"
    OUT_OF_GAS = "OutOfGas"
    GAS_ESTIMATION_FAILURE = "GasEstimationFailure"
    PERMISSION_DENIED = "PermissionDenied"
    INVALID_ARGUMENT = "InvalidArgument"
    VM_EXECUTION_ERROR = "VMExecutionError"
    WALLET_UNAVAILABLE = "WalletUnavailable"
    NETWORK_UNREACHABLE = "NetworkUnreachable"
    UNKNOWN = "Unknown"


RETRYABLE_KINDS = frozenset({
    ErrorKind.SEQUENCE_NUMBER_CONFLICT,
    ErrorKind.UNKNOWN,
})


HINTS: Dict[ErrorKind, str] = {
    ErrorKind.SEQUENCE_NUMBER_CONFLICT:
        "Another transaction from this account was processed first. Wait a moment and retry.",
    ErrorKind.RESOURCE_ALREADY_EXISTS:
        "The record already exists on the ledger; no further action is needed.",
    ErrorKind.RESOURCE_NOT_FOUND:
        "The account or registry does not exist yet. Initialize the registry or fund the account first.",
    ErrorKind.OUT_OF_GAS:
        "The transaction ran out of gas. Retry with a higher maximum gas amount.",
    ErrorKind.GAS_ESTIMATION_FAILURE:
        "Gas could not be estimated or paid. Check the account balance and gas settings.",
    ErrorKind.PERMISSION_DENIED:
        "The request was rejected or the account is not authorized for this operation.",
    ErrorKind.INVALID_ARGUMENT:
        "One of the submitted fields has an invalid value or type. Check the form input.",
    ErrorKind.VM_EXECUTION_ERROR:
        "The module aborted while executing the transaction. Inspect the VM status for details.",
    ErrorKind.WALLET_UNAVAILABLE:
        "No wallet is available. Install and unlock a compatible wallet extension, then reconnect.",
    ErrorKind.NETWORK_UNREACHABLE:
        "The ledger node could not be reached. Check your connection and the selected network.",
    ErrorKind.UNKNOWN:
        "An unexpected error occurred. Try again; if it persists, check the transaction in the explorer.",
}


@dataclass(frozen=True)
class ClassifiedError:
    """A raw failure reduced to a kind, its message and a suggested action."""

    kind: ErrorKind
    raw_message: str
    actionable_hint: str

    @property
    def retryable(self) -> bool:
        """Whether the submitter may retry after this error."""
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "message": self.raw_message,
            "hint": self.actionable_hint,
        }

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.raw_message} | Hint: {self.actionable_hint}"


class LedgerError(Exception):
    """
    The single exception type surfaced by the pipeline.

    Wraps a ``ClassifiedError`` together with the underlying cause and, when
    raised by the submitter, the attempts made before giving up.
    """

    def __init__(self, error: ClassifiedError, cause: Optional[BaseException] = None,
                 attempts: Optional[List[Any]] = None):
        super().__init__(str(error))
        self.error = error
        self.cause = cause
        self.attempts = attempts or []

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def raw_message(self) -> str:
        return self.error.raw_message

    @property
    def hint(self) -> str:
        return self.error.actionable_hint

    @classmethod
    def of(cls, kind: ErrorKind, message: str, cause: Optional[BaseException] = None) -> "LedgerError":
        """Create an error of a known kind with the default hint."""
        return cls(ClassifiedError(kind, message, HINTS[kind]), cause)

    @classmethod
    def wrap(cls, raw: Any) -> "LedgerError":
        """Classify any raw failure and wrap it."""
        if isinstance(raw, LedgerError):
            return raw
        cause = raw if isinstance(raw, BaseException) else None
        return cls(classify(raw), cause)


class LedgerApiError(Exception):
    """Non-2xx response from the node REST API."""

    def __init__(self, status: int, message: str, error_code: Optional[str] = None,
                 vm_error_code: Optional[int] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.error_code = error_code
        self.vm_error_code = vm_error_code

    def __str__(self) -> str:
        parts = [f"HTTP {self.status}: {self.message}"]
        if self.error_code:
            parts.append(f"error_code={self.error_code}")
        if self.vm_error_code is not None:
            parts.append(f"vm_error_code={self.vm_error_code}")
        return " ".join(parts)


# Ordered rule table. First match wins; substrings of later rules must come
# after the rules that contain them (OUT_OF_GAS before the generic gas rule).
_RULES: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    (ErrorKind.WALLET_UNAVAILABLE, (
        "wallet not found",
        "wallet extension",
        "wallet is not installed",
        "no wallet",
        "wallet not connected",
        "signer unavailable",
    )),
    (ErrorKind.RESOURCE_ALREADY_EXISTS, (
        "resource_already_exists",
        "ealready_exists",
        "already_exists",
        "already exists",
        "ealready_initialized",
        "already_initialized",
        "already initialized",
    )),
    (ErrorKind.SEQUENCE_NUMBER_CONFLICT, (
        "sequence_number_too_old",
        "sequence_number_too_new",
        "sequence number too old",
        "sequence number too new",
        "sequence_number_mismatch",
        "invalid sequence number",
    )),
    (ErrorKind.OUT_OF_GAS, (
        "out_of_gas",
        "out of gas",
    )),
    (ErrorKind.GAS_ESTIMATION_FAILURE, (
        "max_gas_units_below_min_transaction_gas_units",
        "max_gas_units_exceeds_max_gas_units_bound",
        "gas_unit_price_below_min_bound",
        "gas_unit_price_above_max_bound",
        "insufficient_balance_for_transaction_fee",
        "gas estimation",
        "estimate gas",
        "estimate_gas",
    )),
    (ErrorKind.PERMISSION_DENIED, (
        "user rejected",
        "rejected the request",
        "user denied",
        "permission denied",
        "permission_denied",
        "not authorized",
        "enot_authorized",
        "unauthorized",
    )),
    (ErrorKind.RESOURCE_NOT_FOUND, (
        "resource_not_found",
        "resource_does_not_exist",
        "account_not_found",
        "resource not found",
        "account not found",
        "not found",
    )),
    (ErrorKind.INVALID_ARGUMENT, (
        "invalid_argument",
        "invalid argument",
        "invalid_input",
        "einvalid",
        "number_of_arguments_mismatch",
        "failed_to_deserialize_argument",
        "type_mismatch",
        "failed to parse",
    )),
    (ErrorKind.VM_EXECUTION_ERROR, (
        "move abort",
        "move_abort",
        "aborted",
        "execution_failure",
        "execution failure",
        "vm_error",
    )),
    (ErrorKind.NETWORK_UNREACHABLE, (
        "failed to fetch",
        "network error",
        "networkerror",
        "econnrefused",
        "cannot connect",
        "connection refused",
        "timed out",
    )),
    (ErrorKind.GAS_ESTIMATION_FAILURE, (
        "gas",
    )),
)

_NETWORK_EXCEPTIONS = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
    ConnectionError,
    TimeoutError,
)

_TEXT_FIELDS = ("vm_status", "error_code", "message", "error", "reason")


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    try:
        return getattr(raw, name, None)
    except Exception:
        return None


def _describe(raw: Any) -> Tuple[str, str]:
    """Return (raw message, text to match rules against)."""
    if raw is None:
        return "None", ""
    if isinstance(raw, str):
        return raw, raw
    if isinstance(raw, BaseException):
        message = _safe_str(raw) or type(raw).__name__
        extra = [_safe_str(v) for v in (_field(raw, n) for n in _TEXT_FIELDS) if v]
        return message, " ".join([message] + extra)

    fields = [_safe_str(v) for v in (_field(raw, n) for n in _TEXT_FIELDS) if v]
    if fields:
        return " ".join(fields), " ".join(fields)
    text = _safe_str(raw)
    return text, text


def classify(raw: Any) -> ClassifiedError:
    """
    Classify an opaque failure.

    Accepts exceptions, strings, RPC error mappings (``vm_status``,
    ``error_code``, ``message``) or any other object. Never raises; anything
    that matches no rule is ``ErrorKind.UNKNOWN``.

    Args:
        raw: The raw failure

    Returns:
        The classified error
    """
    try:
        if isinstance(raw, ClassifiedError):
            return raw
        if isinstance(raw, LedgerError):
            return raw.error

        message, text = _describe(raw)

        if isinstance(raw, _NETWORK_EXCEPTIONS):
            return ClassifiedError(ErrorKind.NETWORK_UNREACHABLE, message,
                                   HINTS[ErrorKind.NETWORK_UNREACHABLE])

        lowered = text.lower()
        for kind, patterns in _RULES:
            if any(p in lowered for p in patterns):
                return ClassifiedError(kind, message, HINTS[kind])

        if _field(raw, "status") == 404:
            return ClassifiedError(ErrorKind.RESOURCE_NOT_FOUND, message,
                                   HINTS[ErrorKind.RESOURCE_NOT_FOUND])

        return ClassifiedError(ErrorKind.UNKNOWN, message, HINTS[ErrorKind.UNKNOWN])
    except Exception:
        return ClassifiedError(ErrorKind.UNKNOWN, _safe_str(raw), HINTS[ErrorKind.UNKNOWN])


__all__ = [
    "ErrorKind",
    "RETRYABLE_KINDS",
    "HINTS",
    "ClassifiedError",
    "LedgerError",
    "LedgerApiError",
    "classify",
]
