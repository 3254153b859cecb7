"""
Biochain Python Client

Submits biological research records (samples, experiment data hashes,
access grants, workflow tasks, IP attributions) to an Aptos-style ledger
through a wallet signer, with simulation, bounded retries and confirmation
polling.
"""

from .config import (
    CONTRACT_ADDRESS, EXPLORER_URL, NODE_URLS, MODULE_FUNCTIONS,
    Network, ModuleName, FunctionName,
    NetworkConfig, SubmitterConfig, PollerConfig, SessionConfig, ClientConfig,
)
from .runtime.errors import ErrorKind, ClassifiedError, LedgerError, LedgerApiError, classify
from .runtime.encoding import (
    string_to_bytes, bytes_to_string, normalize_address, compute_data_hash, hash_file,
)
from .models import (
    GasOptions, TransactionRequest, SimulationResult, ConfirmationResult,
    WalletAccount, SubmissionAttempt, SubmissionResult,
)
from .gateway import LedgerGateway
from .poller import ConfirmationPoller
from .signer import WalletSigner, ProviderSigner
from .registry import RegistryDefinition, RegistryState, RegistryTracker
from .submitter import TransactionSubmitter
from .notifications import Notification, NotificationLevel, logging_notifier
from .storage import KeyValueStore, InMemoryStore, JsonFileStore
from .history import TransactionHistory, TransactionHistoryItem
from .session import SessionState, WalletSession
from .contracts import (
    RecordReceipt,
    SampleProvenanceContract, ExperimentalDataContract, AccessControlContract,
    WorkflowAutomationContract, IntellectualPropertyContract,
    AccessLevel, TaskStatus,
)
from .monitoring import MetricsRegistry, get_registry

__version__ = "0.4.0"
__all__ = [
    "CONTRACT_ADDRESS",
    "EXPLORER_URL",
    "NODE_URLS",
    "MODULE_FUNCTIONS",
    "Network",
    "ModuleName",
    "FunctionName",
    "NetworkConfig",
    "SubmitterConfig",
    "PollerConfig",
    "SessionConfig",
    "ClientConfig",
    "ErrorKind",
    "ClassifiedError",
    "LedgerError",
    "LedgerApiError",
    "classify",
    "string_to_bytes",
    "bytes_to_string",
    "normalize_address",
    "compute_data_hash",
    "hash_file",
    "GasOptions",
    "TransactionRequest",
    "SimulationResult",
    "ConfirmationResult",
    "WalletAccount",
    "SubmissionAttempt",
    "SubmissionResult",
    "LedgerGateway",
    "ConfirmationPoller",
    "WalletSigner",
    "ProviderSigner",
    "RegistryDefinition",
    "RegistryState",
    "RegistryTracker",
    "TransactionSubmitter",
    "Notification",
    "NotificationLevel",
    "logging_notifier",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "TransactionHistory",
    "TransactionHistoryItem",
    "SessionState",
    "WalletSession",
    "RecordReceipt",
    "SampleProvenanceContract",
    "ExperimentalDataContract",
    "AccessControlContract",
    "WorkflowAutomationContract",
    "IntellectualPropertyContract",
    "AccessLevel",
    "TaskStatus",
    "MetricsRegistry",
    "get_registry",
]
