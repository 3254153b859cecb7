"""
Biochain client configuration.

Holds the deployed contract address, the fixed module/function call table,
per-network node endpoints, and the dataclass configuration objects used by
the gateway, submitter, poller and wallet session.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


CONTRACT_ADDRESS = "0x08e845d10bbb594fcffceb36d934a188bb84d9cdf7362e4e2522265b185127cb"
EXPLORER_URL = "https://explorer.aptoslabs.com/txn"


class Network(Enum):
    """Ledger networks the client can talk to."""
    DEVNET = "devnet"
    TESTNET = "testnet"
    MAINNET = "mainnet"
    LOCAL = "local"


NODE_URLS: Dict[Network, str] = {
    Network.DEVNET: "https://fullnode.devnet.aptoslabs.com/v1",
    Network.TESTNET: "https://fullnode.testnet.aptoslabs.com/v1",
    Network.MAINNET: "https://fullnode.mainnet.aptoslabs.com/v1",
    Network.LOCAL: "http://127.0.0.1:8080/v1",
}


class ModuleName:
    """On-ledger module names."""
    SAMPLE_PROVENANCE = "SampleProvenance"
    EXPERIMENTAL_DATA = "ExperimentalDataAuditTrail"
    ACCESS_CONTROL = "AccessControlPermission"
    WORKFLOW_AUTOMATION = "WorkflowAutomationCompliance"
    INTELLECTUAL_PROPERTY = "IntellectualPropertyAttribution"


class FunctionName:
    """Entry functions exposed by the modules."""
    # Sample Provenance
    INITIALIZE_SAMPLE_REGISTRY = "initialize_registry"
    REGISTER_SAMPLE = "register_sample"
    RECORD_TRANSFER = "record_transfer"

    # Experimental Data
    INITIALIZE_DATA_REGISTRY = "initialize_data_registry"
    SUBMIT_EXPERIMENT = "submit_experiment"
    UPDATE_EXPERIMENT = "update_experiment"

    # Access Control
    INITIALIZE_PERMISSION_REGISTRY = "initialize_permission_registry"
    GRANT_PERMISSION = "grant_permission"

    # Workflow Automation
    INITIALIZE_WORKFLOW_REGISTRY = "initialize_workflow_registry"
    CREATE_TASK = "create_task"
    UPDATE_TASK_STATUS = "update_task_status"

    # Intellectual Property
    INITIALIZE_IP_REGISTRY = "initialize_ip_registry"
    REGISTER_CONTRIBUTION = "register_contribution"


MODULE_FUNCTIONS: Dict[str, tuple] = {
    ModuleName.SAMPLE_PROVENANCE: (
        FunctionName.INITIALIZE_SAMPLE_REGISTRY,
        FunctionName.REGISTER_SAMPLE,
        FunctionName.RECORD_TRANSFER,
    ),
    ModuleName.EXPERIMENTAL_DATA: (
        FunctionName.INITIALIZE_DATA_REGISTRY,
        FunctionName.SUBMIT_EXPERIMENT,
        FunctionName.UPDATE_EXPERIMENT,
    ),
    ModuleName.ACCESS_CONTROL: (
        FunctionName.INITIALIZE_PERMISSION_REGISTRY,
        FunctionName.GRANT_PERMISSION,
    ),
    ModuleName.WORKFLOW_AUTOMATION: (
        FunctionName.INITIALIZE_WORKFLOW_REGISTRY,
        FunctionName.CREATE_TASK,
        FunctionName.UPDATE_TASK_STATUS,
    ),
    ModuleName.INTELLECTUAL_PROPERTY: (
        FunctionName.INITIALIZE_IP_REGISTRY,
        FunctionName.REGISTER_CONTRIBUTION,
    ),
}


@dataclass
class NetworkConfig:
    """Connection settings for one ledger network."""

    network: Network = Network.DEVNET
    node_url: Optional[str] = None
    contract_address: str = CONTRACT_ADDRESS
    explorer_url: str = EXPLORER_URL
    request_timeout: float = 30.0

    def __post_init__(self):
        if self.node_url is None:
            self.node_url = NODE_URLS[self.network]
        self.node_url = self.node_url.rstrip("/")

    @property
    def name(self) -> str:
        """Display name of the network (e.g. ``Devnet``)."""
        return self.network.value.capitalize()

    def explorer_link(self, tx_hash: str) -> str:
        """Explorer URL for a transaction hash on this network."""
        return f"{self.explorer_url}/{tx_hash}?network={self.network.value}"

    @classmethod
    def for_network(cls, name: str, **kwargs) -> "NetworkConfig":
        """Build a config for a network given by name ('devnet', 'testnet', ...)."""
        try:
            network = Network(name.lower())
        except ValueError:
            raise ValueError(f"Unknown network: {name}")
        return cls(network=network, **kwargs)


@dataclass
class SubmitterConfig:
    """Retry, gas and pacing settings for the transaction submitter."""

    max_attempts: int = 3
    retry_base_delay: float = 2.0
    retry_jitter: float = 1.0
    gas_safety_margin: float = 0.5
    propagation_delay: float = 0.5
    simulate: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.gas_safety_margin < 0:
            raise ValueError("gas_safety_margin must be >= 0")


@dataclass
class PollerConfig:
    """Confirmation polling settings."""

    interval: float = 2.0
    default_timeout: float = 30.0


@dataclass
class SessionConfig:
    """Wallet session settings."""

    liveness_interval: float = 30.0
    storage_key: str = "connectedWallet"
    public_key_storage_key: str = "connectedWalletPublicKey"


@dataclass
class ClientConfig:
    """Aggregate configuration for a wallet session and everything under it."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    submitter: SubmitterConfig = field(default_factory=SubmitterConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Recognized variables:
            BIOCHAIN_NETWORK: devnet, testnet, mainnet or local
            BIOCHAIN_NODE_URL: override the node REST endpoint
            BIOCHAIN_CONTRACT_ADDRESS: override the deployed module address
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get("BIOCHAIN_NODE_URL"):
            kwargs["node_url"] = env["BIOCHAIN_NODE_URL"]
        if env.get("BIOCHAIN_CONTRACT_ADDRESS"):
            kwargs["contract_address"] = env["BIOCHAIN_CONTRACT_ADDRESS"]
        network = NetworkConfig.for_network(env.get("BIOCHAIN_NETWORK", "devnet"), **kwargs)
        return cls(network=network)
