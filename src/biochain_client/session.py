"""
Wallet/Network Session.

Tracks the connected wallet, checks network and wallet liveness in the
background, and exposes the submission pipeline to the domain contracts.
One session per UI context.
"""

from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from pydantic import ValidationError

from .config import ClientConfig, Network, NetworkConfig
from .gateway import LedgerGateway
from .history import HistoryStatus, HistoryType, TransactionHistory, TransactionHistoryItem
from .models import ConfirmationResult, GasOptions, SubmissionResult, WalletAccount
from .monitoring.metrics import MetricsRegistry
from .notifications import Notification, NotificationLevel, Notifier, logging_notifier
from .poller import ConfirmationPoller
from .registry import RegistryDefinition, RegistryTracker
from .runtime.errors import ErrorKind, LedgerError, classify
from .signer import WalletSigner
from .storage import InMemoryStore, KeyValueStore
from .submitter import TransactionSubmitter


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Wallet connection states."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class WalletSession:
    """
    Connected-wallet state plus the pipeline bound to it.

    Example:
        ```python
        async with WalletSession(ProviderSigner(provider)) as session:
            await session.connect()
            samples = SampleProvenanceContract(session)
            receipt = await samples.register_sample("CRISPR-001 liver tissue")
        ```
    """

    def __init__(
        self,
        signer: Optional[WalletSigner],
        config: Optional[ClientConfig] = None,
        *,
        gateway: Optional[LedgerGateway] = None,
        store: Optional[KeyValueStore] = None,
        history: Optional[TransactionHistory] = None,
        notifier: Notifier = logging_notifier,
        metrics: Optional[MetricsRegistry] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.signer = signer
        self.config = config or ClientConfig()
        self.store = store or InMemoryStore()
        self.history = history or TransactionHistory(self.store)
        self.notifier = notifier
        self._metrics = metrics
        self._sleep = sleep

        self.address: Optional[str] = None
        self.public_key: Optional[str] = None
        self.network_connected = False
        self.state = SessionState.DISCONNECTED
        self.transaction_history: List[TransactionHistoryItem] = []
        self._liveness_task: Optional[asyncio.Task] = None

        self._build_pipeline(gateway or LedgerGateway(self.config.network))

    def _build_pipeline(self, gateway: LedgerGateway) -> None:
        self.gateway = gateway
        self.registry = RegistryTracker(gateway)
        self.poller = ConfirmationPoller(gateway, self.config.poller, self._metrics)
        self.submitter = TransactionSubmitter(
            gateway,
            self.signer,
            self.config.submitter,
            poller=self.poller,
            registry=self.registry,
            metrics=self._metrics,
            sleep=self._sleep,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def connected(self) -> bool:
        return self.state is SessionState.CONNECTED

    @property
    def network_name(self) -> str:
        return self.config.network.name

    @property
    def contract_address(self) -> str:
        return self.config.network.contract_address

    def explorer_url(self, tx_hash: str) -> str:
        return self.config.network.explorer_link(tx_hash)

    def notify(self, level: NotificationLevel, message: str, **kwargs) -> None:
        """Send one notification to the user-facing channel."""
        try:
            self.notifier(Notification(level, message, **kwargs))
        except Exception as e:
            logger.error(f"Notifier failed: {e}")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def __aenter__(self) -> "WalletSession":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.unmount()

    async def mount(self) -> None:
        """Restore a persisted connection and start the liveness checks."""
        self.network_connected = await self.gateway.is_network_reachable()
        saved = await self.store.get(self.config.session.storage_key)
        if saved and self.network_connected and await self._signer_connected():
            account = await self._saved_account(saved)
            if account is not None:
                self._set_account(account)
                self.state = SessionState.CONNECTED
                await self._load_history()
                logger.info(f"Restored wallet session for {self.address}")

        interval = self.config.session.liveness_interval
        if interval > 0 and self._liveness_task is None:
            self._liveness_task = asyncio.create_task(self._liveness_loop(interval))

    async def unmount(self) -> None:
        """Stop background checks and release the network session."""
        if self._liveness_task:
            self._liveness_task.cancel()
            try:
                await self._liveness_task
            except asyncio.CancelledError:
                pass
            self._liveness_task = None
        await self.gateway.close()

    async def _liveness_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.check_liveness()
            except Exception as e:
                logger.error(f"Liveness check failed: {e}")

    async def check_liveness(self) -> bool:
        """
        Probe the network and re-verify the wallet.

        A wallet disconnected outside the app forces the session to
        disconnect. Returns whether the network is reachable.
        """
        self.network_connected = await self.gateway.is_network_reachable()
        if self.address and not await self._signer_connected():
            logger.warning(f"Wallet {self.address} no longer connected, clearing session")
            await self._clear()
            self.notify(NotificationLevel.WARNING, "Wallet was disconnected")
        return self.network_connected

    async def _saved_account(self, saved: Any) -> Optional[WalletAccount]:
        public_key = await self.store.get(self.config.session.public_key_storage_key)
        try:
            return WalletAccount(address=saved, public_key=public_key)
        except ValidationError as e:
            logger.warning(f"Discarding invalid saved wallet {saved!r}: {e}")
            await self._forget_saved_account()
            return None

    async def _signer_connected(self) -> bool:
        if self.signer is None:
            return False
        try:
            return await self.signer.is_connected()
        except Exception as e:
            logger.warning(f"Could not query wallet connection: {e}")
            return False

    # =========================================================================
    # Connect / disconnect
    # =========================================================================

    async def connect(self) -> WalletAccount:
        """
        Connect the wallet.

        Raises:
            LedgerError: No wallet is available or the user declined
        """
        if self.connected:
            return WalletAccount(address=self.address, public_key=self.public_key)
        if self.signer is None:
            self.notify(
                NotificationLevel.ERROR,
                "Wallet extension not found. Please install a compatible wallet.",
            )
            raise LedgerError.of(ErrorKind.WALLET_UNAVAILABLE, "Wallet extension not found")

        self.state = SessionState.CONNECTING
        try:
            account = await self.signer.connect()
        except Exception as e:
            self.state = SessionState.DISCONNECTED
            error = classify(e)
            logger.error(f"Failed to connect wallet: {error}")
            self.notify(NotificationLevel.ERROR, "Failed to connect wallet. Please try again.", error=error)
            raise LedgerError.wrap(e) from e

        self._set_account(account)
        self.state = SessionState.CONNECTED
        self.registry.reset()
        try:
            await self.store.set(self.config.session.storage_key, account.address)
            if account.public_key:
                await self.store.set(self.config.session.public_key_storage_key, account.public_key)
        except Exception as e:
            logger.warning(f"Error saving wallet address: {e}")
        await self._load_history()
        logger.info(f"Wallet connected: {account.address}")
        self.notify(NotificationLevel.SUCCESS, "Wallet connected successfully!")
        return account

    async def disconnect(self) -> None:
        """Disconnect the wallet and clear persisted session state."""
        if self.state is SessionState.DISCONNECTED and self.address is None:
            return
        if self.signer is not None:
            try:
                await self.signer.disconnect()
            except Exception as e:
                logger.warning(f"Wallet disconnect failed: {e}")
        await self._clear()
        logger.info("Wallet disconnected")
        self.notify(NotificationLevel.SUCCESS, "Wallet disconnected")

    async def _clear(self) -> None:
        self.address = None
        self.public_key = None
        self.state = SessionState.DISCONNECTED
        self.transaction_history = []
        self.registry.reset()
        await self._forget_saved_account()

    async def _forget_saved_account(self) -> None:
        try:
            await self.store.remove(self.config.session.storage_key)
            await self.store.remove(self.config.session.public_key_storage_key)
        except Exception as e:
            logger.warning(f"Error removing saved wallet address: {e}")

    def _set_account(self, account: WalletAccount) -> None:
        self.address = account.address
        self.public_key = account.public_key

    async def change_network(self, network: Union[Network, str]) -> None:
        """Switch to another network; registry state starts over."""
        name = network.value if isinstance(network, Network) else network
        current = self.config.network
        self.config.network = NetworkConfig.for_network(
            name,
            contract_address=current.contract_address,
            request_timeout=current.request_timeout,
        )
        await self.gateway.close()
        self._build_pipeline(LedgerGateway(self.config.network))
        self.network_connected = await self.gateway.is_network_reachable()
        logger.info(f"Switched to {self.network_name}")

    # =========================================================================
    # Pipeline access
    # =========================================================================

    def _require_address(self) -> str:
        if not self.connected or not self.address:
            raise LedgerError.of(ErrorKind.WALLET_UNAVAILABLE, "Wallet not connected. Please connect your wallet first.")
        return self.address

    async def ensure_registry_initialized(self, registry: RegistryDefinition) -> bool:
        return await self.submitter.ensure_registry_initialized(
            registry, self._require_address(), public_key=self.public_key
        )

    async def submit(
        self,
        module_name: str,
        function_name: str,
        arguments: Sequence[Any] = (),
        type_arguments: Sequence[str] = (),
        gas_options: Optional[GasOptions] = None,
        registry: Optional[RegistryDefinition] = None,
    ) -> SubmissionResult:
        """Submit a call to one of the contract's modules from the connected wallet."""
        return await self.submitter.submit(
            self._require_address(),
            self.contract_address,
            module_name,
            function_name,
            type_arguments,
            arguments,
            gas_options,
            public_key=self.public_key,
            registry=registry,
        )

    async def wait_for_transaction(self, tx_hash: str, timeout: Optional[float] = None,
                                   cancel: Optional[asyncio.Event] = None) -> ConfirmationResult:
        return await self.poller.wait_for(tx_hash, timeout, cancel)

    async def check_transaction(self, tx_hash: str) -> ConfirmationResult:
        return await self.gateway.check_transaction(tx_hash)

    async def view(self, module_name: str, function_name: str,
                   arguments: Sequence[Any] = (), type_arguments: Sequence[str] = ()) -> List[Any]:
        return await self.gateway.view(
            self.contract_address, module_name, function_name, type_arguments, arguments
        )

    # =========================================================================
    # History
    # =========================================================================

    async def _load_history(self) -> None:
        try:
            self.transaction_history = await self.history.get(self.address)
        except Exception as e:
            logger.error(f"Error loading transaction history: {e}")
            self.transaction_history = []

    async def add_transaction_to_history(
        self,
        type: HistoryType,
        title: str,
        description: str,
        transaction_hash: str,
        details: Optional[dict] = None,
        status: HistoryStatus = "success",
    ) -> Optional[TransactionHistoryItem]:
        """Record an operation for the connected wallet; persistence failures are logged."""
        if not self.address:
            return None
        try:
            item = await self.history.add(
                self.address, type, title, description, transaction_hash, details, status
            )
        except Exception as e:
            logger.warning(f"Error adding transaction to history: {e}")
            return None
        self.transaction_history.insert(0, item)
        return item
