"""
Base class for the domain record contracts.

A contract operation ensures its module's registry, submits through the
wallet session, waits for confirmation, records history, and emits exactly
one terminal notification. Read accessors call view functions and return
``None`` or an empty list on any failure.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..history import HistoryType
from ..models import ConfirmationResult
from ..notifications import NotificationLevel, failure_message
from ..registry import RegistryDefinition
from ..runtime.errors import ErrorKind, LedgerError, classify
from ..session import WalletSession


logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

PENDING_MESSAGE = "Transaction submitted but not yet confirmed. It may still be processing; check the explorer later."


@dataclass
class RecordReceipt:
    """Outcome of a contract operation."""
    hash: str
    already_completed: bool = False
    confirmation: Optional[ConfirmationResult] = None

    @property
    def confirmed(self) -> bool:
        return self.confirmation is not None and self.confirmation.success

    @property
    def pending(self) -> bool:
        """Submitted, but the outcome is not known yet."""
        if self.already_completed:
            return False
        return self.confirmation is None or self.confirmation.timed_out


class RecordContract:
    """
    Shared plumbing for one on-ledger module.

    Subclasses set the module name, the registry init function and struct,
    and the history type used for their operations.
    """

    module_name: str = ""
    init_function: str = ""
    registry_struct: str = ""
    history_type: HistoryType = "sample"

    def __init__(self, session: WalletSession, *, wait_for_confirmation: bool = True,
                 confirmation_timeout: Optional[float] = None):
        """
        Initialize the contract wrapper.

        Args:
            session: Wallet session used for submission and reads
            wait_for_confirmation: Poll for the outcome after submitting
            confirmation_timeout: Poll budget in seconds (poller default if None)
        """
        self.session = session
        self.wait_for_confirmation = wait_for_confirmation
        self.confirmation_timeout = confirmation_timeout

    @property
    def registry(self) -> RegistryDefinition:
        return RegistryDefinition(
            module_address=self.session.contract_address,
            module_name=self.module_name,
            init_function=self.init_function,
            struct_name=self.registry_struct,
        )

    async def ensure_registry(self) -> bool:
        """Create this module's registry for the connected wallet if missing."""
        return await self.session.ensure_registry_initialized(self.registry)

    async def _execute(
        self,
        function_name: str,
        arguments: Sequence[Any],
        *,
        action: str,
        title: str,
        description: str,
        success_message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> RecordReceipt:
        session = self.session
        try:
            result = await session.submit(
                self.module_name, function_name, arguments, registry=self.registry
            )
        except Exception as e:
            error = classify(e)
            if error.kind is ErrorKind.RESOURCE_NOT_FOUND:
                session.registry.invalidate(self.module_name)
            logger.error(f"Failed to {action}: {error}")
            session.notify(NotificationLevel.ERROR, failure_message(action, error), error=error)
            if isinstance(e, LedgerError):
                raise
            raise LedgerError(error, e) from e

        if result.already_completed:
            return self._already_completed(result.hash, title)

        confirmation = None
        status = "pending"
        if self.wait_for_confirmation:
            confirmation = await session.wait_for_transaction(result.hash, self.confirmation_timeout)
            if confirmation.success:
                status = "success"
            elif not confirmation.timed_out:
                error = classify({"vm_status": confirmation.vm_status or confirmation.status})
                if error.kind is ErrorKind.RESOURCE_ALREADY_EXISTS:
                    return self._already_completed(result.hash, title, confirmation)
                logger.error(f"Transaction {result.hash} failed: {error}")
                session.notify(
                    NotificationLevel.ERROR, failure_message(action, error),
                    tx_hash=result.hash, error=error,
                )
                raise LedgerError(error)

        await session.add_transaction_to_history(
            self.history_type, title, description, result.hash, details, status
        )
        if status == "pending":
            session.notify(NotificationLevel.WARNING, PENDING_MESSAGE, tx_hash=result.hash)
        else:
            session.notify(NotificationLevel.SUCCESS, success_message, tx_hash=result.hash)
        return RecordReceipt(hash=result.hash, confirmation=confirmation)

    def _already_completed(self, tx_hash: str, title: str,
                           confirmation: Optional[ConfirmationResult] = None) -> RecordReceipt:
        self.session.notify(
            NotificationLevel.INFO,
            f"This operation was already completed on the blockchain ({title}).",
            tx_hash=tx_hash,
        )
        return RecordReceipt(hash=tx_hash, already_completed=True, confirmation=confirmation)

    # =========================================================================
    # Reads
    # =========================================================================

    async def _view(self, function_name: str, arguments: Sequence[Any] = ()) -> Optional[List[Any]]:
        try:
            return await self.session.view(self.module_name, function_name, arguments)
        except Exception as e:
            logger.warning(f"View {self.module_name}::{function_name} failed: {e}")
            return None

    async def _view_record(self, function_name: str, record_id: int, model: Type[R]) -> Optional[R]:
        values = await self._view(function_name, [str(record_id)])
        if not values:
            return None
        try:
            return model.model_validate(values[0])
        except ValidationError as e:
            logger.warning(f"Could not decode {model.__name__} {record_id}: {e}")
            return None

    async def _view_count(self, function_name: str) -> int:
        values = await self._view(function_name)
        if not values:
            return 0
        try:
            return int(values[0])
        except (TypeError, ValueError):
            logger.warning(f"Unexpected count from {function_name}: {values[0]!r}")
            return 0

    async def _view_all(self, function_name: str, model: Type[R]) -> List[R]:
        values = await self._view(function_name)
        if not values or not isinstance(values[0], list):
            return []
        records = []
        for raw in values[0]:
            try:
                records.append(model.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping undecodable {model.__name__}: {e}")
        return records
