"""
Confirmation Poller.

Repeatedly looks up a submitted transaction until the ledger reports a
terminal status or the wait budget runs out. A timeout is "unknown, check
later", never a failure verdict.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional

from .config import PollerConfig
from .gateway import LedgerGateway
from .models import ConfirmationResult
from .monitoring.metrics import MetricsRegistry, get_registry


logger = logging.getLogger(__name__)

TIMEOUT_STATUS = "Timeout waiting for confirmation"
CANCELLED_STATUS = "Cancelled while waiting for confirmation"


def is_terminal(txn: Optional[Dict[str, Any]]) -> bool:
    """Whether a transaction record carries a committed success/failure."""
    if not txn or txn.get("type") == "pending_transaction":
        return False
    return isinstance(txn.get("success"), bool)


class ConfirmationPoller:
    """
    Polls the gateway for a transaction's outcome.

    Cancellation is cooperative: pass an ``asyncio.Event`` as ``cancel`` and
    set it to abandon the wait between polls, or cancel the awaiting task.
    """

    def __init__(self, gateway: LedgerGateway, config: Optional[PollerConfig] = None,
                 metrics: Optional[MetricsRegistry] = None):
        self.gateway = gateway
        self.config = config or PollerConfig()
        self.metrics = metrics or get_registry()
        self._wait_seconds = self.metrics.histogram(
            "confirmation_wait_seconds", "Time spent waiting for transaction confirmation"
        )

    async def wait_for(self, tx_hash: str, timeout: Optional[float] = None,
                       cancel: Optional[asyncio.Event] = None) -> ConfirmationResult:
        """
        Wait for a transaction to reach a terminal status.

        Args:
            tx_hash: Hash returned by the submitter
            timeout: Wait budget in seconds (defaults to the configured value)
            cancel: Optional event; when set the wait ends before the next poll

        Returns:
            The committed result, or a result with ``timed_out=True`` and
            status ``Timeout waiting for confirmation``
        """
        timeout = self.config.default_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        started = loop.time()
        last: Optional[Dict[str, Any]] = None
        polls = 0

        try:
            while True:
                if cancel is not None and cancel.is_set():
                    logger.info(f"Stopped waiting for {tx_hash}: cancelled")
                    return ConfirmationResult(hash=tx_hash, success=False, status=CANCELLED_STATUS)

                polls += 1
                try:
                    txn = await self.gateway.get_transaction_by_hash(tx_hash)
                except Exception as e:
                    logger.debug(f"Poll {polls} for {tx_hash} failed, treating as not yet available: {e}")
                    txn = None

                if is_terminal(txn):
                    result = ConfirmationResult.from_transaction(txn)
                    logger.info(f"Transaction {tx_hash} confirmed after {polls} polls: {result.status}")
                    return result
                if txn is not None:
                    last = txn
                logger.debug(f"Transaction {tx_hash} not yet committed (poll {polls})")

                remaining = timeout - (loop.time() - started)
                if remaining <= 0:
                    logger.warning(f"Timed out after {timeout:.1f}s waiting for {tx_hash}")
                    return ConfirmationResult(
                        hash=tx_hash,
                        success=False,
                        status=TIMEOUT_STATUS,
                        vm_status=(last or {}).get("vm_status"),
                        timed_out=True,
                    )
                await self._pause(min(self.config.interval, remaining), cancel)
        finally:
            self._wait_seconds.observe(loop.time() - started)

    @staticmethod
    async def _pause(delay: float, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
