"""
Transaction history.

Append-only log of confirmed operations per wallet address, newest first,
persisted under ``txHistory_<address>``.
"""

from __future__ import annotations
import logging
import time
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .storage import InMemoryStore, KeyValueStore


logger = logging.getLogger(__name__)

HistoryStatus = Literal["success", "pending", "error"]
HistoryType = Literal["sample", "data", "access", "workflow", "ip"]


class TransactionHistoryItem(BaseModel):
    """One recorded operation."""
    id: str = Field(default_factory=lambda: f"tx-{uuid.uuid4().hex[:12]}")
    wallet_address: str = Field(alias="walletAddress")
    transaction_hash: str = Field(alias="transactionHash")
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    status: HistoryStatus = "success"
    type: HistoryType
    title: str
    description: str
    details: Optional[Dict[str, Any]] = None

    model_config = {"populate_by_name": True}


class TransactionHistory:
    """History sink keyed by wallet address."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store or InMemoryStore()

    @staticmethod
    def storage_key(wallet_address: str) -> str:
        return f"txHistory_{wallet_address}"

    async def get(self, wallet_address: str) -> List[TransactionHistoryItem]:
        """History for a wallet, newest first; empty if missing or invalid."""
        if not wallet_address:
            return []
        raw = await self.store.get(self.storage_key(wallet_address))
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.error(f"Invalid history format for {wallet_address}")
            return []
        try:
            return [TransactionHistoryItem.model_validate(entry) for entry in raw]
        except ValidationError as e:
            logger.error(f"Invalid history entries for {wallet_address}: {e}")
            return []

    async def add(
        self,
        wallet_address: str,
        type: HistoryType,
        title: str,
        description: str,
        transaction_hash: str,
        details: Optional[Dict[str, Any]] = None,
        status: HistoryStatus = "success",
    ) -> TransactionHistoryItem:
        """Prepend a new item and persist the updated history."""
        if not wallet_address:
            raise ValueError("Cannot add transaction: no wallet address")
        item = TransactionHistoryItem(
            wallet_address=wallet_address,
            transaction_hash=transaction_hash,
            status=status,
            type=type,
            title=title,
            description=description,
            details=details,
        )
        history = await self.get(wallet_address)
        entries = [item] + history
        await self.store.set(
            self.storage_key(wallet_address),
            [entry.model_dump(by_alias=True) for entry in entries],
        )
        return item
