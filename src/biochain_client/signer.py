"""
Wallet signer capability.

The wallet is an external, user-controlled component that authorizes and
transmits transactions. The pipeline only sees it through ``WalletSigner``;
a missing signer is a non-retryable ``WalletUnavailable`` failure.
"""

from __future__ import annotations
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Union

from .models import WalletAccount
from .runtime.errors import ErrorKind, LedgerError


logger = logging.getLogger(__name__)


class WalletSigner(ABC):
    """Interface every signer backend implements."""

    @abstractmethod
    async def connect(self) -> WalletAccount:
        """Ask the user to connect and return the connected account."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect the wallet."""
        pass

    @abstractmethod
    async def is_connected(self) -> bool:
        """Whether the wallet still reports a connected account."""
        pass

    @abstractmethod
    async def sign_and_submit_transaction(self, payload: Dict[str, Any]) -> Union[Dict[str, Any], str]:
        """Sign a payload and submit it; returns ``{"hash": ...}`` or a bare hash."""
        pass


def extract_hash(response: Any) -> str:
    """Pull the transaction hash out of a sign-and-submit response."""
    if isinstance(response, str):
        return response
    if isinstance(response, dict) and response.get("hash"):
        return response["hash"]
    value = getattr(response, "hash", None)
    if isinstance(value, str) and value:
        return value
    raise LedgerError.of(ErrorKind.UNKNOWN, f"Signer returned no transaction hash: {response!r}")


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ProviderSigner(WalletSigner):
    """
    Adapt a wallet provider object to ``WalletSigner``.

    The provider exposes the browser-wallet method names (``connect``,
    ``disconnect``, ``isConnected``, ``signAndSubmitTransaction``); each may
    be synchronous or return an awaitable.
    """

    def __init__(self, provider: Any):
        if provider is None:
            raise LedgerError.of(ErrorKind.WALLET_UNAVAILABLE, "Wallet provider not found")
        self.provider = provider

    def _method(self, name: str):
        method = getattr(self.provider, name, None)
        if method is None:
            raise LedgerError.of(
                ErrorKind.WALLET_UNAVAILABLE, f"Wallet provider does not support {name}"
            )
        return method

    async def connect(self) -> WalletAccount:
        response = await _resolve(self._method("connect")())
        if isinstance(response, dict):
            address = response.get("address")
            public_key = response.get("publicKey") or response.get("public_key")
        else:
            address = getattr(response, "address", None)
            public_key = getattr(response, "publicKey", None) or getattr(response, "public_key", None)
        if not address:
            raise LedgerError.of(ErrorKind.WALLET_UNAVAILABLE, "Failed to get wallet address")
        return WalletAccount(address=address, public_key=public_key)

    async def disconnect(self) -> None:
        await _resolve(self._method("disconnect")())

    async def is_connected(self) -> bool:
        return bool(await _resolve(self._method("isConnected")()))

    async def sign_and_submit_transaction(self, payload: Dict[str, Any]) -> Union[Dict[str, Any], str]:
        logger.debug(f"Forwarding payload for {payload.get('function')} to wallet provider")
        return await _resolve(self._method("signAndSubmitTransaction")(payload))
