"""
Registry initialization state.

Each module keeps an on-ledger registry that must exist before domain
operations succeed. The tracker records, per module, whether the registry is
known to exist and collapses concurrent ``ensure_initialized`` calls into a
single initialization transaction.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple

from .runtime.encoding import resource_type


logger = logging.getLogger(__name__)


class RegistryState(Enum):
    """Initialization state of one module's registry."""
    UNKNOWN = "unknown"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"


@dataclass(frozen=True)
class RegistryDefinition:
    """Where a module's registry lives and how to create it."""
    module_address: str
    module_name: str
    init_function: str
    struct_name: str
    held_by_sender: bool = True

    @property
    def resource_type(self) -> str:
        return resource_type(self.module_address, self.module_name, self.struct_name)

    def holder(self, sender: str) -> str:
        """Account that stores the registry resource."""
        return sender if self.held_by_sender else self.module_address


class RegistryTracker:
    """
    Registry state for one wallet session, keyed by module and holder account.

    The check-and-set from ``UNKNOWN`` to ``INITIALIZING`` happens without a
    suspension point in between, so within one event loop only the first
    caller issues the initialization; later callers wait on it and re-check.
    An in-flight initialization is never forgotten by ``invalidate`` or
    ``reset``; it settles its own entry when it finishes.
    """

    def __init__(self, gateway):
        self.gateway = gateway
        self._states: Dict[Tuple[str, str], RegistryState] = {}
        self._pending: Dict[Tuple[str, str], asyncio.Event] = {}

    def state(self, module_name: str, holder: Optional[str] = None) -> RegistryState:
        """
        State of a module's registry.

        With no ``holder``, reports the most advanced state across holders.
        """
        if holder is not None:
            return self._states.get((module_name, holder), RegistryState.UNKNOWN)
        states = [state for (name, _), state in self._states.items() if name == module_name]
        for candidate in (RegistryState.INITIALIZING, RegistryState.INITIALIZED):
            if candidate in states:
                return candidate
        return RegistryState.UNKNOWN

    def invalidate(self, module_name: str) -> None:
        """Forget a module's settled state after an external reset was detected."""
        for key, state in list(self._states.items()):
            if key[0] == module_name and state is RegistryState.INITIALIZED:
                del self._states[key]
                logger.info(f"Registry state for {module_name} invalidated")

    def reset(self) -> None:
        """Forget all settled states (wallet or network changed)."""
        self._states = {
            key: state for key, state in self._states.items()
            if state is RegistryState.INITIALIZING
        }

    async def ensure_initialized(self, registry: RegistryDefinition, sender: str,
                                 initialize: Callable[[], Awaitable[None]]) -> bool:
        """
        Make sure a module registry exists, creating it if needed.

        Args:
            registry: Registry location and init function
            sender: Wallet address submitting the operation
            initialize: Coroutine factory that sends the init transaction

        Returns:
            True if this call sent the initialization transaction
        """
        holder = registry.holder(sender)
        key = (registry.module_name, holder)
        while True:
            state = self._states.get(key, RegistryState.UNKNOWN)
            if state is RegistryState.INITIALIZED:
                return False
            if state is RegistryState.INITIALIZING:
                logger.debug(f"Registry for {key[0]} is being initialized, waiting")
                await self._pending[key].wait()
                continue
            break

        self._states[key] = RegistryState.INITIALIZING
        done = asyncio.Event()
        self._pending[key] = done
        try:
            exists = await self.gateway.resource_exists(holder, registry.resource_type)
            if not exists:
                logger.info(f"Registry {registry.resource_type} not found, initializing")
                await initialize()
            self._states[key] = RegistryState.INITIALIZED
            return not exists
        except BaseException:
            self._states.pop(key, None)
            raise
        finally:
            self._pending.pop(key, None)
            done.set()

    def snapshot(self) -> Dict[str, str]:
        return {f"{name}@{holder}": state.value for (name, holder), state in self._states.items()}
