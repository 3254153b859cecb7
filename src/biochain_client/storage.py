"""
Key/value persistence for session state and transaction history.

``InMemoryStore`` lives for the process; ``JsonFileStore`` keeps values in a
JSON document on disk, like a browser's local storage.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union


logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Interface for persisted JSON-serializable values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Load a value, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Save a value."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete a value if present."""
        pass


class InMemoryStore(KeyValueStore):
    """In-memory implementation of the store."""

    def __init__(self):
        self.values: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    async def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStore(KeyValueStore):
    """File-based implementation of the store."""

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize file-based store.

        Args:
            file_path: Path to persistence file
        """
        self.file_path = Path(file_path)
        self.lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    async def set(self, key: str, value: Any) -> None:
        async with self.lock:
            values = self._load()
            values[key] = value
            self._save(values)

    async def remove(self, key: str) -> None:
        async with self.lock:
            values = self._load()
            if values.pop(key, None) is not None:
                self._save(values)

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.error(f"Ignoring corrupt store {self.file_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, values: Dict[str, Any]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(values, f, indent=2)
