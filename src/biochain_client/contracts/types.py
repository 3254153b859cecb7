"""
Typed records returned by the contract read accessors.

Free-text fields are stored on the ledger as ``vector<u8>`` and come back
from view calls as ``0x`` hex strings; ``ByteText`` decodes them. Integer
fields arrive as decimal strings and are coerced by pydantic.
"""

from __future__ import annotations
import json
from enum import IntEnum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, Field

from ..runtime.encoding import bytes_to_string


def _decode_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, list, str)):
        return bytes_to_string(value)
    return value


ByteText = Annotated[str, BeforeValidator(_decode_text)]


class AccessLevel(IntEnum):
    """Permission levels understood by the access control module."""
    READ = 1
    WRITE = 2
    ADMIN = 3


class TaskStatus(IntEnum):
    """Workflow task states."""
    PENDING = 0
    IN_PROGRESS = 1
    COMPLETED = 2
    APPROVED = 3


class SampleHistoryEvent(BaseModel):
    event_type: ByteText
    operator: str
    timestamp: int = 0
    details: ByteText = ""


class Sample(BaseModel):
    """A registered biological sample and its custody events."""
    id: int
    description: ByteText
    owner: str
    timestamp: int = 0
    history: List[SampleHistoryEvent] = Field(default_factory=list)

    @property
    def current_owner(self) -> str:
        """Operator of the latest custody event, or the registering owner."""
        transfers = [e for e in self.history if e.event_type == "transfer"]
        return transfers[-1].operator if transfers else self.owner


class DataUpdate(BaseModel):
    event: ByteText
    operator: str
    timestamp: int = 0


class ExperimentalData(BaseModel):
    """A submitted experiment data hash and its update trail."""
    id: int
    hash: ByteText
    description: ByteText
    creator: str
    timestamp: int = 0
    history: List[DataUpdate] = Field(default_factory=list)


class Permission(BaseModel):
    user: str
    resource_id: int
    level: AccessLevel
    granted_at: int = 0
    granted_by: str = ""


class WorkflowTask(BaseModel):
    """
    A workflow task.

    Tasks created with a deadline or priority carry them in ``description``
    as a JSON document ``{"description", "deadline", "priority"}``.
    """
    id: int
    description: ByteText
    owner: str
    assignee: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    timestamp: int = 0

    @property
    def details(self) -> Dict[str, Any]:
        try:
            parsed = json.loads(self.description)
        except ValueError:
            return {"description": self.description}
        return parsed if isinstance(parsed, dict) else {"description": self.description}

    @property
    def summary(self) -> str:
        return self.details.get("description", self.description)

    @property
    def deadline(self) -> Optional[str]:
        return self.details.get("deadline")

    @property
    def priority(self) -> Optional[str]:
        return self.details.get("priority")


class IntellectualProperty(BaseModel):
    """An attributed research contribution."""
    id: int
    title: ByteText
    description: ByteText
    role: ByteText = ""
    contribution: ByteText = ""
    owner: str
    timestamp: int = 0
