"""
Intellectual Property Attribution contract.
"""

from typing import List, Optional

from ..config import FunctionName, ModuleName
from ..runtime.encoding import string_to_bytes
from .base import RecordContract, RecordReceipt
from .types import IntellectualProperty


class IntellectualPropertyContract(RecordContract):
    """Attributes research contributions to the connected wallet."""

    module_name = ModuleName.INTELLECTUAL_PROPERTY
    init_function = FunctionName.INITIALIZE_IP_REGISTRY
    registry_struct = "IPRegistry"
    history_type = "ip"

    async def register_contribution(self, title: str, description: str, role: str,
                                    contribution: str) -> RecordReceipt:
        return await self._execute(
            FunctionName.REGISTER_CONTRIBUTION,
            [string_to_bytes(title), string_to_bytes(description),
             string_to_bytes(role), string_to_bytes(contribution)],
            action="record IP contribution",
            title="IP Contribution Registered",
            description=title,
            success_message="Intellectual property record registered successfully!",
            details={"title": title, "role": role},
        )

    async def get_contribution_by_id(self, contribution_id: int) -> Optional[IntellectualProperty]:
        return await self._view_record("get_contribution", contribution_id, IntellectualProperty)

    async def get_contribution_count(self) -> int:
        return await self._view_count("get_contribution_count")

    async def get_all_contributions(self) -> List[IntellectualProperty]:
        return await self._view_all("get_all_contributions", IntellectualProperty)
