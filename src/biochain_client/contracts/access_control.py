"""
Access Control Permission contract.
"""

from typing import List, Optional, Union

from ..config import FunctionName, ModuleName
from ..runtime.encoding import normalize_address
from .base import RecordContract, RecordReceipt
from .types import AccessLevel, Permission


class AccessControlContract(RecordContract):
    """Grants users access levels on research resources."""

    module_name = ModuleName.ACCESS_CONTROL
    init_function = FunctionName.INITIALIZE_PERMISSION_REGISTRY
    registry_struct = "PermissionRegistry"
    history_type = "access"

    async def grant_permission(self, user: str, resource_id: int,
                               level: Union[AccessLevel, int]) -> RecordReceipt:
        """
        Grant ``user`` the given access level on a resource.

        Raises:
            ValueError: Invalid address or access level
            LedgerError: If the submission fails
        """
        user = normalize_address(user)
        level = AccessLevel(level)
        return await self._execute(
            FunctionName.GRANT_PERMISSION,
            [user, int(resource_id), level.value],
            action="grant permission",
            title="Permission Granted",
            description=f"{level.name} access to resource #{resource_id} for {user}",
            success_message="Permission granted successfully!",
            details={"user": user, "resource_id": int(resource_id), "level": level.name},
        )

    async def get_permission_by_id(self, permission_id: int) -> Optional[Permission]:
        return await self._view_record("get_permission", permission_id, Permission)

    async def get_permission_count(self) -> int:
        return await self._view_count("get_permission_count")

    async def get_all_permissions(self) -> List[Permission]:
        return await self._view_all("get_all_permissions", Permission)
