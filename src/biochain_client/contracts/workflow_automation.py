"""
Workflow Automation & Compliance contract.
"""

import json
from typing import List, Optional, Union

from ..config import FunctionName, ModuleName
from ..runtime.encoding import normalize_address, string_to_bytes
from .base import RecordContract, RecordReceipt
from .types import TaskStatus, WorkflowTask


def task_description(description: str, deadline: Optional[str] = None,
                     priority: Optional[str] = None) -> str:
    """Text stored on the ledger for a task; JSON when it has a deadline or priority."""
    if deadline is None and priority is None:
        return description
    return json.dumps({"description": description, "deadline": deadline, "priority": priority})


class WorkflowAutomationContract(RecordContract):
    """Creates workflow tasks and moves them through their states."""

    module_name = ModuleName.WORKFLOW_AUTOMATION
    init_function = FunctionName.INITIALIZE_WORKFLOW_REGISTRY
    registry_struct = "WorkflowRegistry"
    history_type = "workflow"

    async def create_task(self, description: str, assignee: str, deadline: Optional[str] = None,
                          priority: Optional[str] = None) -> RecordReceipt:
        """Create a task assigned to ``assignee``."""
        assignee = normalize_address(assignee)
        text = task_description(description, deadline, priority)
        return await self._execute(
            FunctionName.CREATE_TASK,
            [string_to_bytes(text), assignee],
            action="create task",
            title="Task Created",
            description=description,
            success_message="Task created successfully on the blockchain!",
            details={"assignee": assignee, "deadline": deadline, "priority": priority},
        )

    async def update_task_status(self, task_id: int, status: Union[TaskStatus, int]) -> RecordReceipt:
        status = TaskStatus(status)
        return await self._execute(
            FunctionName.UPDATE_TASK_STATUS,
            [int(task_id), status.value],
            action="update task status",
            title="Task Status Updated",
            description=f"Task #{task_id} set to {status.name}",
            success_message="Task status updated successfully!",
            details={"task_id": int(task_id), "status": status.name},
        )

    async def get_task_by_id(self, task_id: int) -> Optional[WorkflowTask]:
        return await self._view_record("get_task", task_id, WorkflowTask)

    async def get_task_count(self) -> int:
        return await self._view_count("get_task_count")

    async def get_all_tasks(self) -> List[WorkflowTask]:
        return await self._view_all("get_all_tasks", WorkflowTask)
