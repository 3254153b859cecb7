"""
Domain record contracts for the five biochain modules.
"""

from .base import RecordContract, RecordReceipt
from .sample_provenance import SampleProvenanceContract
from .experimental_data import ExperimentalDataContract
from .access_control import AccessControlContract
from .workflow_automation import WorkflowAutomationContract, task_description
from .intellectual_property import IntellectualPropertyContract
from .types import (
    AccessLevel, TaskStatus, Sample, SampleHistoryEvent, ExperimentalData, DataUpdate,
    Permission, WorkflowTask, IntellectualProperty,
)

__all__ = [
    "RecordContract",
    "RecordReceipt",
    "SampleProvenanceContract",
    "ExperimentalDataContract",
    "AccessControlContract",
    "WorkflowAutomationContract",
    "IntellectualPropertyContract",
    "task_description",
    "AccessLevel",
    "TaskStatus",
    "Sample",
    "SampleHistoryEvent",
    "ExperimentalData",
    "DataUpdate",
    "Permission",
    "WorkflowTask",
    "IntellectualProperty",
]
