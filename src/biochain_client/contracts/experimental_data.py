"""
Experimental Data Audit Trail contract.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..config import FunctionName, ModuleName
from ..runtime.encoding import hash_file, string_to_bytes
from .base import RecordContract, RecordReceipt
from .types import ExperimentalData


class ExperimentalDataContract(RecordContract):
    """Anchors experiment data hashes and their revisions on the ledger."""

    module_name = ModuleName.EXPERIMENTAL_DATA
    init_function = FunctionName.INITIALIZE_DATA_REGISTRY
    registry_struct = "DataRegistry"
    history_type = "data"

    async def submit_experiment(self, data_hash: str, description: str) -> RecordReceipt:
        """Submit the hash of an experiment's data set."""
        return await self._execute(
            FunctionName.SUBMIT_EXPERIMENT,
            [string_to_bytes(data_hash), string_to_bytes(description)],
            action="submit experiment",
            title="Experiment Data Submitted",
            description=description,
            success_message="Experimental data submitted successfully!",
            details={"data_hash": data_hash, "description": description},
        )

    async def submit_experiment_file(self, path: Union[str, Path], description: str) -> RecordReceipt:
        """Hash a local data file and submit the digest."""
        return await self.submit_experiment(hash_file(path), description)

    async def update_experiment(self, data_id: int, new_hash: str, description: str) -> RecordReceipt:
        """Record a new revision of previously submitted data."""
        return await self._execute(
            FunctionName.UPDATE_EXPERIMENT,
            [int(data_id), string_to_bytes(new_hash), string_to_bytes(description)],
            action="update experiment",
            title="Experiment Data Updated",
            description=f"Data #{data_id}: {description}",
            success_message="Experimental data updated successfully!",
            details={"data_id": int(data_id), "new_hash": new_hash, "description": description},
        )

    async def get_experiment_by_id(self, data_id: int) -> Optional[ExperimentalData]:
        return await self._view_record("get_experiment", data_id, ExperimentalData)

    async def get_experiment_count(self) -> int:
        return await self._view_count("get_experiment_count")

    async def get_all_experiments(self) -> List[ExperimentalData]:
        return await self._view_all("get_all_experiments", ExperimentalData)
