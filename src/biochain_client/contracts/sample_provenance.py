"""
Sample Provenance contract: sample registration and chain of custody.
"""

from typing import List, Optional

from ..config import FunctionName, ModuleName
from ..runtime.encoding import normalize_address, string_to_bytes
from .base import RecordContract, RecordReceipt
from .types import Sample


class SampleProvenanceContract(RecordContract):
    """
    Registers biological samples and records custody transfers.

    Example:
        ```python
        samples = SampleProvenanceContract(session)
        receipt = await samples.register_sample("CRISPR-001 liver tissue, -80C")
        await samples.record_transfer(1, "0x2b...", "Shipped to sequencing core")
        ```
    """

    module_name = ModuleName.SAMPLE_PROVENANCE
    init_function = FunctionName.INITIALIZE_SAMPLE_REGISTRY
    registry_struct = "SampleRegistry"
    history_type = "sample"

    async def register_sample(self, description: str) -> RecordReceipt:
        """Register a new sample owned by the connected wallet."""
        return await self._execute(
            FunctionName.REGISTER_SAMPLE,
            [string_to_bytes(description)],
            action="register sample",
            title="Sample Registered",
            description=description,
            success_message="Sample registered successfully on the blockchain!",
            details={"description": description},
        )

    async def record_transfer(self, sample_id: int, new_owner: str, details: str) -> RecordReceipt:
        """
        Record a custody transfer of a sample.

        Raises:
            ValueError: If ``new_owner`` is not a valid address
            LedgerError: If the submission fails
        """
        new_owner = normalize_address(new_owner)
        return await self._execute(
            FunctionName.RECORD_TRANSFER,
            [int(sample_id), new_owner, string_to_bytes(details)],
            action="record transfer",
            title="Sample Transferred",
            description=f"Sample #{sample_id} transferred to {new_owner}",
            success_message="Sample transfer recorded successfully!",
            details={"sample_id": int(sample_id), "new_owner": new_owner, "details": details},
        )

    async def get_sample_by_id(self, sample_id: int) -> Optional[Sample]:
        return await self._view_record("get_sample", sample_id, Sample)

    async def get_sample_count(self) -> int:
        return await self._view_count("get_sample_count")

    async def get_all_samples(self) -> List[Sample]:
        return await self._view_all("get_all_samples", Sample)
