"""
Transaction Submitter.

Turns "write this record" into a submitted transaction: ensure the module's
registry exists, fetch the sequence number, simulate for gas, sign and submit
through the wallet, and retry transient failures with linear backoff and
jitter. "Already exists" is success; only sequence-number conflicts and
unclassified errors are retried.
"""

from __future__ import annotations
import asyncio
import logging
import math
import random
import time
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from .config import SubmitterConfig
from .gateway import LedgerGateway
from .models import GasOptions, SubmissionAttempt, SubmissionResult, TransactionRequest
from .monitoring.metrics import MetricsRegistry, get_registry
from .poller import ConfirmationPoller
from .registry import RegistryDefinition, RegistryTracker
from .runtime.errors import ErrorKind, LedgerError, classify
from .signer import WalletSigner, extract_hash


logger = logging.getLogger(__name__)


def apply_gas_margin(max_gas_amount: int, margin: float) -> int:
    """Add a safety margin to a gas estimate, rounding up."""
    return math.ceil(Decimal(max_gas_amount) * (1 + Decimal(str(margin))))


def synthetic_hash(prefix: str) -> str:
    """Placeholder hash for operations the ledger already reflects."""
    return f"{prefix}-{int(time.time() * 1000)}"


class TransactionSubmitter:
    """
    Submits entry-function calls with bounded retries.

    Example:
        ```python
        submitter = TransactionSubmitter(gateway, signer)
        result = await submitter.submit(
            address, CONTRACT_ADDRESS, "SampleProvenance", "register_sample",
            arguments=[string_to_bytes("CRISPR-001")],
        )
        ```
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        signer: Optional[WalletSigner],
        config: Optional[SubmitterConfig] = None,
        *,
        poller: Optional[ConfirmationPoller] = None,
        registry: Optional[RegistryTracker] = None,
        metrics: Optional[MetricsRegistry] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ):
        """
        Initialize the submitter.

        Args:
            gateway: Ledger read gateway
            signer: Wallet signer, or None when no wallet is available
            config: Retry/gas settings
            poller: Used to confirm registry initialization transactions
            registry: Shared registry state (one per wallet session)
            metrics: Metrics registry
            sleep: Awaitable sleep used for pacing and backoff
            rng: Source of jitter in [0, 1)
        """
        self.gateway = gateway
        self.signer = signer
        self.config = config or SubmitterConfig()
        self.poller = poller
        self.registry = registry or RegistryTracker(gateway)
        self._sleep = sleep
        self._rng = rng

        metrics = metrics or get_registry()
        self._attempts = metrics.counter("submission_attempts_total", "Sign-and-submit attempts")
        self._retries = metrics.counter("submission_retries_total", "Attempts followed by a retry")
        self._outcomes = metrics.counter("submissions_total", "Submissions by outcome")

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt``: linear base plus jitter."""
        return attempt * self.config.retry_base_delay + self._rng() * self.config.retry_jitter

    # =========================================================================
    # Registry precondition
    # =========================================================================

    async def ensure_registry_initialized(self, registry: RegistryDefinition, sender: str, *,
                                          public_key: Optional[str] = None) -> bool:
        """
        Make sure a module's registry exists, sending its init transaction once.

        Returns:
            True if this call initialized the registry
        """
        async def initialize() -> None:
            await self._initialize_registry(registry, sender, public_key)

        return await self.registry.ensure_initialized(registry, sender, initialize)

    async def _initialize_registry(self, registry: RegistryDefinition, sender: str,
                                   public_key: Optional[str]) -> None:
        request = TransactionRequest(
            module_address=registry.module_address,
            module_name=registry.module_name,
            function_name=registry.init_function,
        )
        result = await self.submit_request(request, sender, public_key=public_key)
        if result.already_completed or self.poller is None:
            return

        confirmation = await self.poller.wait_for(result.hash)
        if confirmation.success:
            logger.info(f"Registry {registry.module_name} initialized in {result.hash}")
        elif confirmation.timed_out:
            logger.warning(f"Registry init {result.hash} not confirmed yet, continuing")
        else:
            error = classify({"vm_status": confirmation.vm_status or confirmation.status})
            if error.kind is not ErrorKind.RESOURCE_ALREADY_EXISTS:
                raise LedgerError(error)

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(
        self,
        wallet_address: str,
        module_address: str,
        module_name: str,
        function_name: str,
        type_arguments: Sequence[str] = (),
        arguments: Sequence[Any] = (),
        gas_options: Optional[GasOptions] = None,
        *,
        public_key: Optional[str] = None,
        registry: Optional[RegistryDefinition] = None,
    ) -> SubmissionResult:
        """
        Submit one entry-function call.

        Args:
            wallet_address: Sender address
            module_address: Address the module is published under
            module_name: Module name
            function_name: Entry function name
            type_arguments: Type arguments
            arguments: Positional arguments (bytes for free text, ints, address strings)
            gas_options: Fallback gas settings when simulation gives none
            public_key: Sender public key, improves simulation fidelity
            registry: Registry that must exist before this call

        Returns:
            The submission result; ``already_completed`` marks an idempotent no-op

        Raises:
            LedgerError: Non-retryable failure or retries exhausted
        """
        if registry is not None:
            await self.ensure_registry_initialized(registry, wallet_address, public_key=public_key)

        request = TransactionRequest(
            module_address=module_address,
            module_name=module_name,
            function_name=function_name,
            type_arguments=tuple(type_arguments),
            arguments=tuple(arguments),
            gas_options=gas_options,
        )
        return await self.submit_request(request, wallet_address, public_key=public_key)

    async def submit_request(self, request: TransactionRequest, sender: str, *,
                             public_key: Optional[str] = None) -> SubmissionResult:
        """Run the simulate/sign/retry loop for a prepared request."""
        attempts = []

        while True:
            attempt = SubmissionAttempt(attempt_number=len(attempts) + 1)
            attempts.append(attempt)
            self._attempts.increment()

            try:
                if self.signer is None:
                    raise LedgerError.of(
                        ErrorKind.WALLET_UNAVAILABLE,
                        "Wallet not found. Please install a compatible wallet extension.",
                    )

                attempt.sequence_number = await self._fetch_sequence_number(sender)
                gas_unit_price, max_gas_amount = self._requested_gas(request)

                if self.config.simulate:
                    try:
                        simulation = await self.gateway.simulate(
                            request, sender,
                            public_key=public_key,
                            sequence_number=attempt.sequence_number,
                        )
                    except Exception as e:
                        error = classify(e)
                        if error.kind is ErrorKind.RESOURCE_ALREADY_EXISTS:
                            logger.info(f"{request.function} already applied (simulation), treating as success")
                            attempt.error = error
                            return self._already_completed(attempts, "simulation-already-exists")
                        logger.warning(f"Simulation failed, proceeding with submission: {error}")
                    else:
                        if simulation.gas_unit_price:
                            gas_unit_price = simulation.gas_unit_price
                        if simulation.max_gas_amount:
                            max_gas_amount = apply_gas_margin(
                                simulation.max_gas_amount, self.config.gas_safety_margin
                            )
                        attempt.simulated_gas = (simulation.gas_unit_price, simulation.max_gas_amount)
                        logger.info(
                            f"Simulation successful, estimated gas: {max_gas_amount}, "
                            f"unit price: {gas_unit_price}"
                        )

                payload = request.to_signer_payload(
                    sequence_number=attempt.sequence_number,
                    gas_unit_price=gas_unit_price,
                    max_gas_amount=max_gas_amount,
                )
                logger.info(f"Submitting {request.function} (attempt {attempt.attempt_number})")
                response = await self.signer.sign_and_submit_transaction(payload)
                attempt.hash = extract_hash(response)
                attempt.end_time = time.time()
                logger.info(f"Transaction submitted with hash: {attempt.hash}")
                break

            except Exception as e:
                attempt.end_time = time.time()
                error = classify(e)
                attempt.error = error

                if error.kind is ErrorKind.RESOURCE_ALREADY_EXISTS:
                    logger.info(f"{request.function} already applied, treating as success")
                    return self._already_completed(attempts, "already-exists")

                if error.retryable and attempt.attempt_number < self.config.max_attempts:
                    delay = self.backoff_delay(attempt.attempt_number)
                    attempt.backoff_delay = delay
                    self._retries.increment()
                    logger.warning(
                        f"Attempt {attempt.attempt_number} failed with {error.kind.value}: "
                        f"{error.raw_message}. Retrying in {delay:.2f}s..."
                    )
                    await self._sleep(delay)
                    continue

                if error.retryable:
                    logger.error(
                        f"Submission of {request.function} failed after "
                        f"{attempt.attempt_number} attempts: {error}"
                    )
                else:
                    logger.error(f"Submission of {request.function} failed: {error}")
                self._outcomes.increment(labels={"outcome": "failed"})
                cause = e.cause if isinstance(e, LedgerError) and e.cause else e
                raise LedgerError(error, cause, attempts) from e

        await self._sleep(self.config.propagation_delay)
        self._outcomes.increment(labels={"outcome": "submitted"})
        if attempt.attempt_number > 1:
            logger.info(f"Submission succeeded on attempt {attempt.attempt_number}")
        return SubmissionResult(hash=attempt.hash, attempts=attempts)

    async def _fetch_sequence_number(self, sender: str) -> Optional[int]:
        """Best-effort sequence number lookup; failures are logged, not fatal."""
        try:
            sequence_number = await self.gateway.get_sequence_number(sender)
            logger.debug(f"Using sequence number {sequence_number} for account {sender}")
            return sequence_number
        except Exception as e:
            logger.warning(f"Failed to get sequence number, continuing without it: {e}")
            return None

    @staticmethod
    def _requested_gas(request: TransactionRequest) -> Tuple[Optional[int], Optional[int]]:
        gas = request.gas_options
        if gas is None:
            return None, None
        return gas.gas_unit_price, gas.max_gas_amount

    def _already_completed(self, attempts, prefix: str) -> SubmissionResult:
        self._outcomes.increment(labels={"outcome": "already_completed"})
        return SubmissionResult(hash=synthetic_hash(prefix), already_completed=True, attempts=attempts)
