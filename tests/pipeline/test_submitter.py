"""
Tests for the transaction submitter: simulation and gas, idempotent
"already exists" handling, bounded retries and registry initialization.
"""

import asyncio

import pytest

from biochain_client.config import PollerConfig, SubmitterConfig
from biochain_client.models import GasOptions, SimulationResult
from biochain_client.poller import ConfirmationPoller
from biochain_client.registry import RegistryDefinition, RegistryState
from biochain_client.runtime.errors import ErrorKind, LedgerError
from biochain_client.submitter import TransactionSubmitter, apply_gas_margin

from helpers import MockSigner, WALLET_ADDRESS, committed


MODULE = "0x1"
REGISTRY = RegistryDefinition(MODULE, "SampleProvenance", "initialize_registry", "SampleRegistry")


@pytest.fixture
def submitter(gateway, signer, sleep, metrics):
    return TransactionSubmitter(
        gateway,
        signer,
        SubmitterConfig(),
        poller=ConfirmationPoller(gateway, PollerConfig(interval=0.01, default_timeout=1.0), metrics),
        metrics=metrics,
        sleep=sleep,
        rng=lambda: 0.5,
    )


async def register(submitter, description=b"liver", **kwargs):
    return await submitter.submit(
        WALLET_ADDRESS, MODULE, "SampleProvenance", "register_sample", arguments=[description], **kwargs
    )


class TestGasMargin:

    @pytest.mark.parametrize("estimate,expected", [(1000, 1500), (1001, 1502), (1, 2)])
    def test_rounds_up(self, estimate, expected):
        assert apply_gas_margin(estimate, 0.5) == expected

    @pytest.mark.asyncio
    async def test_payload_uses_simulated_gas(self, gateway, signer, submitter):
        gateway.simulation = SimulationResult(success=True, gas_unit_price=100, max_gas_amount=1000)
        await register(submitter)
        payload = signer.payloads[0]
        assert payload["max_gas_amount"] == "1500"
        assert payload["gas_unit_price"] == "100"

    @pytest.mark.asyncio
    async def test_gas_options_when_not_simulating(self, gateway, signer, sleep, metrics):
        submitter = TransactionSubmitter(gateway, signer, SubmitterConfig(simulate=False),
                                         metrics=metrics, sleep=sleep)
        await register(submitter, gas_options=GasOptions(max_gas_amount=5000, gas_unit_price=150))
        assert gateway.simulations == []
        assert signer.payloads[0]["max_gas_amount"] == "5000"
        assert signer.payloads[0]["gas_unit_price"] == "150"


class TestSubmit:

    @pytest.mark.asyncio
    async def test_happy_path(self, gateway, signer, sleep, submitter):
        result = await register(submitter)

        assert result.hash == "0xhash1"
        assert not result.already_completed
        assert len(result.attempts) == 1
        payload = signer.payloads[0]
        assert payload["function"] == "0x1::SampleProvenance::register_sample"
        assert payload["arguments"] == [list(b"liver")]
        assert payload["sequence_number"] == "7"
        assert sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_bare_string_hash(self, signer, submitter):
        signer.responses = ["0xbare"]
        assert (await register(submitter)).hash == "0xbare"

    @pytest.mark.asyncio
    async def test_sequence_number_failure_not_fatal(self, gateway, signer, submitter):
        gateway.sequence_error = LedgerError.of(ErrorKind.NETWORK_UNREACHABLE, "Failed to fetch")
        result = await register(submitter)
        assert result.hash == "0xhash1"
        assert "sequence_number" not in signer.payloads[0]

    @pytest.mark.asyncio
    async def test_simulation_failure_is_advisory(self, gateway, signer, submitter):
        gateway.simulation = LedgerError.of(ErrorKind.VM_EXECUTION_ERROR, "Move abort")
        result = await register(submitter)
        assert result.hash == "0xhash1"
        assert "max_gas_amount" not in signer.payloads[0]

    @pytest.mark.asyncio
    async def test_wallet_unavailable(self, gateway, sleep, metrics):
        submitter = TransactionSubmitter(gateway, None, metrics=metrics, sleep=sleep)
        with pytest.raises(LedgerError) as exc_info:
            await register(submitter)
        assert exc_info.value.kind is ErrorKind.WALLET_UNAVAILABLE
        assert len(exc_info.value.attempts) == 1
        assert sleep.delays == []


class TestIdempotence:

    @pytest.mark.asyncio
    async def test_second_registration_already_exists(self, signer, submitter):
        first = await register(submitter)
        signer.responses = [Exception("Generic error: RESOURCE_ALREADY_EXISTS")]
        second = await register(submitter)

        assert not first.already_completed
        assert second.already_completed
        assert second.hash.startswith("already-exists-")
        assert len(signer.payloads) == 2

    @pytest.mark.asyncio
    async def test_simulation_already_exists_skips_signing(self, gateway, signer, submitter):
        gateway.simulation = LedgerError.of(ErrorKind.RESOURCE_ALREADY_EXISTS, "RESOURCE_ALREADY_EXISTS")
        result = await register(submitter)

        assert result.already_completed
        assert result.hash.startswith("simulation-already-exists-")
        assert signer.payloads == []

    @pytest.mark.asyncio
    async def test_outcome_metrics(self, signer, submitter, metrics):
        await register(submitter)
        signer.responses = [Exception("RESOURCE_ALREADY_EXISTS")]
        await register(submitter)
        outcomes = metrics.counter("submissions_total")
        assert outcomes.get_value(labels={"outcome": "submitted"}) == 1
        assert outcomes.get_value(labels={"outcome": "already_completed"}) == 1


class TestRetries:

    @pytest.mark.asyncio
    async def test_sequence_conflict_retries_to_bound(self, signer, sleep, submitter, metrics):
        signer.responses = [Exception("SEQUENCE_NUMBER_TOO_OLD")] * 5

        with pytest.raises(LedgerError) as exc_info:
            await register(submitter)

        assert exc_info.value.kind is ErrorKind.SEQUENCE_NUMBER_CONFLICT
        assert len(signer.payloads) == 3
        assert len(exc_info.value.attempts) == 3
        assert sleep.delays == [2.5, 4.5]
        assert sleep.delays == sorted(sleep.delays)
        assert metrics.counter("submission_retries_total").get_value() == 2
        assert metrics.counter("submission_attempts_total").get_value() == 3

    @pytest.mark.asyncio
    async def test_unknown_error_is_retried(self, signer, submitter):
        signer.responses = [Exception("something odd"), "0xok"]
        result = await register(submitter)
        assert result.hash == "0xok"
        assert len(result.attempts) == 2
        assert result.attempts[0].error.kind is ErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_retry_refetches_sequence_number(self, gateway, signer, submitter):
        signer.responses = [Exception("SEQUENCE_NUMBER_TOO_OLD"), "0xok"]
        gateway.sequence_number = 7
        original = gateway.get_sequence_number

        async def bump(address):
            value = await original(address)
            gateway.sequence_number += 1
            return value

        gateway.get_sequence_number = bump
        await register(submitter)
        assert [p["sequence_number"] for p in signer.payloads] == ["7", "8"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message,kind", [
        ("User rejected the request", ErrorKind.PERMISSION_DENIED),
        ("Out of gas", ErrorKind.OUT_OF_GAS),
        ("INVALID_ARGUMENT: bad length", ErrorKind.INVALID_ARGUMENT),
        ("Move abort in 0x1::SampleProvenance: 0x3", ErrorKind.VM_EXECUTION_ERROR),
    ])
    async def test_non_retryable_fails_after_one_attempt(self, signer, sleep, submitter, message, kind):
        signer.responses = [Exception(message)]
        with pytest.raises(LedgerError) as exc_info:
            await register(submitter)
        assert exc_info.value.kind is kind
        assert len(signer.payloads) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_cause_preserved(self, signer, submitter):
        cause = Exception("User rejected the request")
        signer.responses = [cause]
        with pytest.raises(LedgerError) as exc_info:
            await register(submitter)
        assert exc_info.value.cause is cause


class TestRegistryInitialization:

    @pytest.mark.asyncio
    async def test_initializes_before_first_operation(self, gateway, signer, submitter):
        await register(submitter, registry=REGISTRY)
        await register(submitter, b"kidney", registry=REGISTRY)

        assert signer.functions() == ["initialize_registry", "register_sample", "register_sample"]
        assert "0xhash1" in gateway.polls
        assert submitter.registry.state("SampleProvenance") is RegistryState.INITIALIZED

    @pytest.mark.asyncio
    async def test_existing_registry(self, gateway, signer, submitter):
        gateway.resources.add((WALLET_ADDRESS, REGISTRY.resource_type))
        await register(submitter, registry=REGISTRY)
        assert signer.functions() == ["register_sample"]

    @pytest.mark.asyncio
    async def test_concurrent_submissions_initialize_once(self, signer, submitter):
        await asyncio.gather(
            register(submitter, b"a", registry=REGISTRY),
            register(submitter, b"b", registry=REGISTRY),
            register(submitter, b"c", registry=REGISTRY),
        )
        assert signer.functions().count("initialize_registry") == 1
        assert signer.functions().count("register_sample") == 3

    @pytest.mark.asyncio
    async def test_init_already_exists_is_success(self, signer, submitter):
        signer.responses = [Exception("Move abort: EALREADY_INITIALIZED")]
        await register(submitter, registry=REGISTRY)
        assert signer.functions() == ["initialize_registry", "register_sample"]

    @pytest.mark.asyncio
    async def test_init_failed_on_chain(self, gateway, signer, submitter):
        gateway.transactions["0xhash1"] = [committed("0xhash1", success=False, vm_status="Move abort: ENOT_AUTHORIZED")]
        with pytest.raises(LedgerError) as exc_info:
            await register(submitter, registry=REGISTRY)
        assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED
        assert signer.functions() == ["initialize_registry"]
        assert submitter.registry.state("SampleProvenance") is RegistryState.UNKNOWN

    @pytest.mark.asyncio
    async def test_init_not_confirmed_in_time_continues(self, gateway, signer, submitter):
        gateway.transactions["0xhash1"] = [None]
        submitter.poller.config.default_timeout = 0.05
        await register(submitter, registry=REGISTRY)
        assert signer.functions() == ["initialize_registry", "register_sample"]
