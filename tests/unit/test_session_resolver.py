"""Tests for the session resolver.

Covers lookup, lazy provisioning, failure classification, and
single-flight behaviour under concurrent callers.
"""

import asyncio

import pytest

from candidate_onboarding.adapters.base import ProvisionResult
from candidate_onboarding.core.errors import (
    AccountProvisioningFailed,
    AuthTokenMissing,
    BackendRequestError,
)
from candidate_onboarding.schemas.profile import Identity
from candidate_onboarding.services.session_resolver import SessionResolver
from tests.conftest import TEST_CANDIDATE_ID, FakeCandidateBackend, make_record


async def _until(predicate, attempts: int = 50) -> None:
    """Yield to the loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never reached")


@pytest.fixture
def empty_backend() -> FakeCandidateBackend:
    """Backend with no record for the identity."""
    return FakeCandidateBackend(record=None)


class TestLookup:
    """Tests for resolving an existing record."""

    async def test_existing_record_is_not_created(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should return the looked-up record with created=False."""
        outcome = await SessionResolver(backend).resolve(identity)

        assert outcome.ok
        assert outcome.value.record.id == TEST_CANDIDATE_ID
        assert outcome.value.created is False
        assert backend.count("provision_candidate") == 0

    async def test_success_is_cached(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should not hit the backend again once resolved."""
        resolver = SessionResolver(backend)

        first = await resolver.resolve(identity)
        second = await resolver.resolve(identity)

        assert second is first
        assert backend.count("get_current_candidate") == 1

    async def test_forget_resolves_again(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should look the record up again after forget."""
        resolver = SessionResolver(backend)
        await resolver.resolve(identity)

        resolver.forget(identity.user_id)
        await resolver.resolve(identity)

        assert backend.count("get_current_candidate") == 2

    async def test_clear_drops_every_identity(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should look the record up again after clear."""
        resolver = SessionResolver(backend)
        await resolver.resolve(identity)

        resolver.clear()
        await resolver.resolve(identity)

        assert backend.count("get_current_candidate") == 2


class TestProvisioning:
    """Tests for lazy provisioning on first login."""

    async def test_not_found_provisions(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should provision when the lookup finds nothing."""
        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert outcome.ok
        assert outcome.value.created is True
        assert outcome.value.record.full_name == "Jordan Lee"
        assert empty_backend.calls == ["get_current_candidate", "provision_candidate"]

    async def test_email_local_part_used_without_name(
        self, empty_backend: FakeCandidateBackend
    ) -> None:
        """Should fall back to the email local part for the name."""
        identity = Identity(user_id="user_x", email="sam.doe@example.com")

        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert outcome.value.record.full_name == "sam.doe"

    async def test_provisioning_error_fails(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should wrap a provisioning error in AccountProvisioningFailed."""
        cause = BackendRequestError("Server error", status_code=500)
        empty_backend.errors["provision_candidate"] = cause

        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert isinstance(outcome.error, AccountProvisioningFailed)
        assert outcome.error.cause is cause
        assert outcome.value is None

    async def test_unsuccessful_result_fails(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should fail when provisioning reports success=False."""
        empty_backend.provision_result = ProvisionResult(
            success=False, error="Email already linked"
        )

        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert isinstance(outcome.error, AccountProvisioningFailed)
        assert outcome.error.cause.message == "Email already linked"

    async def test_success_without_record_fails(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should fail when provisioning "succeeds" with no record."""
        empty_backend.provision_result = ProvisionResult(success=True)

        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert isinstance(outcome.error, AccountProvisioningFailed)

    async def test_record_without_id_fails(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should fail when the provisioned record has an empty id."""
        empty_backend.provision_result = ProvisionResult(
            success=True, candidate=make_record(id="")
        )

        outcome = await SessionResolver(empty_backend).resolve(identity)

        assert isinstance(outcome.error, AccountProvisioningFailed)

    async def test_failure_is_not_cached(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should run the flow again on the next call after a failure."""
        resolver = SessionResolver(empty_backend)
        empty_backend.errors["provision_candidate"] = BackendRequestError("down")
        await resolver.resolve(identity)

        del empty_backend.errors["provision_candidate"]
        outcome = await resolver.resolve(identity)

        assert outcome.ok
        assert empty_backend.count("provision_candidate") == 2


class TestLookupFailures:
    """Only a not-found lookup may trigger provisioning."""

    async def test_server_error_does_not_provision(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should fail without provisioning on a 5xx lookup."""
        backend.errors["get_current_candidate"] = BackendRequestError(
            "Server error", status_code=503
        )

        outcome = await SessionResolver(backend).resolve(identity)

        assert isinstance(outcome.error, AccountProvisioningFailed)
        assert backend.count("provision_candidate") == 0

    async def test_missing_token_does_not_provision(
        self, backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should fail without provisioning when no token is available."""
        backend.errors["get_current_candidate"] = AuthTokenMissing()

        outcome = await SessionResolver(backend).resolve(identity)

        assert isinstance(outcome.error.cause, AuthTokenMissing)
        assert backend.count("provision_candidate") == 0


class TestSingleFlight:
    """Concurrent callers share one lookup/provision flight."""

    async def test_concurrent_calls_provision_once(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should provision exactly once for simultaneous callers."""
        resolver = SessionResolver(empty_backend)

        first, second = await asyncio.gather(
            resolver.resolve(identity), resolver.resolve(identity)
        )

        assert empty_backend.count("provision_candidate") == 1
        assert first.value.record.id == second.value.record.id

    async def test_late_caller_joins_flight(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should join a flight already blocked in provisioning."""
        gate = asyncio.Event()
        empty_backend.gates["provision_candidate"] = gate
        resolver = SessionResolver(empty_backend)

        early = asyncio.create_task(resolver.resolve(identity))
        await _until(lambda: empty_backend.count("provision_candidate") == 1)
        late = asyncio.create_task(resolver.resolve(identity))
        await asyncio.sleep(0)
        gate.set()

        early_outcome, late_outcome = await asyncio.gather(early, late)

        assert early_outcome is late_outcome
        assert empty_backend.count("provision_candidate") == 1
        assert empty_backend.count("get_current_candidate") == 1

    async def test_cancelled_caller_does_not_cancel_flight(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should finish the shared flight for remaining callers."""
        gate = asyncio.Event()
        empty_backend.gates["provision_candidate"] = gate
        resolver = SessionResolver(empty_backend)

        doomed = asyncio.create_task(resolver.resolve(identity))
        survivor = asyncio.create_task(resolver.resolve(identity))
        await _until(lambda: empty_backend.count("provision_candidate") == 1)
        doomed.cancel()
        gate.set()

        outcome = await survivor

        assert outcome.ok
        with pytest.raises(asyncio.CancelledError):
            await doomed
        assert empty_backend.count("provision_candidate") == 1

    async def test_forget_during_flight_keeps_single_flight(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should not start a second provisioning after forget mid-flight."""
        gate = asyncio.Event()
        empty_backend.gates["provision_candidate"] = gate
        resolver = SessionResolver(empty_backend)

        first = asyncio.create_task(resolver.resolve(identity))
        await _until(lambda: empty_backend.count("provision_candidate") == 1)
        resolver.forget(identity.user_id)
        second = asyncio.create_task(resolver.resolve(identity))
        await asyncio.sleep(0)
        gate.set()

        await asyncio.gather(first, second)

        assert empty_backend.count("provision_candidate") == 1

    async def test_identities_fly_independently(
        self, empty_backend: FakeCandidateBackend, identity: Identity
    ) -> None:
        """Should key flights by user id."""
        other = Identity(user_id="user_other", email="other@example.com")
        resolver = SessionResolver(empty_backend)

        await asyncio.gather(resolver.resolve(identity), resolver.resolve(other))

        assert empty_backend.count("get_current_candidate") == 2
