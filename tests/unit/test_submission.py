"""Unit tests for the authorization gate and submission executor"""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from conftest import FakeTransferService
from transfer_gateway.domain.authorization import AuthorizationGate
from transfer_gateway.domain.exceptions import TransferServiceError, WizardInvariantError
from transfer_gateway.domain.models import (
    ErrorKind,
    SubmissionFailure,
    SubmissionSuccess,
    TransferCategory,
    WizardStep,
)
from transfer_gateway.domain.submission import SubmissionExecutor, build_transfer_request, generate_reference


class TestAuthorizationGate:
    def test_admits_four_digits(self, authorize_controller):
        gate = AuthorizationGate(authorize_controller)

        assert gate.admit("1234")
        assert authorize_controller.draft.authorization_secret == "1234"

        gate.release()
        assert authorize_controller.draft.authorization_secret == ""

    @pytest.mark.parametrize("secret", ["123", "12345", "abcd", " 1234", "1234 ", "", None])
    def test_rejects_and_clears_bad_format(self, authorize_controller, secret):
        gate = AuthorizationGate(authorize_controller)

        assert gate.admit(secret) is False
        assert authorize_controller.draft.authorization_secret == ""
        assert authorize_controller.step == WizardStep.AUTHORIZE

    def test_only_on_authorize_step(self, review_controller):
        with pytest.raises(WizardInvariantError):
            AuthorizationGate(review_controller).admit("1234")


class TestBuildTransferRequest:
    def test_payload_fields(self, review_controller):
        request = build_transfer_request(review_controller.draft)

        assert request.destination_identifier == "****5678"
        assert request.amount == "100.00"
        assert request.description == "Rent share"
        assert request.source_account_id == "acc_savings"

    def test_blank_description_gets_default(self, review_controller):
        request = build_transfer_request(review_controller.draft.apply_patch(description="   "))
        assert request.description == "Transfer via Wizard"

    def test_amount_rounded_half_up_to_cents(self, review_controller):
        request = build_transfer_request(review_controller.draft.apply_patch(amount="10.005"))
        assert request.amount == "10.01"

    def test_incomplete_draft_is_rejected(self, review_controller):
        with pytest.raises(WizardInvariantError):
            build_transfer_request(review_controller.draft.apply_patch(amount="0"))


class TestSubmissionExecutor:
    async def test_short_pin_never_reaches_service(self, authorize_controller, transfer_service):
        """Three-digit PIN: gate rejects, nothing is sent, wizard stays put"""
        executor = SubmissionExecutor(authorize_controller, transfer_service)

        result = await executor.submit("123")

        assert result is None
        assert transfer_service.calls == []
        assert authorize_controller.step == WizardStep.AUTHORIZE

    async def test_success_reaches_terminal(self, authorize_controller, transfer_service):
        called_at = datetime.now(timezone.utc)
        executor = SubmissionExecutor(authorize_controller, transfer_service)

        result = await executor.submit("1234")

        assert isinstance(result, SubmissionSuccess)
        assert result.transaction_id == "TXNSERVER01"
        assert result.server_issued
        assert result.timestamp >= called_at
        assert authorize_controller.step == WizardStep.TERMINAL
        assert authorize_controller.result == result
        assert authorize_controller.state.succeeded

    async def test_secret_sent_once_then_cleared(self, authorize_controller, transfer_service):
        executor = SubmissionExecutor(authorize_controller, transfer_service)

        await executor.submit("1234")

        assert len(transfer_service.calls) == 1
        request, secret = transfer_service.calls[0]
        assert secret == "1234"
        assert request.amount == "100.00"
        assert authorize_controller.draft.authorization_secret == ""

    async def test_insufficient_funds_stays_on_authorize(self, authorize_controller, insufficient_funds_service):
        draft_before = authorize_controller.draft
        executor = SubmissionExecutor(authorize_controller, insufficient_funds_service)

        result = await executor.submit("1234")

        assert result == SubmissionFailure(ErrorKind.INSUFFICIENT_FUNDS, "Insufficient balance")
        assert executor.last_failure == result
        assert authorize_controller.step == WizardStep.AUTHORIZE
        assert authorize_controller.draft == draft_before
        assert authorize_controller.draft.authorization_secret == ""
        assert not authorize_controller.locked

    async def test_retry_after_failure_succeeds(self, authorize_controller):
        service = FakeTransferService(error=TransferServiceError(ErrorKind.INVALID_SECRET, "Incorrect transaction PIN"))
        executor = SubmissionExecutor(authorize_controller, service)

        first = await executor.submit("9999")
        service.error = None
        second = await executor.submit("1234")

        assert first.error_kind == ErrorKind.INVALID_SECRET
        assert isinstance(second, SubmissionSuccess)
        assert executor.last_failure is None
        assert [secret for _, secret in service.calls] == ["9999", "1234"]

    async def test_duplicate_submit_while_in_flight_is_ignored(self, authorize_controller, transfer_service):
        transfer_service.hold()
        executor = SubmissionExecutor(authorize_controller, transfer_service)

        first = asyncio.create_task(executor.submit("1234"))
        await asyncio.sleep(0)
        assert executor.in_flight
        assert authorize_controller.locked

        duplicate = await executor.submit("1234")
        transfer_service.release.set()
        result = await first

        assert duplicate is None
        assert isinstance(result, SubmissionSuccess)
        assert len(transfer_service.calls) == 1
        assert not executor.in_flight

    async def test_navigation_blocked_while_in_flight(self, authorize_controller, transfer_service):
        transfer_service.hold()
        executor = SubmissionExecutor(authorize_controller, transfer_service)

        task = asyncio.create_task(executor.submit("1234"))
        await asyncio.sleep(0)
        with pytest.raises(WizardInvariantError):
            authorize_controller.retreat()
        transfer_service.release.set()
        await task

    async def test_placeholder_id_when_server_sends_none(self, authorize_controller):
        executor = SubmissionExecutor(
            authorize_controller,
            FakeTransferService(transaction_id=None),
            reference_factory=lambda: "TXNLOCAL001",
        )

        result = await executor.submit("1234")

        assert result.transaction_id == "TXNLOCAL001"
        assert result.server_issued is False

    async def test_timestamp_never_precedes_dispatch(self, authorize_controller, transfer_service):
        start = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
        ticks = iter([start, start - timedelta(seconds=5)])
        executor = SubmissionExecutor(authorize_controller, transfer_service, clock=lambda: next(ticks))

        result = await executor.submit("1234")

        assert result.timestamp == start

    async def test_submit_outside_authorize_is_a_contract_violation(self, review_controller, transfer_service):
        executor = SubmissionExecutor(review_controller, transfer_service)
        with pytest.raises(WizardInvariantError):
            await executor.submit("1234")
        assert transfer_service.calls == []

    async def test_abandon_after_failure(self, authorize_controller, insufficient_funds_service):
        executor = SubmissionExecutor(authorize_controller, insufficient_funds_service)
        failure = await executor.submit("1234")

        assert executor.abandon() == failure
        assert authorize_controller.step == WizardStep.TERMINAL
        assert authorize_controller.result == failure
        assert not authorize_controller.state.succeeded

    def test_abandon_requires_a_failure(self, authorize_controller, transfer_service):
        executor = SubmissionExecutor(authorize_controller, transfer_service)
        with pytest.raises(WizardInvariantError):
            executor.abandon()

    async def test_failure_forgotten_after_reset(
        self, authorize_controller, insufficient_funds_service, alice, sample_accounts
    ):
        """A new draft never inherits the previous draft's failure"""
        executor = SubmissionExecutor(authorize_controller, insufficient_funds_service)
        await executor.submit("1234")

        authorize_controller.reset()
        authorize_controller.load_accounts(sample_accounts)
        authorize_controller.select_category(TransferCategory.DOMESTIC_BANK)
        authorize_controller.select_beneficiary(alice)
        authorize_controller.update_details(amount="5")
        assert authorize_controller.advance()
        assert authorize_controller.advance()
        assert authorize_controller.step == WizardStep.AUTHORIZE

        assert executor.last_failure is None
        with pytest.raises(WizardInvariantError):
            executor.abandon()
        assert authorize_controller.step == WizardStep.AUTHORIZE

    async def test_failure_forgotten_after_edit(self, authorize_controller, insufficient_funds_service):
        executor = SubmissionExecutor(authorize_controller, insufficient_funds_service)
        await executor.submit("1234")

        authorize_controller.retreat()
        authorize_controller.edit_jump_to(WizardStep.ENTER_DETAILS)
        authorize_controller.update_details(amount="5")
        authorize_controller.advance()
        authorize_controller.advance()

        assert authorize_controller.step == WizardStep.AUTHORIZE
        assert executor.last_failure is None
        with pytest.raises(WizardInvariantError):
            executor.abandon()

    async def test_failure_kept_across_rejected_retry(self, authorize_controller, insufficient_funds_service):
        """A malformed PIN on retry does not erase the failure still on screen"""
        executor = SubmissionExecutor(authorize_controller, insufficient_funds_service)
        failure = await executor.submit("1234")

        assert await executor.submit("12") is None
        assert executor.last_failure == failure
        assert executor.abandon() == failure

    async def test_reset_after_success_starts_clean(self, authorize_controller, transfer_service):
        executor = SubmissionExecutor(authorize_controller, transfer_service)
        await executor.submit("1234")

        authorize_controller.reset()

        assert authorize_controller.step == WizardStep.SELECT_TYPE
        assert authorize_controller.draft.category is None
        assert authorize_controller.select_category(TransferCategory.INTERNAL)


def test_generate_reference_format():
    reference = generate_reference()
    assert reference.startswith("TXN")
    assert len(reference) == 12
    assert reference[3:].isalnum() and reference[3:].upper() == reference[3:]
