"""Submission executor - the one external mutation in the whole wizard"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from transfer_gateway.config import settings
from transfer_gateway.domain.authorization import AuthorizationGate
from transfer_gateway.domain.exceptions import TransferServiceError, WizardInvariantError
from transfer_gateway.domain.fees import parse_amount, to_payload_amount
from transfer_gateway.domain.models import (
    SubmissionFailure,
    SubmissionResult,
    SubmissionSuccess,
    TransferConfirmation,
    TransferDraft,
    WizardStep,
)
from transfer_gateway.domain.validation import is_complete
from transfer_gateway.domain.wizard import StepController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRequest:
    """Payload sent to the transfer execution service (the secret travels separately)"""

    destination_identifier: str
    amount: str
    description: str
    source_account_id: str


class TransferService(Protocol):
    async def execute(self, request: TransferRequest, secret: str) -> TransferConfirmation: ...


def generate_reference() -> str:
    """Client-side placeholder id, e.g. TXN4F09A1C2B"""
    return f"TXN{uuid.uuid4().hex[:9].upper()}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_transfer_request(draft: TransferDraft, default_description: str | None = None) -> TransferRequest:
    """Build the wire payload; the only place the amount is rounded to cents"""
    amount = parse_amount(draft.amount)
    if not is_complete(draft) or amount is None:
        raise WizardInvariantError("Cannot build a transfer request from an incomplete draft")
    return TransferRequest(
        destination_identifier=draft.beneficiary.destination_identifier,
        amount=to_payload_amount(amount),
        description=draft.description.strip() or default_description or settings.default_transfer_description,
        source_account_id=draft.source_account_id,
    )


class SubmissionExecutor:
    """
    Submits the authorized draft exactly once per authorization attempt.

    Guarantees:
    - While a call is pending, further submit() calls are ignored (return None)
    - The secret is cleared from the draft after every attempt
    - Success moves the wizard to TERMINAL; failure leaves it on AUTHORIZE
      with the draft intact so the user can retry
    - A failure belongs to the AUTHORIZE visit it happened in; leaving
      the step or resetting the wizard forgets it
    - No automatic retries, whatever the error kind
    """

    def __init__(
        self,
        controller: StepController,
        transfer_service: TransferService,
        gate: Optional[AuthorizationGate] = None,
        clock: Callable[[], datetime] = utc_now,
        reference_factory: Callable[[], str] = generate_reference,
    ):
        self.controller = controller
        self.transfer_service = transfer_service
        self.gate = gate or AuthorizationGate(controller)
        self.clock = clock
        self.reference_factory = reference_factory
        self._failure: Optional[SubmissionFailure] = None
        self._failure_revision = -1
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def last_failure(self) -> Optional[SubmissionFailure]:
        """Failure of the latest attempt, while the wizard is still on that AUTHORIZE visit"""
        if self._failure is not None and self._failure_revision == self.controller.revision:
            return self._failure
        return None

    async def submit(self, secret: str) -> Optional[SubmissionResult]:
        """
        Authorize and submit the current draft.

        Returns:
            None if nothing was dispatched (call already in flight, or the
            secret failed the format check), otherwise the SubmissionResult.

        Raises:
            WizardInvariantError: wizard not on AUTHORIZE or draft incomplete
        """
        if self._in_flight:
            logger.warning("Ignoring authorization while a submission is in flight")
            return None

        if not self.gate.admit(secret):
            return None

        draft = self.controller.draft
        try:
            request = build_transfer_request(draft)
        except WizardInvariantError:
            self.gate.release()
            raise

        self._in_flight = True
        started_at = self.clock()
        try:
            with self.controller.submission_lock():
                confirmation = await self.transfer_service.execute(request, draft.authorization_secret)
        except TransferServiceError as e:
            self._failure = SubmissionFailure(error_kind=e.kind, message=e.message)
            self._failure_revision = self.controller.revision
            logger.warning(
                "Transfer submission failed",
                extra={"error_kind": e.kind.value, "source_account_id": request.source_account_id},
            )
            return self._failure
        finally:
            self.gate.release()
            self._in_flight = False

        server_issued = bool(confirmation.transaction_id)
        success = SubmissionSuccess(
            transaction_id=confirmation.transaction_id or self.reference_factory(),
            timestamp=max(self.clock(), started_at),
            server_issued=server_issued,
        )
        self._failure = None
        self.controller.complete(success)
        logger.info(
            "Transfer submitted",
            extra={"transaction_id": success.transaction_id, "server_issued": server_issued},
        )
        return success

    def abandon(self) -> SubmissionFailure:
        """Give up after a failed attempt: conclude the wizard as TERMINAL(Failure)"""
        if self._in_flight:
            raise WizardInvariantError("Cannot abandon while a submission is in flight")
        self.controller.require_step(WizardStep.AUTHORIZE)
        if self.last_failure is None:
            raise WizardInvariantError("Nothing to abandon: no submission has failed yet")
        self.controller.clear_secret()
        failure = self.last_failure
        self.controller.complete(failure)
        return failure
