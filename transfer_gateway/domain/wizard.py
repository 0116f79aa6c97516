"""Step controller - the transfer wizard state machine.

    SELECT_TYPE -> SELECT_BENEFICIARY -> ENTER_DETAILS -> REVIEW -> AUTHORIZE -> TERMINAL

Forward moves are gated by the current step's validator, backward moves are
unconditional and keep the draft, REVIEW can jump back to any of steps 1-3.
TERMINAL is absorbing; only reset() leaves it. AUTHORIZE is left forward only
by the submission executor via complete().
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from transfer_gateway.domain.exceptions import WizardInvariantError
from transfer_gateway.domain.fees import calculate_fee_quote
from transfer_gateway.domain.models import (
    Account,
    Beneficiary,
    FeeQuote,
    SubmissionResult,
    TransferCategory,
    TransferDraft,
    WizardState,
    WizardStep,
)
from transfer_gateway.domain.validation import missing_fields

logger = logging.getLogger(__name__)

EDITABLE_STEPS = (WizardStep.SELECT_TYPE, WizardStep.SELECT_BENEFICIARY, WizardStep.ENTER_DETAILS)
DETAIL_FIELDS = frozenset({"source_account_id", "amount", "description", "save_as_template"})


class StepController:
    """Owns wizard navigation and the draft for one wizard session"""

    def __init__(self, draft: Optional[TransferDraft] = None):
        self._state = WizardState(draft=draft if draft is not None else TransferDraft())
        self._accounts: Tuple[Account, ...] = ()
        self._locked = False
        self._revision = 0

    # State access

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> WizardStep:
        return self._state.step

    @property
    def draft(self) -> TransferDraft:
        return self._state.draft

    @property
    def result(self) -> Optional[SubmissionResult]:
        return self._state.result

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return self._accounts

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def revision(self) -> int:
        """Bumped on every step change and reset"""
        return self._revision

    @property
    def fee_quote(self) -> Optional[FeeQuote]:
        return calculate_fee_quote(self.draft.category, self.draft.amount)

    @property
    def missing_fields(self) -> List[str]:
        return missing_fields(self.step, self.draft)

    # Navigation

    def advance(self) -> bool:
        """Move forward if the current step accepts the draft; otherwise leave everything as is"""
        self._require_navigable("advance")
        if self.step == WizardStep.AUTHORIZE:
            raise WizardInvariantError("AUTHORIZE is completed by submission, not advance()")

        missing = self.missing_fields
        if missing:
            logger.debug("Advance blocked", extra={"step": self.step.name, "missing_fields": missing})
            return False

        self._move_to(WizardStep(self.step + 1))
        return True

    def retreat(self) -> bool:
        """Step back; the draft is kept as is"""
        self._require_navigable("retreat")
        if self.step == WizardStep.SELECT_TYPE:
            return False
        self._move_to(WizardStep(self.step - 1))
        return True

    def edit_jump_to(self, step: Union[WizardStep, int]) -> None:
        """From REVIEW, jump straight to one of steps 1-3"""
        self._require_navigable("edit_jump_to")
        if self.step != WizardStep.REVIEW:
            raise WizardInvariantError(f"edit_jump_to is only allowed from REVIEW, not {self.step.name}")
        try:
            target = WizardStep(step)
        except ValueError as e:
            raise WizardInvariantError(f"Unknown wizard step: {step}") from e
        if target not in EDITABLE_STEPS:
            raise WizardInvariantError(f"Step {target.name} cannot be edited from REVIEW")
        self._move_to(target)

    def reset(self) -> None:
        """Start over with a brand new empty draft"""
        if self._locked:
            raise WizardInvariantError("Cannot reset while a submission is in flight")
        self._state = WizardState(step=WizardStep.SELECT_TYPE, draft=TransferDraft())
        self._revision += 1
        logger.info("Wizard reset")

    # Draft updates

    def apply_patch(self, **changes) -> TransferDraft:
        """Replace the draft with a patched copy and return it"""
        if self._state.is_terminal:
            raise WizardInvariantError("The draft of a finished wizard is read-only")
        self._state = replace(self._state, draft=self.draft.apply_patch(**changes))
        return self.draft

    def select_category(self, category: Union[TransferCategory, str]) -> bool:
        """Choose the transfer type; any previously chosen beneficiary is dropped"""
        self._require_step(WizardStep.SELECT_TYPE)
        self.apply_patch(category=TransferCategory(category), beneficiary=None)
        return self.advance()

    def select_beneficiary(self, beneficiary: Beneficiary) -> bool:
        self._require_step(WizardStep.SELECT_BENEFICIARY)
        self.apply_patch(beneficiary=beneficiary)
        return self.advance()

    def update_details(self, **fields) -> TransferDraft:
        """Edit step 3 fields without leaving the step"""
        self._require_step(WizardStep.ENTER_DETAILS)
        unknown = set(fields) - DETAIL_FIELDS
        if unknown:
            raise TypeError(f"Not a details field: {', '.join(sorted(unknown))}")
        return self.apply_patch(**fields)

    def load_accounts(self, accounts: Sequence[Account]) -> None:
        """Install a freshly fetched account list; default the source to the first account"""
        self._accounts = tuple(accounts)
        if self._accounts and not self.draft.source_account_id and not self._state.is_terminal:
            self.apply_patch(source_account_id=self._accounts[0].id)

    def clear_secret(self) -> None:
        if self.draft.authorization_secret:
            self._state = replace(self._state, draft=self.draft.apply_patch(authorization_secret=""))

    # Used by the submission executor

    def complete(self, result: SubmissionResult) -> None:
        """Enter TERMINAL carrying the submission result"""
        self._require_step(WizardStep.AUTHORIZE)
        self._state = WizardState(step=WizardStep.TERMINAL, draft=self.draft, result=result)
        logger.info("Wizard finished", extra={"outcome": type(result).__name__})

    @contextmanager
    def submission_lock(self) -> Iterator[None]:
        """Freeze navigation while the transfer call is pending"""
        if self._locked:
            raise WizardInvariantError("Submission lock is already held")
        self._locked = True
        try:
            yield
        finally:
            self._locked = False

    def require_step(self, step: WizardStep) -> None:
        if self.step != step:
            raise WizardInvariantError(f"Expected wizard at {step.name}, found {self.step.name}")

    # Internals

    def _require_step(self, step: WizardStep) -> None:
        if self._locked:
            raise WizardInvariantError("Wizard is locked while a submission is in flight")
        self.require_step(step)

    def _require_navigable(self, operation: str) -> None:
        if self._state.is_terminal:
            raise WizardInvariantError(f"{operation}() called on a finished wizard; use reset()")
        if self._locked:
            raise WizardInvariantError(f"{operation}() called while a submission is in flight")

    def _move_to(self, step: WizardStep) -> None:
        previous = self.step
        self._state = replace(self._state, step=step)
        self._revision += 1
        logger.debug("Wizard step transition", extra={"from_step": previous.name, "to_step": step.name})
