"""Unit tests for the step controller state machine"""

import pytest
from dataclasses import FrozenInstanceError
from transfer_gateway.domain.exceptions import WizardInvariantError
from transfer_gateway.domain.models import (
    SubmissionSuccess,
    TransferCategory,
    TransferDraft,
    WizardStep,
)
from datetime import datetime, timezone
from decimal import Decimal


def test_new_controller_starts_empty(controller):
    assert controller.step == WizardStep.SELECT_TYPE
    assert controller.draft == TransferDraft()
    assert controller.fee_quote is None


def test_advance_is_noop_when_step_incomplete(controller):
    """Blocked advance changes neither the step nor the draft"""
    draft_before = controller.draft

    assert controller.advance() is False
    assert controller.step == WizardStep.SELECT_TYPE
    assert controller.draft is draft_before
    assert controller.missing_fields == ["category"]


def test_advance_blocked_on_details_with_invalid_amount(review_controller):
    review_controller.edit_jump_to(WizardStep.ENTER_DETAILS)
    review_controller.update_details(amount="-3")
    draft_before = review_controller.draft

    assert review_controller.advance() is False
    assert review_controller.step == WizardStep.ENTER_DETAILS
    assert review_controller.draft == draft_before
    assert review_controller.missing_fields == ["amount"]


def test_select_category_advances_and_clears_beneficiary(review_controller):
    review_controller.edit_jump_to(WizardStep.SELECT_TYPE)
    assert review_controller.draft.beneficiary is not None

    assert review_controller.select_category(TransferCategory.INTERNATIONAL)
    assert review_controller.step == WizardStep.SELECT_BENEFICIARY
    assert review_controller.draft.category == TransferCategory.INTERNATIONAL
    assert review_controller.draft.beneficiary is None


def test_select_category_accepts_wire_value(controller):
    assert controller.select_category("instant-id-based")
    assert controller.draft.category == TransferCategory.INSTANT_ID


def test_retreat_then_advance_keeps_data(review_controller):
    draft_before = review_controller.draft

    assert review_controller.retreat()
    assert review_controller.retreat()
    assert review_controller.step == WizardStep.SELECT_BENEFICIARY
    assert review_controller.draft == draft_before

    assert review_controller.advance()
    assert review_controller.advance()
    assert review_controller.step == WizardStep.REVIEW
    assert review_controller.draft == draft_before


def test_retreat_on_first_step_is_noop(controller):
    assert controller.retreat() is False
    assert controller.step == WizardStep.SELECT_TYPE


@pytest.mark.parametrize("target", [1, 2, 3])
def test_edit_jump_from_review(review_controller, target):
    review_controller.edit_jump_to(target)
    assert review_controller.step == WizardStep(target)


def test_edit_jump_requires_review(controller):
    with pytest.raises(WizardInvariantError):
        controller.edit_jump_to(WizardStep.SELECT_TYPE)


@pytest.mark.parametrize("target", [4, 5, 6, 0, 9])
def test_edit_jump_rejects_non_editable_steps(review_controller, target):
    with pytest.raises(WizardInvariantError):
        review_controller.edit_jump_to(target)


def test_edit_then_forward_revalidates(review_controller):
    """After an edit the user must walk forward again through the validators"""
    review_controller.edit_jump_to(WizardStep.ENTER_DETAILS)
    review_controller.update_details(amount="")

    assert review_controller.advance() is False
    review_controller.update_details(amount="75")
    assert review_controller.advance()
    assert review_controller.step == WizardStep.REVIEW


def test_advance_from_authorize_is_a_contract_violation(authorize_controller):
    with pytest.raises(WizardInvariantError):
        authorize_controller.advance()


def test_terminal_is_absorbing(authorize_controller):
    authorize_controller.complete(SubmissionSuccess("TXN1", datetime.now(timezone.utc)))

    assert authorize_controller.step == WizardStep.TERMINAL
    with pytest.raises(WizardInvariantError):
        authorize_controller.advance()
    with pytest.raises(WizardInvariantError):
        authorize_controller.retreat()
    with pytest.raises(WizardInvariantError):
        authorize_controller.apply_patch(amount="1")


def test_reset_yields_fresh_empty_draft(authorize_controller):
    authorize_controller.complete(SubmissionSuccess("TXN1", datetime.now(timezone.utc)))
    old_draft = authorize_controller.draft

    authorize_controller.reset()

    assert authorize_controller.step == WizardStep.SELECT_TYPE
    assert authorize_controller.result is None
    assert authorize_controller.draft == TransferDraft()
    assert authorize_controller.draft is not old_draft
    assert old_draft.amount == "100.00"


def test_draft_cannot_be_mutated_in_place(controller):
    with pytest.raises(FrozenInstanceError):
        controller.draft.amount = "5"


def test_apply_patch_returns_new_draft(controller):
    before = controller.draft
    after = controller.apply_patch(description="Lunch")

    assert after is not before
    assert before.description == ""
    assert controller.draft.description == "Lunch"


def test_apply_patch_rejects_unknown_fields(controller):
    with pytest.raises(TypeError):
        controller.apply_patch(colour="blue")


def test_update_details_only_on_details_step(controller):
    with pytest.raises(WizardInvariantError):
        controller.update_details(amount="10")


def test_update_details_rejects_other_fields(review_controller):
    review_controller.edit_jump_to(WizardStep.ENTER_DETAILS)
    with pytest.raises(TypeError):
        review_controller.update_details(category=TransferCategory.INTERNAL)


def test_fee_quote_follows_draft(review_controller):
    assert review_controller.fee_quote.total == Decimal("102.95")

    review_controller.edit_jump_to(WizardStep.ENTER_DETAILS)
    review_controller.update_details(amount="200")
    assert review_controller.fee_quote.total == Decimal("202.95")


def test_load_accounts_defaults_source(controller, sample_accounts):
    controller.load_accounts(sample_accounts)
    assert controller.draft.source_account_id == "acc_savings"

    controller.apply_patch(source_account_id="acc_current")
    controller.load_accounts(sample_accounts)
    assert controller.draft.source_account_id == "acc_current"


def test_navigation_locked_during_submission(authorize_controller):
    with authorize_controller.submission_lock():
        with pytest.raises(WizardInvariantError):
            authorize_controller.retreat()
        with pytest.raises(WizardInvariantError):
            authorize_controller.reset()
    assert authorize_controller.retreat()


def test_secret_not_in_repr(authorize_controller):
    authorize_controller.apply_patch(authorization_secret="4321")
    assert "4321" not in repr(authorize_controller.draft)
    assert "4321" not in repr(authorize_controller.state)
