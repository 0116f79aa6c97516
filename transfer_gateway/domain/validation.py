"""Per-step admission predicates over the transfer draft"""

from typing import Callable, Dict, List

from transfer_gateway.config import settings
from transfer_gateway.domain.fees import parse_amount
from transfer_gateway.domain.models import TransferDraft, WizardStep


def is_valid_secret(secret: str, length: int | None = None) -> bool:
    """Exactly `length` ASCII digits"""
    length = length or settings.authorization_secret_length
    return len(secret) == length and secret.isascii() and secret.isdigit()


def _select_type_missing(draft: TransferDraft) -> List[str]:
    return [] if draft.category is not None else ["category"]


def _select_beneficiary_missing(draft: TransferDraft) -> List[str]:
    if draft.beneficiary is None or not draft.beneficiary.destination_identifier:
        return ["beneficiary"]
    return []


def _enter_details_missing(draft: TransferDraft) -> List[str]:
    missing = []
    if not draft.source_account_id:
        missing.append("source_account_id")
    if parse_amount(draft.amount) is None:
        missing.append("amount")
    return missing


def _authorize_missing(draft: TransferDraft) -> List[str]:
    return [] if is_valid_secret(draft.authorization_secret) else ["authorization_secret"]


# Fields each step owns. Review re-checks everything collected so far because
# edit_jump_to lets the user reach it again after changing an earlier step.
_STEP_CHECKS: Dict[WizardStep, List[Callable[[TransferDraft], List[str]]]] = {
    WizardStep.SELECT_TYPE: [_select_type_missing],
    WizardStep.SELECT_BENEFICIARY: [_select_beneficiary_missing],
    WizardStep.ENTER_DETAILS: [_enter_details_missing],
    WizardStep.REVIEW: [_select_type_missing, _select_beneficiary_missing, _enter_details_missing],
    WizardStep.AUTHORIZE: [
        _select_type_missing,
        _select_beneficiary_missing,
        _enter_details_missing,
        _authorize_missing,
    ],
    WizardStep.TERMINAL: [],
}


def missing_fields(step: WizardStep, draft: TransferDraft) -> List[str]:
    """Names of the draft fields that block leaving `step`"""
    missing: List[str] = []
    for check in _STEP_CHECKS[step]:
        missing.extend(check(draft))
    return missing


def can_advance(step: WizardStep, draft: TransferDraft) -> bool:
    return not missing_fields(step, draft)


def is_complete(draft: TransferDraft) -> bool:
    """All fields needed for submission, secret excluded"""
    return can_advance(WizardStep.REVIEW, draft)
