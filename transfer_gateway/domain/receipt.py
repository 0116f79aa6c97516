"""Receipt rendering for a completed transfer"""

import logging
from typing import Callable

from transfer_gateway.domain.exceptions import WizardInvariantError
from transfer_gateway.domain.fees import calculate_fee_quote, format_money
from transfer_gateway.domain.models import Receipt, SubmissionResult, SubmissionSuccess, TransferDraft

logger = logging.getLogger(__name__)


def render_receipt(result: SubmissionResult, draft: TransferDraft) -> Receipt:
    """
    Build the terminal confirmation from a successful submission and its draft.

    Amounts come from the fee calculator, the same projection shown on the
    Details and Review steps.
    """
    if not isinstance(result, SubmissionSuccess):
        raise WizardInvariantError("Receipts exist only for successful submissions")
    quote = calculate_fee_quote(draft.category, draft.amount)
    if quote is None or draft.beneficiary is None:
        raise WizardInvariantError("Submitted draft is missing its amount or beneficiary")

    return Receipt(
        transaction_id=result.transaction_id,
        destination_name=draft.beneficiary.name,
        destination_identifier=draft.beneficiary.destination_identifier,
        amount=quote.amount,
        fee=quote.fee,
        tax=quote.tax,
        total=quote.total,
        description=draft.description,
        completed_at=result.timestamp,
    )


def receipt_headline(receipt: Receipt) -> str:
    return f"Your transfer of {format_money(receipt.amount)} to {receipt.destination_name} has been processed."


def copy_transaction_id(receipt: Receipt, clipboard: Callable[[str], object]) -> bool:
    """
    Put the transaction id on the clipboard.

    Never raises: a clipboard problem must not break receipt display, so the
    failure is logged and reported as False.
    """
    try:
        clipboard(receipt.transaction_id)
    except Exception:
        logger.warning("Could not copy transaction id to clipboard", exc_info=True)
        return False
    return True
