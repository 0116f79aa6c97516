"""Review step summary"""

from typing import Dict

from transfer_gateway.domain.exceptions import WizardInvariantError
from transfer_gateway.domain.fees import calculate_fee_quote
from transfer_gateway.domain.models import ReviewSummary, TransferCategory, TransferDraft
from transfer_gateway.domain.validation import is_complete

CATEGORY_LABELS: Dict[TransferCategory, str] = {
    TransferCategory.INTERNAL: "Internal Transfer",
    TransferCategory.DOMESTIC_BANK: "Bank Transfer",
    TransferCategory.INSTANT_ID: "Instant Transfer",
    TransferCategory.INTERNATIONAL: "International",
    TransferCategory.SCHEDULED: "Scheduled",
}

ESTIMATED_ARRIVAL: Dict[TransferCategory, str] = {
    TransferCategory.INSTANT_ID: "Instant",
    TransferCategory.INTERNATIONAL: "2-3 Business Days",
}
DEFAULT_ARRIVAL = "Within 2 hours"


def build_review(draft: TransferDraft) -> ReviewSummary:
    """Summarize a draft whose first three steps are satisfied"""
    if not is_complete(draft):
        raise WizardInvariantError("Review requires category, beneficiary, source account and amount")

    return ReviewSummary(
        category=draft.category,
        category_label=CATEGORY_LABELS[draft.category],
        estimated_arrival=ESTIMATED_ARRIVAL.get(draft.category, DEFAULT_ARRIVAL),
        beneficiary=draft.beneficiary,
        source_account_id=draft.source_account_id,
        description=draft.description or "N/A",
        quote=calculate_fee_quote(draft.category, draft.amount),
    )
