"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from transfer_gateway.domain.fees import quantize_cents
from transfer_gateway.domain.models import (
    Account,
    Beneficiary,
    FeeQuote,
    Receipt,
    ReviewSummary,
    SubmissionFailure,
    SubmissionSuccess,
    TransferCategory,
    TransferDraft,
)


def money(value: Decimal) -> str:
    return str(quantize_cents(value))


class CreateSessionRequest(BaseModel):
    """Request body for POST /v1/transfers/sessions"""

    user_id: str = Field(..., min_length=1, description="Customer identifier")


class CategoryRequest(BaseModel):
    category: TransferCategory


class SelectBeneficiaryRequest(BaseModel):
    beneficiary_id: str = Field(..., min_length=1)


class NewBeneficiaryRequest(BaseModel):
    """Inline beneficiary; which identifier is required depends on the transfer category"""

    name: str
    account_number: Optional[str] = None
    instant_payment_id: Optional[str] = None
    routing_code: Optional[str] = Field(None, description="Bank routing code (IFSC/ABA) or SWIFT")
    nickname: Optional[str] = None
    bank_label: Optional[str] = None


class DetailsRequest(BaseModel):
    """Partial update of step 3; omitted fields are left untouched"""

    source_account_id: Optional[str] = None
    amount: Optional[str] = Field(None, description="Decimal amount, e.g. '100.00'")
    description: Optional[str] = Field(None, max_length=140)
    save_as_template: Optional[bool] = None


class EditRequest(BaseModel):
    step: int = Field(..., ge=1, le=3, description="Step to revisit from Review")


class AuthorizeRequest(BaseModel):
    secret: str = Field(..., description="4-digit transaction PIN")


class BeneficiarySchema(BaseModel):
    id: str
    name: str
    nickname: Optional[str] = None
    destination_identifier: str
    bank_label: Optional[str] = None
    is_favorite: bool = False

    @classmethod
    def from_domain(cls, beneficiary: Beneficiary) -> "BeneficiarySchema":
        return cls(
            id=beneficiary.id,
            name=beneficiary.name,
            nickname=beneficiary.nickname,
            destination_identifier=beneficiary.destination_identifier,
            bank_label=beneficiary.bank_label,
            is_favorite=beneficiary.is_favorite,
        )


class AccountSchema(BaseModel):
    id: str
    account_type: str
    suffix: str
    balance: str
    currency: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountSchema":
        return cls(
            id=account.id,
            account_type=account.account_type,
            suffix=account.suffix,
            balance=money(account.balance),
            currency=account.currency,
        )


class FeeQuoteSchema(BaseModel):
    """Money values rounded to cents for display"""

    amount: str
    fee: str
    tax: str
    total: str

    @classmethod
    def from_domain(cls, quote: FeeQuote) -> "FeeQuoteSchema":
        return cls(amount=money(quote.amount), fee=money(quote.fee), tax=money(quote.tax), total=money(quote.total))


class DraftSchema(BaseModel):
    """The draft as shown to the client; the authorization secret is never included"""

    category: Optional[TransferCategory] = None
    beneficiary: Optional[BeneficiarySchema] = None
    source_account_id: str = ""
    amount: str = ""
    description: str = ""
    save_as_template: bool = False

    @classmethod
    def from_domain(cls, draft: TransferDraft) -> "DraftSchema":
        return cls(
            category=draft.category,
            beneficiary=BeneficiarySchema.from_domain(draft.beneficiary) if draft.beneficiary else None,
            source_account_id=draft.source_account_id,
            amount=draft.amount,
            description=draft.description,
            save_as_template=draft.save_as_template,
        )


class ReviewSchema(BaseModel):
    category_label: str
    estimated_arrival: str
    description: str
    quote: FeeQuoteSchema

    @classmethod
    def from_domain(cls, review: ReviewSummary) -> "ReviewSchema":
        return cls(
            category_label=review.category_label,
            estimated_arrival=review.estimated_arrival,
            description=review.description,
            quote=FeeQuoteSchema.from_domain(review.quote),
        )


class FailureSchema(BaseModel):
    error_kind: str
    message: str

    @classmethod
    def from_domain(cls, failure: SubmissionFailure) -> "FailureSchema":
        return cls(error_kind=failure.error_kind.value, message=failure.message)


class SuccessSchema(BaseModel):
    transaction_id: str
    timestamp: datetime

    @classmethod
    def from_domain(cls, success: SubmissionSuccess) -> "SuccessSchema":
        return cls(transaction_id=success.transaction_id, timestamp=success.timestamp)


class WizardView(BaseModel):
    """Full wizard state returned by every session endpoint"""

    session_id: str
    step: str
    step_number: int
    advanced: Optional[bool] = None
    missing_fields: List[str]
    draft: DraftSchema
    fee_quote: Optional[FeeQuoteSchema] = None
    review: Optional[ReviewSchema] = None
    accounts: List[AccountSchema]
    submitting: bool = False
    last_failure: Optional[FailureSchema] = None
    success: Optional[SuccessSchema] = None
    failure: Optional[FailureSchema] = None


class BeneficiaryListResponse(BaseModel):
    query: str
    beneficiaries: List[BeneficiarySchema]


class ReceiptResponse(BaseModel):
    transaction_id: str
    headline: str
    destination_name: str
    destination_identifier: str
    amount: str
    fee: str
    tax: str
    total: str
    description: str
    completed_at: datetime

    @classmethod
    def from_domain(cls, receipt: Receipt, headline: str) -> "ReceiptResponse":
        return cls(
            transaction_id=receipt.transaction_id,
            headline=headline,
            destination_name=receipt.destination_name,
            destination_identifier=receipt.destination_identifier,
            amount=money(receipt.amount),
            fee=money(receipt.fee),
            tax=money(receipt.tax),
            total=money(receipt.total),
            description=receipt.description,
            completed_at=receipt.completed_at,
        )


class TemplateItem(BaseModel):
    """Single saved transfer template"""

    template_id: str
    category: str
    beneficiary_id: str
    beneficiary_name: str
    destination_identifier: str
    source_account_id: str
    amount: str
    description: Optional[str] = None
    created_at: str


class TemplateListResponse(BaseModel):
    """Response for GET /v1/transfers/templates"""

    user_id: str
    templates: List[TemplateItem]
