"""Domain models - pure Python dataclasses representing the transfer wizard"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional, Union


class TransferCategory(str, Enum):
    """How the money travels; drives fees and which beneficiary fields are required"""

    INTERNAL = "internal"
    DOMESTIC_BANK = "domestic-bank"
    INSTANT_ID = "instant-id-based"
    INTERNATIONAL = "international"
    SCHEDULED = "scheduled"


class WizardStep(IntEnum):
    """Wizard states, numbered 1-6 for addressing"""

    SELECT_TYPE = 1
    SELECT_BENEFICIARY = 2
    ENTER_DETAILS = 3
    REVIEW = 4
    AUTHORIZE = 5
    TERMINAL = 6


class ErrorKind(str, Enum):
    """Why a submission failed"""

    INVALID_SECRET = "invalid_secret"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_FROZEN = "account_frozen"
    LIMIT_EXCEEDED = "limit_exceeded"
    REJECTED = "rejected"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class Beneficiary:
    """Payee record from the directory or created inline during step 2"""

    id: str
    name: str
    nickname: Optional[str] = None
    account_number: Optional[str] = None
    instant_payment_id: Optional[str] = None
    routing_code: Optional[str] = None
    bank_label: Optional[str] = None
    is_favorite: bool = False

    @property
    def destination_identifier(self) -> str:
        return self.account_number or self.instant_payment_id or ""


@dataclass(frozen=True)
class Account:
    """Customer account offered as a transfer source"""

    id: str
    account_type: str
    account_number: str
    balance: Decimal
    currency: str = "USD"
    status: str = "active"

    @property
    def suffix(self) -> str:
        return self.account_number[-4:]


@dataclass(frozen=True)
class TransferDraft:
    """
    The in-progress transfer request.

    Never mutated in place: every change goes through apply_patch, which
    returns a new draft. The authorization secret is kept out of repr so it
    cannot leak into logs or tracebacks.
    """

    category: Optional[TransferCategory] = None
    beneficiary: Optional[Beneficiary] = None
    source_account_id: str = ""
    amount: str = ""
    description: str = ""
    save_as_template: bool = False
    authorization_secret: str = field(default="", repr=False)

    def apply_patch(self, **changes) -> "TransferDraft":
        """Merge a partial update into a new draft (unknown fields raise TypeError)"""
        if "amount" in changes and changes["amount"] is not None:
            changes["amount"] = str(changes["amount"]).strip()
        return replace(self, **changes)


@dataclass(frozen=True)
class FeeQuote:
    """Fee/tax projection of a draft, full precision"""

    amount: Decimal
    fee: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class SubmissionSuccess:
    """Transfer accepted by the execution service"""

    transaction_id: str
    timestamp: datetime
    server_issued: bool = True


@dataclass(frozen=True)
class SubmissionFailure:
    """Transfer rejected or undeliverable; the user may retry from Authorize"""

    error_kind: ErrorKind
    message: str


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]


@dataclass(frozen=True)
class TransferConfirmation:
    """What the execution service returned for an accepted transfer"""

    transaction_id: Optional[str]
    message: str = ""


@dataclass(frozen=True)
class WizardState:
    """One node of the wizard state machine; replaced wholesale on every transition"""

    step: WizardStep = WizardStep.SELECT_TYPE
    draft: TransferDraft = field(default_factory=TransferDraft)
    result: Optional[SubmissionResult] = None

    @property
    def is_terminal(self) -> bool:
        return self.step == WizardStep.TERMINAL

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and isinstance(self.result, SubmissionSuccess)


@dataclass(frozen=True)
class ReviewSummary:
    """Everything the Review step shows before authorization"""

    category: TransferCategory
    category_label: str
    estimated_arrival: str
    beneficiary: Beneficiary
    source_account_id: str
    description: str
    quote: FeeQuote


@dataclass(frozen=True)
class Receipt:
    """Terminal confirmation of a successful transfer"""

    transaction_id: str
    destination_name: str
    destination_identifier: str
    amount: Decimal
    fee: Decimal
    tax: Decimal
    total: Decimal
    description: str
    completed_at: datetime
