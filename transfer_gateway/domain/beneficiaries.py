"""Beneficiary selection and inline creation for wizard step 2"""

import re
from typing import List, Optional, Protocol, Sequence

from transfer_gateway.domain.exceptions import BeneficiaryDirectoryError, BeneficiaryValidationError
from transfer_gateway.domain.models import Beneficiary, TransferCategory

INSTANT_ID_PATTERN = re.compile(r"^[\w.\-]{2,}@[A-Za-z][\w\-]*$")

# Categories whose beneficiaries are reached through a bank account number
ACCOUNT_CATEGORIES = {
    TransferCategory.INTERNAL,
    TransferCategory.DOMESTIC_BANK,
    TransferCategory.INTERNATIONAL,
}
# ...and which additionally need the receiving bank's routing code (IFSC/ABA, SWIFT)
ROUTING_CATEGORIES = {TransferCategory.DOMESTIC_BANK, TransferCategory.INTERNATIONAL}


class BeneficiaryDirectory(Protocol):
    async def list_beneficiaries(self, user_id: str) -> List[Beneficiary]: ...

    async def create_beneficiary(self, user_id: str, beneficiary: Beneficiary) -> Beneficiary: ...


def is_compatible(beneficiary: Beneficiary, category: Optional[TransferCategory]) -> bool:
    """Whether the beneficiary carries the identifier this category routes on"""
    if category is None:
        return True
    if category == TransferCategory.INSTANT_ID:
        return bool(beneficiary.instant_payment_id)
    if category in ACCOUNT_CATEGORIES:
        return bool(beneficiary.account_number)
    return bool(beneficiary.destination_identifier)


def filter_beneficiaries(
    beneficiaries: Sequence[Beneficiary],
    query: str = "",
    category: Optional[TransferCategory] = None,
) -> List[Beneficiary]:
    """Case-insensitive substring match on name, favorites first"""
    needle = query.strip().lower()
    matches = [b for b in beneficiaries if needle in b.name.lower() and is_compatible(b, category)]
    return sorted(matches, key=lambda b: not b.is_favorite)


def build_inline_beneficiary(
    category: TransferCategory,
    name: str,
    account_number: Optional[str] = None,
    instant_payment_id: Optional[str] = None,
    routing_code: Optional[str] = None,
    nickname: Optional[str] = None,
    bank_label: Optional[str] = None,
) -> Beneficiary:
    """
    Validate an inline beneficiary against the routing rules of its category.

    Raises:
        BeneficiaryValidationError: listing every missing or malformed field
    """
    name = (name or "").strip()
    account_number = (account_number or "").strip() or None
    instant_payment_id = (instant_payment_id or "").strip() or None
    routing_code = (routing_code or "").strip() or None

    invalid = []
    if not name:
        invalid.append("name")

    if category in ACCOUNT_CATEGORIES:
        if not account_number:
            invalid.append("account_number")
        instant_payment_id = None
    elif category == TransferCategory.INSTANT_ID:
        if not instant_payment_id or not INSTANT_ID_PATTERN.match(instant_payment_id):
            invalid.append("instant_payment_id")
        account_number = None
    elif not (account_number or instant_payment_id):
        # Scheduled transfers accept either identifier
        invalid.append("account_number")

    if category in ROUTING_CATEGORIES and not routing_code:
        invalid.append("routing_code")

    if invalid:
        raise BeneficiaryValidationError(invalid)

    return Beneficiary(
        id="",
        name=name,
        nickname=(nickname or "").strip() or None,
        account_number=account_number,
        instant_payment_id=instant_payment_id,
        routing_code=routing_code if category in ROUTING_CATEGORIES else None,
        bank_label=(bank_label or "").strip() or None,
    )


class BeneficiaryResolver:
    """Picks a payee from the directory or creates one inline"""

    def __init__(self, directory: BeneficiaryDirectory, user_id: str):
        self.directory = directory
        self.user_id = user_id

    async def search(self, query: str = "", category: Optional[TransferCategory] = None) -> List[Beneficiary]:
        beneficiaries = await self.directory.list_beneficiaries(self.user_id)
        return filter_beneficiaries(beneficiaries, query, category)

    async def find(self, beneficiary_id: str, category: Optional[TransferCategory] = None) -> Optional[Beneficiary]:
        """Directory entry by id, provided it can receive this category of transfer"""
        for beneficiary in await self.directory.list_beneficiaries(self.user_id):
            if beneficiary.id == beneficiary_id and is_compatible(beneficiary, category):
                return beneficiary
        return None

    async def create_inline(self, category: TransferCategory, **fields) -> Beneficiary:
        """Validate locally, then register with the directory; the result is ready to select"""
        candidate = build_inline_beneficiary(category, **fields)
        created = await self.directory.create_beneficiary(self.user_id, candidate)
        if not created.id:
            raise BeneficiaryDirectoryError("Directory did not assign an id to the new beneficiary")
        return created
