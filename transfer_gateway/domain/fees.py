"""Fee and tax calculation for wizard transfers.

Flat fee per category, plus an 18% levy on the fee only:
    - international:  15.00
    - domestic-bank:   2.50
    - everything else: 0.00

All arithmetic stays in full-precision Decimal. Rounding to cents happens
only for display (format_money) and when the submission payload is built
(to_payload_amount), so the displayed total can never drift from the charge.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Optional, Union

from transfer_gateway.domain.models import FeeQuote, TransferCategory

CENTS = Decimal("0.01")
TAX_RATE = Decimal("0.18")
# Amounts must fit the template column, Numeric(18, 2)
MAX_INTEGER_DIGITS = 16

FEE_TABLE: Dict[TransferCategory, Decimal] = {
    TransferCategory.INTERNATIONAL: Decimal("15.00"),
    TransferCategory.DOMESTIC_BANK: Decimal("2.50"),
}


def parse_amount(value: Union[str, int, Decimal, None]) -> Optional[Decimal]:
    """Parse user input into a finite positive Decimal below 10**16, or None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    if amount.adjusted() >= MAX_INTEGER_DIGITS:
        return None
    return amount


def fee_for(category: TransferCategory) -> Decimal:
    return FEE_TABLE.get(category, Decimal("0.00"))


def calculate_fee_quote(
    category: Optional[TransferCategory],
    amount: Union[str, int, Decimal, None],
) -> Optional[FeeQuote]:
    """
    Project (category, amount) into a fee quote.

    Returns None ("no quote") when the category is unset or the amount is not
    a finite number greater than zero.
    """
    if category is None:
        return None
    parsed = parse_amount(amount)
    if parsed is None:
        return None

    fee = fee_for(category)
    tax = fee * TAX_RATE
    return FeeQuote(amount=parsed, fee=fee, tax=tax, total=parsed + fee + tax)


def quantize_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_payload_amount(amount: Decimal) -> str:
    """Cent-precision string for the submission payload"""
    return str(quantize_cents(amount))


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Two-decimal display string, e.g. $1,234.50"""
    return f"{symbol}{quantize_cents(amount):,}"
