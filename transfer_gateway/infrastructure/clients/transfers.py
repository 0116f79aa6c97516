"""Transfer execution HTTP client - the single point of external mutation"""

import httpx
from typing import Any, Dict
from transfer_gateway.domain.models import ErrorKind, TransferConfirmation
from transfer_gateway.domain.exceptions import TransferServiceError
from transfer_gateway.domain.submission import TransferRequest
from transfer_gateway.config import settings
from transfer_gateway.infrastructure.observability.metrics import transfer_latency_histogram

GENERIC_FAILURE_MESSAGE = "Transfer failed. Check your PIN or balance."
TIMEOUT_MESSAGE = "The bank did not respond in time. Please try again."
UNREACHABLE_MESSAGE = "We could not reach the bank. Please try again."

ERROR_CODES = {
    "invalid_pin": ErrorKind.INVALID_SECRET,
    "insufficient_funds": ErrorKind.INSUFFICIENT_FUNDS,
    "account_frozen": ErrorKind.ACCOUNT_FROZEN,
    "limit_exceeded": ErrorKind.LIMIT_EXCEEDED,
}

# Fallback for services that only send a human-readable message
MESSAGE_HINTS = (
    ("insufficient", ErrorKind.INSUFFICIENT_FUNDS),
    ("frozen", ErrorKind.ACCOUNT_FROZEN),
    ("limit", ErrorKind.LIMIT_EXCEEDED),
    ("pin", ErrorKind.INVALID_SECRET),
)


def classify_rejection(status_code: int, body: Dict[str, Any]) -> TransferServiceError:
    """Map an error response to a TransferServiceError with a user-facing message"""
    server_message = str(body.get("message") or "")
    message = server_message or GENERIC_FAILURE_MESSAGE
    code = str(body.get("code") or "").lower()

    if code in ERROR_CODES:
        return TransferServiceError(ERROR_CODES[code], message)
    if status_code in (401, 403):
        return TransferServiceError(ErrorKind.INVALID_SECRET, message)
    if status_code >= 500:
        return TransferServiceError(ErrorKind.TRANSPORT, message)

    lowered = server_message.lower()
    for hint, kind in MESSAGE_HINTS:
        if hint in lowered:
            return TransferServiceError(kind, message)
    return TransferServiceError(ErrorKind.REJECTED, message)


class TransferClient:
    """Client for the external transfer execution API. Never retries."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.transfer_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def execute(self, request: TransferRequest, secret: str) -> TransferConfirmation:
        """
        Execute one transfer.

        The secret travels in a header so it never lands in a logged body.

        Raises:
            TransferServiceError: business rejection or transport failure
        """
        payload = {
            "receiverAccountNumber": request.destination_identifier,
            "amount": request.amount,
            "description": request.description,
            "fromAccountId": request.source_account_id,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with transfer_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/transactions/transfer",
                        json=payload,
                        headers={"X-Transaction-Pin": secret},
                    )
            except httpx.TimeoutException as e:
                raise TransferServiceError(ErrorKind.TRANSPORT, TIMEOUT_MESSAGE) from e
            except httpx.RequestError as e:
                raise TransferServiceError(ErrorKind.TRANSPORT, UNREACHABLE_MESSAGE) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            raise classify_rejection(response.status_code, body)

        data = body.get("data") or {}
        transaction_id = data.get("transactionId") if isinstance(data, dict) else None
        return TransferConfirmation(
            transaction_id=str(transaction_id) if transaction_id else None,
            message=str(body.get("message", "")),
        )
