"""Account listing HTTP client for the source-account selector"""

import httpx
from decimal import Decimal
from typing import List
from transfer_gateway.domain.models import Account
from transfer_gateway.domain.exceptions import AccountServiceError
from transfer_gateway.config import settings


class AccountClient:
    """Client for the external account listing API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.account_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def list_accounts(self, user_id: str) -> List[Account]:
        """
        Fetch the caller's accounts. Called every time a wizard is entered.

        Raises:
            AccountServiceError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/accounts",
                    params={"user_id": user_id},
                )
                response.raise_for_status()
                data = response.json()

                return [
                    Account(
                        id=str(acc.get("id") or acc["_id"]),
                        account_type=acc["type"],
                        account_number=acc["accountNumber"],
                        balance=Decimal(str(acc["balance"])),
                        currency=acc.get("currency", "USD"),
                        status=acc.get("status", "active"),
                    )
                    for acc in data.get("data", [])
                ]

            except httpx.TimeoutException as e:
                raise AccountServiceError(f"Account API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AccountServiceError(f"Account API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise AccountServiceError(f"Account API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, ArithmeticError) as e:
                raise AccountServiceError(f"Invalid account data: {e}") from e
