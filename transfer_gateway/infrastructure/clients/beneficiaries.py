"""Beneficiary directory HTTP client"""

import httpx
from typing import Any, Dict, List
from transfer_gateway.domain.models import Beneficiary
from transfer_gateway.domain.exceptions import BeneficiaryDirectoryError
from transfer_gateway.config import settings


def _parse_beneficiary(raw: Dict[str, Any]) -> Beneficiary:
    return Beneficiary(
        id=str(raw.get("id") or raw["_id"]),
        name=raw["name"],
        nickname=raw.get("nickname"),
        account_number=raw.get("accountNumber"),
        instant_payment_id=raw.get("instantPaymentId") or raw.get("upiId"),
        routing_code=raw.get("routingCode") or raw.get("ifscCode"),
        bank_label=raw.get("bankName"),
        is_favorite=bool(raw.get("isFavorite", False)),
    )


class BeneficiaryDirectoryClient:
    """Client for the external beneficiary directory (search + create)"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.beneficiary_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def list_beneficiaries(self, user_id: str) -> List[Beneficiary]:
        data = await self._request("GET", "/beneficiaries", params={"user_id": user_id})
        try:
            return [_parse_beneficiary(raw) for raw in data.get("data", [])]
        except (KeyError, TypeError) as e:
            raise BeneficiaryDirectoryError(f"Invalid beneficiary data: {e}") from e

    async def create_beneficiary(self, user_id: str, beneficiary: Beneficiary) -> Beneficiary:
        """Register an inline beneficiary; the directory assigns its id"""
        payload = {
            "userId": user_id,
            "name": beneficiary.name,
            "nickname": beneficiary.nickname,
            "accountNumber": beneficiary.account_number,
            "instantPaymentId": beneficiary.instant_payment_id,
            "routingCode": beneficiary.routing_code,
            "bankName": beneficiary.bank_label,
        }
        data = await self._request("POST", "/beneficiaries", json=payload)
        try:
            return _parse_beneficiary(data["data"])
        except (KeyError, TypeError) as e:
            raise BeneficiaryDirectoryError(f"Invalid beneficiary data: {e}") from e

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Raises:
            BeneficiaryDirectoryError: On timeout, HTTP errors, or non-JSON response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(method, f"{self.base_url}{path}", **kwargs)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                raise BeneficiaryDirectoryError(f"Beneficiary API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise BeneficiaryDirectoryError(f"Beneficiary API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise BeneficiaryDirectoryError(f"Beneficiary API unreachable: {e}") from e
            except ValueError as e:
                raise BeneficiaryDirectoryError(f"Beneficiary API returned invalid JSON: {e}") from e
