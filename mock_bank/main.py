from decimal import Decimal
from typing import Optional
import os
import uuid

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Mock Bank Server", version="1.0.0")

# Every demo customer authorizes with this PIN
DEMO_PIN = os.getenv("MOCK_BANK_PIN", "1234")

ACCOUNTS = {
    "acc_savings": {"id": "acc_savings", "userId": "user_demo", "type": "savings", "accountNumber": "100200305678",
                    "balance": Decimal("2500.00"), "currency": "USD", "status": "active"},
    "acc_current": {"id": "acc_current", "userId": "user_demo", "type": "current", "accountNumber": "100200309012",
                    "balance": Decimal("40.00"), "currency": "USD", "status": "active"},
    "acc_frozen": {"id": "acc_frozen", "userId": "user_demo", "type": "savings", "accountNumber": "100200304321",
                   "balance": Decimal("900.00"), "currency": "USD", "status": "frozen"},
}

BENEFICIARIES = {
    "1": {"id": "1", "userId": "user_demo", "name": "Alice Smith", "accountNumber": "****5678",
          "routingCode": "CHASUS33", "bankName": "JPMorgan Chase", "isFavorite": True},
    "2": {"id": "2", "userId": "user_demo", "name": "Bob Jones", "accountNumber": "****1234",
          "routingCode": "BOFAUS3N", "bankName": "Bank of America", "isFavorite": True},
    "3": {"id": "3", "userId": "user_demo", "name": "John Doe", "instantPaymentId": "john@ybl", "isFavorite": True},
}


class NewBeneficiary(BaseModel):
    userId: str
    name: str
    nickname: Optional[str] = None
    accountNumber: Optional[str] = None
    instantPaymentId: Optional[str] = None
    routingCode: Optional[str] = None
    bankName: Optional[str] = None


class TransferBody(BaseModel):
    receiverAccountNumber: str
    amount: Decimal
    description: Optional[str] = None
    fromAccountId: str


def fail(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "code": code, "message": message})


@app.get("/health")
def health(): return {"status": "ok"}


@app.get("/accounts")
def get_accounts(user_id: str):
    data = [{**acc, "balance": str(acc["balance"])} for acc in ACCOUNTS.values() if acc["userId"] == user_id]
    return {"status": "success", "data": data}


@app.get("/beneficiaries")
def get_beneficiaries(user_id: str):
    return {"status": "success", "data": [b for b in BENEFICIARIES.values() if b["userId"] == user_id]}


@app.post("/beneficiaries", status_code=201)
def add_beneficiary(body: NewBeneficiary):
    record = {**body.model_dump(), "id": uuid.uuid4().hex[:12], "isFavorite": False}
    BENEFICIARIES[record["id"]] = record
    return {"status": "success", "data": record}


@app.post("/transactions/transfer")
def transfer(body: TransferBody, x_transaction_pin: str = Header("")):
    if x_transaction_pin != DEMO_PIN:
        return fail(401, "invalid_pin", "Incorrect transaction PIN")
    account = ACCOUNTS.get(body.fromAccountId)
    if account is None:
        return fail(404, "not_found", "Sender account not found")
    if account["status"] == "frozen":
        return fail(400, "account_frozen", "This account is frozen")
    if body.amount <= 0:
        return fail(400, "invalid_amount", "Amount must be positive")
    if account["balance"] < body.amount:
        return fail(400, "insufficient_funds", "Insufficient balance")

    account["balance"] -= body.amount
    return {"status": "success", "message": "Transfer successful",
            "data": {"transactionId": f"TXN{uuid.uuid4().hex[:9].upper()}"}}
