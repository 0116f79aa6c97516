"""Pytest fixtures for testing"""

import asyncio
import pytest
from decimal import Decimal
from typing import Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from transfer_gateway.api.main import create_app
from transfer_gateway.api.dependencies import get_session_store
from transfer_gateway.api.sessions import SessionStore
from transfer_gateway.infrastructure.database.models import Base
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.domain.exceptions import TransferServiceError
from transfer_gateway.domain.models import (
    Account,
    Beneficiary,
    ErrorKind,
    TransferCategory,
    TransferConfirmation,
    WizardStep,
)
from transfer_gateway.domain.submission import TransferRequest
from transfer_gateway.domain.wizard import StepController


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeTransferService:
    """Records every dispatched transfer; optionally holds the call open or fails it"""

    def __init__(
        self,
        transaction_id: Optional[str] = "TXNSERVER01",
        error: Optional[TransferServiceError] = None,
    ):
        self.transaction_id = transaction_id
        self.error = error
        self.calls: List[tuple[TransferRequest, str]] = []
        self.release = asyncio.Event()
        self.release.set()

    def hold(self) -> None:
        self.release.clear()

    async def execute(self, request: TransferRequest, secret: str) -> TransferConfirmation:
        self.calls.append((request, secret))
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return TransferConfirmation(transaction_id=self.transaction_id, message="Transfer successful")


class FakeDirectory:
    """In-memory beneficiary directory"""

    def __init__(self, beneficiaries: List[Beneficiary]):
        self.beneficiaries = list(beneficiaries)
        self.created: List[Beneficiary] = []

    async def list_beneficiaries(self, user_id: str) -> List[Beneficiary]:
        return list(self.beneficiaries)

    async def create_beneficiary(self, user_id: str, beneficiary: Beneficiary) -> Beneficiary:
        created = Beneficiary(
            id=f"new_{len(self.created) + 1}",
            name=beneficiary.name,
            nickname=beneficiary.nickname,
            account_number=beneficiary.account_number,
            instant_payment_id=beneficiary.instant_payment_id,
            routing_code=beneficiary.routing_code,
            bank_label=beneficiary.bank_label,
        )
        self.created.append(created)
        self.beneficiaries.append(created)
        return created


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(max_sessions=50)


@pytest.fixture
def client(db: Session, store: SessionStore) -> TestClient:
    """Create FastAPI test client with test database and a private session store"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def sample_accounts() -> list[Account]:
    return [
        Account(id="acc_savings", account_type="savings", account_number="100200305678", balance=Decimal("2500.00")),
        Account(id="acc_current", account_type="current", account_number="100200309012", balance=Decimal("40.00")),
    ]


@pytest.fixture
def sample_beneficiaries() -> list[Beneficiary]:
    return [
        Beneficiary(id="1", name="Alice Smith", account_number="****5678", routing_code="CHASUS33",
                    bank_label="JPMorgan Chase", is_favorite=True),
        Beneficiary(id="2", name="Bob Jones", account_number="****1234", routing_code="BOFAUS3N",
                    bank_label="Bank of America"),
        Beneficiary(id="3", name="John Doe", instant_payment_id="john@ybl", is_favorite=True),
    ]


@pytest.fixture
def alice(sample_beneficiaries: list[Beneficiary]) -> Beneficiary:
    return sample_beneficiaries[0]


@pytest.fixture
def controller() -> StepController:
    return StepController()


@pytest.fixture
def review_controller(alice: Beneficiary, sample_accounts: list[Account]) -> StepController:
    """Wizard parked on REVIEW with a domestic-bank transfer of 100.00 to Alice"""
    controller = StepController()
    controller.load_accounts(sample_accounts)
    controller.select_category(TransferCategory.DOMESTIC_BANK)
    controller.select_beneficiary(alice)
    controller.update_details(amount="100.00", description="Rent share")
    assert controller.advance()
    assert controller.step == WizardStep.REVIEW
    return controller


@pytest.fixture
def authorize_controller(review_controller: StepController) -> StepController:
    assert review_controller.advance()
    assert review_controller.step == WizardStep.AUTHORIZE
    return review_controller


@pytest.fixture
def transfer_service() -> FakeTransferService:
    return FakeTransferService()


@pytest.fixture
def insufficient_funds_service() -> FakeTransferService:
    return FakeTransferService(error=TransferServiceError(ErrorKind.INSUFFICIENT_FUNDS, "Insufficient balance"))
