"""/v1/transfers/sessions - guided funds-transfer wizard endpoints"""

import time
import logging
from typing import Callable, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from transfer_gateway.api.v1.schemas import (
    AccountSchema,
    AuthorizeRequest,
    BeneficiaryListResponse,
    BeneficiarySchema,
    CategoryRequest,
    CreateSessionRequest,
    DetailsRequest,
    DraftSchema,
    EditRequest,
    FailureSchema,
    FeeQuoteSchema,
    NewBeneficiaryRequest,
    ReceiptResponse,
    ReviewSchema,
    SelectBeneficiaryRequest,
    SuccessSchema,
    WizardView,
)
from transfer_gateway.api.dependencies import (
    get_account_client,
    get_beneficiary_client,
    get_request_id,
    get_session_store,
    get_transfer_client,
)
from transfer_gateway.api.sessions import SessionStore, WizardSession
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.infrastructure.database.repositories import TemplateRepository
from transfer_gateway.infrastructure.clients.accounts import AccountClient
from transfer_gateway.infrastructure.clients.beneficiaries import BeneficiaryDirectoryClient
from transfer_gateway.infrastructure.clients.transfers import TransferClient
from transfer_gateway.domain.exceptions import (
    AccountServiceError,
    BeneficiaryDirectoryError,
    BeneficiaryValidationError,
)
from transfer_gateway.domain.models import SubmissionFailure, SubmissionSuccess, WizardStep
from transfer_gateway.domain.receipt import receipt_headline, render_receipt
from transfer_gateway.domain.review import build_review
from transfer_gateway.domain.validation import is_valid_secret
from transfer_gateway.infrastructure.observability.metrics import (
    authorization_rejected_counter,
    collaborator_failures_counter,
    duplicate_submission_counter,
    record_step,
    record_submission,
    wizard_session_counter,
)
from transfer_gateway.infrastructure.observability.logging import log_step_transition, log_submission

router = APIRouter(prefix="/transfers/sessions")


def build_view(session: WizardSession, advanced: Optional[bool] = None) -> WizardView:
    """Project a session into its API representation"""
    controller = session.controller
    state = controller.state
    quote = controller.fee_quote
    review = build_review(state.draft) if state.step in (WizardStep.REVIEW, WizardStep.AUTHORIZE) else None
    last_failure = session.executor.last_failure if state.step == WizardStep.AUTHORIZE else None

    return WizardView(
        session_id=session.id,
        step=state.step.name,
        step_number=int(state.step),
        advanced=advanced,
        missing_fields=controller.missing_fields if not state.is_terminal else [],
        draft=DraftSchema.from_domain(state.draft),
        fee_quote=FeeQuoteSchema.from_domain(quote) if quote else None,
        review=ReviewSchema.from_domain(review) if review else None,
        accounts=[AccountSchema.from_domain(acc) for acc in controller.accounts],
        submitting=session.executor.in_flight,
        last_failure=FailureSchema.from_domain(last_failure) if last_failure else None,
        success=SuccessSchema.from_domain(state.result) if isinstance(state.result, SubmissionSuccess) else None,
        failure=FailureSchema.from_domain(state.result) if isinstance(state.result, SubmissionFailure) else None,
    )


def _get_session(store: SessionStore, session_id: str) -> WizardSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Wizard session not found")
    return session


def _navigate(
    session: WizardSession,
    request_id: str,
    operation: str,
    move: Callable[[], Optional[bool]],
) -> WizardView:
    """Run a navigation operation, record the step entered and return the new view"""
    before = session.controller.step
    moved = move()
    after = session.controller.step
    if after != before:
        record_step(after.name)
        log_step_transition(request_id, session.id, operation, before.name, after.name)
    return build_view(session, advanced=moved if isinstance(moved, bool) else None)


async def _load_accounts(account_client: AccountClient, user_id: str, request_id: str):
    try:
        return await account_client.list_accounts(user_id)
    except AccountServiceError as e:
        collaborator_failures_counter.labels(service="accounts").inc()
        logging.error(f"Account API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Account service unavailable")


@router.post("", response_model=WizardView, status_code=201)
async def open_session(
    request_body: CreateSessionRequest,
    request: Request,
    store: SessionStore = Depends(get_session_store),
    account_client: AccountClient = Depends(get_account_client),
    beneficiary_client: BeneficiaryDirectoryClient = Depends(get_beneficiary_client),
    transfer_client: TransferClient = Depends(get_transfer_client),
):
    """
    Enter the wizard.

    Flow:
    1. Fetch the customer's accounts (refreshed on every entry)
    2. Open a session at SELECT_TYPE with an empty draft
    3. Default the source account to the first account
    """
    request_id = get_request_id(request)
    accounts = await _load_accounts(account_client, request_body.user_id, request_id)
    session = store.open(request_body.user_id, accounts, transfer_client, beneficiary_client)
    wizard_session_counter.labels(event="opened").inc()
    record_step(session.controller.step.name)
    logging.info("Wizard session opened", extra={"request_id": request_id, "session_id": session.id})
    return build_view(session)


@router.get("/{session_id}", response_model=WizardView)
def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    return build_view(_get_session(store, session_id))


@router.delete("/{session_id}", status_code=204)
def abandon_session(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)):
    """Navigate away. Nothing external has happened before authorization, so this is side-effect free."""
    session = _get_session(store, session_id)
    if session.executor.in_flight:
        raise HTTPException(status_code=409, detail="A submission is in progress")
    store.discard(session_id)
    wizard_session_counter.labels(event="abandoned").inc()
    logging.info("Wizard session abandoned", extra={"request_id": get_request_id(request), "session_id": session_id})
    return Response(status_code=204)


@router.post("/{session_id}/category", response_model=WizardView)
def select_category(
    session_id: str,
    request_body: CategoryRequest,
    request: Request,
    store: SessionStore = Depends(get_session_store),
):
    session = _get_session(store, session_id)
    return _navigate(
        session,
        get_request_id(request),
        "select_category",
        lambda: session.controller.select_category(request_body.category),
    )


@router.get("/{session_id}/beneficiaries", response_model=BeneficiaryListResponse)
async def search_beneficiaries(
    session_id: str,
    request: Request,
    query: str = Query("", description="Case-insensitive name filter"),
    store: SessionStore = Depends(get_session_store),
):
    session = _get_session(store, session_id)
    try:
        matches = await session.resolver.search(query, session.controller.draft.category)
    except BeneficiaryDirectoryError as e:
        collaborator_failures_counter.labels(service="beneficiaries").inc()
        logging.error(f"Beneficiary API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Beneficiary service unavailable")
    return BeneficiaryListResponse(query=query, beneficiaries=[BeneficiarySchema.from_domain(b) for b in matches])


@router.post("/{session_id}/beneficiary", response_model=WizardView)
async def select_beneficiary(
    session_id: str,
    request_body: SelectBeneficiaryRequest,
    request: Request,
    store: SessionStore = Depends(get_session_store),
):
    session = _get_session(store, session_id)
    request_id = get_request_id(request)
    try:
        beneficiary = await session.resolver.find(request_body.beneficiary_id, session.controller.draft.category)
    except BeneficiaryDirectoryError as e:
        collaborator_failures_counter.labels(service="beneficiaries").inc()
        logging.error(f"Beneficiary API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Beneficiary service unavailable")

    if beneficiary is None:
        raise HTTPException(status_code=404, detail="Beneficiary not found for this transfer type")
    return _navigate(session, request_id, "select_beneficiary", lambda: session.controller.select_beneficiary(beneficiary))


@router.post("/{session_id}/beneficiary/new", response_model=WizardView)
async def create_beneficiary(
    session_id: str,
    request_body: NewBeneficiaryRequest,
    request: Request,
    store: SessionStore = Depends(get_session_store),
):
    """Create a beneficiary inline; it is selected and the wizard advances in the same call"""
    session = _get_session(store, session_id)
    request_id = get_request_id(request)
    session.controller.require_step(WizardStep.SELECT_BENEFICIARY)
    try:
        beneficiary = await session.resolver.create_inline(
            session.controller.draft.category,
            **request_body.model_dump(),
        )
    except BeneficiaryValidationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "fields": e.fields})
    except BeneficiaryDirectoryError as e:
        collaborator_failures_counter.labels(service="beneficiaries").inc()
        logging.error(f"Beneficiary API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Beneficiary service unavailable")

    return _navigate(session, request_id, "create_beneficiary", lambda: session.controller.select_beneficiary(beneficiary))


@router.patch("/{session_id}/details", response_model=WizardView)
def update_details(
    session_id: str,
    request_body: DetailsRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Edit amount, source account, description or template flag; the fee quote is recomputed"""
    session = _get_session(store, session_id)
    changes = {name: value for name, value in request_body.model_dump(exclude_unset=True).items() if value is not None}
    session.controller.update_details(**changes)
    return build_view(session)


@router.post("/{session_id}/advance", response_model=WizardView)
def advance(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)):
    """Move forward; when blocked, `advanced` is false and `missing_fields` says why"""
    session = _get_session(store, session_id)
    return _navigate(session, get_request_id(request), "advance", session.controller.advance)


@router.post("/{session_id}/retreat", response_model=WizardView)
def retreat(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)):
    session = _get_session(store, session_id)
    return _navigate(session, get_request_id(request), "retreat", session.controller.retreat)


@router.post("/{session_id}/edit", response_model=WizardView)
def edit(
    session_id: str,
    request_body: EditRequest,
    request: Request,
    store: SessionStore = Depends(get_session_store),
):
    session = _get_session(store, session_id)
    return _navigate(
        session,
        get_request_id(request),
        "edit_jump_to",
        lambda: session.controller.edit_jump_to(request_body.step),
    )


@router.post("/{session_id}/authorize", response_model=WizardView)
async def authorize(
    session_id: str,
    request_body: AuthorizeRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """
    Authorize with the PIN and submit the transfer.

    Flow:
    1. Refuse if a submission for this session is already in flight (409)
    2. Refuse a malformed PIN locally (422), nothing is sent
    3. Submit once; success moves to TERMINAL, failure stays on AUTHORIZE
    4. Save a template if requested and the transfer went through
    """
    start_time = time.time()
    request_id = get_request_id(request)
    session = _get_session(store, session_id)

    if session.executor.in_flight:
        duplicate_submission_counter.inc()
        raise HTTPException(status_code=409, detail="A submission is already in progress")
    if not is_valid_secret(request_body.secret):
        authorization_rejected_counter.inc()
        raise HTTPException(
            status_code=422,
            detail={"message": "Please enter a 4-digit PIN", "fields": ["authorization_secret"]},
        )

    result = await session.executor.submit(request_body.secret)
    if result is None:
        duplicate_submission_counter.inc()
        raise HTTPException(status_code=409, detail="A submission is already in progress")

    draft = session.controller.draft
    succeeded = isinstance(result, SubmissionSuccess)
    error_kind = None if succeeded else result.error_kind.value
    record_submission(succeeded, error_kind)
    if succeeded:
        record_step(session.controller.step.name)
        if draft.save_as_template:
            _save_template(db, session, result, request_id)

    duration_ms = (time.time() - start_time) * 1000
    log_submission(
        request_id,
        session.id,
        "success" if succeeded else "failure",
        draft.category.value if draft.category else None,
        error_kind,
        duration_ms,
    )
    return build_view(session)


def _save_template(db: Session, session: WizardSession, result: SubmissionSuccess, request_id: str) -> None:
    """The money has already moved: a template failure is logged, never reported as a failed transfer"""
    try:
        TemplateRepository(db).create_template(session.user_id, session.controller.draft, result)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Could not save transfer template: {e}", extra={"request_id": request_id})


@router.post("/{session_id}/abandon", response_model=WizardView)
def conclude_with_failure(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)):
    """Stop retrying after a failed submission; the wizard ends in TERMINAL(Failure)"""
    session = _get_session(store, session_id)
    return _navigate(session, get_request_id(request), "abandon", session.executor.abandon)


@router.post("/{session_id}/reset", response_model=WizardView)
async def reset(
    session_id: str,
    request: Request,
    store: SessionStore = Depends(get_session_store),
    account_client: AccountClient = Depends(get_account_client),
):
    """Make another transfer: empty draft, back to SELECT_TYPE, accounts refreshed"""
    session = _get_session(store, session_id)
    request_id = get_request_id(request)
    if session.executor.in_flight:
        raise HTTPException(status_code=409, detail="A submission is in progress")
    accounts = await _load_accounts(account_client, session.user_id, request_id)
    session.restart(accounts)
    wizard_session_counter.labels(event="reset").inc()
    record_step(session.controller.step.name)
    return build_view(session)


@router.get("/{session_id}/receipt", response_model=ReceiptResponse)
def get_receipt(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = _get_session(store, session_id)
    if not session.controller.state.succeeded:
        raise HTTPException(status_code=409, detail="No completed transfer in this session")
    receipt = render_receipt(session.controller.result, session.controller.draft)
    return ReceiptResponse.from_domain(receipt, receipt_headline(receipt))
