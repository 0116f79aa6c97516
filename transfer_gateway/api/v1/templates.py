"""GET /v1/transfers/templates - Saved transfer templates"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from transfer_gateway.api.v1.schemas import TemplateListResponse, TemplateItem, money
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.infrastructure.database.repositories import TemplateRepository

router = APIRouter()


@router.get("/transfers/templates", response_model=TemplateListResponse)
def list_templates(
    user_id: str = Query(..., description="Customer identifier"),
    db: Session = Depends(get_db),
):
    """
    Retrieve templates saved from successful wizard runs.

    Returns:
        Newest first, at most 20
    """
    template_repo = TemplateRepository(db)
    templates = template_repo.get_templates_by_user(user_id, limit=20)

    items = [
        TemplateItem(
            template_id=str(t.id),
            category=t.category,
            beneficiary_id=t.beneficiary_id,
            beneficiary_name=t.beneficiary_name,
            destination_identifier=t.destination_identifier,
            source_account_id=t.source_account_id,
            amount=money(t.amount),
            description=t.description,
            created_at=t.created_at.isoformat(),
        )
        for t in templates
    ]

    return TemplateListResponse(user_id=user_id, templates=items)
