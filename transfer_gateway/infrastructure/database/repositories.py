"""Data access layer for transfer templates"""

from typing import List
from sqlalchemy.orm import Session
from transfer_gateway.infrastructure.database.models import TransferTemplate
from transfer_gateway.domain.fees import parse_amount
from transfer_gateway.domain.models import SubmissionSuccess, TransferDraft


class TemplateRepository:
    """Repository for transfer templates"""

    def __init__(self, db: Session):
        self.db = db

    def create_template(self, user_id: str, draft: TransferDraft, result: SubmissionSuccess) -> TransferTemplate:
        """Persist the submitted draft as a template (never the secret)"""
        db_template = TransferTemplate(
            user_id=user_id,
            category=draft.category.value,
            beneficiary_id=draft.beneficiary.id,
            beneficiary_name=draft.beneficiary.name,
            destination_identifier=draft.beneficiary.destination_identifier,
            source_account_id=draft.source_account_id,
            amount=parse_amount(draft.amount),
            description=draft.description or None,
            last_transaction_id=result.transaction_id,
        )
        self.db.add(db_template)
        self.db.flush()  # Get ID without committing
        return db_template

    def get_templates_by_user(self, user_id: str, limit: int = 20) -> List[TransferTemplate]:
        """Fetch the user's active templates, newest first"""
        return (
            self.db.query(TransferTemplate)
            .filter(TransferTemplate.user_id == user_id, TransferTemplate.is_active.is_(True))
            .order_by(TransferTemplate.created_at.desc())
            .limit(limit)
            .all()
        )
