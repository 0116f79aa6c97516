"""SQLAlchemy ORM models for saved transfer templates"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TransferTemplate(Base):
    """Reusable transfer saved from a successful wizard run"""

    __tablename__ = "transfer_template"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category = Column(String(32), nullable=False)
    beneficiary_id = Column(Text, nullable=False)
    beneficiary_name = Column(Text, nullable=False)
    destination_identifier = Column(Text, nullable=False)
    source_account_id = Column(Text, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    description = Column(Text, nullable=True)
    last_transaction_id = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
