"""In-process registry of open wizard sessions"""

import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from transfer_gateway.config import settings
from transfer_gateway.domain.beneficiaries import BeneficiaryDirectory, BeneficiaryResolver
from transfer_gateway.domain.models import Account
from transfer_gateway.domain.submission import SubmissionExecutor, TransferService
from transfer_gateway.domain.wizard import StepController


@dataclass
class WizardSession:
    """One customer's pass through the transfer wizard"""

    id: str
    user_id: str
    controller: StepController
    executor: SubmissionExecutor
    resolver: BeneficiaryResolver
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def restart(self, accounts: Sequence[Account]) -> None:
        """'Make another transfer': fresh draft and refreshed accounts"""
        self.controller.reset()
        self.controller.load_accounts(accounts)


class SessionStore:
    """
    Holds wizard sessions in memory for a single gateway process.

    Oldest idle sessions are evicted once max_sessions is reached; a session
    with a submission in flight is never evicted.
    """

    def __init__(self, max_sessions: int | None = None):
        self.max_sessions = max_sessions or settings.max_open_sessions
        self._sessions: "OrderedDict[str, WizardSession]" = OrderedDict()

    def open(
        self,
        user_id: str,
        accounts: Sequence[Account],
        transfer_service: TransferService,
        directory: BeneficiaryDirectory,
    ) -> WizardSession:
        controller = StepController()
        controller.load_accounts(accounts)
        session = WizardSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            controller=controller,
            executor=SubmissionExecutor(controller, transfer_service),
            resolver=BeneficiaryResolver(directory, user_id),
        )
        self._evict()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[WizardSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def discard(self, session_id: str) -> Optional[WizardSession]:
        return self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict(self) -> None:
        for session_id in list(self._sessions):
            if len(self._sessions) < self.max_sessions:
                return
            if not self._sessions[session_id].executor.in_flight:
                del self._sessions[session_id]


session_store = SessionStore()
