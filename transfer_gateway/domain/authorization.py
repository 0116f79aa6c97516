"""Authorization gate - PIN format check in front of submission"""

import logging

from transfer_gateway.domain.models import WizardStep
from transfer_gateway.domain.validation import can_advance
from transfer_gateway.domain.wizard import StepController

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """
    Admits a submission only for an exactly-4-digit secret.

    The secret lives on the draft for the duration of one attempt and is
    cleared by release(), whatever the outcome.
    """

    def __init__(self, controller: StepController):
        self.controller = controller

    def admit(self, secret: str) -> bool:
        self.controller.require_step(WizardStep.AUTHORIZE)
        draft = self.controller.apply_patch(authorization_secret=secret or "")
        if can_advance(WizardStep.AUTHORIZE, draft):
            return True

        self.controller.clear_secret()
        logger.info("Authorization rejected: secret has the wrong format")
        return False

    def release(self) -> None:
        self.controller.clear_secret()
