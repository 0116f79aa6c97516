"""Domain-specific exceptions"""

from typing import Iterable

from transfer_gateway.domain.models import ErrorKind


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class WizardInvariantError(AssertionError):
    """Caller broke the step controller's contract (e.g. advancing from a terminal step)"""

    pass


class AccountServiceError(DomainException):
    """Account listing service returned an error or is unavailable"""

    pass


class BeneficiaryDirectoryError(DomainException):
    """Beneficiary directory returned an error or is unavailable"""

    pass


class BeneficiaryValidationError(DomainException):
    """Inline beneficiary is missing fields required by the transfer category"""

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"Missing or invalid beneficiary fields: {', '.join(self.fields)}")


class TransferServiceError(DomainException):
    """Transfer execution was rejected by the bank or could not be delivered"""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)
