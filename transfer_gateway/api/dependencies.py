"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from transfer_gateway.api.sessions import SessionStore, session_store
from transfer_gateway.infrastructure.clients.accounts import AccountClient
from transfer_gateway.infrastructure.clients.beneficiaries import BeneficiaryDirectoryClient
from transfer_gateway.infrastructure.clients.transfers import TransferClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_account_client() -> AccountClient:
    """Provide account listing client instance"""
    return AccountClient()


def get_beneficiary_client() -> BeneficiaryDirectoryClient:
    """Provide beneficiary directory client instance"""
    return BeneficiaryDirectoryClient()


def get_transfer_client() -> TransferClient:
    """Provide transfer execution client instance"""
    return TransferClient()


def get_session_store() -> SessionStore:
    """Provide the process-wide wizard session registry"""
    return session_store
