# certiai/dependencies.py
from fastapi import Request

from certiai.services.auth_service import AccountService
from certiai.services.verification_service import VerificationPipeline


def get_pipeline(request: Request) -> VerificationPipeline:
    return request.app.state.pipeline


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts
