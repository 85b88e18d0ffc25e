from typing import Annotated

from fastapi import APIRouter, Depends

from carlot.core.credentials import CredentialService
from carlot.models.requests import Credentials, TokenResponse
from carlot.shared import Logger
from carlot.shared.http import get_credential_service, server_error_handler

logger = Logger(__name__).get_logger()

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/signup", response_model=TokenResponse)
def signup(
    data: Credentials,
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
):
    """
    Register a new account and return a session token.
    Rejects an email that is already registered (exact match) with 400.
    """
    with server_error_handler():
        token = credentials.signup(data.email, data.password)
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
def login(
    data: Credentials,
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
):
    with server_error_handler():
        token = credentials.login(data.email, data.password)
    return TokenResponse(token=token)
