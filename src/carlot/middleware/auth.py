from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from carlot.core.credentials import CredentialService
from carlot.core.errors import Unauthenticated
from carlot.core.security import Identity
from carlot.shared import Logger
from carlot.shared.http import get_credential_service

logger = Logger(__name__).get_logger()

# auto_error=False so a missing header reaches us and maps to Unauthenticated
bearer_scheme = HTTPBearer(auto_error=False)


def authenticate(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
) -> Identity:
    """
    Authentication gate for listing routes.
    Missing bearer token -> 401, token that fails verification -> 400.
    """
    if credentials is None or not credentials.credentials:
        logger.debug("Rejected request without bearer token")
        raise Unauthenticated("Access denied. No token provided.")

    identity = credential_service.identify(credentials.credentials)
    logger.debug("Authenticated user %s", identity.user_id)
    return identity


CurrentIdentity = Annotated[Identity, Depends(authenticate)]
