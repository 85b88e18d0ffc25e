import logging
from contextlib import contextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from carlot.core.credentials import CredentialService
from carlot.core.errors import CarlotError
from carlot.core.listings import ListingService
from carlot.shared import Logger

__all__ = [
    "get_credential_service",
    "get_listing_service",
    "register_error_handlers",
    "server_error_handler",
]

logger = Logger(__name__, level=logging.DEBUG).get_logger()


@contextmanager
def server_error_handler(stacklevel=1):
    # Go 3 levels up to escape @contextmanager methods and current function
    stack_level = 2 + stacklevel
    kw = {"stacklevel": stack_level}
    try:
        yield

    except (CarlotError, HTTPException):
        raise
    except Exception as e:
        logger.error("Failed to process request: %s", e, **kw)
        raise HTTPException(status_code=500, detail=f"Server error: {e}") from e


def register_error_handlers(app: FastAPI):
    @app.exception_handler(CarlotError)
    async def carlot_error_handler(request: Request, exc: CarlotError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Invalid request on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listings
