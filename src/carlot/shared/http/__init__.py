from .__http import (
    get_credential_service,
    get_listing_service,
    register_error_handlers,
    server_error_handler,
)

__all__ = [
    "get_credential_service",
    "get_listing_service",
    "register_error_handlers",
    "server_error_handler",
]
