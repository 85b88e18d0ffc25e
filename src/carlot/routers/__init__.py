from .cars import router as cars_router
from .users import router as users_router

_routers = [users_router, cars_router]

__all__ = ["get_routers"]


def get_routers():
    return _routers
