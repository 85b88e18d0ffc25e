from .cars import CarPatch, CarRead, MessageResponse
from .serde_base import SerdeBase
from .users import Credentials, TokenResponse

__all__ = [
    "CarPatch",
    "CarRead",
    "Credentials",
    "MessageResponse",
    "SerdeBase",
    "TokenResponse",
]
