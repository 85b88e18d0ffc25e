from pydantic import Field

from .serde_base import SerdeBase


class Credentials(SerdeBase):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(SerdeBase):
    token: str
