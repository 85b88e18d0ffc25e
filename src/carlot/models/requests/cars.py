from .serde_base import SerdeBase


class CarRead(SerdeBase):
    id: int
    owner_id: int
    title: str
    description: str
    tags: list[str]
    images: list[str]


class CarPatch(SerdeBase):
    """Partial update. Fields left as None keep their stored value.

    Has no owner field, so a patch can never move a listing to another user.
    """

    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    images: list[str] | None = None


class MessageResponse(SerdeBase):
    message: str
