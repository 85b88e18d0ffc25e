from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel


class User(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(
        ..., unique=True, index=True, description="Unique, case-sensitive email"
    )
    password_hash: str = Field(..., description="Salted scrypt digest of the password")

    # Relationships
    cars: list["Car"] = Relationship(back_populates="owner")


class Car(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(
        ..., foreign_key="user.id", index=True, description="Id of the creating user"
    )
    title: str = Field(..., description="Listing title, searched by keyword")
    description: str = Field(..., description="Free text description")
    tags: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    # Locators handed out by the blob store, in attachment order
    images: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    # Relationships
    owner: User | None = Relationship(back_populates="cars")
