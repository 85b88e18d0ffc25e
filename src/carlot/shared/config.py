from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING
from os import PathLike, environ
from pathlib import Path
from tomllib import load

from pydantic import BaseModel, field_validator

DEFAULT_CONFIG_PATH = Path(environ.get("CARLOT_CONFIG", "config.toml"))


class General(BaseModel):
    title: str


class Database(BaseModel):
    path: str


class Logging(BaseModel):
    level: int

    @field_validator("level", mode="before")
    @classmethod
    def convert_log_level(cls, value):
        if isinstance(value, int):
            return value
        log_levels = {
            "DEBUG": DEBUG,
            "INFO": INFO,
            "WARNING": WARNING,
            "ERROR": ERROR,
            "CRITICAL": CRITICAL,
        }
        return log_levels.get(value.upper(), INFO)


class Paths(BaseModel):
    logs: str
    files: str


class Files(BaseModel):
    max_file_size: int = 10485760  # 10 MB default


class Auth(BaseModel):
    secret: str
    algorithm: str = "HS256"
    expire_hours: int = 5

    @field_validator("secret", mode="before")
    @classmethod
    def secret_from_env(cls, value):
        return environ.get("JWT_SECRET", value)


class Listings(BaseModel):
    require_images: bool = True
    max_images: int = 10


class Network(BaseModel):
    host: str
    port: int = 5001
    reload: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]


class Config(BaseModel):
    general: General
    database: Database
    paths: Paths
    files: Files
    logging: Logging
    auth: Auth
    listings: Listings = Listings()
    network: Network


def load_config(
    shared_config_file: PathLike = DEFAULT_CONFIG_PATH,
    specific_config_file: PathLike | None = None,
) -> Config:
    """Load and merge configurations from TOML files."""
    with Path(shared_config_file).open("rb") as f:
        config_data = load(f)

    # Sections in the specific file replace whole sections of the shared one
    if specific_config_file:
        with Path(specific_config_file).open("rb") as f:
            specific_data = load(f)
            config_data.update(specific_data)

    return Config(**config_data)
