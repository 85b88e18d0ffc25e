from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from carlot.core.listing_store import ListingStore
from carlot.main import create_app
from carlot.shared import Config, load_config
from carlot.shared.config import Database as DatabaseSection
from carlot.shared.config import Paths
from carlot.shared.db import Database

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def config(tmp_path) -> Config:
    base = load_config(ROOT / "config.toml")
    return base.model_copy(
        update={
            "database": DatabaseSection(path=f"sqlite:///{tmp_path / 'test.db'}"),
            "paths": Paths(logs=str(tmp_path / "logs"), files=str(tmp_path / "uploads")),
        }
    )


@pytest.fixture
def uploads_dir(config) -> Path:
    return Path(config.paths.files)


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan, which connects the database
    with TestClient(app) as client:
        yield client


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'store.db'}")
    database.connect()
    yield database
    database.dispose()


@pytest.fixture
def store(database) -> ListingStore:
    return ListingStore(database)
