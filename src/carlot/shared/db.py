import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from carlot.core.errors import UpstreamFailure
from carlot.models.schema import *  # noqa: F403 # SQLModel subclasses need to be in memory
from carlot.shared import Logger

logger = Logger(__name__, level=logging.DEBUG).get_logger()


class Database:
    """Owns the engine for one record store. Built and torn down by the app lifespan."""

    def __init__(self, url: str):
        self.url = url
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def connect(self) -> Engine:
        connect_args = {}
        if self.url.startswith("sqlite"):
            # Sync handlers and run_in_threadpool calls use worker threads
            connect_args["check_same_thread"] = False

        self._engine = create_engine(self.url, connect_args=connect_args)
        SQLModel.metadata.create_all(self._engine)
        logger.info("Connected to record store: %s", self._engine.url)
        return self._engine

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Disconnected from record store")
        self._engine = None


@contextmanager
def upstream_errors(operation: str, stacklevel=1) -> Iterator[None]:
    # Go 3 levels up to escape @contextmanager methods and current function
    kw = {"stacklevel": 2 + stacklevel}
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Record store %s failed: %s", operation, e, **kw)
        raise UpstreamFailure(f"Server error: {operation} failed") from e
