import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from carlot.core.credentials import CredentialService
from carlot.core.listing_store import ListingStore
from carlot.core.listings import ListingService
from carlot.routers import get_routers
from carlot.shared import Config, Logger, load_config
from carlot.shared.db import Database
from carlot.shared.http import register_error_handlers
from carlot.shared.logger import set_level
from carlot.storage import LocalBlobStore

logger = Logger(__name__, level=logging.DEBUG).get_logger()


# ================================================================================
#       FastAPI Setup
# ================================================================================
def create_app(config: Config | None = None) -> FastAPI:
    config = config or load_config()
    set_level(config.logging.level)

    uploads_dir = Path(config.paths.files)
    uploads_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(config.database.path)
        database.connect()
        blobs = LocalBlobStore(uploads_dir, max_file_size=config.files.max_file_size)

        app.state.database = database
        app.state.credentials = CredentialService(database, config.auth)
        app.state.listings = ListingService(ListingStore(database), blobs, config.listings)
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(
        title="Car Management API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    # Routers must be added before the static mount
    for router in get_routers():
        app.include_router(router)

    register_error_handlers(app)

    app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.network.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def homepage():
        return "This is Homepage"

    return app


# ================================================================================
#       Command Line
# ================================================================================
def welcome(config: Config):
    # Log server banner
    for line in config.general.title.split("\n"):
        logger.info(line)

    logger.info("Starting car management server")


def main(argv=None):
    config = load_config()
    welcome(config)

    import uvicorn

    uvicorn.run(
        "carlot.main:create_app",
        factory=True,
        host=config.network.host,
        port=config.network.port,
        reload=config.network.reload,
    )


if __name__ == "__main__":
    main()
