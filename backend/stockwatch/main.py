import logging

from fastapi import FastAPI

from stockwatch.api.routes import router
from stockwatch.config.settings import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Stockwatch")
    app.include_router(router)
    return app


app = create_app()
