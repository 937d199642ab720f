from pathlib import Path

from fastapi import FastAPI
from starlette.staticfiles import StaticFiles

from santa_board.core.logger import configure_logging
from santa_board.web import api, routes

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


def create_app() -> FastAPI:
    """
    Factory for creating the Secret Santa gift board application

    """
    configure_logging()
    app = FastAPI(title="SecretSantaBoard")
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(routes.router)
    app.include_router(api.router)
    return app
