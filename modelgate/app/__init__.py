# -*- coding: utf-8 -*-
from fastapi import FastAPI

from ..constant import DOCS_ENABLED
from .routers.providers import router as providers_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="modelgate",
        docs_url="/docs" if DOCS_ENABLED else None,
        redoc_url="/redoc" if DOCS_ENABLED else None,
        openapi_url="/openapi.json" if DOCS_ENABLED else None,
    )
    app.include_router(providers_router)
    return app
