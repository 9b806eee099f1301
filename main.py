# main.py
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.exception_handlers import register_exception_handlers
from app.api.router import router
from app.core.config import Settings, get_settings
from app.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def add_cors(app: FastAPI, settings: Settings) -> None:
    logger.info(
        "Configuring CORS, allowed_origins=%s, allowed_methods=%s",
        settings.cors_origin_list,
        settings.cors_method_list,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=settings.cors_method_list,
        allow_headers=settings.cors_header_list,
        allow_credentials=settings.cors_allow_credentials,
        max_age=settings.cors_max_age,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, env=settings.env)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        swagger_ui_parameters={"persistAuthorization": True},
    )

    add_cors(app, settings)
    register_exception_handlers(app)

    # Mount all routes
    app.include_router(router, prefix="/api")

    logger.info("%s %s started (env=%s)", settings.app_name, settings.app_version, settings.env)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
