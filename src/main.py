import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.config import settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
    )

    # Routers
    from src.routes.v1.api import api_router

    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Set all CORS enabled origins
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health Check
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "version": settings.VERSION,
            "database": "enabled" if settings.DATABASE_ENABLED else "disabled",
        }

    return app

app = create_app()
