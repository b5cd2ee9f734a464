from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from socdash.core.config import settings
from loguru import logger


def setup_cors_middleware(app: FastAPI) -> None:
    """
    Allow the dashboard frontend origins to call the API
    """
    allowed_origins = settings.cors_origins_list
    if settings.ENVIRONMENT == "development":
        allowed_origins = allowed_origins + ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "Authorization",
            "Idempotency-Key",
            "X-Requested-With",
            "X-Trace-ID"
        ],
        expose_headers=[
            "X-Trace-ID",
            "Retry-After"
        ],
        max_age=600,
    )

    logger.info(f"CORS configured for {len(allowed_origins)} origins")
