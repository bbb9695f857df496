"""CORS setup -- origins come from settings.cors_origins."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.roadside.config import settings


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
