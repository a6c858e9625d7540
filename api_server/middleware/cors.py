"""CORS configuration"""

import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

ALLOWED_METHODS = ["GET", "POST", "PUT", "OPTIONS"]


def parse_allowed_origins(origins_str: str) -> list[str]:
    """Split a comma-separated ALLOWED_ORIGINS value"""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


def setup_cors(app: FastAPI) -> None:
    """Configure CORS middleware

    Reads ALLOWED_ORIGINS from environment variable.
    Default: any origin without credentials, so a local frontend can poll the
    battle state during development.
    """
    origins = parse_allowed_origins(os.getenv("ALLOWED_ORIGINS", ""))

    # Browsers reject credentials together with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=bool(origins),
        allow_methods=ALLOWED_METHODS,
        allow_headers=["*"],
    )
