from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
from .config import settings

def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        # X-User-Id carries the caller identity set by the auth gateway
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-User-Id"],
        max_age=3600,
    )
