"""
@file: app/api/v1/api.py
@description: Основной API роутер v1 (операторские эндпоинты)
@dependencies: fastapi
"""

from fastapi import APIRouter

from app.api.v1 import sync, tokens

api_router = APIRouter()

api_router.include_router(
    sync.router,
    prefix="/sync",
    tags=["sync"],
)

api_router.include_router(
    tokens.router,
    prefix="/tokens",
    tags=["tokens"],
)
