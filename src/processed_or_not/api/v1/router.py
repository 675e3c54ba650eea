# src/processed_or_not/api/v1/router.py
from fastapi import APIRouter

from processed_or_not.api.v1 import history, products, progress

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(products.router)
api_router.include_router(progress.router)
api_router.include_router(history.router)
