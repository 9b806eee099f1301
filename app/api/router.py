from fastapi import APIRouter

from app.api.endpoints import health
from app.api.endpoints import hello

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["_meta"])
router.include_router(hello.router, prefix="/hello", tags=["hello"])
