from fastapi import APIRouter

from app.api.v1 import gold, notifications, system

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(notifications.router)
v1_router.include_router(gold.router)
v1_router.include_router(system.router)

root_router = APIRouter(prefix="/api")
root_router.include_router(v1_router)

__all__ = ["root_router"]
