from fastapi import APIRouter

from adops.api.v1.routers import brands, files, folders, health, permissions, users

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(folders.router)
api_router.include_router(files.router)
api_router.include_router(permissions.router)
api_router.include_router(brands.router)
api_router.include_router(users.router)

__all__ = ["api_router"]
