"""API v1 汇总路由：统一挂载所有版本化的子路由。"""

from fastapi import APIRouter

from app.packages.documents.api.v1.endpoints import auth, files, permissions, versions

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(files.router)
api_router.include_router(permissions.router)
api_router.include_router(versions.router)
