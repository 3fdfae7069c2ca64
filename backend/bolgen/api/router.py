from fastapi import APIRouter

from bolgen.api.v1 import bol, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(bol.router, prefix="/v1/bol", tags=["bill-of-lading"])
