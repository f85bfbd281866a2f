from fastapi import APIRouter

from .change_history import router as change_history_router
from .rollback import router as rollback_router

api_router = APIRouter()

api_router.include_router(change_history_router, tags=["Change History"])
api_router.include_router(rollback_router, tags=["Rollback"])
