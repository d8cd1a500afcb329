from fastapi import APIRouter

from .backups import router as backups_router
from .clients import router as clients_router
from .records import router as records_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(clients_router)
router.include_router(records_router)
router.include_router(backups_router)
router.include_router(settings_router)


@router.get("/status")
def status():
    return {"status": "ok"}
