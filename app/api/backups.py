from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from services.backup_service import BackupService
from ..deps import get_backup_service
from ..schemas import BackupCreated, BackupRead

router = APIRouter(prefix="/backups", tags=["backups"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/", response_model=BackupCreated)
def create_backup(service: BackupService = Depends(get_backup_service)):
    path = service.create_full_backup()
    return {"message": "Backup created successfully", "backupPath": path.name}


@router.get("/", response_model=list[BackupRead])
def list_backups(service: BackupService = Depends(get_backup_service)):
    return service.list_backups()


@router.get("/{filename}")
def download_backup(filename: str, service: BackupService = Depends(get_backup_service)):
    path = service.resolve_backup(filename)
    return FileResponse(path, media_type=XLSX_MEDIA_TYPE, filename=path.name)
