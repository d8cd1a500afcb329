from fastapi import APIRouter, Depends

from config import Settings
from services import settings_service as ss
from ..deps import get_app_settings
from ..schemas import SettingsBase, SettingsRead

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=SettingsRead)
def read_settings(settings: Settings = Depends(get_app_settings)):
    return ss.ensure_settings_row(settings)


@router.put("/", response_model=SettingsRead)
def edit_settings(settings_in: SettingsBase, settings: Settings = Depends(get_app_settings)):
    return ss.update_settings(settings, **settings_in.model_dump(exclude_unset=True))
