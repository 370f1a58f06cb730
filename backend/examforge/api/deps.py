from fastapi import Depends

from examforge.core.config import Settings, get_settings
from examforge.services.generation import TimetableGenerator


def get_app_settings() -> Settings:
    return get_settings()


def get_generator(settings: Settings = Depends(get_app_settings)) -> TimetableGenerator:
    # One generator per request: each run owns its search state.
    return TimetableGenerator(settings)
