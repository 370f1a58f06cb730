from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from examforge.api.deps import get_app_settings
from examforge.core.config import Settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live(settings: Settings = Depends(get_app_settings)) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "engine": {
            "time_slots": settings.time_slot_labels,
            "min_exam_days": settings.min_exam_days,
            "hard_violation_weight": settings.hard_violation_weight,
        },
    }
