import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from examforge.api.deps import get_app_settings, get_generator
from examforge.core.config import Settings
from examforge.core.exceptions import AppError
from examforge.schemas.generator import GenerateTimetableRequest, GenerationResult, ProgressEvent
from examforge.services.generation import TimetableGenerator
from examforge.services.horizon import Horizon, horizon_from_settings
from examforge.services.sample_data import sample_request

router = APIRouter()
logger = logging.getLogger(__name__)


def request_horizon(payload: GenerateTimetableRequest, settings: Settings) -> Horizon:
    return horizon_from_settings(
        settings,
        course_count=len(payload.courses),
        start_date=payload.start_date,
        exam_days=payload.exam_days,
    )


@router.get("/generate/sample", response_model=GenerateTimetableRequest)
def get_sample_request(settings: Settings = Depends(get_app_settings)) -> GenerateTimetableRequest:
    return sample_request(settings.default_algorithm)


@router.post("/generate", response_model=GenerationResult)
async def generate_timetable(
    payload: GenerateTimetableRequest,
    settings: Settings = Depends(get_app_settings),
    generator: TimetableGenerator = Depends(get_generator),
) -> GenerationResult:
    return await generator.generate(
        payload.courses,
        payload.rooms,
        payload.constraints,
        payload.algorithm,
        payload.params,
        horizon=request_horizon(payload, settings),
    )


@router.websocket("/generate/stream")
async def stream_timetable(
    websocket: WebSocket,
    settings: Settings = Depends(get_app_settings),
    generator: TimetableGenerator = Depends(get_generator),
) -> None:
    await websocket.accept()
    try:
        try:
            payload = GenerateTimetableRequest.model_validate(await websocket.receive_json())
        except ValidationError as exc:
            await websocket.send_json(
                {
                    "type": "error",
                    "message": "Invalid generation request",
                    "details": {"errors": json.loads(exc.json(include_url=False))},
                }
            )
            await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
            return

        try:
            async for item in generator.stream(
                payload.courses,
                payload.rooms,
                payload.constraints,
                payload.algorithm,
                payload.params,
                horizon=request_horizon(payload, settings),
            ):
                if isinstance(item, ProgressEvent):
                    await websocket.send_json(item.model_dump(mode="json", by_alias=True))
                else:
                    await websocket.send_json({"type": "result", "result": item.model_dump(mode="json", by_alias=True)})
        except AppError as exc:
            await websocket.send_json({"type": "error", "message": exc.message, "details": exc.details})
        await websocket.close()
    except WebSocketDisconnect:
        logger.info("Generation stream client disconnected")
