from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from railcast.api.deps import get_audio_proxy, get_linkage_service
from railcast.models import TrainDetail, TrainPatch, TrainUpdated
from railcast.services.audio_stream import AudioStreamProxy
from railcast.services.linkage import LinkageService
from railcast.services.rate_limit import rate_limit

router = APIRouter(prefix="/trains", tags=["trains"])


@router.get("/{train_number}", response_model=TrainDetail)
async def get_train(
    train_number: str,
    service: LinkageService = Depends(get_linkage_service),
):
    return await service.get_train_by_number(train_number)


@router.post("/{train_number}", response_model=TrainUpdated)
async def update_train(
    train_number: str,
    train_name: Optional[str] = Form(None, alias="trainName"),
    source: Optional[str] = Form(None),
    destination: Optional[str] = Form(None),
    arrival_time: Optional[str] = Form(None, alias="arrivalTime"),
    departure_time: Optional[str] = Form(None, alias="departureTime"),
    audio_file: Optional[UploadFile] = File(None, alias="audioFilePath"),
    service: LinkageService = Depends(get_linkage_service),
):
    patch = TrainPatch(
        train_name=train_name,
        source=source,
        destination=destination,
        arrival_time=arrival_time,
        departure_time=departure_time,
    )

    # Browsers send an empty part when no file is chosen.
    if audio_file is not None and not audio_file.filename:
        audio_file = None

    train = await service.update_train(
        train_number,
        patch,
        audio_file=audio_file.file if audio_file else None,
        audio_filename=audio_file.filename if audio_file else None,
        audio_size=audio_file.size if audio_file else None,
    )
    return TrainUpdated(message="Train updated successfully", train=train)


@router.get("/{train_number}/audio", dependencies=[Depends(rate_limit)])
async def stream_train_audio(
    train_number: str,
    proxy: AudioStreamProxy = Depends(get_audio_proxy),
):
    stream = await proxy.open_stream(train_number)
    return StreamingResponse(
        stream.iter_bytes(),
        media_type=stream.content_type,
        headers={"Content-Disposition": "inline"},
        background=BackgroundTask(stream.aclose),
    )
