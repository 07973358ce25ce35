from typing import List

from fastapi import APIRouter, Depends

from railcast.api.deps import get_linkage_service
from railcast.models import Station, StationCreate, StationCreated, StationDetail, StationUpdate
from railcast.services.linkage import LinkageService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", status_code=201, response_model=StationCreated)
async def create_station(
    body: StationCreate,
    service: LinkageService = Depends(get_linkage_service),
):
    station = await service.submit_station_with_trains(body)
    return StationCreated(message="Station and train data added successfully", station=station)


@router.get("", response_model=List[Station])
async def list_stations(service: LinkageService = Depends(get_linkage_service)):
    return await service.list_stations()


@router.get("/{code}", response_model=StationDetail)
async def get_station(
    code: str,
    service: LinkageService = Depends(get_linkage_service),
):
    return await service.get_station_by_code(code)


@router.put("/{code}", response_model=Station)
async def update_station(
    code: str,
    body: StationUpdate,
    service: LinkageService = Depends(get_linkage_service),
):
    return await service.update_station(code, body)


@router.delete("/{code}")
async def delete_station(
    code: str,
    service: LinkageService = Depends(get_linkage_service),
):
    await service.delete_station(code)
    return {"message": "Station deleted successfully"}
