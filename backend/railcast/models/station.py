from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import CamelModel
from .train import Train, TrainDescriptor


class StationStatus(str, Enum):
    OPERATIONAL = "Operational"
    NON_OPERATIONAL = "Non-Operational"


class TrainRef(CamelModel):
    train_number: str = Field(..., min_length=1)


class Station(CamelModel):
    id: str = Field(...)
    station_name: str = Field(..., min_length=1)
    station_code: str = Field(..., min_length=1)
    status: StationStatus = StationStatus.OPERATIONAL
    trains: List[TrainRef] = Field(default_factory=list)


class StationDetail(CamelModel):
    """Station with its train numbers resolved to full Train documents."""

    id: str = Field(...)
    station_name: str = Field(...)
    station_code: str = Field(...)
    status: StationStatus = StationStatus.OPERATIONAL
    trains: List[Train] = Field(default_factory=list)


class StationCreate(CamelModel):
    station_name: str = Field(..., min_length=1)
    station_code: str = Field(..., min_length=1)
    status: StationStatus = StationStatus.OPERATIONAL
    trains: List[TrainDescriptor] = Field(default_factory=list)


class StationUpdate(CamelModel):
    station_name: Optional[str] = Field(None, min_length=1)
    station_code: Optional[str] = Field(None, min_length=1)
    status: Optional[StationStatus] = None
    trains: Optional[List[TrainRef]] = None


class StationCreated(CamelModel):
    message: str
    station: Station
