from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class Train(CamelModel):
    id: str = Field(...)
    train_name: str = Field(..., min_length=1)
    train_number: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    arrival_time: str = Field(..., min_length=1)
    departure_time: str = Field(..., min_length=1)
    station_ids: List[str] = Field(default_factory=list)
    audio_file_path: Optional[str] = None


class TrainDescriptor(CamelModel):
    """A train as it appears inside a station submission.

    Only ``trainNumber`` is needed to link an existing train; the remaining
    fields are required when the train does not exist yet.
    """

    train_number: str = Field(..., min_length=1)
    train_name: Optional[str] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_time: Optional[str] = None


class TrainPatch(CamelModel):
    train_name: Optional[str] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_time: Optional[str] = None


class StationSummary(CamelModel):
    id: str = Field(...)
    station_name: str = Field(...)
    station_code: str = Field(...)


class TrainDetail(CamelModel):
    """Train with ``stationIds`` resolved to station name/code pairs."""

    id: str = Field(...)
    train_name: str = Field(...)
    train_number: str = Field(...)
    source: str = Field(...)
    destination: str = Field(...)
    arrival_time: str = Field(...)
    departure_time: str = Field(...)
    station_ids: List[StationSummary] = Field(default_factory=list)
    audio_file_path: Optional[str] = None


class TrainUpdated(CamelModel):
    message: str
    train: Train
