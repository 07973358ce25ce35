"""
Shared fixtures: an in-memory DocumentStore, a stubbed Cloudinary client and a
TestClient with the store/upload/HTTP dependencies overridden.
"""

import uuid
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from railcast.api.deps import get_http_client, get_store, get_upload_gateway
from railcast.clients.cloudinary_client import CloudinaryClient
from railcast.database.store import DocumentStore
from railcast.errors import ValidationError
from railcast.main import app
from railcast.models import Station, Train
from railcast.services.audio_upload import AudioUploadGateway

AUDIO_URL = "https://res.cloudinary.com/demo/raw/upload/train-audio/announce-1.mp3"
AUDIO_BYTES = b"ID3" + b"\x00" * 1024


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with the same unique-key behaviour as the Postgres one."""

    def __init__(self):
        self.stations: Dict[str, Station] = {}
        self.trains: Dict[str, Train] = {}

    async def insert_station(self, fields: Dict[str, Any]) -> Station:
        if any(s.station_code == fields["station_code"] for s in self.stations.values()):
            raise ValidationError("Duplicate stationCode: a station with this code already exists")
        station = Station(id=str(uuid.uuid4()), **fields)
        self.stations[station.id] = station
        return station.model_copy(deep=True)

    async def find_station_by_code(self, code: str) -> Optional[Station]:
        for s in self.stations.values():
            if s.station_code == code:
                return s.model_copy(deep=True)
        return None

    async def find_stations_by_ids(self, ids: List[str]) -> List[Station]:
        return [self.stations[i].model_copy(deep=True) for i in ids if i in self.stations]

    async def list_stations(self) -> List[Station]:
        return [s.model_copy(deep=True) for s in self.stations.values()]

    async def update_station(self, code: str, fields: Dict[str, Any]) -> Optional[Station]:
        current = await self.find_station_by_code(code)
        if current is None:
            return None
        new_code = fields.get("station_code")
        if new_code and new_code != code and await self.find_station_by_code(new_code):
            raise ValidationError("Duplicate stationCode: a station with this code already exists")
        updated = Station.model_validate({**current.model_dump(), **fields})
        self.stations[updated.id] = updated
        return updated.model_copy(deep=True)

    async def delete_station(self, code: str) -> bool:
        for sid, s in list(self.stations.items()):
            if s.station_code == code:
                del self.stations[sid]
                return True
        return False

    async def find_train_by_number(self, number: str) -> Optional[Train]:
        for t in self.trains.values():
            if t.train_number == number:
                return t.model_copy(deep=True)
        return None

    async def find_trains_by_numbers(self, numbers: List[str]) -> List[Train]:
        wanted = set(numbers)
        return [t.model_copy(deep=True) for t in self.trains.values() if t.train_number in wanted]

    async def insert_train(self, fields: Dict[str, Any]) -> Train:
        if await self.find_train_by_number(fields["train_number"]):
            raise ValidationError("Duplicate trainNumber: a train with this number already exists")
        train = Train(id=str(uuid.uuid4()), **fields)
        self.trains[train.id] = train
        return train.model_copy(deep=True)

    async def save_train(self, train: Train) -> Train:
        self.trains[train.id] = train.model_copy(deep=True)
        return train


def upstream_handler(request: httpx.Request) -> httpx.Response:
    """Stand-in for the CDN: known audio URL streams bytes, everything else is 404."""
    if request.url.host == "down.example":
        raise httpx.ConnectError("connection refused", request=request)
    if str(request.url) == AUDIO_URL:
        return httpx.Response(200, headers={"content-type": "audio/mpeg"}, content=AUDIO_BYTES)
    if request.url.path.endswith("untyped.mp3"):
        return httpx.Response(200, content=AUDIO_BYTES)
    return httpx.Response(404, text="not found")


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def cloudinary():
    client = MagicMock(spec=CloudinaryClient)
    client.upload = AsyncMock(return_value={"secure_url": AUDIO_URL, "public_id": "announce-1"})
    return client


@pytest.fixture
def uploads(cloudinary):
    return AudioUploadGateway(cloudinary)


@pytest.fixture
def http_client():
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream_handler))


@pytest.fixture
def client(store, uploads, http_client):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_upload_gateway] = lambda: uploads
    app.dependency_overrides[get_http_client] = lambda: http_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def ndls_payload():
    return {
        "stationName": "New Delhi",
        "stationCode": "NDLS",
        "trains": [
            {
                "trainNumber": "12301",
                "trainName": "Rajdhani",
                "source": "NDLS",
                "destination": "HWH",
                "arrivalTime": "16:00",
                "departureTime": "16:10",
            }
        ],
    }


@pytest.fixture
def cnb_payload():
    return {
        "stationName": "Kanpur Central",
        "stationCode": "CNB",
        "trains": [
            {
                "trainNumber": "12301",
                "trainName": "Renamed Express",
                "source": "CNB",
                "destination": "XYZ",
                "arrivalTime": "21:00",
                "departureTime": "21:05",
            },
            {
                "trainNumber": "12259",
                "trainName": "Duronto",
                "source": "SDAH",
                "destination": "NDLS",
                "arrivalTime": "02:10",
                "departureTime": "02:15",
            },
        ],
    }
