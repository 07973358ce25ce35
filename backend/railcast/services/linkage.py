import logging
from typing import IO, Any, Dict, List, Optional

import pydantic

from railcast.database.store import DocumentStore
from railcast.errors import NotFoundError, UpstreamError, ValidationError
from railcast.models import (
    Station,
    StationCreate,
    StationDetail,
    StationSummary,
    StationUpdate,
    Train,
    TrainDescriptor,
    TrainDetail,
    TrainPatch,
)
from railcast.services.audio_upload import AudioUploadGateway

logger = logging.getLogger(__name__)

NEW_TRAIN_FIELDS = (
    "train_name",
    "train_number",
    "source",
    "destination",
    "arrival_time",
    "departure_time",
)


def _describe(err: pydantic.ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        parts.append(f"{loc}: {e.get('msg')}" if loc else e.get("msg", ""))
    return "; ".join(parts)


class LinkageService:
    """
    Keeps Station.trains and Train.stationIds in step.

    Station.trains is a snapshot of train numbers written once when the station
    is submitted; Train.stationIds grows by one id per station that mentions the
    train. Nothing here is transactional: a failure part way through a
    submission leaves the writes made so far in place.
    """

    def __init__(self, store: DocumentStore, uploads: Optional[AudioUploadGateway] = None):
        self.store = store
        self.uploads = uploads

    async def submit_station_with_trains(self, payload: StationCreate) -> Station:
        station = await self.store.insert_station(
            {
                "station_name": payload.station_name,
                "station_code": payload.station_code,
                "status": payload.status.value,
                "trains": [{"trainNumber": t.train_number} for t in payload.trains],
            }
        )
        logger.info(
            "Created station %s with %d train(s)", station.station_code, len(payload.trains)
        )

        for descriptor in payload.trains:
            await self._link_train(descriptor, station.id)

        return station

    async def _link_train(self, descriptor: TrainDescriptor, station_id: str) -> Train:
        train = await self.store.find_train_by_number(descriptor.train_number)

        if train is None:
            fields = descriptor.model_dump(include=set(NEW_TRAIN_FIELDS))
            try:
                Train(id="pending", station_ids=[station_id], **fields)
            except pydantic.ValidationError as e:
                raise ValidationError(
                    f"Train {descriptor.train_number} is new and incomplete: {_describe(e)}"
                ) from e
            train = await self.store.insert_train({**fields, "station_ids": [station_id]})
            logger.info("Created train %s", train.train_number)
            return train

        if station_id in train.station_ids:
            return train

        train.station_ids.append(station_id)
        logger.info("Linked train %s to station %s", train.train_number, station_id)
        return await self.store.save_train(train)

    async def list_stations(self) -> List[Station]:
        return await self.store.list_stations()

    async def get_station_by_code(self, code: str) -> StationDetail:
        station = await self.store.find_station_by_code(code)
        if station is None:
            raise NotFoundError("Station not found")

        numbers = [t.train_number for t in station.trains]
        by_number = {t.train_number: t for t in await self.store.find_trains_by_numbers(numbers)}

        trains = []
        seen = set()
        for number in numbers:
            if number in by_number and number not in seen:
                trains.append(by_number[number])
                seen.add(number)

        return StationDetail(
            id=station.id,
            station_name=station.station_name,
            station_code=station.station_code,
            status=station.status,
            trains=trains,
        )

    async def update_station(self, code: str, patch: StationUpdate) -> Station:
        fields: Dict[str, Any] = patch.model_dump(
            mode="json", exclude_unset=True, exclude_none=True
        )
        if "trains" in fields:
            fields["trains"] = [{"trainNumber": t["train_number"]} for t in fields["trains"]]

        station = await self.store.update_station(code, fields)
        if station is None:
            raise NotFoundError("Station not found")
        return station

    async def delete_station(self, code: str) -> None:
        # Trains keep the id in stationIds; lookups skip it.
        if not await self.store.delete_station(code):
            raise NotFoundError("Station not found")
        logger.info("Deleted station %s", code)

    async def get_train_by_number(self, number: str) -> TrainDetail:
        train = await self.store.find_train_by_number(number)
        if train is None:
            raise NotFoundError("Train not found")

        by_id = {s.id: s for s in await self.store.find_stations_by_ids(train.station_ids)}
        stations = [
            StationSummary(
                id=by_id[sid].id,
                station_name=by_id[sid].station_name,
                station_code=by_id[sid].station_code,
            )
            for sid in train.station_ids
            if sid in by_id
        ]
        missing = len(train.station_ids) - len(stations)
        if missing:
            logger.debug("Train %s references %d deleted station(s)", number, missing)

        return TrainDetail(
            **train.model_dump(exclude={"station_ids"}),
            station_ids=stations,
        )

    async def update_train(
        self,
        number: str,
        patch: TrainPatch,
        audio_file: Optional[IO[bytes]] = None,
        audio_filename: Optional[str] = None,
        audio_size: Optional[int] = None,
    ) -> Train:
        """Apply the truthy fields of ``patch`` and attach an uploaded audio file.

        An empty string in ``patch`` is treated as "leave unchanged". The audio
        file is validated and stored before the train is written, so a rejected
        upload leaves the train untouched.
        """
        train = await self.store.find_train_by_number(number)
        if train is None:
            raise NotFoundError("Train not found")

        audio_url = None
        if audio_file is not None:
            if self.uploads is None:
                raise UpstreamError("Audio uploads are not configured", status_code=502)
            audio_url = await self.uploads.accept_audio_upload(
                audio_file, audio_filename or "", audio_size
            )

        for field, value in patch.model_dump().items():
            if value:
                setattr(train, field, value)
        if audio_url:
            train.audio_file_path = audio_url
        return await self.store.save_train(train)
