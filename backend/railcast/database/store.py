import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import asyncpg

from railcast.errors import ValidationError
from railcast.models import Station, Train

logger = logging.getLogger(__name__)

STATION_COLUMNS = ("station_name", "station_code", "status", "trains")
TRAIN_COLUMNS = (
    "train_name",
    "train_number",
    "source",
    "destination",
    "arrival_time",
    "departure_time",
    "station_ids",
    "audio_file_path",
)


class DocumentStore(ABC):
    """Persistence for Station and Train documents.

    Station and train dicts passed in use snake_case keys; ``trains`` is a list
    of ``{"trainNumber": ...}`` objects and ``station_ids`` a list of station ids.
    Unique key violations raise ValidationError.
    """

    @abstractmethod
    async def insert_station(self, fields: Dict[str, Any]) -> Station: ...

    @abstractmethod
    async def find_station_by_code(self, code: str) -> Optional[Station]: ...

    @abstractmethod
    async def find_stations_by_ids(self, ids: List[str]) -> List[Station]: ...

    @abstractmethod
    async def list_stations(self) -> List[Station]: ...

    @abstractmethod
    async def update_station(self, code: str, fields: Dict[str, Any]) -> Optional[Station]: ...

    @abstractmethod
    async def delete_station(self, code: str) -> bool: ...

    @abstractmethod
    async def find_train_by_number(self, number: str) -> Optional[Train]: ...

    @abstractmethod
    async def find_trains_by_numbers(self, numbers: List[str]) -> List[Train]: ...

    @abstractmethod
    async def insert_train(self, fields: Dict[str, Any]) -> Train: ...

    @abstractmethod
    async def save_train(self, train: Train) -> Train: ...


def row_to_station(row: asyncpg.Record) -> Station:
    return Station(
        id=str(row["id"]),
        station_name=row["station_name"],
        station_code=row["station_code"],
        status=row["status"],
        trains=row["trains"] or [],
    )


def row_to_train(row: asyncpg.Record) -> Train:
    return Train(
        id=str(row["id"]),
        train_name=row["train_name"],
        train_number=row["train_number"],
        source=row["source"],
        destination=row["destination"],
        arrival_time=row["arrival_time"],
        departure_time=row["departure_time"],
        station_ids=[str(i) for i in row["station_ids"] or []],
        audio_file_path=row["audio_file_path"],
    )


def _to_uuids(ids: List[str]) -> List[uuid.UUID]:
    out = []
    for i in ids:
        try:
            out.append(uuid.UUID(str(i)))
        except ValueError:
            logger.warning("Skipping malformed station id %r", i)
    return out


def _duplicate_message(err: asyncpg.UniqueViolationError) -> str:
    constraint = getattr(err, "constraint_name", "") or ""
    if "station_code" in constraint:
        return "Duplicate stationCode: a station with this code already exists"
    if "train_number" in constraint:
        return "Duplicate trainNumber: a train with this number already exists"
    return f"Duplicate key: {err}"


STATION_SELECT = "SELECT id, station_name, station_code, status, trains FROM stations"
TRAIN_SELECT = (
    "SELECT id, train_name, train_number, source, destination, arrival_time, "
    "departure_time, station_ids, audio_file_path FROM trains"
)


class PgDocumentStore(DocumentStore):
    """DocumentStore over a single asyncpg connection (one per request)."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def insert_station(self, fields: Dict[str, Any]) -> Station:
        try:
            row = await self.conn.fetchrow(
                """
                INSERT INTO stations (id, station_name, station_code, status, trains)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING id, station_name, station_code, status, trains
                """,
                uuid.uuid4(),
                fields["station_name"],
                fields["station_code"],
                fields["status"],
                fields.get("trains") or [],
            )
        except asyncpg.UniqueViolationError as e:
            raise ValidationError(_duplicate_message(e)) from e
        return row_to_station(row)

    async def find_station_by_code(self, code: str) -> Optional[Station]:
        row = await self.conn.fetchrow(f"{STATION_SELECT} WHERE station_code = $1", code)
        return row_to_station(row) if row else None

    async def find_stations_by_ids(self, ids: List[str]) -> List[Station]:
        uuids = _to_uuids(ids)
        if not uuids:
            return []
        rows = await self.conn.fetch(f"{STATION_SELECT} WHERE id = ANY($1::uuid[])", uuids)
        return [row_to_station(r) for r in rows]

    async def list_stations(self) -> List[Station]:
        rows = await self.conn.fetch(STATION_SELECT)
        return [row_to_station(r) for r in rows]

    async def update_station(self, code: str, fields: Dict[str, Any]) -> Optional[Station]:
        columns = [c for c in STATION_COLUMNS if c in fields]
        if not columns:
            return await self.find_station_by_code(code)
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=2))
        try:
            row = await self.conn.fetchrow(
                f"""
                UPDATE stations SET {assignments}
                WHERE station_code = $1
                RETURNING id, station_name, station_code, status, trains
                """,
                code,
                *(fields[c] for c in columns),
            )
        except asyncpg.UniqueViolationError as e:
            raise ValidationError(_duplicate_message(e)) from e
        return row_to_station(row) if row else None

    async def delete_station(self, code: str) -> bool:
        row = await self.conn.fetchrow(
            "DELETE FROM stations WHERE station_code = $1 RETURNING id", code
        )
        return row is not None

    async def find_train_by_number(self, number: str) -> Optional[Train]:
        row = await self.conn.fetchrow(f"{TRAIN_SELECT} WHERE train_number = $1", number)
        return row_to_train(row) if row else None

    async def find_trains_by_numbers(self, numbers: List[str]) -> List[Train]:
        if not numbers:
            return []
        rows = await self.conn.fetch(
            f"{TRAIN_SELECT} WHERE train_number = ANY($1::text[])", list(numbers)
        )
        return [row_to_train(r) for r in rows]

    async def insert_train(self, fields: Dict[str, Any]) -> Train:
        try:
            row = await self.conn.fetchrow(
                f"""
                INSERT INTO trains (id, {", ".join(TRAIN_COLUMNS)})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING {", ".join(("id",) + TRAIN_COLUMNS)}
                """,
                uuid.uuid4(),
                fields["train_name"],
                fields["train_number"],
                fields["source"],
                fields["destination"],
                fields["arrival_time"],
                fields["departure_time"],
                _to_uuids(fields.get("station_ids") or []),
                fields.get("audio_file_path"),
            )
        except asyncpg.UniqueViolationError as e:
            raise ValidationError(_duplicate_message(e)) from e
        return row_to_train(row)

    async def save_train(self, train: Train) -> Train:
        try:
            row = await self.conn.fetchrow(
                f"""
                UPDATE trains SET
                    train_name = $2, train_number = $3, source = $4, destination = $5,
                    arrival_time = $6, departure_time = $7, station_ids = $8,
                    audio_file_path = $9
                WHERE id = $1
                RETURNING {", ".join(("id",) + TRAIN_COLUMNS)}
                """,
                uuid.UUID(train.id),
                train.train_name,
                train.train_number,
                train.source,
                train.destination,
                train.arrival_time,
                train.departure_time,
                _to_uuids(train.station_ids),
                train.audio_file_path,
            )
        except asyncpg.UniqueViolationError as e:
            raise ValidationError(_duplicate_message(e)) from e
        return row_to_train(row) if row else train
