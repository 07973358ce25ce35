import asyncpg
import httpx
from fastapi import Depends, Request

from railcast.clients.cloudinary_client import CloudinaryClient
from railcast.config import get_settings
from railcast.database.db import get_db
from railcast.database.store import DocumentStore, PgDocumentStore
from railcast.services.audio_stream import AudioStreamProxy
from railcast.services.audio_upload import AudioUploadGateway
from railcast.services.linkage import LinkageService


async def get_store(conn: asyncpg.Connection = Depends(get_db)) -> DocumentStore:
    return PgDocumentStore(conn)


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_upload_gateway(
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> AudioUploadGateway:
    settings = get_settings()
    cloudinary = CloudinaryClient(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        http_client,
    )
    return AudioUploadGateway(cloudinary)


def get_linkage_service(
    store: DocumentStore = Depends(get_store),
    uploads: AudioUploadGateway = Depends(get_upload_gateway),
) -> LinkageService:
    return LinkageService(store, uploads)


def get_audio_proxy(
    store: DocumentStore = Depends(get_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> AudioStreamProxy:
    settings = get_settings()
    timeout = httpx.Timeout(
        settings.upstream_read_timeout, connect=settings.upstream_connect_timeout
    )
    return AudioStreamProxy(store, http_client, timeout)
