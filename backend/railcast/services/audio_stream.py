import logging
from typing import AsyncIterator

import httpx

from railcast.database.store import DocumentStore
from railcast.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_CONTENT_TYPE = "audio/mpeg"


class AudioStream:
    """An open upstream audio response, relayed chunk by chunk."""

    def __init__(self, response: httpx.Response, train_number: str):
        self.response = response
        self.train_number = train_number
        self.content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes(CHUNK_SIZE):
                yield chunk
        except httpx.HTTPError as e:
            # Headers are already out; the server aborts the connection on re-raise.
            logger.error("Error streaming audio for train %s: %s", self.train_number, e)
            raise
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()


class AudioStreamProxy:
    def __init__(self, store: DocumentStore, http_client: httpx.AsyncClient, timeout: httpx.Timeout):
        self.store = store
        self.http_client = http_client
        self.timeout = timeout

    async def open_stream(self, train_number: str) -> AudioStream:
        """
        Open the stored announcement for ``train_number``.

        Unknown trains, trains without audio and non-2xx upstream replies are all
        NotFoundError; a transport failure is UpstreamError (500).
        """
        train = await self.store.find_train_by_number(train_number)
        if train is None or not train.audio_file_path:
            raise NotFoundError("Audio file not found for this train")

        try:
            request = self.http_client.build_request(
                "GET", train.audio_file_path, timeout=self.timeout
            )
            response = await self.http_client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Error fetching audio for train %s: %s", train_number, e)
            raise UpstreamError("Error retrieving the audio file") from e

        if not response.is_success:
            logger.warning(
                "Audio upstream returned %s for train %s", response.status_code, train_number
            )
            await response.aclose()
            raise NotFoundError("Failed to fetch audio file from storage")

        return AudioStream(response, train_number)
