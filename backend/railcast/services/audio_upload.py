import logging
import os
import time
from typing import IO, Optional

from railcast.clients.cloudinary_client import CloudinaryClient
from railcast.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".mp3", ".wav", ".aac")
MAX_AUDIO_BYTES = 5 * 1024 * 1024
AUDIO_FOLDER = "train-audio"


def audio_extension(filename: str) -> str:
    """Lower-cased extension of ``filename``; raises ValidationError if not allowed."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Invalid file type. Only .mp3, .wav, and .aac files are allowed.")
    return ext


def measure(file: IO[bytes]) -> int:
    pos = file.tell()
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(pos)
    return size


def storage_name(filename: str, now: Optional[float] = None) -> str:
    base = os.path.splitext(os.path.basename(filename))[0]
    millis = int((time.time() if now is None else now) * 1000)
    return f"{base}-{millis}"


class AudioUploadGateway:
    def __init__(self, cloudinary: CloudinaryClient):
        self.cloudinary = cloudinary

    async def accept_audio_upload(
        self,
        file: IO[bytes],
        filename: str,
        size: Optional[int] = None,
    ) -> str:
        """
        Validate an announcement file and store it; returns the public URL.

        Checks run before anything is sent upstream: the extension must be one
        of ALLOWED_EXTENSIONS and the size at most MAX_AUDIO_BYTES.
        """
        ext = audio_extension(filename)
        if size is None:
            size = measure(file)
        if size > MAX_AUDIO_BYTES:
            raise ValidationError("File too large. Maximum size is 5 MB.")

        file.seek(0)
        result = await self.cloudinary.upload(
            file,
            filename,
            folder=AUDIO_FOLDER,
            public_id=storage_name(filename),
            format=ext.lstrip("."),
        )

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise UpstreamError("Cloudinary response did not include a URL", status_code=502)
        return url
