import logging
import time
from typing import IO, Dict, Optional

import httpx
from cloudinary.utils import api_sign_request

from railcast.errors import UpstreamError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.cloudinary.com/v1_1"


class CloudinaryClient:
    """
    Signed uploads against the Cloudinary REST API.

    Credentials come from CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY /
    CLOUDINARY_API_SECRET. Missing credentials only fail at upload time so the
    rest of the API keeps working without them.
    """

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        http_client: httpx.AsyncClient,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: Dict[str, str]) -> str:
        """Request signature as computed by the Cloudinary SDK."""
        return api_sign_request(params, self.api_secret)

    async def upload(
        self,
        file: IO[bytes],
        filename: str,
        *,
        folder: str,
        public_id: str,
        format: Optional[str] = None,
        resource_type: str = "raw",
    ) -> dict:
        if not self.configured:
            raise UpstreamError(
                "Cloudinary is not configured. Set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET.",
                status_code=502,
            )

        params = {
            "folder": folder,
            "public_id": public_id,
            "timestamp": str(int(time.time())),
        }
        if format:
            params["format"] = format

        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}
        url = f"{BASE_URL}/{self.cloud_name}/{resource_type}/upload"

        try:
            response = await self.http_client.post(
                url,
                data=data,
                files={"file": (filename, file, "application/octet-stream")},
            )
        except httpx.TimeoutException as e:
            raise UpstreamError("Upload to Cloudinary timed out", status_code=502) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Upload to Cloudinary failed: {e}", status_code=502) from e

        if response.status_code != 200:
            raise UpstreamError(
                f"Cloudinary upload error: {response.status_code} - {response.text[:200]}",
                status_code=502,
            )

        result = response.json()
        logger.info("Uploaded %s to Cloudinary as %s", filename, result.get("public_id"))
        return result
