import io
import mimetypes
import os
import requests
import urllib3
import cloudinary
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError

from core.config import (
    STORAGE_BUCKET,
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
)
from core.exceptions import StorageError
from core.logging_config import get_logger

logger = get_logger(__name__)

cloudinary.config(
    cloud_name = CLOUDINARY_CLOUD_NAME,
    api_key = CLOUDINARY_API_KEY,
    api_secret = CLOUDINARY_API_SECRET,
    secure = True
)

# Path prefixes by artifact kind
RAW_PREFIX = "raw/"
MASKS_PREFIX = "masks/"
DERIVED_PREFIX = "derived/"


class StorageService:
    """
    Object store adapter over Cloudinary.

    A bucket maps to the top-level folder of the Cloudinary public id, so
    ``("breast-cancer-images", "raw/7_1700000000000.png")`` is stored as
    public id ``breast-cancer-images/raw/7_1700000000000`` with format ``png``.
    """

    def __init__(self, default_bucket: str = STORAGE_BUCKET, timeout: float = 60):
        self.default_bucket = default_bucket
        self.timeout = timeout

    @staticmethod
    def _resource_type(content_type: str = None) -> str:
        return "image" if (content_type or "image/").startswith("image/") else "raw"

    @staticmethod
    def _public_id(bucket: str, path: str, resource_type: str = "image") -> str:
        # Raw assets keep their extension in the public id, images carry it as the format
        if resource_type == "raw":
            return f"{bucket}/{path}"
        stem, _ext = os.path.splitext(path)
        return f"{bucket}/{stem}"

    def upload(self, bucket: str, path: str, data: bytes, overwrite: bool = False, content_type: str = None):
        resource_type = self._resource_type(content_type)
        public_id = self._public_id(bucket, path, resource_type)
        try:
            cloudinary.uploader.upload(
                io.BytesIO(data),
                public_id=public_id,
                overwrite=overwrite,
                resource_type=resource_type,
            )
        except (CloudinaryError, requests.RequestException, urllib3.exceptions.HTTPError) as e:
            logger.error("storage_upload_failed", bucket=bucket, path=path, error=str(e))
            raise StorageError(f"Upload of {path} failed: {e}") from e
        logger.info("storage_uploaded", bucket=bucket, path=path, size=len(data), content_type=content_type)

    def download(self, bucket: str, path: str) -> bytes:
        url = self.resolve_public_url(path, bucket)
        if not url:
            raise StorageError("Empty storage path")
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("storage_download_failed", bucket=bucket, path=path, error=str(e))
            raise StorageError(f"Download of {path} failed: {e}") from e
        if response.status_code != 200:
            logger.error("storage_download_failed", bucket=bucket, path=path, status=response.status_code)
            raise StorageError(f"Download of {path} failed with status {response.status_code}")
        return response.content

    def resolve_public_url(self, path: str, bucket: str = None, content_type: str = None) -> str:
        if not path:
            return ""
        if path.startswith("http"):
            return path
        if content_type is None:
            content_type, _encoding = mimetypes.guess_type(path)
        source = f"{bucket or self.default_bucket}/{path}"
        url, _options = cloudinary.utils.cloudinary_url(
            source, resource_type=self._resource_type(content_type), type="upload", secure=True
        )
        return url


def get_storage_service() -> StorageService:
    return StorageService()
