"""
Storage Service - uploaded files.

Primary store is Cloudinary (unsigned upload preset) over HTTP; when it
is not configured or the upload fails, files go to MongoDB GridFS and
are served back through /api/files/{file_id}.
"""

import hashlib
import time
from dataclasses import asdict, dataclass
from typing import Optional

import gridfs
import httpx
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from careerconnect.core.config import Settings, get_settings
from careerconnect.core.errors import NotFoundError, StorageError
from careerconnect.core.logging import get_logger
from careerconnect.db.mongodb import get_mongo_db

logger = get_logger(__name__)

CLOUDINARY_API = "https://api.cloudinary.com/v1_1"


@dataclass
class StoredFile:
    url: str
    path: str
    storage_type: str          # "cloudinary" | "gridfs"
    public_id: str             # Cloudinary public id or GridFS file id
    size: int
    content_type: str
    resource_type: str = "raw"

    def to_dict(self) -> dict:
        return asdict(self)


class StorageService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
        fs: Optional[gridfs.GridFS] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self._fs = fs

    @property
    def fs(self) -> gridfs.GridFS:
        if self._fs is None:
            self._fs = gridfs.GridFS(get_mongo_db(), collection=self.settings.gridfs_bucket)
        return self._fs

    def _client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport, timeout=self.settings.cloudinary_timeout_seconds)

    # ============================================================
    # UPLOAD
    # ============================================================

    def upload_file(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        path: str,
        metadata: Optional[dict] = None,
    ) -> StoredFile:
        """
        Store a file, Cloudinary first then GridFS.

        Args:
            path: logical location, e.g. "resumes/<uid>/<ts>_<name>";
                  its directory part becomes the Cloudinary folder
        """
        resource_type = "image" if content_type.startswith("image/") else "raw"

        if self.settings.cloudinary_enabled:
            try:
                return self._upload_cloudinary(content, filename, content_type, path, resource_type)
            except (httpx.HTTPError, ValueError, KeyError) as exc:
                logger.warning("cloudinary_upload_failed", path=path, error=str(exc))

        return self._upload_gridfs(content, filename, content_type, path, resource_type, metadata)

    def _upload_cloudinary(self, content, filename, content_type, path, resource_type) -> StoredFile:
        folder, _, name = path.rpartition("/")
        data = {"upload_preset": self.settings.cloudinary_upload_preset}
        if folder:
            data["folder"] = folder
        if resource_type == "raw":
            data["public_id"] = name

        url = f"{CLOUDINARY_API}/{self.settings.cloudinary_cloud_name}/{resource_type}/upload"
        with self._client() as client:
            response = client.post(url, data=data, files={"file": (filename, content, content_type)})
            response.raise_for_status()
            body = response.json()

        logger.info("cloudinary_upload_succeeded", path=path, public_id=body["public_id"])
        return StoredFile(
            url=body["secure_url"],
            path=path,
            storage_type="cloudinary",
            public_id=body["public_id"],
            size=body.get("bytes", len(content)),
            content_type=content_type,
            resource_type=resource_type,
        )

    def _upload_gridfs(self, content, filename, content_type, path, resource_type, metadata) -> StoredFile:
        try:
            file_id = self.fs.put(
                content,
                filename=path,
                content_type=content_type,
                metadata={**(metadata or {}), "original_name": filename},
            )
        except (PyMongoError, gridfs.errors.GridFSError) as exc:
            logger.error("gridfs_upload_failed", path=path, error=str(exc))
            raise StorageError(f"File upload failed: {exc}") from exc

        logger.info("gridfs_upload_succeeded", path=path, file_id=str(file_id))
        return StoredFile(
            url=f"/api/files/{file_id}",
            path=path,
            storage_type="gridfs",
            public_id=str(file_id),
            size=len(content),
            content_type=content_type,
            resource_type=resource_type,
        )

    # ============================================================
    # READ / DELETE
    # ============================================================

    def get_file(self, file_id: str):
        """Open a GridFS file; the returned object has read(), filename, content_type."""
        try:
            return self.fs.get(ObjectId(file_id))
        except (InvalidId, gridfs.errors.NoFile):
            raise NotFoundError("File not found")

    def delete_file(self, public_id: str, storage_type: str, resource_type: str = "raw") -> bool:
        """Best-effort delete; failures are logged, never raised."""
        if not public_id:
            return False

        if storage_type == "gridfs":
            try:
                self.fs.delete(ObjectId(public_id))
                logger.info("gridfs_file_deleted", file_id=public_id)
                return True
            except (PyMongoError, InvalidId) as exc:
                logger.warning("gridfs_delete_failed", file_id=public_id, error=str(exc))
                return False

        if storage_type == "cloudinary":
            if not self.settings.cloudinary_can_delete:
                logger.warning("cloudinary_delete_skipped", public_id=public_id, reason="api credentials not configured")
                return False
            try:
                return self._destroy_cloudinary(public_id, resource_type)
            except httpx.HTTPError as exc:
                logger.warning("cloudinary_delete_failed", public_id=public_id, error=str(exc))
                return False

        logger.warning("unknown_storage_type", storage_type=storage_type, public_id=public_id)
        return False

    def _destroy_cloudinary(self, public_id: str, resource_type: str) -> bool:
        timestamp = str(int(time.time()))
        to_sign = f"public_id={public_id}&timestamp={timestamp}{self.settings.cloudinary_api_secret}"
        data = {
            "public_id": public_id,
            "timestamp": timestamp,
            "api_key": self.settings.cloudinary_api_key,
            "signature": hashlib.sha1(to_sign.encode()).hexdigest(),
        }
        url = f"{CLOUDINARY_API}/{self.settings.cloudinary_cloud_name}/{resource_type}/destroy"
        with self._client() as client:
            response = client.post(url, data=data)
            response.raise_for_status()
            deleted = response.json().get("result") == "ok"
        logger.info("cloudinary_file_deleted", public_id=public_id, deleted=deleted)
        return deleted


def get_storage_service() -> StorageService:
    return StorageService()
