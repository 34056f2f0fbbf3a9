from unittest.mock import MagicMock

import httpx
import pytest
from bson import ObjectId

from careerconnect.core.config import Settings
from careerconnect.core.errors import NotFoundError
from careerconnect.services.storage_service import StorageService

CLOUDINARY = {"cloudinary_cloud_name": "demo", "cloudinary_upload_preset": "unsigned"}


def gridfs_double():
    fs = MagicMock()
    fs.put.return_value = ObjectId("65f000000000000000000001")
    return fs


def test_uploads_to_cloudinary_when_configured():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={
            "secure_url": "https://res.cloudinary.com/demo/image/upload/company-logos/acme.png",
            "public_id": "company-logos/acme",
            "bytes": 4,
        })

    fs = gridfs_double()
    storage = StorageService(settings=Settings(**CLOUDINARY), transport=httpx.MockTransport(handler), fs=fs)

    stored = storage.upload_file(b"\x89PNG", "acme.png", "image/png", "company-logos/acme.png")

    assert stored.storage_type == "cloudinary"
    assert stored.public_id == "company-logos/acme"
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert b"unsigned" in seen["body"]
    fs.put.assert_not_called()


def test_falls_back_to_gridfs_when_cloudinary_fails(db):
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "down"}))
    storage = StorageService(settings=Settings(**CLOUDINARY), transport=transport)

    stored = storage.upload_file(b"%PDF-1.4", "cv.pdf", "application/pdf", "resumes/s1/1_cv.pdf")

    assert stored.storage_type == "gridfs"
    assert stored.url == f"/api/files/{stored.public_id}"
    assert stored.resource_type == "raw"

    kept = storage.get_file(stored.public_id)
    assert kept.read() == b"%PDF-1.4"
    assert kept.filename == "resumes/s1/1_cv.pdf"
    assert kept.content_type == "application/pdf"
    assert db["uploads.files"].count_documents({}) == 1


def test_gridfs_files_can_be_deleted(db):
    storage = StorageService(settings=Settings())
    stored = storage.upload_file(b"notes", "notes.pdf", "application/pdf", "students/s1/documents/notes.pdf")

    assert storage.delete_file(stored.public_id, "gridfs") is True

    with pytest.raises(NotFoundError):
        storage.get_file(stored.public_id)
    assert db["uploads.chunks"].count_documents({}) == 0


def test_unknown_file_id_is_not_found():
    storage = StorageService(settings=Settings())

    with pytest.raises(NotFoundError):
        storage.get_file("not-an-object-id")
    with pytest.raises(NotFoundError):
        storage.get_file("65f000000000000000000009")


def test_uses_gridfs_when_cloudinary_not_configured():
    def handler(request):
        raise AssertionError("Cloudinary should not be called")

    fs = gridfs_double()
    storage = StorageService(settings=Settings(), transport=httpx.MockTransport(handler), fs=fs)

    stored = storage.upload_file(b"data", "notes.pdf", "application/pdf", "students/s1/documents/x.pdf")

    assert stored.storage_type == "gridfs"
    assert stored.size == 4


def test_cloudinary_delete_is_skipped_without_credentials():
    def handler(request):
        raise AssertionError("destroy should not be called")

    storage = StorageService(settings=Settings(**CLOUDINARY), transport=httpx.MockTransport(handler), fs=gridfs_double())

    assert storage.delete_file("company-logos/acme", "cloudinary", "image") is False


def test_cloudinary_delete_signs_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"result": "ok"})

    settings = Settings(**CLOUDINARY, cloudinary_api_key="key", cloudinary_api_secret="secret")
    storage = StorageService(settings=settings, transport=httpx.MockTransport(handler), fs=gridfs_double())

    assert storage.delete_file("company-logos/acme", "cloudinary", "image") is True
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/destroy"
    assert "signature=" in seen["body"]


def test_gridfs_delete():
    fs = gridfs_double()
    storage = StorageService(settings=Settings(), fs=fs)

    assert storage.delete_file("65f000000000000000000001", "gridfs") is True
    fs.delete.assert_called_once_with(ObjectId("65f000000000000000000001"))
