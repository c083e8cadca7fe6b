import re

import pytest
from fastapi import HTTPException

from app.main import app
from app.modules.storage.router import get_storage, key_belongs_to_organization, normalize_folder
from app.shared.services.s3_service import (
    S3Service, StorageError, get_mime_type, slugify, timestamped_filename
)


class FakeStorage(S3Service):
    """S3Service que guarda las subidas en memoria"""

    def __init__(self, fail: bool = False):
        self.bucket = "apex-test"
        self.region = "us-east-1"
        self.configured = True
        self.fail = fail
        self.uploads = []

    def upload_bytes(self, data, key, content_type=None):
        if self.fail:
            raise StorageError("Error subiendo archivo a S3: AccessDenied")
        self.uploads.append({"key": key, "content_type": content_type, "data": data})
        return {"key": key, "url": self.public_url(key)}

    def signed_url(self, key, expires_in=None):
        return f"https://signed.test/{key}?expires={expires_in}"


@pytest.fixture
def storage(client):
    fake = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    return fake


def test_slugify():
    assert slugify("Factura 12 - Ñandú") == "factura-12-nandu"
    assert slugify("  ") == ""


@pytest.mark.parametrize("filename,expected", [
    ("ticket.PDF", "application/pdf"),
    ("foto.jpeg", "image/jpeg"),
    ("planilla.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    ("sin_extension", "application/octet-stream"),
    ("archivo.xyz", "application/octet-stream"),
])
def test_get_mime_type(filename, expected):
    assert get_mime_type(filename) == expected


def test_timestamped_filename():
    assert re.fullmatch(r"\d{13}-recibo-de-sena\.png", timestamped_filename("Recibo de Seña.PNG"))
    assert re.fullmatch(r"\d{13}-archivo\.pdf", timestamped_filename("###.pdf"))


def test_normalize_folder():
    assert normalize_folder("Tickets/Caja Chica/") == "tickets/caja-chica"
    with pytest.raises(HTTPException):
        normalize_folder("///")


def test_public_url_without_custom_endpoint(monkeypatch):
    from app.config.settings import settings

    monkeypatch.setattr(settings, "AWS_ENDPOINT_URL", None)
    assert FakeStorage().public_url("uploads/a.png") == "https://apex-test.s3.us-east-1.amazonaws.com/uploads/a.png"


def test_unconfigured_storage_raises(monkeypatch):
    from app.config.settings import settings

    monkeypatch.setattr(settings, "AWS_BUCKET_NAME", None)
    service = S3Service()

    assert service.configured is False
    with pytest.raises(StorageError):
        service.upload_bytes(b"data", "uploads/a.txt")


def test_upload_is_scoped_by_organization(client, seed, seller_headers, storage):
    response = client.post(
        "/api/v1/storage/upload",
        data={"folder": "Documentos Clientes"},
        files={"file": ("DNI Frente.jpg", b"\xff\xd8fake", "image/jpeg")},
        headers=seller_headers
    )

    assert response.status_code == 201
    key = response.json()["key"]
    assert key.startswith(f"uploads/documentos-clientes/{seed.org.id}/")
    assert key.endswith("-dni-frente.jpg")
    assert storage.uploads[0]["content_type"] == "image/jpeg"
    assert response.json()["url"].endswith(key)


def test_upload_storage_error(client, seed, seller_headers):
    app.dependency_overrides[get_storage] = lambda: FakeStorage(fail=True)

    response = client.post(
        "/api/v1/storage/upload",
        data={"folder": "tickets"},
        files={"file": ("ticket.pdf", b"%PDF-1.4", "application/pdf")},
        headers=seller_headers
    )

    assert response.status_code == 502
    assert "AccessDenied" in response.json()["detail"]


def test_upload_requires_authentication(client, seed, storage):
    response = client.post(
        "/api/v1/storage/upload",
        data={"folder": "tickets"},
        files={"file": ("ticket.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code in (401, 403)


def test_key_belongs_to_organization():
    assert key_belongs_to_organization("uploads/tickets/petty-cash/3/9/1-a.pdf", 3) is True
    assert key_belongs_to_organization("uploads/tickets/petty-cash/33/9/1-a.pdf", 3) is False
    assert key_belongs_to_organization("models/honda/cb-190r/specs/ficha.pdf", 3) is True
    assert key_belongs_to_organization("otros/3/a.pdf", 3) is False


def test_signed_url(client, seed, seller_headers, storage):
    key = f"uploads/documentos/{seed.org.id}/1700000000000-dni.jpg"

    response = client.get(f"/api/v1/storage/signed-url?key={key}", headers=seller_headers)

    assert response.status_code == 200
    assert response.json()["url"] == f"https://signed.test/{key}?expires=3600"
    assert response.json()["expires_in"] == 3600


def test_signed_url_of_other_organization(client, seed, seller_headers, storage):
    key = f"uploads/documentos/{seed.org.id + 1000}/1700000000000-dni.jpg"

    response = client.get(f"/api/v1/storage/signed-url?key={key}", headers=seller_headers)

    assert response.status_code == 404
