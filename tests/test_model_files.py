import io

import pytest
from PIL import Image

from app.modules.configuration import model_files
from app.modules.configuration.model_files import resize_to_webp
from app.shared.database.models import ModelFile
from app.shared.services.s3_service import S3Service


class MemoryStorage(S3Service):
    uploads = {}
    deleted = []

    def __init__(self):
        self.bucket = "apex-test"
        self.region = "us-east-1"
        self.configured = True

    def upload_bytes(self, data, key, content_type=None):
        self.uploads[key] = (data, content_type)
        return {"key": key, "url": self.public_url(key)}

    def delete(self, key):
        self.deleted.append(key)
        return True


@pytest.fixture
def memory_storage(monkeypatch):
    MemoryStorage.uploads = {}
    MemoryStorage.deleted = []
    monkeypatch.setattr(model_files, "S3Service", MemoryStorage)
    return MemoryStorage


@pytest.fixture
def root_headers(seed, headers_for):
    return headers_for(seed.users.root)


def png_bytes(width, height):
    output = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(output, format="PNG")
    return output.getvalue()


def test_resize_to_webp_limits_width():
    with Image.open(io.BytesIO(resize_to_webp(png_bytes(1600, 900), 800, 80))) as image:
        assert image.format == "WEBP"
        assert image.size == (800, 450)

    with Image.open(io.BytesIO(resize_to_webp(png_bytes(300, 200), 400, 75))) as image:
        assert image.size == (300, 200)


def test_upload_image_and_spec(client, db_session, seed, root_headers, memory_storage):
    response = client.post(
        f"/api/v1/configuration/models/{seed.model.id}/files",
        files=[
            ("files", ("Vista Lateral.png", png_bytes(1200, 800), "image/png")),
            ("files", ("ficha.pdf", b"%PDF-1.4 ficha", "application/pdf")),
        ],
        headers=root_headers
    )

    assert response.status_code == 201
    files = response.json()["files"]
    assert [f["type"] for f in files] == ["image", "spec"]
    assert files[0]["s3_key"] == "models/honda/cb-190r/images/vista-lateral_800.webp"
    assert files[0]["s3_key_small"] == "models/honda/cb-190r/images/vista-lateral_400.webp"
    assert files[1]["s3_key"] == "models/honda/cb-190r/specs/ficha.pdf"
    assert memory_storage.uploads[files[0]["s3_key"]][1] == "image/webp"
    assert db_session.query(ModelFile).count() == 2


def test_upload_rejects_other_types(client, seed, root_headers, memory_storage):
    response = client.post(
        f"/api/v1/configuration/models/{seed.model.id}/files",
        files=[("files", ("notas.txt", b"hola", "text/plain"))],
        headers=root_headers
    )

    assert response.status_code == 400
    assert memory_storage.uploads == {}


def test_upload_requires_root(client, seed, admin_headers, memory_storage):
    response = client.post(
        f"/api/v1/configuration/models/{seed.model.id}/files",
        files=[("files", ("ficha.pdf", b"%PDF-1.4", "application/pdf"))],
        headers=admin_headers
    )

    assert response.status_code == 403


def test_list_and_delete(client, seed, root_headers, admin_headers, memory_storage):
    uploaded = client.post(
        f"/api/v1/configuration/models/{seed.model.id}/files",
        files=[("files", ("frente.png", png_bytes(500, 500), "image/png"))],
        headers=root_headers
    ).json()["files"][0]

    listed = client.get(f"/api/v1/configuration/models/{seed.model.id}/files", headers=admin_headers)
    assert [f["id"] for f in listed.json()["files"]] == [uploaded["id"]]

    response = client.delete(f"/api/v1/configuration/model-files/{uploaded['id']}", headers=root_headers)

    assert response.status_code == 200
    assert response.json()["files"] == []
    assert memory_storage.deleted == [uploaded["s3_key"], uploaded["s3_key_small"]]
