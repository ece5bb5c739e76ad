import base64

import pikepdf
import pytest
from fastapi.testclient import TestClient
from pikepdf import Dictionary

from main import app

from conftest import add_page, jpeg_bytes, make_jpeg_xobject


@pytest.fixture
def client():
    return TestClient(app)


def pdf_bytes(tmp_path, **save_kwargs):
    path = tmp_path / "upload.pdf"
    with pikepdf.new() as pdf:
        image = make_jpeg_xobject(pdf, data=jpeg_bytes())
        add_page(pdf, b"q 72 0 0 72 0 0 cm /Im0 Do Q", Dictionary(XObject=Dictionary(Im0=image)))
        pdf.save(path, **save_kwargs)
    return path.read_bytes()


def post_pdf(client, content, data=None, params=None, filename="upload.pdf"):
    return client.post(
        "/extract-pdf-images",
        files={"file": (filename, content, "application/pdf")},
        data=data or {},
        params=params or {},
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_extract_images(client, tmp_path):
    response = post_pdf(client, pdf_bytes(tmp_path))

    assert response.status_code == 200
    body = response.json()
    assert body["totalPages"] == 1
    assert body["pagesProcessed"] == 1
    image = body["images"][0]
    assert image["fileName"] == "image-1.jpg"
    assert image["mimeType"] == "image/jpeg"
    assert image["passthrough"] is True
    assert image["data"] is None


def test_extract_images_with_data(client, tmp_path):
    response = post_pdf(client, pdf_bytes(tmp_path), data={"include_image_data": "true"})

    assert response.status_code == 200
    data_uri = response.json()["images"][0]["data"]
    assert data_uri.startswith("data:image/jpeg;base64,")
    assert base64.b64decode(data_uri.split(",", 1)[1]) == jpeg_bytes()


def test_extraction_not_permitted(client, tmp_path):
    content = pdf_bytes(tmp_path, encryption=pikepdf.Encryption(
        owner="owner", user="", allow=pikepdf.Permissions(extract=False)
    ))
    assert post_pdf(client, content).status_code == 403


def test_wrong_password(client, tmp_path):
    content = pdf_bytes(tmp_path, encryption=pikepdf.Encryption(owner="owner", user="user"))
    assert post_pdf(client, content, data={"password": "nope"}).status_code == 422
    assert post_pdf(client, content, data={"password": "user"}).status_code == 200


def test_not_a_pdf(client):
    assert post_pdf(client, b"hello world").status_code == 400
    assert post_pdf(client, b"%PDF-1.7", filename="notes.txt").status_code == 400
