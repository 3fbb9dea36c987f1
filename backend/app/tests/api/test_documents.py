import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app import crud
from app.core.config import settings
from app.models import Document, Observation, Reflection

DOCUMENTS_URL = f"{settings.API_V1_STR}/documents/"


def _upload(client: TestClient, image: bytes, content_type: str = "image/png", **data):
    form = {"reflection": "It felt ancient and patient."}
    form.update(data)
    return client.post(
        DOCUMENTS_URL,
        files={"file": ("oak.png", image, content_type)},
        data=form,
    )


def test_upload_document(client, session, upload_dir, png_bytes, interpreter):
    tree = crud.get_tree_by_name(session=session, common_name="English Oak")

    r = _upload(
        client,
        png_bytes,
        tree_id=str(tree.id),
        location_name="Sherwood Forest",
        latitude="53.2047",
        longitude="-1.0702",
    )

    assert r.status_code == 200
    body = r.json()
    document = body["document"]
    assert document["filename"] == "oak.png"
    assert document["content_type"] == "image/png"
    assert document["size_bytes"] == len(png_bytes)
    assert document["width"] == 8
    assert document["height"] == 6
    assert body["observation"]["tree_id"] == str(tree.id)
    assert body["observation"]["location_name"] == "Sherwood Forest"
    assert body["observation"]["latitude"] == pytest.approx(53.2047)
    assert body["reflection"]["text"] == "It felt ancient and patient."
    assert body["reflection"]["interpretation"] == interpreter.text
    assert body["reflection"]["interpretation_status"] == "generated"
    assert body["image_url"] == f"{settings.API_V1_STR}/documents/{document['id']}/file"

    stored = list(upload_dir.iterdir())
    assert len(stored) == 1
    assert stored[0].read_bytes() == png_bytes

    assert len(interpreter.prompts) == 1
    assert "English Oak (Quercus robur)" in interpreter.prompts[0]
    assert "Observed at: Sherwood Forest" in interpreter.prompts[0]

    db_document = session.get(Document, uuid.UUID(document["id"]))
    assert db_document is not None
    assert db_document.stored_filename == stored[0].name


def test_uploaded_image_is_served(client, png_bytes):
    r = _upload(client, png_bytes)
    image_url = r.json()["image_url"]

    r = client.get(image_url)

    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content == png_bytes


def test_upload_without_tree(client, png_bytes, interpreter):
    r = _upload(client, png_bytes)

    assert r.status_code == 200
    assert r.json()["observation"]["tree_id"] is None
    assert interpreter.prompts[0].startswith("Tree: species not identified")


def test_upload_stores_fallback_interpretation(client, png_bytes, interpreter):
    interpreter.text = settings.INTERPRETATION_FALLBACK_TEXT
    interpreter.status = "fallback"

    r = _upload(client, png_bytes)

    assert r.status_code == 200
    reflection = r.json()["reflection"]
    assert reflection["interpretation"] == settings.INTERPRETATION_FALLBACK_TEXT
    assert reflection["interpretation_status"] == "fallback"


def test_upload_rejects_wrong_mime_type(client, upload_dir, png_bytes):
    r = _upload(client, png_bytes, content_type="text/plain")

    assert r.status_code == 415
    assert not upload_dir.exists() or not any(upload_dir.iterdir())


def test_upload_rejects_oversized_file(client, upload_dir, png_bytes, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_BYTES", 10)

    r = _upload(client, png_bytes)

    assert r.status_code == 413
    assert not upload_dir.exists() or not any(upload_dir.iterdir())


def test_upload_rejects_blank_reflection(client, png_bytes):
    r = _upload(client, png_bytes, reflection="   ")

    assert r.status_code == 400


def test_upload_rejects_unknown_tree(client, png_bytes):
    r = _upload(client, png_bytes, tree_id=str(uuid.uuid4()))

    assert r.status_code == 404
    assert r.json()["detail"] == "Tree not found"


def test_upload_requires_both_coordinates(client, png_bytes):
    r = _upload(client, png_bytes, latitude="10.5")

    assert r.status_code == 400


def test_upload_rejects_out_of_range_latitude(client, png_bytes):
    r = _upload(client, png_bytes, latitude="123.0", longitude="10.0")

    assert r.status_code == 422


def test_upload_removes_file_when_commit_fails(client, session: Session, upload_dir, png_bytes, monkeypatch):
    def failing_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(session, "commit", failing_commit)

    with pytest.raises(RuntimeError):
        _upload(client, png_bytes)

    assert not any(upload_dir.iterdir())


def test_read_document(client, png_bytes):
    document_id = _upload(client, png_bytes).json()["document"]["id"]

    r = client.get(f"{DOCUMENTS_URL}{document_id}")

    assert r.status_code == 200
    assert r.json()["id"] == document_id


def test_read_missing_document(client):
    r = client.get(f"{DOCUMENTS_URL}{uuid.uuid4()}")

    assert r.status_code == 404


def test_delete_document(client, session, upload_dir, png_bytes):
    body = _upload(client, png_bytes).json()
    document_id = body["document"]["id"]

    r = client.delete(f"{DOCUMENTS_URL}{document_id}")

    assert r.status_code == 200
    assert r.json() == {"message": "Document deleted successfully"}
    assert not any(upload_dir.iterdir())
    assert client.get(f"{DOCUMENTS_URL}{document_id}").status_code == 404
    assert session.get(Observation, uuid.UUID(body["observation"]["id"])) is None
    assert session.get(Reflection, uuid.UUID(body["reflection"]["id"])) is None


def test_upload_multi_picture_jpeg(client, upload_dir, mpo_bytes):
    r = _upload(client, mpo_bytes, content_type="image/jpeg")

    assert r.status_code == 200
    assert r.json()["document"]["content_type"] == "image/jpeg"
    assert [p.suffix for p in upload_dir.iterdir()] == [".jpg"]


def test_upload_takes_location_from_exif(client, gps_jpeg_bytes):
    r = _upload(client, gps_jpeg_bytes, content_type="image/jpeg")

    assert r.status_code == 200
    observation = r.json()["observation"]
    assert observation["latitude"] == pytest.approx(-33.86)
    assert observation["longitude"] == pytest.approx(-70.5)


def test_form_location_overrides_exif(client, gps_jpeg_bytes):
    r = _upload(
        client,
        gps_jpeg_bytes,
        content_type="image/jpeg",
        latitude="51.5",
        longitude="-0.12",
    )

    assert r.status_code == 200
    observation = r.json()["observation"]
    assert observation["latitude"] == pytest.approx(51.5)
    assert observation["longitude"] == pytest.approx(-0.12)
