from app import crud
from app.core.config import settings

GALLERY_URL = f"{settings.API_V1_STR}/gallery/"


def _upload(client, image: bytes, reflection: str, **data):
    return client.post(
        f"{settings.API_V1_STR}/documents/",
        files={"file": ("tree.png", image, "image/png")},
        data={"reflection": reflection, **data},
    ).json()


def test_empty_gallery(client):
    r = client.get(GALLERY_URL)

    assert r.status_code == 200
    assert r.json() == {"data": [], "count": 0}


def test_gallery_lists_newest_first(client, session, png_bytes, interpreter):
    banyan = crud.get_tree_by_name(session=session, common_name="Banyan")
    first = _upload(client, png_bytes, "Roots like pillars.", tree_id=str(banyan.id), location_name="Kolkata")
    second = _upload(client, png_bytes, "Unknown but lovely.")

    r = client.get(GALLERY_URL)

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    newest, oldest = body["data"]
    assert newest["document_id"] == second["document"]["id"]
    assert newest["tree_name"] is None
    assert newest["reflection"] == "Unknown but lovely."
    assert oldest["document_id"] == first["document"]["id"]
    assert oldest["tree_id"] == str(banyan.id)
    assert oldest["tree_name"] == "Banyan"
    assert oldest["location_name"] == "Kolkata"
    assert oldest["reflection_id"] == first["reflection"]["id"]
    assert oldest["interpretation"] == interpreter.text
    assert oldest["interpretation_status"] == "generated"
    assert oldest["image_url"] == first["image_url"]


def test_gallery_filters_by_tree_and_paginates(client, session, png_bytes):
    olive = crud.get_tree_by_name(session=session, common_name="Olive")
    _upload(client, png_bytes, "Silver leaves.", tree_id=str(olive.id))
    _upload(client, png_bytes, "Gnarled trunk.", tree_id=str(olive.id))
    _upload(client, png_bytes, "No idea what this is.")

    r = client.get(GALLERY_URL, params={"tree_id": str(olive.id)})
    body = r.json()
    assert body["count"] == 2
    assert {item["tree_name"] for item in body["data"]} == {"Olive"}

    r = client.get(GALLERY_URL, params={"limit": 1, "skip": 1})
    body = r.json()
    assert body["count"] == 3
    assert len(body["data"]) == 1
