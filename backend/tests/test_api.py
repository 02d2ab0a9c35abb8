import os
from io import BytesIO

from PIL import Image


def _upload(client, make_image, name="photo.png", media_type="image/png", **size):
    return client.post(
        "/api/upload/single",
        files={"image": (name, make_image(media_type=media_type, **size), media_type)},
    )


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "message" in r.json()


def test_upload_single_and_serve_variants(client, make_image):
    r = _upload(client, make_image, width=1024, height=768)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Image uploaded successfully"
    asset = body["file"]
    assert asset["original_name"] == "photo.png"
    assert asset["media_type"] == "image/png"
    assert set(asset["variant_paths"]) == {"original", "thumbnail", "medium"}

    thumb = client.get(asset["variant_paths"]["thumbnail"])
    assert thumb.status_code == 200
    assert Image.open(BytesIO(thumb.content)).size == (200, 200)

    medium = client.get(asset["variant_paths"]["medium"])
    assert Image.open(BytesIO(medium.content)).size == (800, 600)


def test_upload_single_rejects_media_type(client, settings):
    r = client.post("/api/upload/single", files={"image": ("a.txt", b"hello", "text/plain")})
    assert r.status_code == 415
    assert r.json()["code"] == "unsupported_media_type"
    assert os.listdir(os.path.join(settings.upload_dir, "original")) == []


def test_upload_single_too_large(client, settings):
    payload = b"\x89PNG" + b"0" * (settings.max_file_size + 1)
    r = client.post("/api/upload/single", files={"image": ("big.png", payload, "image/png")})
    assert r.status_code == 413
    assert r.json() == {"error": "File too large. Maximum size is 5MB.", "code": "file_too_large"}
    assert client.get("/api/images").json() == []


def test_upload_single_without_file(client):
    r = client.post("/api/upload/single", data={"other": "x"})
    assert r.status_code == 400


def test_upload_multiple(client, make_image):
    files = [
        ("images", ("a.png", make_image(), "image/png")),
        ("images", ("b.gif", make_image(media_type="image/gif"), "image/gif")),
        ("images", ("c.txt", b"hello", "text/plain")),
    ]
    r = client.post("/api/upload/multiple", files=files)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "2 images uploaded successfully"
    assert [f["original_name"] for f in body["files"]] == ["a.png", "b.gif"]
    assert body["errors"] == [{
        "filename": "c.txt",
        "error": "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed.",
        "code": "unsupported_media_type",
        "stage": "validate",
    }]


def test_upload_multiple_all_rejected(client):
    files = [("images", (f"{i}.txt", b"x", "text/plain")) for i in range(2)]
    r = client.post("/api/upload/multiple", files=files)
    assert r.status_code == 415
    assert len(r.json()["errors"]) == 2


def test_upload_multiple_too_many_files(client, make_image, settings):
    files = [("images", (f"{i}.png", make_image(20, 20), "image/png")) for i in range(6)]
    r = client.post("/api/upload/multiple", files=files)
    assert r.status_code == 400
    assert r.json()["code"] == "too_many_files"
    for kind in ("original", "thumbnail", "medium", "temp"):
        assert os.listdir(os.path.join(settings.upload_dir, kind)) == []


def test_list_get_delete(client, make_image):
    first = _upload(client, make_image, name="one.png").json()["file"]
    second = _upload(client, make_image, name="two.jpg", media_type="image/jpeg").json()["file"]

    listing = client.get("/api/images").json()
    assert [a["id"] for a in listing] == [first["id"], second["id"]]

    r = client.get(f"/api/images/{first['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == first["id"]

    r = client.delete(f"/api/images/{first['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Image deleted successfully",
                        "partial_success": False, "failed_paths": []}

    assert client.get(f"/api/images/{first['id']}").status_code == 404
    assert client.get(first["variant_paths"]["original"]).status_code == 404
    assert [a["id"] for a in client.get("/api/images").json()] == [second["id"]]


def test_delete_partial_success(client, make_image, settings):
    asset = _upload(client, make_image).json()["file"]
    os.remove(os.path.join(settings.upload_dir, "medium", asset["storage_name"]))

    r = client.delete(f"/api/images/{asset['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["partial_success"] is True
    assert body["failed_paths"] == [os.path.join(os.path.abspath(settings.upload_dir), "medium",
                                                 asset["storage_name"])]
    assert client.get(f"/api/images/{asset['id']}").status_code == 404


def test_unknown_id(client):
    assert client.get("/api/images/nope").status_code == 404
    r = client.delete("/api/images/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Image not found", "code": "not_found"}


def test_temp_area_is_not_served(client, settings):
    with open(os.path.join(settings.upload_dir, "temp", "staged.png"), "wb") as f:
        f.write(b"x")
    assert client.get("/images/temp/staged.png").status_code == 404


def test_debug_orphans(client, settings):
    stray = os.path.join(settings.upload_dir, "original", "lost.png")
    with open(stray, "wb") as f:
        f.write(b"x")

    listing = client.get("/debug/orphans").json()
    assert listing["count"] == 1
    assert listing["orphans"][0]["storage_name"] == "lost.png"

    assert client.delete("/debug/orphans").json()["removed"] == []
    assert client.delete("/debug/orphans", params={"older_than": 0}).json()["removed"] == [
        os.path.join(os.path.abspath(settings.upload_dir), "original", "lost.png")
    ]
    assert not os.path.exists(stray)


def test_debug_files(client, make_image):
    asset = _upload(client, make_image).json()["file"]
    listing = client.get("/debug/files").json()["directories"]
    assert [f["filename"] for f in listing["thumbnail"]["files"]] == [asset["storage_name"]]
    assert listing["temp"]["files"] == []
