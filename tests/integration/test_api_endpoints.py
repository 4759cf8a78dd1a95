import io

import numpy as np
import pytest
from PIL import Image


def make_png_bytes(w=40, h=30, color=(128, 64, 32)) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def session_id(client) -> str:
    files = {"file": ("sample.png", make_png_bytes(), "image/png")}
    r = client.post("/sessions/upload", files=files)
    assert r.status_code == 201, r.text
    return r.json()["session"]["id"]


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "retouchkit"
    assert client.get("/health").json() == {"status": "healthy"}


def test_upload_summary(client):
    files = {"file": ("sample.png", make_png_bytes(), "image/png")}
    r = client.post("/sessions/upload", files=files)
    assert r.status_code == 201, r.text
    data = r.json()["session"]
    assert data["original_filename"] == "sample.png"
    assert data["format"] == "PNG"
    assert (data["width"], data["height"]) == (40, 30)
    assert data["cursor"] == -1
    assert not data["can_undo"]


def test_upload_rejects_non_images(client):
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    r = client.post("/sessions/upload", files=files)
    assert r.status_code == 400


def test_operations_history_and_undo(client, session_id):
    base = f"/sessions/{session_id}"
    r = client.post(f"{base}/operations/crop", json={"x": 5, "y": 5, "width": 20, "height": 10})
    assert r.status_code == 200, r.text
    assert (r.json()["width"], r.json()["height"]) == (20, 10)

    r = client.post(f"{base}/operations/filter", json={"filter_type": "sepia", "intensity": 0.5})
    assert r.status_code == 200, r.text
    r = client.post(f"{base}/operations/adjustment", json={"adjustment_type": "brightness", "value": 20})
    assert r.json()["history_length"] == 3

    r = client.post(f"{base}/undo")
    assert r.json()["cursor"] == 1
    assert r.json()["can_redo"]

    hist = client.get(f"{base}/history").json()
    assert [op["kind"] for op in hist["operations"]] == ["crop", "filter", "adjustment"]
    assert [op["active"] for op in hist["operations"]] == [True, True, False]
    assert hist["operations"][1]["params"] == {"filter_type": "sepia", "intensity": 0.5}

    assert client.post(f"{base}/redo").json()["cursor"] == 2
    r = client.post(f"{base}/reset")
    assert r.json()["cursor"] == -1
    assert (r.json()["width"], r.json()["height"]) == (40, 30)


def test_text_and_shape_operations(client, session_id):
    base = f"/sessions/{session_id}/operations"
    r = client.post(
        f"{base}/text",
        json={"text": "Hi", "x": 4, "y": 20, "color": "#ffffff", "stroke": {"color": "black", "width": 2}},
    )
    assert r.status_code == 200, r.text
    r = client.post(
        f"{base}/shape",
        json={"shape_type": "ellipse", "x": 2, "y": 2, "width": 10, "height": 8, "fill": "rgba(0, 0, 255, 0.5)"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["history_length"] == 2


def test_invalid_operations_are_400(client, session_id):
    base = f"/sessions/{session_id}/operations"
    assert client.post(f"{base}/crop", json={"x": 30, "y": 0, "width": 20, "height": 5}).status_code == 400
    assert client.post(f"{base}/resize", json={"width": 0, "height": 5}).status_code == 400
    assert client.post(f"{base}/filter", json={"filter_type": "emboss"}).status_code == 400
    assert client.post(f"{base}/text", json={"text": "x", "x": 0, "y": 0, "color": "nope"}).status_code == 400
    assert client.post(f"{base}/text", json={"text": "a\nb", "x": 0, "y": 0, "baseline": "top"}).status_code == 400
    assert client.post(f"{base}/text", json={"text": "a\nb", "x": 0, "y": 0, "max_width": 10}).status_code == 400
    assert client.post(f"{base}/shape", json={"shape_type": "star", "x": 0, "y": 0, "width": 2, "height": 2}).status_code == 400
    # request body validation is FastAPI's 422
    assert client.post(f"{base}/filter", json={"filter_type": "blur", "radius": 400}).status_code == 422
    assert client.post(f"{base}/resize", json={"width": 5}).status_code == 422
    assert client.get(f"/sessions/{session_id}/history").json()["operations"] == []


def test_render_formats(client, session_id):
    base = f"/sessions/{session_id}"
    client.post(f"{base}/operations/resize", json={"width": 20, "height": 15, "quality": "medium"})

    r = client.get(f"{base}/render")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.headers["x-image-width"] == "20"
    # no license configured in tests
    assert r.headers["x-watermarked"] == "1"
    with Image.open(io.BytesIO(r.content)) as img:
        assert img.size == (20, 15)

    r = client.get(f"{base}/render", params={"format": "jpeg", "quality": 0.7})
    assert r.headers["content-type"] == "image/jpeg"
    assert r.content[:2] == b"\xff\xd8"

    assert client.get(f"{base}/render", params={"format": "gif"}).status_code == 500
    assert client.get(f"{base}/render", params={"quality": 2}).status_code == 422


def test_original_is_untouched(client, session_id):
    base = f"/sessions/{session_id}"
    client.post(f"{base}/operations/filter", json={"filter_type": "invert"})
    r = client.get(f"{base}/original")
    assert r.status_code == 200
    with Image.open(io.BytesIO(r.content)) as img:
        assert img.convert("RGB").getpixel((0, 0)) == (128, 64, 32)


def test_unknown_and_deleted_sessions(client, session_id):
    assert client.get("/sessions/does-not-exist").status_code == 404
    assert client.post("/sessions/does-not-exist/undo").status_code == 404
    assert client.delete(f"/sessions/{session_id}").json() == {"ok": True}
    assert client.get(f"/sessions/{session_id}").status_code == 404
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_error_responses_are_documented(client, session_id):
    schema = client.get("/openapi.json").json()
    crop = schema["paths"]["/sessions/{session_id}/operations/crop"]["post"]["responses"]
    assert crop["400"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    # handled errors carry the documented shape
    r = client.post(f"/sessions/{session_id}/operations/crop", json={"x": 99, "y": 0, "width": 5, "height": 5})
    assert r.status_code == 400
    assert set(r.json()) == {"detail"}
