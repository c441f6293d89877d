from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from deckcanvas.main import app
from deckcanvas.services.assets import InMemoryAssetStore

client = TestClient(app)


@pytest.fixture(autouse=True)
def store(monkeypatch, png_bytes):
    """Serve assets from memory instead of the asset directory."""
    memory = InMemoryAssetStore({"photo-a": png_bytes, "logo.png": png_bytes})
    monkeypatch.setattr("deckcanvas.api.routes.asset_store", memory)
    return memory


def flow_chart_page():
    return {
        "id": "p1",
        "content": {
            "template": "flow-chart",
            "heading": "Process",
            "nodes": [
                {"id": "a", "x": 10, "y": 10, "heading": "Start"},
                {"id": "b", "x": 60, "y": 10, "heading": "End"},
            ],
            "arrows": [{"id": "ab", "source": "a", "target": "b", "label": "next"}],
        },
    }


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["version"] == "0.1.0"


def test_list_templates():
    response = client.get("/api/templates")
    assert response.status_code == 200
    ids = [template["id"] for template in response.json()]
    assert len(ids) == 21
    assert ids[0] == "cover"
    assert "flow-chart" in ids


def test_resolve_page():
    response = client.post("/api/resolve", json={"page": flow_chart_page()})
    assert response.status_code == 200
    data = response.json()
    assert data["template"] == "flow-chart"
    assert (data["width"], data["height"]) == (960, 540)
    ids = [element["id"] for element in data["elements"]]
    assert "node.a" in ids
    assert "arrow.ab" in ids
    assert ids.index("node.b") < ids.index("arrow.ab")


def test_resolve_with_language():
    response = client.post("/api/resolve", json={"page": flow_chart_page(), "language": "zh-tw"})
    assert response.status_code == 200
    assert response.json()["language"] == "zh-tw"


def test_resolve_invalid_content():
    """Unknown template tags fail request validation"""
    response = client.post("/api/resolve", json={"page": {"id": "p", "content": {"template": "nope"}}})
    assert response.status_code == 422


def test_resolve_uses_stored_images():
    page = {"id": "g", "content": {"template": "photo-gallery", "photos": ["photo-a", "missing"]}}
    response = client.post("/api/resolve", json={"page": page})
    assert response.status_code == 200
    kinds = {element["id"]: element["kind"] for element in response.json()["elements"]}
    assert kinds["cell.0"] == "image"
    assert "cell.1.placeholder" in kinds


def test_preview_png():
    response = client.post("/api/preview", json={"page": flow_chart_page()})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    image = Image.open(BytesIO(response.content))
    assert image.size == (960, 540)


def test_export_pdf():
    deck = {
        "id": "d1",
        "name": "Quarterly review",
        "pages": [
            flow_chart_page(),
            {"id": "p2", "order": 1, "content": {"template": "cover", "headline": "Hello", "hero_image": "photo-a"}},
        ],
    }
    response = client.post("/api/export", json={"deck": deck})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Quarterly_review.pdf"'
    assert response.content.startswith(b"%PDF")
    assert b"/Count 2" in response.content


def test_export_empty_deck():
    response = client.post("/api/export", json={"deck": {"pages": []}})
    assert response.status_code == 422
    assert response.json()["detail"] == "Deck has no pages"


def test_upload_and_fetch_asset(png_bytes):
    response = client.post("/api/assets", files={"file": ("photo.png", png_bytes, "image/png")})
    assert response.status_code == 200
    data = response.json()
    assert data["key"].endswith(".png")
    assert data["size"] == len(png_bytes)
    assert data["content_type"] == "image/png"

    fetched = client.get(f"/api/assets/{data['key']}")
    assert fetched.status_code == 200
    assert fetched.content == png_bytes
    assert fetched.headers["content-type"] == "image/png"


def test_upload_rejects_non_image():
    response = client.post("/api/assets", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_get_missing_asset():
    response = client.get("/api/assets/unknown.png")
    assert response.status_code == 404
