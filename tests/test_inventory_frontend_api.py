from __future__ import annotations

import json
from pathlib import Path

from starlette.testclient import TestClient

from shop_inventory.inventory import create_app
from shop_inventory.inventory.scan import SimulatedScanner


def _client(root: Path, **kwargs) -> TestClient:
    (root / "README.md").write_text("test marker", encoding="utf-8")
    app = create_app(root_dir=str(root), serve_static=False, allow_origins=["*"], **kwargs)
    client = TestClient(app)
    assert client.post("/api/sample?confirm=true").json()["applied"] is True
    return client


def test_catalog_endpoints(tmp_path: Path) -> None:
    client = _client(tmp_path)

    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["products"] == 5

    listing = client.get("/api/products", params={"search": "milk"})
    assert listing.status_code == 200
    payload = listing.json()
    assert [item["name"] for item in payload["items"]] == ["Milk"]
    assert payload["items"][0]["isLowStock"] is True
    assert payload["total"] == 5

    low = client.get("/api/products", params={"low_stock": "true", "sort": "quantity-asc"}).json()
    assert [item["id"] for item in low["items"]] == ["3", "1"]

    empty = client.get("/api/products", params={"search": "zzz"}).json()
    assert empty["emptyState"] == "no-matches"

    assert client.get("/api/products", params={"sort": "bogus"}).status_code == 400

    categories = client.get("/api/categories").json()["items"]
    assert categories[0] == "all" and "Dairy" in categories


def test_view_endpoint_persists_between_requests(tmp_path: Path) -> None:
    client = _client(tmp_path)
    updated = client.put("/api/view", json={"category": "Dairy", "sort": "name"})
    assert updated.json()["category"] == "Dairy"
    listing = client.get("/api/products").json()
    assert [item["name"] for item in listing["items"]] == ["Milk"]


def test_product_crud(tmp_path: Path) -> None:
    client = _client(tmp_path)

    bad = client.post("/api/products", json={"name": "  ", "category": "Dairy"})
    assert bad.status_code == 400
    assert bad.json()["error"] == "ValidationError"

    created = client.post(
        "/api/products",
        json={"name": "Tea", "category": "new", "newCategory": "Hot Drinks", "quantity": "4", "lowStockThreshold": "x"},
    )
    assert created.status_code == 201
    tea = created.json()
    assert tea["category"] == "Hot Drinks" and tea["quantity"] == 4 and tea["lowStockThreshold"] == 0

    form = client.get(f"/api/products/{tea['id']}/form").json()
    assert form["newCategory"] == "Hot Drinks"

    updated = client.put(f"/api/products/{tea['id']}", json={"name": "Green Tea"})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Green Tea"
    assert updated.json()["category"] == "Hot Drinks"

    qty = client.post(f"/api/products/{tea['id']}/quantity", json={"delta": -10})
    assert qty.json()["quantity"] == 0
    assert client.post(f"/api/products/{tea['id']}/quantity", json={}).status_code == 400

    fav = client.post(f"/api/products/{tea['id']}/favorite")
    assert fav.json()["isFavorite"] is True

    assert client.delete(f"/api/products/{tea['id']}").json()["deleted"] is False
    assert client.delete(f"/api/products/{tea['id']}?confirm=true").json()["deleted"] is True
    missing = client.get(f"/api/products/{tea['id']}")
    assert missing.status_code == 404


def test_recount_flow(tmp_path: Path) -> None:
    client = _client(tmp_path)

    assert client.post("/api/recount/mark/1").status_code == 409
    started = client.post("/api/recount/start").json()
    assert started["state"] == "recounting"
    assert {item["id"] for item in started["items"]} == {"1", "2", "3", "4", "5"}

    assert client.post("/api/recount/mark/2").json()["newlyMarked"] is True
    assert client.post("/api/recount/mark/2").json()["newlyMarked"] is False
    assert client.post("/api/recount/mark/nope").status_code == 404

    finished = client.post("/api/recount/finish", json={"confirm": True}).json()
    assert finished == {"marked": 1, "zeroed": 1, "applied": True}
    assert client.get("/api/products/2").json()["quantity"] == 0
    assert client.get("/api/recount").json()["state"] == "normal"


def test_scan_endpoints(tmp_path: Path) -> None:
    client = _client(tmp_path)

    hit = client.post("/api/scan", json={"mode": "add", "barcode": "111222333"})
    assert hit.status_code == 200
    assert hit.json()["product"]["quantity"] == 6

    miss = client.post("/api/scan", json={"mode": "add", "barcode": "777"})
    assert miss.status_code == 404
    assert miss.json()["form"]["barcode"] == "777"

    search = client.post("/api/scan", json={"mode": "search", "barcode": "111222333"})
    assert search.json()["view"]["search"] == "111222333"

    assert client.post("/api/scan", json={"mode": "add"}).status_code == 400
    assert client.post("/api/scan", json={"mode": "nope", "barcode": "1"}).status_code == 400

    camera = client.post("/api/scan/camera", json={"mode": "add"})
    assert camera.status_code == 200
    assert camera.json()["product"]["quantity"] == 7


def test_camera_unavailable_maps_to_503(tmp_path: Path) -> None:
    client = _client(tmp_path, scanner=SimulatedScanner(available=False))
    response = client.post("/api/scan/camera", json={"mode": "search"})
    assert response.status_code == 503
    assert response.json()["error"] == "CameraAccessError"
    assert client.get("/api/health").status_code == 200


def test_export_import_round_trip(tmp_path: Path) -> None:
    client = _client(tmp_path)
    exported = client.get("/api/export")
    assert exported.status_code == 200
    assert "inventory-data.json" in exported.headers["content-disposition"]
    original = json.loads(exported.text)

    bad = client.post("/api/import?confirm=true", content=b"{\"not\": \"a list\"}")
    assert bad.status_code == 400

    dry = client.post("/api/import", content=json.dumps([{"name": "Only", "quantity": 1}]).encode("utf-8"))
    assert dry.json() == {"count": 1, "applied": False}
    assert client.get("/api/health").json()["products"] == 5

    applied = client.post("/api/import?confirm=true", content=exported.content)
    assert applied.json() == {"count": 5, "applied": True}
    assert json.loads(client.get("/api/export").text) == original
