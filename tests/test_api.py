"""
API tests using FastAPI's TestClient.

The shared engine is pointed at an in-memory catalog and the materials
router at a temporary catalog CSV for each test.
"""
import pytest
from fastapi.testclient import TestClient

from instant_quote.api import materials_api
from instant_quote.api.main import app
from instant_quote.api.state import engine
from instant_quote.data.build_catalog import IMPORT_COLUMNS, build_materials_catalog, load_materials
from instant_quote.engine import FlatMarkupPolicy, MaterialsCatalog
from instant_quote.services.materials_service import MaterialsService


CANVAS = {
    'product_type': 'CAN', 'height': 80, 'width': 60, 'depth': '32',
    'fabric_type': '12oz', 'finish': 'UNP',
}


@pytest.fixture
def client(monkeypatch, basic_catalog):
    original = engine.catalog
    engine.set_catalog(basic_catalog)
    monkeypatch.setattr(engine, 'policy', FlatMarkupPolicy())
    yield TestClient(app)
    engine.set_catalog(original)


@pytest.fixture
def materials_client(monkeypatch, settings, client):
    build_materials_catalog(settings)
    service = MaterialsService(
        settings.materials_catalog,
        on_change=lambda: engine.set_catalog(MaterialsCatalog.from_csv(settings.materials_catalog)),
    )
    monkeypatch.setattr(materials_api, 'materials_service', service)
    return client


def test_root(client):
    assert client.get("/").json()["status"] == "online"


def test_quote(client):
    response = client.post("/quote", json=CANVAS)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["sku"] == "CAN-80.0-60.0-P32-CM-12oz-UNP"
    assert data["price"] == pytest.approx(127.752)
    assert data["formatted_price"].endswith("127.75")
    assert data["breakdown"]["subtotal"] == pytest.approx(106.46)
    assert data["configuration"]["product_type"] == "CAN"


def test_incomplete_quote(client):
    data = client.post("/quote", json={**CANVAS, 'finish': ''}).json()
    assert data["status"] == "incomplete"
    assert data["price"] is None
    assert data["formatted_price"] == ""


def test_quote_rejects_bad_product(client):
    assert client.post("/quote", json={**CANVAS, 'product_type': 'XYZ'}).status_code == 422


def test_change_runs_reducer(client):
    response = client.post("/quote/change", json={
        'configuration': {**CANVAS, 'finish': 'WPR'}, 'field': 'fabric_type', 'value': 'LIN',
    })
    assert response.status_code == 200
    data = response.json()
    assert data["configuration"]["fabric_type"] == "LIN"
    assert data["configuration"]["finish"] == ""
    assert data["quote"]["status"] == "incomplete"
    assert [o["code"] for o in data["options"]["finish"]] == ["UNP"]


def test_change_unknown_field(client):
    response = client.post("/quote/change", json={'configuration': CANVAS, 'field': 'colour', 'value': 'red'})
    assert response.status_code == 400


def test_quote_record(client):
    data = client.post("/quote/record", json={
        'configuration': CANVAS, 'customer': {'name': 'Ada', 'email': 'ada@example.com'},
    }).json()
    assert data["ready"] is True
    assert data["errors"] == []
    assert data["record"]["customer_name"] == "Ada"
    assert data["record"]["sku"] == "CAN-80.0-60.0-P32-CM-12oz-UNP"


def test_quote_record_not_ready(client):
    data = client.post("/quote/record", json={'configuration': CANVAS}).json()
    assert data["ready"] is False
    assert "Customer name is required" in data["errors"]


def test_options(client):
    data = client.get("/options/PAN", params={'panel_has_fabric': 'true'}).json()
    assert [o["code"] for o in data["depth"]] == ["25", "32", "44"]
    assert [o["code"] for o in data["fabric_type"]] == ["12oz"]


def test_system_status(client):
    data = client.get("/system/status").json()
    assert data["materials_count"] == 3
    assert data["pricing_policy"] == "flat_markup"


def test_list_materials(materials_client):
    data = materials_client.get("/materials", params={'material_type': 'Fabric'}).json()
    assert {m["code"] for m in data} == {'12oz', 'SUP', 'LIN', 'OIL'}


def test_get_material(materials_client):
    assert materials_client.get("/materials/CB").json()["material_type"] == "Wood"
    assert materials_client.get("/materials/NOPE").status_code == 404


def test_low_stock_and_stats(materials_client):
    low = materials_client.get("/materials/low-stock").json()
    assert {m["code"] for m in low} == {'OIL', 'P44', 'T32N'}
    assert all(m["low_stock"] for m in low)
    assert materials_client.get("/materials/stats").json()["total"] == 32


def test_create_update_delete_material(materials_client):
    payload = {
        'code': 'T44W', 'material_type': 'Profile', 'description': '44mm White Tray Frame',
        'puom': 'Length', 'muom': 'cm', 'pcp': 12.0, 'unit_conversion_factor': 240,
        'overhead_factor': 1.25, 'current_stock_puom': 10, 'min_stock_puom': 4,
    }
    created = materials_client.post("/materials", json=payload)
    assert created.status_code == 200
    assert created.json()["mcp"] == pytest.approx(0.0625)
    assert 'T44W' in engine.catalog

    assert materials_client.post("/materials", json=payload).status_code == 400

    updated = materials_client.put("/materials/T44W", json={'pcp': 24.0})
    assert updated.json()["mcp"] == pytest.approx(0.125)
    assert materials_client.put("/materials/NOPE", json={'pcp': 1}).status_code == 404

    assert materials_client.delete("/materials/T44W").json()["success"] is True
    assert materials_client.delete("/materials/T44W").status_code == 404
    assert 'T44W' not in engine.catalog


def test_create_invalid_material(materials_client):
    response = materials_client.post("/materials", json={'code': 'X1', 'material_type': 'Cheese'})
    assert response.status_code == 400
    assert response.json()["detail"]["errors"]


def test_validate_material(materials_client):
    data = materials_client.post("/materials/validate", json={
        'code': 'X1', 'material_type': 'Wood', 'description': 'x', 'puom': 'Length', 'muom': 'cm',
        'pcp': 10, 'unit_conversion_factor': 100, 'overhead_factor': 1.25,
    }).json()
    assert data["valid"] is True
    assert data["mcp"] == pytest.approx(0.125)


def test_import_materials(materials_client):
    content = ",".join(IMPORT_COLUMNS) + "\nCB,Cross Brace,Wood,Length,4.80,cm,240,1.25,150,50,\n"
    response = materials_client.post("/materials/import", files={'file': ('prices.csv', content, 'text/csv')})
    assert response.status_code == 200
    assert response.json()["rows_imported"] == 1
    assert engine.catalog.get_by_code('CB').pcp == 4.80


def test_import_bad_header(materials_client):
    response = materials_client.post("/materials/import", files={'file': ('bad.csv', "code,price\n", 'text/csv')})
    assert response.status_code == 400


def test_import_non_utf8_is_rejected(materials_client):
    content = ("code,descripción\n").encode('latin-1')
    response = materials_client.post("/materials/import", files={'file': ('latin.csv', content, 'text/csv')})
    assert response.status_code == 400
    assert "UTF-8" in response.json()["detail"]["errors"][0]


def test_import_with_bom(materials_client):
    content = ("\ufeff" + ",".join(IMPORT_COLUMNS) + "\nCB,Cross Brace,Wood,Length,4.80,cm,240,1.25,150,50,\n").encode('utf-8')
    response = materials_client.post("/materials/import", files={'file': ('bom.csv', content, 'text/csv')})
    assert response.status_code == 200


def test_update_with_null_price_is_rejected(materials_client):
    response = materials_client.put("/materials/CB", json={'pcp': None})
    assert response.status_code == 400
    assert materials_client.get("/materials/CB").json()["pcp"] == pytest.approx(3.60)


def test_fresh_install_serves_and_upserts_seed(monkeypatch, settings, client):
    engine.set_catalog(MaterialsCatalog(load_materials(settings.materials_seed)[0]))
    service = MaterialsService(
        settings.materials_catalog,
        on_change=lambda: engine.set_catalog(MaterialsCatalog.from_csv(settings.materials_catalog)),
        seed_path=settings.materials_seed,
    )
    monkeypatch.setattr(materials_api, 'materials_service', service)

    assert len(client.get("/materials").json()) == 32
    content = ",".join(IMPORT_COLUMNS) + "\nNEW1,New Profile,Profile,Length,10,cm,100,1,5,1,\n"
    assert client.post("/materials/import", files={'file': ('new.csv', content, 'text/csv')}).status_code == 200
    assert len(client.get("/materials").json()) == 33
    assert client.post("/quote", json=CANVAS).json()["breakdown"]["fabric"] > 0
