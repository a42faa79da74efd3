import io

import pandas as pd
import pytest

from conftest import create_product
from fortmix.audit.models import AuditLog
from fortmix.stock.movements.models import StockMovement


def _product_payload(**overrides):
    payload = {
        "code": "001",
        "name": "Argamassa AC-I 20kg",
        "category": "Argamassas",
        "price": 32.90,
        "cost_price": 25.00,
        "stock_quantity": 100,
        "min_stock": 10,
        "unit": "SC",
    }
    payload.update(overrides)
    return payload


class TestCreateProduct:
    """Tests for POST /api/products."""

    def test_create_returns_id(self, client, owner_headers):
        response = client.post("/api/products", json=_product_payload(), headers=owner_headers)

        assert response.status_code == 200
        assert set(response.json()) == {"id"}

    def test_opening_stock_is_an_in_movement(self, client, owner_headers, session):
        pid = create_product(client, owner_headers, stock_quantity=40)

        with session() as s:
            movements = s.query(StockMovement).filter(StockMovement.product_id == pid).all()
            assert len(movements) == 1
            assert movements[0].type == "IN"
            assert movements[0].quantity == 40
            assert movements[0].reason == "Estoque inicial"

    def test_zero_stock_writes_no_movement(self, client, owner_headers, session):
        pid = create_product(client, owner_headers, stock_quantity=0)

        with session() as s:
            assert s.query(StockMovement).filter(StockMovement.product_id == pid).count() == 0

    def test_create_is_audited(self, client, owner_headers, session):
        create_product(client, owner_headers)

        with session() as s:
            entry = s.query(AuditLog).filter(AuditLog.action == "CREATE", AuditLog.entity == "PRODUCT").one()
            assert entry.details == "Produto criado: Argamassa AC-I 20kg (001)"

    def test_duplicate_code(self, client, owner_headers):
        create_product(client, owner_headers)

        response = client.post("/api/products", json=_product_payload(name="Outro"), headers=owner_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Error creating product (duplicate code?)"

    def test_code_is_trimmed(self, client, owner_headers):
        create_product(client, owner_headers, code="  ABC ")

        response = client.post("/api/products", json=_product_payload(code="ABC"), headers=owner_headers)

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "overrides",
        [{"code": "   "}, {"name": ""}, {"price": -1}, {"min_stock": -5}],
    )
    def test_invalid_payload(self, client, owner_headers, overrides):
        response = client.post("/api/products", json=_product_payload(**overrides), headers=owner_headers)
        assert response.status_code == 422


class TestReadProducts:
    def test_list_sorted_by_name(self, client, owner_headers, salesperson_headers):
        create_product(client, owner_headers, code="1", name="Tijolo")
        create_product(client, owner_headers, code="2", name="Areia")

        response = client.get("/api/products", headers=salesperson_headers)

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Areia", "Tijolo"]

    def test_get_by_id(self, client, owner_headers, product_id):
        response = client.get(f"/api/products/{product_id}", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == "001"
        assert data["stock_quantity"] == 100
        assert data["unit"] == "SC"

    def test_get_unknown(self, client, owner_headers):
        assert client.get("/api/products/999", headers=owner_headers).status_code == 404


class TestUpdateProduct:
    """Tests for PUT /api/products/{id}."""

    def test_update_fields(self, client, owner_headers, product_id):
        response = client.put(
            f"/api/products/{product_id}",
            json=_product_payload(name="Argamassa AC-II 20kg", price=36.50),
            headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        data = client.get(f"/api/products/{product_id}", headers=owner_headers).json()
        assert data["name"] == "Argamassa AC-II 20kg"
        assert data["price"] == pytest.approx(36.50)

    def test_stock_edit_writes_adjustment(self, client, owner_headers, session, product_id):
        client.put(
            f"/api/products/{product_id}",
            json=_product_payload(stock_quantity=94),
            headers=owner_headers,
        )

        with session() as s:
            adj = s.query(StockMovement).filter(StockMovement.type == "ADJ").one()
            assert adj.quantity == -6
            assert adj.reason == "Ajuste via cadastro"
            assert s.query(AuditLog).filter(AuditLog.action == "UPDATE", AuditLog.entity == "PRODUCT").count() == 1

        data = client.get(f"/api/products/{product_id}", headers=owner_headers).json()
        assert data["stock_quantity"] == 94

    def test_unchanged_stock_writes_no_adjustment(self, client, owner_headers, session, product_id):
        client.put(
            f"/api/products/{product_id}",
            json=_product_payload(price=40.0),
            headers=owner_headers,
        )

        with session() as s:
            assert s.query(StockMovement).filter(StockMovement.type == "ADJ").count() == 0

    def test_edit_form_without_stock_keeps_stock(self, client, owner_headers, session, product_id):
        """The product screen sends no stock field; stock and ledger stay untouched."""
        body = _product_payload(price=35.0)
        del body["stock_quantity"]

        response = client.put(f"/api/products/{product_id}", json=body, headers=owner_headers)

        assert response.status_code == 200
        data = client.get(f"/api/products/{product_id}", headers=owner_headers).json()
        assert data["stock_quantity"] == 100
        assert data["price"] == pytest.approx(35.0)
        with session() as s:
            assert s.query(StockMovement).filter(StockMovement.product_id == product_id).count() == 1
            assert s.query(StockMovement).filter(StockMovement.type == "ADJ").count() == 0

    def test_update_unknown(self, client, owner_headers):
        response = client.put("/api/products/999", json=_product_payload(), headers=owner_headers)
        assert response.status_code == 404

    def test_code_clash(self, client, owner_headers, product_id):
        other = create_product(client, owner_headers, code="002", name="Rejunte")

        response = client.put(
            f"/api/products/{other}",
            json=_product_payload(code="001", name="Rejunte"),
            headers=owner_headers,
        )

        assert response.status_code == 400

    def test_keeping_own_code(self, client, owner_headers, product_id):
        response = client.put(f"/api/products/{product_id}", json=_product_payload(), headers=owner_headers)
        assert response.status_code == 200


class TestImportProducts:
    """Tests for POST /api/products/import."""

    def _upload(self, client, headers, filename, content, content_type="text/csv"):
        return client.post(
            "/api/products/import",
            files={"file": (filename, content, content_type)},
            headers=headers,
        )

    def test_csv_import(self, client, owner_headers, session):
        content = (
            "Code,Name,Price,cost_price,stock_quantity,unit\n"
            "0101,Tijolo 8 furos,1.50,0.90,500,UN\n"
            "0102,Areia media,120,95,,M3\n"
        ).encode()

        response = self._upload(client, owner_headers, "produtos.csv", content)

        assert response.status_code == 200
        assert response.json() == {"created": 2, "skipped": 0}
        products = {p["code"]: p for p in client.get("/api/products", headers=owner_headers).json()}
        assert products["0101"]["stock_quantity"] == 500
        assert products["0102"]["stock_quantity"] == 0
        assert products["0102"]["unit"] == "M3"
        with session() as s:
            assert s.query(StockMovement).filter(StockMovement.reason == "Estoque inicial").count() == 1
            assert s.query(AuditLog).filter(AuditLog.action == "IMPORT").count() == 1

    def test_existing_and_blank_codes_skipped(self, client, owner_headers):
        create_product(client, owner_headers)
        content = b"code,name,price\n001,Duplicado,1\n,Sem codigo,2\n002,Novo,3\n002,Repetido,4\n"

        response = self._upload(client, owner_headers, "p.csv", content)

        assert response.json() == {"created": 1, "skipped": 3}

    def test_excel_import(self, client, owner_headers):
        buffer = io.BytesIO()
        pd.DataFrame(
            [{"code": "X1", "name": "Cal hidratada", "price": 18.0}]
        ).to_excel(buffer, index=False)

        response = self._upload(
            client,
            owner_headers,
            "produtos.xlsx",
            buffer.getvalue(),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        assert response.status_code == 200
        assert response.json() == {"created": 1, "skipped": 0}

    def test_missing_columns(self, client, owner_headers):
        response = self._upload(client, owner_headers, "p.csv", b"code,name\n1,A\n")
        assert response.status_code == 400

    def test_wrong_extension(self, client, owner_headers):
        response = self._upload(client, owner_headers, "p.txt", b"code,name,price\n", "text/plain")
        assert response.status_code == 400
