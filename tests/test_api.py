import unittest
from datetime import date, timedelta

from fastapi.testclient import TestClient

from app.core.dates import utc_today
from app.dependencies import get_db
from app.main import app
from app.ml.model_state import ModelState
from app.models.product import Product
from app.services.notification_service import StockEventBroadcaster
from tests.db_utils import add_product, add_sale, make_session


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = make_session()

        def override_get_db():
            yield self.db

        app.dependency_overrides[get_db] = override_get_db
        app.state.model_state = ModelState()
        app.state.broadcaster = StockEventBroadcaster()
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        self.engine.dispose()

    def _create_product(self, **overrides):
        payload = {
            "name": "Laptop",
            "sku": "LAP-1",
            "category": "Electronics",
            "unit_price": 150.0,
            "current_stock": 100,
            "minimum_stock": 20,
        }
        payload.update(overrides)
        response = self.client.post("/products", json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class HealthApiTest(ApiTestCase):
    def test_root_and_health(self):
        self.assertEqual(self.client.get("/").json()["status"], "ok")
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "ok")
        self.assertFalse(body["model"]["is_trained"])


class ProductApiTest(ApiTestCase):
    def test_crud(self):
        created = self._create_product()
        self.assertFalse(created["is_low_stock"])

        product_id = created["id"]
        self.assertEqual(self.client.get(f"/products/{product_id}").json()["sku"], "LAP-1")
        updated = self.client.put(f"/products/{product_id}", json={"unit_price": 120.0})
        self.assertEqual(updated.json()["unit_price"], 120.0)
        self.assertEqual(len(self.client.get("/products", params={"category": "electronics"}).json()), 1)

        self.assertEqual(self.client.delete(f"/products/{product_id}").status_code, 204)
        self.assertEqual(self.client.get(f"/products/{product_id}").status_code, 404)

    def test_duplicate_sku(self):
        self._create_product()
        response = self.client.post(
            "/products",
            json={"name": "Other", "sku": "LAP-1", "category": "Electronics", "unit_price": 10.0},
        )
        self.assertEqual(response.status_code, 400)

    def test_validation(self):
        response = self.client.post(
            "/products",
            json={"name": "Bad", "sku": "BAD-1", "category": "Books", "unit_price": -1},
        )
        self.assertEqual(response.status_code, 422)

    def test_low_stock_filter(self):
        self._create_product()
        short = self._create_product(name="Cable", sku="CBL-1", current_stock=4, minimum_stock=10)

        response = self.client.get("/products", params={"lowStock": "true"})
        self.assertEqual([item["id"] for item in response.json()], [short["id"]])
        self.assertEqual(response.headers["X-Total-Count"], "1")
        self.assertEqual(len(self.client.get("/products", params={"lowStock": "false"}).json()), 2)

    def test_paging_reports_filtered_total(self):
        for index in range(5):
            self._create_product(name=f"Item {index}", sku=f"ITM-{index}")
        self._create_product(name="Novel", sku="BK-1", category="Books")

        response = self.client.get("/products", params={"category": "Electronics", "page": 2, "pageSize": 2})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual([item["name"] for item in response.json()], ["Item 2", "Item 3"])
        self.assertEqual(response.headers["X-Total-Count"], "5")

        past_end = self.client.get("/products", params={"page": 10, "pageSize": 2})
        self.assertEqual(past_end.json(), [])
        self.assertEqual(past_end.headers["X-Total-Count"], "6")

        self.assertEqual(self.client.get("/products", params={"page": 0}).status_code, 422)
        self.assertEqual(self.client.get("/products", params={"pageSize": 0}).status_code, 422)

    def test_categories(self):
        defaults = self.client.get("/products/categories").json()
        self.assertEqual(defaults, ["Electronics", "Clothing", "Books", "Home & Garden", "Sports", "Toys"])

        self._create_product(category="Toys")
        self._create_product(name="Novel", sku="BK-1", category="Books")
        self._create_product(name="Puzzle", sku="TOY-2", category="Toys")
        self.assertEqual(self.client.get("/products/categories").json(), ["Books", "Toys"])

    def test_stock_status(self):
        cases = [
            (0, 0, "Out of Stock"),
            (5, 10, "Low"),
            (10, 10, "Low"),
            (20, 10, "Medium"),
            (21, 10, "High"),
        ]
        for index, (current, minimum, expected) in enumerate(cases):
            with self.subTest(current=current, minimum=minimum):
                created = self._create_product(
                    sku=f"STK-{index}",
                    current_stock=current,
                    minimum_stock=minimum,
                )
                self.assertEqual(created["stock_status"], expected)
                self.assertEqual(self.client.get(f"/products/{created['id']}").json()["stock_status"], expected)


class InventoryApiTest(ApiTestCase):
    def test_stock_update_broadcasts(self):
        events = []
        app.state.broadcaster.subscribe(lambda name, payload: events.append(name))
        product_id = self._create_product()["id"]

        response = self.client.put(f"/inventory/{product_id}/stock", json={"new_stock": 5, "reason": "sale"})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["is_low_stock"])
        self.assertEqual(events, ["StockUpdated", "LowStockAlert"])

        low = self.client.get("/inventory/low-stock").json()
        self.assertEqual([item["id"] for item in low], [product_id])

    def test_adjust_and_minimum(self):
        product_id = self._create_product()["id"]
        response = self.client.post(f"/inventory/{product_id}/adjust", json={"adjustment": -500})
        self.assertEqual(response.json()["new_stock"], 0)
        response = self.client.put(f"/inventory/{product_id}/minimum-stock", json={"minimum_stock": 3})
        self.assertEqual(response.json()["minimum_stock"], 3)

    def test_unknown_product(self):
        self.assertEqual(self.client.put("/inventory/999/stock", json={"new_stock": 1}).status_code, 404)
        self.assertEqual(self.client.post("/inventory/999/adjust", json={"adjustment": 1}).status_code, 404)

    def test_dashboard_and_report(self):
        created = self._create_product()
        product = self.db.get(Product, created["id"])
        add_sale(self.db, product, utc_today() - timedelta(days=1), 3)

        body = self.client.get("/inventory/dashboard").json()
        self.assertEqual(body["total_products"], 1)
        self.assertAlmostEqual(body["monthly_revenue"], 450.0)

        report = self.client.get("/inventory/report").json()
        self.assertEqual(report["total_units_sold_in_period"], 3)

        bad = self.client.get(
            "/inventory/report",
            params={"start_date": "2025-12-10", "end_date": "2025-12-01"},
        )
        self.assertEqual(bad.status_code, 400)


class PredictionApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.laptop = add_product(self.db, name="Laptop", sku="LAP-1", unit_price=150.0)
        self.novel = add_product(self.db, name="Novel", sku="BK-1", category="Books", unit_price=12.0)

    def test_generate_and_read(self):
        response = self.client.post("/predictions/generate", params={"seed": 4})
        self.assertEqual(response.status_code, 200, response.text)
        rows = response.json()
        self.assertEqual(len(rows), 60)
        tomorrow = utc_today() + timedelta(days=1)
        self.assertEqual(rows[0]["predicted_date"], tomorrow.isoformat())

        for_laptop = self.client.get(f"/predictions/product/{self.laptop.id}").json()
        self.assertEqual(len(for_laptop), 30)
        self.assertEqual(len(self.client.get("/predictions").json()), 60)

        in_range = self.client.get(
            "/predictions/range",
            params={"start_date": tomorrow.isoformat(), "end_date": tomorrow.isoformat()},
        ).json()
        self.assertEqual(len(in_range), 2)

        summary = self.client.get("/predictions/summary").json()
        self.assertEqual(summary["total_predictions"], 60)

        high = self.client.get("/predictions/high-confidence", params={"minimum_confidence": 0}).json()
        self.assertEqual(len(high), 60)

    def test_inverted_range(self):
        response = self.client.get(
            "/predictions/range",
            params={"start_date": "2025-12-10", "end_date": "2025-12-01"},
        )
        self.assertEqual(response.status_code, 400)

    def test_abc_and_seasonal(self):
        self.assertEqual(self.client.get(f"/predictions/abc/{self.laptop.id}").json()["abc_category"], "A")
        self.assertEqual(self.client.get("/predictions/abc/999").json()["abc_category"], "C")

        add_sale(self.db, self.novel, date(2025, 3, 3), 4)
        patterns = self.client.get(f"/predictions/seasonal/{self.novel.id}").json()
        self.assertEqual(len(patterns), 12)
        self.assertEqual(patterns[2]["total_sales"], 4)

    def test_retrain_and_status(self):
        self.assertFalse(self.client.get("/predictions/model-status").json()["is_trained"])
        status = self.client.post("/predictions/retrain").json()
        self.assertTrue(status["is_trained"])
        self.assertTrue(self.client.get("/predictions/model-status").json()["is_trained"])


class AnalysisApiTest(ApiTestCase):
    def test_abc_summary(self):
        laptop = add_product(self.db, name="Laptop", sku="LAP-1", unit_price=1200.0)
        for offset in range(40):
            add_sale(self.db, laptop, date(2025, 12, 1) - timedelta(days=offset), 50)

        body = self.client.get("/analysis/abc", params={"as_of": "2025-12-01"}).json()
        self.assertEqual(body["total_products"], 1)
        self.assertEqual(body["category_a_count"], 1)
        self.assertEqual(body["analysis_period_start"], "2025-09-02")
        self.assertEqual(body["product_analyses"][0]["abc_category"], "A")


if __name__ == "__main__":
    unittest.main()
