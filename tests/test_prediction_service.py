import json
import tempfile
import unittest
from datetime import date
from pathlib import Path

from app.ml.model_io import DEMAND_FEATURE_NAMES, ModelArtifactError, model_available, save_model
from app.ml.model_state import ModelState
from app.services.prediction_service import (
    generate_predictions,
    get_abc_category,
    get_all_predictions,
    get_high_confidence_predictions,
    get_prediction_summary,
    get_predictions,
    get_predictions_by_date_range,
    get_seasonal_patterns,
    model_status,
    reload_model,
)
from tests.db_utils import add_prediction, add_product, add_sale, make_session

TODAY = date(2025, 12, 1)


class FlatDemandModel:
    def predict(self, rows):
        return [4.0 for _ in rows]


class PredictionServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = make_session()
        self.laptop = add_product(self.db, name="Laptop", sku="LAP-1", category="Electronics", unit_price=150.0)
        self.novel = add_product(
            self.db,
            name="Novel",
            sku="BK-1",
            category="Books",
            unit_price=12.0,
            current_stock=3,
            minimum_stock=5,
        )
        self.model_state = ModelState()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()


class GeneratePredictionsTest(PredictionServiceTestCase):
    def test_generates_horizon_starting_tomorrow(self):
        rows = generate_predictions(self.db, self.model_state, today=TODAY, days=3, seed=7)
        self.assertEqual(len(rows), 6)
        laptop_dates = [row.predicted_date for row in get_predictions(self.db, self.laptop.id)]
        self.assertEqual(laptop_dates, [date(2025, 12, 2), date(2025, 12, 3), date(2025, 12, 4)])
        tiers = {row.product_id: row.abc_category for row in rows}
        self.assertEqual(tiers, {self.laptop.id: "A", self.novel.id: "C"})

    def test_regeneration_replaces_future_rows_and_keeps_past(self):
        add_prediction(self.db, self.laptop, date(2025, 11, 30), demand=1.0)
        add_prediction(self.db, self.laptop, date(2025, 12, 20), demand=99.0)

        generate_predictions(self.db, self.model_state, today=TODAY, days=3, seed=7)
        generate_predictions(self.db, self.model_state, today=TODAY, days=3, seed=7)

        stored = get_all_predictions(self.db)
        self.assertEqual(len(stored), 7)
        dates = {row.predicted_date for row in stored}
        self.assertIn(date(2025, 11, 30), dates)
        self.assertNotIn(date(2025, 12, 20), dates)

    def test_seeded_generation_is_reproducible(self):
        first = [
            (row.product_id, row.predicted_date, row.predicted_demand, row.confidence)
            for row in generate_predictions(self.db, self.model_state, today=TODAY, days=4, seed=21)
        ]
        second = [
            (row.product_id, row.predicted_date, row.predicted_demand, row.confidence)
            for row in generate_predictions(self.db, self.model_state, today=TODAY, days=4, seed=21)
        ]
        self.assertEqual(first, second)

    def test_portfolio_tiers_can_drive_forecasts(self):
        # No sales in the window, so the full classifier places the laptop in C.
        rows = generate_predictions(
            self.db,
            self.model_state,
            today=TODAY,
            days=2,
            seed=3,
            tier_source="portfolio",
        )
        self.assertEqual({row.abc_category for row in rows if row.product_id == self.laptop.id}, {"C"})

    def test_unknown_tier_source(self):
        with self.assertRaises(ValueError):
            generate_predictions(self.db, self.model_state, today=TODAY, days=2, tier_source="magic")

    def test_no_products(self):
        engine, db = make_session()
        try:
            with self.assertLogs("app.services.prediction_service", level="WARNING"):
                self.assertEqual(generate_predictions(db, ModelState(), today=TODAY, days=2), [])
        finally:
            db.close()
            engine.dispose()

    def test_zero_day_horizon_generates_nothing_and_keeps_stored_rows(self):
        add_prediction(self.db, self.laptop, date(2025, 12, 5))
        with self.assertLogs("app.services.prediction_service", level="WARNING"):
            rows = generate_predictions(self.db, self.model_state, today=TODAY, days=0)
        self.assertEqual(rows, [])
        self.assertEqual(len(get_all_predictions(self.db)), 1)

    def test_loaded_model_drives_demand(self):
        self.model_state.mark_trained(model=FlatDemandModel())
        rows = generate_predictions(self.db, self.model_state, today=TODAY, days=2, seed=5)
        for row in rows:
            with self.subTest(product_id=row.product_id, day=row.predicted_date):
                self.assertGreaterEqual(row.predicted_demand, 3.2 - 1e-9)
                self.assertLessEqual(row.predicted_demand, 4.8 + 1e-9)


class PredictionQueryTest(PredictionServiceTestCase):
    def setUp(self):
        super().setUp()
        add_prediction(self.db, self.laptop, date(2025, 11, 30), demand=2.0, confidence=0.95, tier="A")
        add_prediction(self.db, self.laptop, date(2025, 12, 2), demand=5.0, confidence=0.9, tier="A")
        add_prediction(self.db, self.novel, date(2025, 12, 2), demand=3.0, confidence=0.6, tier="C")
        add_prediction(self.db, self.laptop, date(2025, 12, 3), demand=6.0, confidence=0.8, tier="A")

    def test_range(self):
        rows = get_predictions_by_date_range(self.db, date(2025, 12, 2), date(2025, 12, 2))
        self.assertEqual([row.product_id for row in rows], [self.laptop.id, self.novel.id])

    def test_range_rejects_inverted_dates(self):
        with self.assertRaises(ValueError):
            get_predictions_by_date_range(self.db, date(2025, 12, 3), date(2025, 12, 2))

    def test_high_confidence_uses_threshold(self):
        rows = get_high_confidence_predictions(self.db)
        self.assertEqual([row.confidence for row in rows], [0.95, 0.9, 0.8])
        rows = get_high_confidence_predictions(self.db, minimum_confidence=0.5)
        self.assertEqual(len(rows), 4)

    def test_summary_covers_today_onwards(self):
        summary = get_prediction_summary(self.db, today=TODAY)
        self.assertEqual(summary["total_predictions"], 3)
        self.assertEqual(summary["high_confidence_predictions"], 2)
        self.assertAlmostEqual(summary["average_confidence"], (0.9 + 0.6 + 0.8) / 3)
        self.assertAlmostEqual(summary["total_predicted_demand"], 14.0)
        self.assertEqual([entry["category"] for entry in summary["category_breakdown"]], ["A", "C"])
        self.assertEqual(summary["category_breakdown"][0]["count"], 2)
        self.assertEqual(summary["top_products"][0]["product_name"], "Laptop")
        self.assertAlmostEqual(summary["top_products"][0]["total_predicted_demand"], 11.0)
        self.assertIsNotNone(summary["last_generation_date"])

    def test_summary_without_future_rows(self):
        summary = get_prediction_summary(self.db, today=date(2026, 1, 1))
        self.assertEqual(summary["total_predictions"], 0)
        self.assertEqual(summary["average_confidence"], 0.0)
        self.assertIsNone(summary["last_generation_date"])


class AbcAndSeasonalityTest(PredictionServiceTestCase):
    def test_abc_category_uses_quick_tier(self):
        self.assertEqual(get_abc_category(self.db, self.laptop.id), "A")
        self.assertEqual(get_abc_category(self.db, self.novel.id), "C")

    def test_abc_category_for_unknown_product(self):
        self.assertEqual(get_abc_category(self.db, 9999), "C")

    def test_seasonal_patterns(self):
        add_sale(self.db, self.laptop, date(2025, 1, 10), 6)
        add_sale(self.db, self.laptop, date(2025, 1, 20), 6)
        add_sale(self.db, self.laptop, date(2025, 7, 4), 12)

        patterns = get_seasonal_patterns(self.db, self.laptop.id)
        self.assertEqual(len(patterns), 12)
        january, february, july = patterns[0], patterns[1], patterns[6]
        self.assertEqual(january["month_name"], "January")
        self.assertEqual(january["total_sales"], 12)
        self.assertEqual(january["sales_count"], 2)
        self.assertAlmostEqual(january["average_daily_sales"], 6.0)
        self.assertAlmostEqual(january["seasonality_index"], 6.0)
        self.assertAlmostEqual(july["seasonality_index"], 6.0)
        self.assertEqual(february["seasonality_index"], 0.0)

    def test_seasonal_patterns_without_sales(self):
        patterns = get_seasonal_patterns(self.db, self.novel.id)
        self.assertTrue(all(entry["seasonality_index"] == 1.0 for entry in patterns))
        self.assertTrue(all(entry["total_sales"] == 0 for entry in patterns))


class ModelReloadTest(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.model_path = Path(self.tmpdir.name) / "model.joblib"
        self.metadata_path = Path(self.tmpdir.name) / "model.json"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_reload_without_artifact(self):
        state = ModelState()
        status = reload_model(state, self.model_path, self.metadata_path)
        self.assertTrue(status["is_trained"])
        self.assertFalse(status["model_loaded"])
        self.assertIsNotNone(status["last_trained_at"])
        self.assertEqual(model_status(state), status)

    def test_model_available_tracks_artifact(self):
        self.assertFalse(model_available(self.model_path))
        save_model(FlatDemandModel(), {}, self.model_path, self.metadata_path)
        self.assertTrue(model_available(self.model_path))

    def test_reload_with_artifact(self):
        save_model(FlatDemandModel(), {"rows": 480}, self.model_path, self.metadata_path)
        state = ModelState()
        status = reload_model(state, self.model_path, self.metadata_path)
        self.assertTrue(status["model_loaded"])
        self.assertEqual(status["metadata"]["rows"], 480)
        self.assertEqual(sorted(status["metadata"]["features"]), list(DEMAND_FEATURE_NAMES))
        self.assertEqual(state.model.predict([{}]), [4.0])

    def test_incompatible_artifact_falls_back_to_heuristic(self):
        save_model(FlatDemandModel(), {"rows": 1}, self.model_path, self.metadata_path)
        self.metadata_path.write_text(json.dumps({"features": ["price_only"]}), encoding="utf-8")
        state = ModelState()
        with self.assertLogs("app.services.prediction_service", level="WARNING"):
            status = reload_model(state, self.model_path, self.metadata_path)
        self.assertTrue(status["is_trained"])
        self.assertFalse(status["model_loaded"])
        self.assertIn("price_only", status["metadata"]["load_error"])

    def test_save_rejects_object_without_predict(self):
        with self.assertRaises(ModelArtifactError):
            save_model(object(), {}, self.model_path, self.metadata_path)


if __name__ == "__main__":
    unittest.main()
