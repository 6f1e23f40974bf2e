import threading
import unittest
from datetime import datetime, timezone

from app.ml.model_state import ModelState


class ModelStateTest(unittest.TestCase):
    def test_starts_untrained(self):
        state = ModelState()
        self.assertFalse(state.is_trained)
        self.assertIsNone(state.last_trained_at)
        self.assertIsNone(state.model)
        self.assertEqual(
            state.snapshot(),
            {"is_trained": False, "last_trained_at": None, "model_loaded": False, "metadata": None},
        )

    def test_mark_trained_records_model_and_timestamp(self):
        state = ModelState()
        trained_at = datetime(2025, 12, 1, 8, 30, tzinfo=timezone.utc)
        model = object()
        returned = state.mark_trained(model=model, metadata={"rows": 120}, trained_at=trained_at)

        self.assertEqual(returned, trained_at)
        self.assertTrue(state.is_trained)
        self.assertIs(state.model, model)
        snapshot = state.snapshot()
        self.assertEqual(snapshot["last_trained_at"], trained_at)
        self.assertTrue(snapshot["model_loaded"])
        self.assertEqual(snapshot["metadata"], {"rows": 120})

    def test_mark_trained_without_model_still_counts_as_trained(self):
        state = ModelState()
        state.mark_trained()
        self.assertTrue(state.is_trained)
        self.assertIsNotNone(state.last_trained_at)
        self.assertFalse(state.snapshot()["model_loaded"])

    def test_snapshot_is_a_copy(self):
        state = ModelState()
        state.mark_trained(metadata={"rows": 1})
        snapshot = state.snapshot()
        snapshot["metadata"]["rows"] = 99
        self.assertEqual(state.snapshot()["metadata"], {"rows": 1})

    def test_reset(self):
        state = ModelState()
        state.mark_trained(model=object(), metadata={"rows": 1})
        state.reset()
        self.assertFalse(state.is_trained)
        self.assertIsNone(state.model)
        self.assertIsNone(state.snapshot()["metadata"])

    def test_concurrent_marks(self):
        state = ModelState()
        threads = [threading.Thread(target=state.mark_trained) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertTrue(state.is_trained)
        self.assertIsNotNone(state.last_trained_at)


if __name__ == "__main__":
    unittest.main()
