from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Optional

from app.core.dates import utc_now


class ModelState:
    """Operational record of the loaded demand model.

    Owned by the application and handed to request handlers; projection code
    receives the model object explicitly and never reads this state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._is_trained = False
        self._last_trained_at: Optional[datetime] = None
        self._model: Any = None
        self._metadata: Optional[dict] = None

    @property
    def is_trained(self) -> bool:
        with self._lock:
            return self._is_trained

    @property
    def last_trained_at(self) -> Optional[datetime]:
        with self._lock:
            return self._last_trained_at

    @property
    def model(self):
        with self._lock:
            return self._model

    def mark_trained(self, model=None, metadata=None, trained_at=None) -> datetime:
        trained_at = trained_at or utc_now()
        with self._lock:
            self._is_trained = True
            self._last_trained_at = trained_at
            self._model = model
            self._metadata = dict(metadata) if metadata else None
        return trained_at

    def reset(self) -> None:
        with self._lock:
            self._is_trained = False
            self._last_trained_at = None
            self._model = None
            self._metadata = None

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "is_trained": self._is_trained,
                "last_trained_at": self._last_trained_at,
                "model_loaded": self._model is not None,
                "metadata": dict(self._metadata) if self._metadata else None,
            }


__all__ = ["ModelState"]
