from __future__ import annotations

from datetime import date
from pathlib import Path
import json
import logging

import joblib

from app.config import get_settings
from app.ml.features import build_demand_features


logger = logging.getLogger(__name__)

_DEFAULT_MODEL_NAME = "demand_model.joblib"
_DEFAULT_METADATA_NAME = "demand_model_metadata.json"

# Feature keys a compatible regressor was fitted on.
DEMAND_FEATURE_NAMES = tuple(
    sorted(build_demand_features(category=None, unit_price=0, target_date=date(2000, 1, 1)))
)


class ModelArtifactError(ValueError):
    pass


def get_model_paths(model_path=None, metadata_path=None):
    settings = get_settings()
    base_dir = Path(__file__).resolve().parent / "artifacts"

    model_value = model_path or settings.ML_MODEL_PATH or str(base_dir / _DEFAULT_MODEL_NAME)
    metadata_value = (
        metadata_path
        or settings.ML_MODEL_METADATA_PATH
        or str(base_dir / _DEFAULT_METADATA_NAME)
    )

    return Path(model_value), Path(metadata_value)


def model_available(model_path=None) -> bool:
    path, _ = get_model_paths(model_path=model_path)
    return path.exists()


def _check_feature_names(metadata, metadata_file):
    features = (metadata or {}).get("features")
    if features is None:
        return
    if tuple(sorted(features)) != DEMAND_FEATURE_NAMES:
        raise ModelArtifactError(
            "{} lists features {} but projections supply {}".format(
                metadata_file,
                sorted(features),
                list(DEMAND_FEATURE_NAMES),
            )
        )


def save_model(model, metadata, model_path=None, metadata_path=None):
    """Persist an externally fitted demand regressor next to its metadata.

    ``features`` is filled in when the metadata does not name them, so a later
    load can tell whether the artifact still matches ``build_demand_features``.
    """
    if not callable(getattr(model, "predict", None)):
        raise ModelArtifactError("demand model must expose predict()")

    metadata = dict(metadata or {})
    metadata.setdefault("features", list(DEMAND_FEATURE_NAMES))
    _check_feature_names(metadata, "metadata")

    model_file, metadata_file = get_model_paths(model_path, metadata_path)
    model_file.parent.mkdir(parents=True, exist_ok=True)
    metadata_file.parent.mkdir(parents=True, exist_ok=True)

    joblib.dump(model, model_file)
    with metadata_file.open("w", encoding="utf-8") as handle:
        json.dump(metadata, handle, indent=2, sort_keys=True, default=str)
    logger.info("Saved demand model to %s", model_file)
    return model_file, metadata_file


def load_model(model_path=None, metadata_path=None):
    """Return ``(model, metadata)``; ``(None, None)`` when no artifact exists."""
    model_file, metadata_file = get_model_paths(model_path, metadata_path)
    if not model_file.exists():
        return None, None

    model = joblib.load(model_file)
    if not callable(getattr(model, "predict", None)):
        raise ModelArtifactError("{} does not hold a regressor with predict()".format(model_file))

    metadata = None
    if metadata_file.exists():
        with metadata_file.open("r", encoding="utf-8") as handle:
            metadata = json.load(handle)
        _check_feature_names(metadata, metadata_file)
    else:
        logger.warning("Demand model %s has no metadata file at %s", model_file, metadata_file)
    return model, metadata


__all__ = [
    "DEMAND_FEATURE_NAMES",
    "ModelArtifactError",
    "get_model_paths",
    "load_model",
    "model_available",
    "save_model",
]
