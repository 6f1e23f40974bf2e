from __future__ import annotations

from datetime import date


def _normalize_text(value) -> str:
    if value is None:
        return "unknown"
    value_text = str(value).strip().lower()
    return value_text if value_text else "unknown"


def _to_float(value, default=0.0) -> float:
    if value is None:
        return float(default)
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return float(default)
        try:
            return float(value_text)
        except ValueError:
            return float(default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def build_demand_features(*, category, unit_price, target_date: date) -> dict:
    """Feature dict fed to a pre-trained demand regressor (DictVectorizer input)."""
    price_value = max(0.0, _to_float(unit_price, default=0.0))
    return {
        "category": _normalize_text(category),
        "unit_price": price_value,
        "year": float(target_date.year),
        "month": float(target_date.month),
        "day_of_year": float(target_date.timetuple().tm_yday),
        "day_of_week": float(target_date.weekday()),
        "is_weekend": 1.0 if target_date.weekday() >= 5 else 0.0,
    }


__all__ = ["build_demand_features"]
