"""Threshold conditions shared by the role-note and clinical-alert engines.

A condition is a small dict evaluated against a metrics mapping:

    {"metric": "avg_heart_rate", "op": ">", "value": 90}

Condition operators:
  - Comparisons: >, <, >=, <=, ==, !=
  - Text: "eq_text" / "ne_text" (trimmed, case-insensitive)
  - Flags: "is_true"; "present" matches any recorded value, zero included
  - Logic: {"all": [..]} (AND), {"any": [..]} (OR)

Metric lookup:
  - If the exact `metric` key exists in the mapping, that value is used.
  - Otherwise `metric` is a dotted path into nested dicts (e.g. `latest.spo2`).

A metric that is missing, None or not usable for the operator never matches.
Absent is therefore distinct from zero: `{"metric": "apnea_events", "op": ">",
"value": 0}` is False both for 0 and for "no apnea data", but only the former
is a measured value.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Sequence

from .metrics import Summary

_NUMERIC_OPS = {">", "<", ">=", "<=", "==", "!="}
_TEXT_OPS = {"eq_text", "ne_text"}


def summary_metrics(summary: Summary) -> dict[str, Any]:
    """Flat view of a summary for condition lookup; the latest sample sits under `latest`."""
    metrics = summary.to_dict()
    metrics["latest"] = summary.latest.to_dict()
    metrics["deep_sleep_pct"] = summary.deep_sleep_pct
    return metrics


def hypertensive_condition(systolic_high: float, diastolic_high: float) -> dict[str, Any]:
    """Both readings recorded and either one above its cutoff."""
    return {
        "all": [
            {"metric": "latest.systolic_bp", "op": "present"},
            {"metric": "latest.diastolic_bp", "op": "present"},
            {
                "any": [
                    {"metric": "latest.systolic_bp", "op": ">", "value": systolic_high},
                    {"metric": "latest.diastolic_bp", "op": ">", "value": diastolic_high},
                ]
            },
        ]
    }


def lookup_metric(metrics: Mapping[str, Any], metric_key: str) -> Any:
    if metric_key in metrics:
        return metrics[metric_key]

    current: Any = metrics
    for part in (metric_key or "").split("."):
        if not part:
            return None
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def evaluate_condition(condition: Any, metrics: Mapping[str, Any]) -> bool:
    """Evaluate a condition tree; malformed conditions never match."""
    if not isinstance(condition, Mapping):
        return False

    if "all" in condition:
        items = condition.get("all")
        if not isinstance(items, Sequence) or not items:
            return False
        return all(evaluate_condition(item, metrics) for item in items)

    if "any" in condition:
        items = condition.get("any")
        if not isinstance(items, Sequence) or not items:
            return False
        return any(evaluate_condition(item, metrics) for item in items)

    if "metric" in condition:
        return _eval_atomic_condition(condition, metrics)

    return False


def _eval_atomic_condition(condition: Mapping[str, Any], metrics: Mapping[str, Any]) -> bool:
    metric = str(condition.get("metric") or "").strip()
    op = str(condition.get("op") or "==").strip().lower()
    observed_raw = lookup_metric(metrics, metric)
    if observed_raw is None:
        return False

    if op == "present":
        return True

    if op == "is_true":
        return observed_raw is True

    if op in _TEXT_OPS:
        if not isinstance(observed_raw, str) or not observed_raw.strip():
            return False
        observed_text = observed_raw.strip().lower()
        target_text = str(condition.get("value") or "").strip().lower()
        return observed_text == target_text if op == "eq_text" else observed_text != target_text

    if op not in _NUMERIC_OPS:
        return False
    observed = _coerce_float(observed_raw)
    target = _coerce_float(condition.get("value"))
    if observed is None or target is None:
        return False
    if op == ">":
        return observed > target
    if op == "<":
        return observed < target
    if op == ">=":
        return observed >= target
    if op == "<=":
        return observed <= target
    if op == "==":
        return observed == target
    return observed != target


def _coerce_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


__all__ = ["evaluate_condition", "lookup_metric", "summary_metrics"]
